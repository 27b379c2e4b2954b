# -*- coding: utf-8 -*-
########################
# review.py
########################
# Purpose:
# - Review generator: maps a performance score to a category, a headline and summary, and derives
#   critic and fan sub-scores with bounded random variance.
# - Builds the highlight strings attached to a PerformanceResult.
#
# Design notes:
# - No Qt usage. Randomness comes from the injected random.Random.
# - Category bounds are inclusive on the lower edge and cover [0, 100] without gaps.
# - Fans are biased upward relative to critics (+5 before clamping).
#
########################
# Interfaces:
# Public constants:
# - REVIEW_HEADLINES: dict[str, tuple[str, ...]]
# - CATEGORY_THRESHOLDS: tuple[tuple[str, int], ...]
#
# Public dataclasses:
# - Review(category: str, headline: str, summary: str, critic_score: int, fan_score: int)
#
# Public classes:
# - class ReviewGenerator
#   - __init__(rng: random.Random)
#   - generate(score: int) -> Review
#
# Public functions:
# - review_category(score: int) -> str
# - build_highlights(score: int, responses: Sequence[int]) -> tuple[str, ...]
#
########################

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple


CATEGORY_THRESHOLDS: Tuple[Tuple[str, int], ...] = (
    ("excellent", 85),
    ("good", 70),
    ("average", 50),
    ("poor", 0),
)

REVIEW_HEADLINES: Dict[str, Tuple[str, ...]] = {
    "excellent": (
        "A Performance for the Ages",
        "Absolutely Electric!",
        "Best Festival Set This Year",
        "The Crowd Went Wild",
        "Unforgettable Night",
    ),
    "good": (
        "Solid Festival Performance",
        "Crowd-Pleasing Set",
        "A Good Time Was Had",
        "Energetic Show",
        "Worth the Wait",
    ),
    "average": (
        "Decent But Unmemorable",
        "Middle of the Road",
        "They Played, We Listened",
        "Room for Improvement",
        "Not Bad, Not Great",
    ),
    "poor": (
        "A Disappointing Display",
        "Crowd Left Early",
        "Technical Troubles Mar Set",
        "Below Expectations",
        "Forgettable Performance",
    ),
}

CRITIC_VARIANCE_SPAN = 20.0
FAN_VARIANCE_SPAN = 15.0
FAN_BIAS = 5

GREAT_RESPONSE_THRESHOLD = 80


@dataclass(frozen=True)
class Review:
    category: str
    headline: str
    summary: str
    critic_score: int
    fan_score: int


def review_category(score: int) -> str:
    for category, lower_bound in CATEGORY_THRESHOLDS:
        if score >= lower_bound:
            return category
    return "poor"


def _clamp_score(value: int) -> int:
    return int(min(100, max(0, value)))


class ReviewGenerator:
    def __init__(self, rng: random.Random) -> None:
        self._rng = rng

    def _variance(self, span: float) -> int:
        # floor((u - 0.5) * span) with u in [0, 1): -span/2 <= variance < span/2
        return int(math.floor((self._rng.random() - 0.5) * span))

    def generate(self, score: int) -> Review:
        category = review_category(score)
        headline = self._rng.choice(REVIEW_HEADLINES[category])
        critic_score = _clamp_score(score + self._variance(CRITIC_VARIANCE_SPAN))
        fan_score = _clamp_score(score + self._variance(FAN_VARIANCE_SPAN) + FAN_BIAS)
        return Review(
            category=category,
            headline=headline,
            summary=f"The band delivered a {category} performance with a score of {score}/100.",
            critic_score=critic_score,
            fan_score=fan_score,
        )


def build_highlights(score: int, responses: Sequence[int]) -> Tuple[str, ...]:
    highlights: List[str] = ["Great crowd interaction!" for response in responses if response >= GREAT_RESPONSE_THRESHOLD]
    if score >= 75:
        highlights.append("Crowd interaction - front row connection")
    if score >= 85:
        highlights.append("Encore demanded by crowd!")
    return tuple(highlights)


def _run_unit_tests() -> None:
    assert review_category(100) == "excellent"
    assert review_category(85) == "excellent"
    assert review_category(84) == "good"
    assert review_category(70) == "good"
    assert review_category(50) == "average"
    assert review_category(49) == "poor"
    assert review_category(0) == "poor"

    generator = ReviewGenerator(random.Random(11))
    for score in range(0, 101):
        review = generator.generate(score)
        assert review.headline in REVIEW_HEADLINES[review.category]
        assert 0 <= review.critic_score <= 100
        assert 0 <= review.fan_score <= 100

    assert build_highlights(60, [90, 40, 80]) == ("Great crowd interaction!", "Great crowd interaction!")


if __name__ == "__main__":
    _run_unit_tests()
    print("review.py: ok")
