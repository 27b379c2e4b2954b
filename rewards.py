# -*- coding: utf-8 -*-
########################
# rewards.py
########################
# Purpose:
# - Reward calculator: turns a performance score plus reward baselines into payment, fame,
#   merchandise revenue and new fans.
#
# Design notes:
# - No Qt usage. Pure and deterministic.
# - Every multiplier is monotonically non-decreasing in score.
# - Inputs are clamped up front so no output can be negative.
#
########################
# Interfaces:
# Public constants:
# - SLOT_MULTIPLIERS: dict[str, float]
#
# Public dataclasses:
# - Rewards(payment: int, fame: int, merch_revenue: int, new_fans: int)
#
# Public functions:
# - payment_multiplier(score: float) -> float
# - fame_multiplier(score: float) -> float
# - audience_factor(audience_size: int) -> float
# - normalize_slot_type(slot_type: str) -> str
# - slot_adjusted_baselines(baselines: RewardBaselines, slot_type: str) -> RewardBaselines
# - calculate_rewards(score: int, baselines: RewardBaselines, average_energy: float) -> Rewards
#
########################

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict

from performance_models import RewardBaselines, SLOT_TYPES, clamp_unit_score


SLOT_MULTIPLIERS: Dict[str, float] = {
    "opening": 0.75,
    "support": 1.0,
    "main": 1.25,
    "headliner": 1.5,
}


@dataclass(frozen=True)
class Rewards:
    payment: int
    fame: int
    merch_revenue: int
    new_fans: int


def _round_non_negative(value: float) -> int:
    return int(max(0.0, float(value)) + 0.5)


def payment_multiplier(score: float) -> float:
    return 1.0 + clamp_unit_score(score) / 100.0


def fame_multiplier(score: float) -> float:
    return 1.0 + clamp_unit_score(score) / 50.0


def audience_factor(audience_size: int) -> float:
    """Fan growth bonus for bigger crowds: 1.0 for an empty room, about 1.5 at 100k."""
    return 1.0 + math.log10(1.0 + max(0, int(audience_size))) / 10.0


def normalize_slot_type(slot_type: str) -> str:
    """Lower-case a billing slot name. Empty means support; anything unknown raises ValueError."""
    normalized_slot = (slot_type or "support").strip().lower()
    if normalized_slot not in SLOT_TYPES:
        raise ValueError(f"slot_type must be one of: {', '.join(SLOT_TYPES)}")
    return normalized_slot


def slot_adjusted_baselines(baselines: RewardBaselines, slot_type: str) -> RewardBaselines:
    multiplier = SLOT_MULTIPLIERS[normalize_slot_type(slot_type)]
    return replace(
        baselines,
        base_payment=_round_non_negative(baselines.base_payment * multiplier),
        base_fame=_round_non_negative(baselines.base_fame * multiplier),
    )


def calculate_rewards(score: int, baselines: RewardBaselines, average_energy: float) -> Rewards:
    bounded_score = clamp_unit_score(score)
    bounded_energy = clamp_unit_score(average_energy)

    base_payment = max(0, int(baselines.base_payment))
    base_fame = max(0, int(baselines.base_fame))
    base_merch = max(0, int(baselines.base_merch))
    base_fans = max(0, int(baselines.base_fans))

    fame_scale = fame_multiplier(bounded_score)

    return Rewards(
        payment=_round_non_negative(base_payment * payment_multiplier(bounded_score)),
        fame=_round_non_negative(base_fame * fame_scale),
        merch_revenue=_round_non_negative(base_merch * (bounded_score / 50.0) * (bounded_energy / 50.0)),
        new_fans=_round_non_negative(base_fans * fame_scale * audience_factor(baselines.audience_size)),
    )


def _run_unit_tests() -> None:
    rewards = calculate_rewards(90, RewardBaselines(base_payment=5000, base_fame=500), 50.0)
    assert rewards.payment == 9500
    assert rewards.fame == 1400
    assert rewards.merch_revenue == 1800

    zero = calculate_rewards(0, RewardBaselines(), 0.0)
    assert zero.merch_revenue == 0
    assert zero.payment == 5000

    headliner = slot_adjusted_baselines(RewardBaselines(), "headliner")
    assert headliner.base_payment == 7500


if __name__ == "__main__":
    _run_unit_tests()
    print("rewards.py: ok")
