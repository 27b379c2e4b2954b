# -*- coding: utf-8 -*-
########################
# scoring.py
########################
# Purpose:
# - Performance scoring engine: a fixed convex weighted sum of six metrics, rounded to an integer in [0, 100].
# - Caller-side assembly of PerformanceMetrics from the metrics snapshot and the session aggregates.
#
# Design notes:
# - No Qt usage. score_performance is pure: no randomness, no I/O.
# - Clamping and neutral defaults happen in assemble_metrics, never inside score_performance.
#
########################
# Interfaces:
# Public constants:
# - SCORE_WEIGHTS: dict[str, float]  (sums to 1.0)
# - NEUTRAL_METRIC: float
# - NEUTRAL_EVENT_RESPONSE: float
#
# Public functions:
# - score_performance(metrics: PerformanceMetrics) -> int
# - assemble_metrics(snapshot: MetricsSnapshot, energy_history: Sequence[float],
#                    responses: Sequence[int]) -> PerformanceMetrics
#
########################

from __future__ import annotations

from typing import Dict, Sequence

from performance_models import MetricsSnapshot, PerformanceMetrics, clamp_unit_score


SCORE_WEIGHTS: Dict[str, float] = {
    "song_familiarity": 0.25,
    "gear_quality": 0.15,
    "band_chemistry": 0.20,
    "setlist_flow": 0.15,
    "crowd_management": 0.15,
    "event_responses": 0.10,
}

NEUTRAL_METRIC = 50.0
NEUTRAL_EVENT_RESPONSE = 70.0


def score_performance(metrics: PerformanceMetrics) -> int:
    weighted_total = (
        metrics.song_familiarity * SCORE_WEIGHTS["song_familiarity"]
        + metrics.gear_quality * SCORE_WEIGHTS["gear_quality"]
        + metrics.band_chemistry * SCORE_WEIGHTS["band_chemistry"]
        + metrics.setlist_flow * SCORE_WEIGHTS["setlist_flow"]
        + metrics.crowd_management * SCORE_WEIGHTS["crowd_management"]
        + metrics.event_responses * SCORE_WEIGHTS["event_responses"]
    )
    # Half-up rounding. Built-in round() would send 70.5 to 70.
    return int(weighted_total + 0.5)


def _mean(values: Sequence[float]) -> float:
    return float(sum(values)) / float(len(values))


def assemble_metrics(
    snapshot: MetricsSnapshot,
    energy_history: Sequence[float],
    responses: Sequence[int],
) -> PerformanceMetrics:
    crowd_management = _mean(energy_history) if energy_history else NEUTRAL_METRIC
    event_responses = _mean(responses) if responses else NEUTRAL_EVENT_RESPONSE

    return PerformanceMetrics(
        song_familiarity=clamp_unit_score(snapshot.song_familiarity),
        gear_quality=clamp_unit_score(snapshot.gear_quality),
        band_chemistry=clamp_unit_score(snapshot.band_chemistry),
        setlist_flow=clamp_unit_score(snapshot.setlist_flow),
        crowd_management=clamp_unit_score(crowd_management),
        event_responses=clamp_unit_score(event_responses),
    )


def _run_unit_tests() -> None:
    assert abs(sum(SCORE_WEIGHTS.values()) - 1.0) < 1e-9

    metrics = PerformanceMetrics(
        song_familiarity=80,
        gear_quality=60,
        band_chemistry=70,
        setlist_flow=75,
        crowd_management=65,
        event_responses=70,
    )
    assert score_performance(metrics) == 71

    snapshot = MetricsSnapshot(song_familiarity=120, gear_quality=-5, band_chemistry=50, setlist_flow=50)
    assembled = assemble_metrics(snapshot, [50.0, 60.0], [])
    assert assembled.song_familiarity == 100.0
    assert assembled.gear_quality == 0.0
    assert assembled.crowd_management == 55.0
    assert assembled.event_responses == NEUTRAL_EVENT_RESPONSE


if __name__ == "__main__":
    _run_unit_tests()
    print("scoring.py: ok")
