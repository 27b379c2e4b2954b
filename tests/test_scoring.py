from dataclasses import replace

from performance_models import MetricsSnapshot, PerformanceMetrics
from review import review_category
from scoring import (
    NEUTRAL_EVENT_RESPONSE,
    SCORE_WEIGHTS,
    assemble_metrics,
    score_performance,
)


def _metrics(**overrides) -> PerformanceMetrics:
    values = dict(
        song_familiarity=50.0,
        gear_quality=50.0,
        band_chemistry=50.0,
        setlist_flow=50.0,
        crowd_management=50.0,
        event_responses=50.0,
    )
    values.update(overrides)
    return PerformanceMetrics(**values)


def test_weights_form_a_convex_combination():
    assert abs(sum(SCORE_WEIGHTS.values()) - 1.0) < 1e-9
    assert all(weight > 0 for weight in SCORE_WEIGHTS.values())


def test_worked_example_scores_71_and_reads_as_good():
    metrics = PerformanceMetrics(
        song_familiarity=80,
        gear_quality=60,
        band_chemistry=70,
        setlist_flow=75,
        crowd_management=65,
        event_responses=70,
    )
    score = score_performance(metrics)
    assert score == 71
    assert review_category(score) == "good"


def test_extremes_map_to_bounds():
    assert score_performance(_metrics(**{name: 0.0 for name in SCORE_WEIGHTS})) == 0
    assert score_performance(_metrics(**{name: 100.0 for name in SCORE_WEIGHTS})) == 100


def test_score_is_monotonic_in_each_metric():
    base = _metrics()
    for name in SCORE_WEIGHTS:
        previous = -1
        for value in range(0, 101, 5):
            score = score_performance(replace(base, **{name: float(value)}))
            assert 0 <= score <= 100
            assert score >= previous, name
            previous = score


def test_score_is_pure():
    metrics = _metrics(song_familiarity=83.3, crowd_management=61.7)
    assert len({score_performance(metrics) for _ in range(20)}) == 1


def test_assemble_uses_neutral_event_default_when_no_events():
    snapshot = MetricsSnapshot(song_familiarity=80, gear_quality=60, band_chemistry=70, setlist_flow=75)
    metrics = assemble_metrics(snapshot, [50.0, 70.0, 60.0], [])
    assert metrics.event_responses == NEUTRAL_EVENT_RESPONSE == 70.0
    assert metrics.crowd_management == 60.0


def test_assemble_averages_responses_and_clamps_inputs():
    snapshot = MetricsSnapshot(song_familiarity=140, gear_quality=-20, band_chemistry=70, setlist_flow=75)
    metrics = assemble_metrics(snapshot, [50.0], [100, 40])
    assert metrics.song_familiarity == 100.0
    assert metrics.gear_quality == 0.0
    assert metrics.event_responses == 70.0
