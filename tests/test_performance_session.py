import random

import pytest

from config import EngineConfig
from crowd_energy import StageAction
from metrics_provider import StaticMetricsProvider
from performance_models import (
    InvalidEventError,
    InvalidStateError,
    MetricsSnapshot,
    MetricsUnavailableError,
    PerformanceContext,
    RewardBaselines,
)
from performance_session import PerformanceEngine, SessionState


SNAPSHOT = MetricsSnapshot(song_familiarity=80, gear_quality=60, band_chemistry=70, setlist_flow=75)


class FailingProvider:
    def fetch(self, context, rng):
        raise ConnectionError("backend unreachable")


def _engine(probability=0.4, provider=None, seed=1):
    return PerformanceEngine(
        provider or StaticMetricsProvider(SNAPSHOT),
        engine_config=EngineConfig(event_probability=probability),
        rng=random.Random(seed),
        clock=lambda: 0.0,
    )


def _started(probability=0.4, seed=42, context=None):
    session = _engine(probability).create_session(context or PerformanceContext(band_id="band-1"), seed=seed)
    session.start()
    return session


def test_start_initializes_the_session():
    session = _engine().create_session(PerformanceContext(), seed=1)
    assert session.state == SessionState.CREATED
    assert not session.is_active
    session.start()
    assert session.is_active
    assert session.current_phase_index == 0
    assert session.crowd_energy == 50.0
    assert session.crowd_energy_history == (50.0,)
    assert session.event_responses == ()
    assert session.pending_event is None
    assert session.metrics_snapshot == SNAPSHOT


def test_operations_before_start_fail():
    session = _engine().create_session(PerformanceContext(), seed=1)
    with pytest.raises(InvalidStateError):
        session.advance()
    with pytest.raises(InvalidStateError):
        session.complete()
    with pytest.raises(InvalidStateError):
        session.resolve_event("x", 0)


def test_start_twice_fails():
    session = _started()
    with pytest.raises(InvalidStateError):
        session.start()


def test_advancing_reaches_final_phase_and_then_is_a_no_op():
    session = _started(probability=0.0)
    phase_count = len(session.phases)
    for _ in range(phase_count - 1):
        session.advance()
    assert session.is_final_phase
    assert session.current_phase_index == phase_count - 1
    history_length = len(session.crowd_energy_history)
    assert history_length == phase_count

    assert session.advance() is None
    assert session.current_phase_index == phase_count - 1
    assert len(session.crowd_energy_history) == history_length


def test_resolved_event_adds_a_second_history_sample():
    session = _started(probability=1.0)
    pending = session.advance()
    assert pending is not None
    assert len(session.crowd_energy_history) == 2
    new_energy = session.resolve_event(pending.event_id, 0)
    assert len(session.crowd_energy_history) == 3
    assert session.crowd_energy == new_energy
    assert session.event_responses == (pending.options[0].score,)


def test_resolve_without_pending_event_fails():
    session = _started(probability=0.0)
    session.advance()
    with pytest.raises(InvalidEventError):
        session.resolve_event("missing", 0)


def test_complete_with_pending_event_fails_until_resolved():
    session = _started(probability=1.0)
    pending = session.advance()
    with pytest.raises(InvalidStateError):
        session.complete()
    assert session.is_active
    session.resolve_event(pending.event_id, 0)
    result = session.complete()
    assert session.state == SessionState.COMPLETED
    assert session.result is result


def test_complete_succeeds_after_discarding():
    session = _started(probability=1.0)
    session.advance()
    discarded = session.discard_pending_event()
    assert discarded.event_id
    result = session.complete()
    assert result.metrics.event_responses == 70.0


def test_complete_twice_fails():
    session = _started(probability=0.0)
    session.complete()
    with pytest.raises(InvalidStateError):
        session.complete()
    with pytest.raises(InvalidStateError):
        session.advance()


def test_session_without_events_uses_neutral_event_score():
    session = _started(probability=0.0)
    while not session.is_final_phase:
        session.advance()
    result = session.complete()
    assert result.metrics.event_responses == 70.0
    assert result.highlights in ((), ("Crowd interaction - front row connection",))


def test_result_is_consistent_with_history():
    session = _started(probability=1.0)
    while not session.is_final_phase:
        pending = session.advance()
        if pending is not None:
            best = max(range(len(pending.options)), key=lambda index: pending.options[index].score)
            session.resolve_event(pending.event_id, best)
    history = session.crowd_energy_history
    result = session.complete()

    assert result.crowd_energy_history == history
    assert result.crowd_energy_peak == max(history)
    assert result.crowd_energy_avg == int(sum(history) / len(history) + 0.5)
    assert result.metrics.crowd_management == pytest.approx(sum(history) / len(history))
    assert 0 <= result.performance_score <= 100
    assert min(result.payment_earned, result.fame_earned, result.merch_revenue, result.new_fans_gained) >= 0
    assert result.highlights.count("Great crowd interaction!") == sum(
        1 for score in session.event_responses if score >= 80
    )
    with pytest.raises(Exception):
        result.performance_score = 0


@pytest.mark.parametrize("seed", range(25))
def test_energy_stays_in_range_for_any_seed(seed):
    rng = random.Random(seed)
    session = _started(probability=0.6, seed=seed)
    for _ in range(40):
        roll = rng.random()
        if session.pending_event is not None and roll < 0.5:
            session.resolve_event(session.pending_event.event_id, rng.randrange(len(session.pending_event.options)))
        elif roll < 0.7:
            session.advance()
        else:
            session.perform_stage_action(rng.choice(list(StageAction)))
        assert 0.0 <= session.crowd_energy <= 100.0
    assert all(0.0 <= sample <= 100.0 for sample in session.crowd_energy_history)


def test_seeded_sessions_replay_identically():
    def play(seed):
        session = _started(probability=0.5, seed=seed)
        while not session.is_final_phase:
            pending = session.advance()
            if pending is not None:
                session.resolve_event(pending.event_id, 1)
        return session.complete().to_dict()

    assert play(7) == play(7)


def test_stage_actions():
    session = _started(probability=0.0)
    assert session.perform_stage_action(StageAction.HYPE) == 62.0
    assert session.perform_stage_action("build_tension") == 59.0
    with pytest.raises(ValueError):
        session.perform_stage_action("moonwalk")


def test_slot_type_and_baselines_flow_into_rewards():
    context = PerformanceContext(
        band_id="band-1",
        slot_type="headliner",
        baselines=RewardBaselines(base_payment=2000, base_fame=200, base_merch=0, base_fans=0),
    )
    session = _started(probability=0.0, context=context)
    result = session.complete()
    score = result.performance_score
    assert result.payment_earned == int(3000 * (1 + score / 100) + 0.5)
    assert result.fame_earned == int(300 * (1 + score / 50) + 0.5)
    assert result.merch_revenue == 0
    assert result.new_fans_gained == 0


def test_main_stage_slot_is_normalized_and_paid_at_its_rate():
    context = PerformanceContext(
        slot_type=" Main ",
        baselines=RewardBaselines(base_payment=2000, base_fame=200, base_merch=0, base_fans=0),
    )
    session = _started(probability=0.0, context=context)
    assert session.context.slot_type == "main"
    result = session.complete()
    assert result.payment_earned == int(2500 * (1 + result.performance_score / 100) + 0.5)


@pytest.mark.parametrize("slot_type", ["closer", "opener", "busker"])
def test_unknown_slot_is_rejected_when_the_session_is_created(slot_type):
    engine = _engine()
    with pytest.raises(ValueError):
        engine.create_session(PerformanceContext(slot_type=slot_type), seed=1)


class CannedProvider:
    def __init__(self, returned):
        self.returned = returned

    def fetch(self, context, rng):
        return self.returned


@pytest.mark.parametrize("returned", [None, {"song_familiarity": 50}, 70.0])
def test_provider_returning_something_other_than_a_snapshot_is_unavailable(returned):
    session = _engine(provider=CannedProvider(returned)).create_session(PerformanceContext(), seed=1)
    with pytest.raises(MetricsUnavailableError):
        session.start()
    assert session.state == SessionState.CREATED


def test_metrics_failure_keeps_the_session_inactive():
    session = _engine(provider=FailingProvider()).create_session(PerformanceContext(), seed=1)
    with pytest.raises(MetricsUnavailableError):
        session.start()
    assert session.state == SessionState.CREATED
    with pytest.raises(InvalidStateError):
        session.advance()


def test_out_of_range_metrics_are_rejected():
    bad = MetricsSnapshot(song_familiarity=101, gear_quality=60, band_chemistry=70, setlist_flow=75)
    session = _engine(provider=StaticMetricsProvider(bad)).create_session(PerformanceContext(), seed=1)
    with pytest.raises(MetricsUnavailableError):
        session.start()
    assert not session.is_active


def test_snapshot_is_json_friendly():
    session = _started(probability=1.0)
    session.advance()
    payload = session.snapshot()
    assert payload["state"] == "active"
    assert payload["pending_event"]["options"]
    assert payload["result"] is None


def test_engine_gives_sessions_distinct_ids():
    engine = _engine()
    first = engine.create_session(PerformanceContext())
    second = engine.create_session(PerformanceContext())
    assert first.session_id != second.session_id
