import random

import pytest

QtCore = pytest.importorskip("PyQt6.QtCore")

from config import EngineConfig
from metrics_provider import StaticMetricsProvider
from performance_models import MetricsSnapshot, PerformanceContext, PerformancePhase, PhaseType
from performance_session import PerformanceEngine
from phase_timer import TimerAction


SHORT_PHASES = (
    PerformancePhase("one", "One", "First", 1, PhaseType.OPENING),
    PerformancePhase("two", "Two", "Second", 1, PhaseType.MAIN_SET),
    PerformancePhase("three", "Three", "Third", 1, PhaseType.CLIMAX),
)


@pytest.fixture(scope="module")
def qt_application():
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])


def _session(event_probability):
    provider = StaticMetricsProvider(
        MetricsSnapshot(song_familiarity=70, gear_quality=60, band_chemistry=65, setlist_flow=75)
    )
    engine = PerformanceEngine(
        provider,
        engine_config=EngineConfig(event_probability=event_probability),
        phases=SHORT_PHASES,
        rng=random.Random(2),
    )
    session = engine.create_session(PerformanceContext())
    session.start()
    return session


def test_clock_walks_phases_and_completes(qt_application):
    from performance_clock import PerformanceClock

    session = _session(0.0)
    clock = PerformanceClock(session)
    advanced, completed = [], []
    clock.phaseAdvanced.connect(advanced.append)
    clock.performanceCompleted.connect(completed.append)

    clock.start()
    assert clock.is_running()
    assert clock.tick(1.0) == TimerAction.ADVANCE
    assert clock.tick(1.0) == TimerAction.ADVANCE
    assert clock.tick(1.0) == TimerAction.COMPLETE

    assert [phase.phase_id for phase in advanced] == ["two", "three"]
    assert len(completed) == 1
    assert not clock.is_running()
    assert clock.tick(1.0) == TimerAction.IDLE


def test_clock_holds_for_pending_event(qt_application):
    from performance_clock import PerformanceClock

    session = _session(1.0)
    clock = PerformanceClock(session)
    raised = []
    clock.eventRaised.connect(raised.append)

    assert clock.tick(1.0) == TimerAction.ADVANCE
    assert len(raised) == 1
    assert clock.tick(5.0) == TimerAction.WAIT_FOR_EVENT
    assert clock.tick(5.0) == TimerAction.WAIT_FOR_EVENT
    assert len(raised) == 1
    assert session.current_phase_index == 1

    session.discard_pending_event()
    assert clock.tick(0.5) == TimerAction.IDLE


def test_clock_refuses_unstarted_session(qt_application):
    from performance_clock import PerformanceClock
    from performance_models import PerformanceError

    engine = PerformanceEngine(
        StaticMetricsProvider(MetricsSnapshot(song_familiarity=1, gear_quality=1, band_chemistry=1, setlist_flow=1))
    )
    clock = PerformanceClock(engine.create_session(PerformanceContext()))
    with pytest.raises(PerformanceError):
        clock.start()
