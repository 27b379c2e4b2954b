# -*- coding: utf-8 -*-
########################
# performance_session.py
########################
# Purpose:
# - Live performance session state machine and the engine that creates sessions.
# - Integrates MetricsProvider + PhaseSequencer + CrowdEnergyTracker + EventGenerator and, at completion,
#   scoring + rewards + review into one immutable PerformanceResult.
#
# Design notes:
# - No Qt usage. Single-threaded and cooperative: the engine never sleeps or schedules.
# - Callers must serialize advance/resolve/complete per session. This is not enforced with locks.
# - The listed session operations are the only mutators. Everything else is a read-only view.
# - Each session owns a random.Random. Passing a seed makes the whole session replayable.
# - Abandoning a session before complete() needs no cleanup and yields no rewards.
#
########################
# Interfaces:
# Public enums:
# - class SessionState(enum.Enum): CREATED | ACTIVE | COMPLETED
#
# Public classes:
# - class PerformanceEngine
#   - __init__(metrics_provider: MetricsProvider, *, engine_config: Optional[EngineConfig] = None,
#              phases: Sequence[PerformancePhase] = PERFORMANCE_PHASES,
#              catalog: Sequence[EventTemplate] = EVENT_CATALOG,
#              rng: Optional[random.Random] = None, clock: Callable[[], float] = time.time)
#   - phases() -> tuple[PerformancePhase, ...]
#   - catalog() -> tuple[EventTemplate, ...]
#   - create_session(context: PerformanceContext, *, seed: Optional[int] = None) -> PerformanceSession
#     (raises ValueError for an unknown slot_type)
#
# - class PerformanceSession
#   - start() -> None
#   - advance() -> Optional[PerformanceEvent]
#   - resolve_event(event_id: str, option_index: int) -> float
#   - discard_pending_event() -> PerformanceEvent
#   - perform_stage_action(action: StageAction | str) -> float
#   - complete() -> PerformanceResult
#   - read-only: session_id, context, state, is_active, current_phase_index, current_phase, crowd_energy,
#     crowd_energy_history, event_responses, pending_event, metrics_snapshot, result
#   - snapshot() -> dict[str, Any]
#
# Inputs:
# - PerformanceContext (band id, slot type, reward baselines).
# - MetricsSnapshot from the MetricsProvider, fetched once in start().
#
# Outputs:
# - PerformanceResult, handed to an OutcomePersister by the caller.
#
########################

from __future__ import annotations

import enum
import logging
import random
import time
import uuid
from dataclasses import replace
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Union

import review
import rewards
import scoring
from config import EngineConfig
from crowd_energy import CrowdEnergyTracker, StageAction
from event_generator import EVENT_CATALOG, EventGenerator
from metrics_provider import MetricsProvider, validate_snapshot
from performance_models import (
    EventTemplate,
    InvalidStateError,
    MetricsSnapshot,
    MetricsUnavailableError,
    PerformanceContext,
    PerformanceEvent,
    PerformancePhase,
    PerformanceResult,
)
from phase_sequencer import PERFORMANCE_PHASES, PhaseSequencer


logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    CREATED = "created"
    ACTIVE = "active"
    COMPLETED = "completed"


class PerformanceSession:
    def __init__(
        self,
        *,
        session_id: str,
        context: PerformanceContext,
        metrics_provider: MetricsProvider,
        engine_config: EngineConfig,
        phases: Sequence[PerformancePhase],
        catalog: Sequence[EventTemplate],
        rng: random.Random,
        clock: Callable[[], float],
    ) -> None:
        self._session_id = session_id
        self._context = replace(context, slot_type=rewards.normalize_slot_type(context.slot_type))
        self._metrics_provider = metrics_provider
        self._rng = rng
        self._state = SessionState.CREATED

        self._sequencer = PhaseSequencer(phases)
        self._tracker = CrowdEnergyTracker(
            rng,
            initial_energy=engine_config.initial_energy,
            fluctuation=engine_config.energy_fluctuation,
        )
        self._events = EventGenerator(
            rng,
            self._tracker,
            event_probability=engine_config.event_probability,
            catalog=catalog,
            clock=clock,
        )
        self._review_generator = review.ReviewGenerator(rng)

        self._metrics_snapshot: Optional[MetricsSnapshot] = None
        self._result: Optional[PerformanceResult] = None

    # Read-only views

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def context(self) -> PerformanceContext:
        return self._context

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == SessionState.ACTIVE

    @property
    def current_phase_index(self) -> int:
        return self._sequencer.current_index()

    @property
    def current_phase(self) -> PerformancePhase:
        return self._sequencer.current_phase()

    @property
    def phases(self) -> Tuple[PerformancePhase, ...]:
        return self._sequencer.phases()

    @property
    def is_final_phase(self) -> bool:
        return self._sequencer.is_final_phase()

    @property
    def crowd_energy(self) -> float:
        return self._tracker.energy

    @property
    def crowd_energy_history(self) -> Tuple[float, ...]:
        return self._tracker.history()

    @property
    def event_responses(self) -> Tuple[int, ...]:
        return self._events.responses()

    @property
    def pending_event(self) -> Optional[PerformanceEvent]:
        return self._events.pending_event

    @property
    def metrics_snapshot(self) -> Optional[MetricsSnapshot]:
        return self._metrics_snapshot

    @property
    def result(self) -> Optional[PerformanceResult]:
        return self._result

    # Transitions

    def _require_active(self, operation: str) -> None:
        if self._state != SessionState.ACTIVE:
            raise InvalidStateError(f"cannot {operation}: session {self._session_id} is {self._state.value}")

    def start(self) -> None:
        if self._state != SessionState.CREATED:
            raise InvalidStateError(f"cannot start: session {self._session_id} is {self._state.value}")

        try:
            snapshot = self._metrics_provider.fetch(self._context, self._rng)
        except MetricsUnavailableError:
            logger.warning("session %s: metrics unavailable, not starting", self._session_id)
            raise
        except Exception as exception:
            logger.error("session %s: metrics provider failed: %s", self._session_id, exception)
            raise MetricsUnavailableError(f"metrics provider failed: {exception}") from exception

        self._metrics_snapshot = validate_snapshot(snapshot)
        self._sequencer.reset()
        self._tracker.reset()
        self._events.reset()
        self._state = SessionState.ACTIVE
        logger.info("session %s started for band %r", self._session_id, self._context.band_id)

    def advance(self) -> Optional[PerformanceEvent]:
        """Move to the next phase. Returns the event awaiting a response, if any.

        A no-op at the final phase.
        """
        self._require_active("advance")
        if not self._sequencer.advance():
            return self._events.pending_event

        self._events.maybe_generate()
        self._tracker.natural_fluctuation()
        logger.debug(
            "session %s advanced to %s (energy=%.1f)",
            self._session_id,
            self._sequencer.current_phase().phase_id,
            self._tracker.energy,
        )
        return self._events.pending_event

    def resolve_event(self, event_id: str, option_index: int) -> float:
        self._require_active("resolve an event")
        return self._events.resolve(event_id, option_index)

    def discard_pending_event(self) -> PerformanceEvent:
        self._require_active("discard an event")
        return self._events.discard_pending()

    def perform_stage_action(self, action: Union[StageAction, str]) -> float:
        self._require_active("perform a stage action")
        try:
            stage_action = action if isinstance(action, StageAction) else StageAction(str(action).strip().lower())
        except ValueError as exception:
            raise ValueError(f"unknown stage action: {action!r}") from exception
        return self._tracker.apply_delta(stage_action.delta)

    def complete(self) -> PerformanceResult:
        self._require_active("complete")
        pending = self._events.pending_event
        if pending is not None:
            raise InvalidStateError(
                f"cannot complete: event {pending.event_id} is pending; resolve or discard it first"
            )
        if self._metrics_snapshot is None:
            raise InvalidStateError(f"cannot complete: session {self._session_id} has no metrics snapshot")

        history = self._tracker.history()
        responses = self._events.responses()

        metrics = scoring.assemble_metrics(self._metrics_snapshot, history, responses)
        performance_score = scoring.score_performance(metrics)

        crowd_energy_avg = int(self._tracker.average() + 0.5)
        baselines = rewards.slot_adjusted_baselines(self._context.baselines, self._context.slot_type)
        earned = rewards.calculate_rewards(performance_score, baselines, crowd_energy_avg)

        performance_review = self._review_generator.generate(performance_score)

        result = PerformanceResult(
            performance_score=performance_score,
            crowd_energy_peak=self._tracker.peak(),
            crowd_energy_avg=crowd_energy_avg,
            payment_earned=earned.payment,
            fame_earned=earned.fame,
            merch_revenue=earned.merch_revenue,
            new_fans_gained=earned.new_fans,
            critic_score=performance_review.critic_score,
            fan_score=performance_review.fan_score,
            review_headline=performance_review.headline,
            review_summary=performance_review.summary,
            highlights=review.build_highlights(performance_score, responses),
            metrics=metrics,
            crowd_energy_history=history,
        )

        self._result = result
        self._state = SessionState.COMPLETED
        logger.info(
            "session %s completed: score=%d (%s) payment=%d fame=%d",
            self._session_id,
            performance_score,
            performance_review.category,
            earned.payment,
            earned.fame,
        )
        return result

    def snapshot(self) -> Dict[str, Any]:
        pending = self._events.pending_event
        return {
            "session_id": self._session_id,
            "band_id": self._context.band_id,
            "venue_name": self._context.venue_name,
            "slot_type": self._context.slot_type,
            "state": self._state.value,
            "current_phase_index": self.current_phase_index,
            "current_phase": self.current_phase.phase_id,
            "is_final_phase": self.is_final_phase,
            "crowd_energy": self.crowd_energy,
            "crowd_energy_history": list(self.crowd_energy_history),
            "event_responses": list(self.event_responses),
            "pending_event": pending.to_dict() if pending is not None else None,
            "result": self._result.to_dict() if self._result is not None else None,
        }


class PerformanceEngine:
    def __init__(
        self,
        metrics_provider: MetricsProvider,
        *,
        engine_config: Optional[EngineConfig] = None,
        phases: Sequence[PerformancePhase] = PERFORMANCE_PHASES,
        catalog: Sequence[EventTemplate] = EVENT_CATALOG,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._metrics_provider = metrics_provider
        self._engine_config = engine_config if engine_config is not None else EngineConfig()
        self._phases = tuple(phases)
        self._catalog = tuple(catalog)
        if rng is None:
            rng = random.Random(self._engine_config.seed)
        self._rng = rng
        self._clock = clock

    def phases(self) -> Tuple[PerformancePhase, ...]:
        return self._phases

    def catalog(self) -> Tuple[EventTemplate, ...]:
        return self._catalog

    def create_session(self, context: PerformanceContext, *, seed: Optional[int] = None) -> PerformanceSession:
        context = replace(context, slot_type=rewards.normalize_slot_type(context.slot_type))
        session_seed = seed if seed is not None else self._rng.getrandbits(64)
        session_rng = random.Random(session_seed)
        session_id = uuid.UUID(int=self._rng.getrandbits(128), version=4).hex
        logger.debug("creating session %s (seed=%d)", session_id, session_seed)
        return PerformanceSession(
            session_id=session_id,
            context=context,
            metrics_provider=self._metrics_provider,
            engine_config=self._engine_config,
            phases=self._phases,
            catalog=self._catalog,
            rng=session_rng,
            clock=self._clock,
        )


def _run_unit_tests() -> None:
    import metrics_provider

    provider = metrics_provider.StaticMetricsProvider(
        MetricsSnapshot(song_familiarity=80, gear_quality=60, band_chemistry=70, setlist_flow=75)
    )
    engine = PerformanceEngine(provider, rng=random.Random(1), clock=lambda: 0.0)
    session = engine.create_session(PerformanceContext(band_id="band-1"), seed=42)

    try:
        session.advance()
    except InvalidStateError:
        pass
    else:
        raise AssertionError("advance before start must fail")

    session.start()
    for _ in range(len(session.phases) - 1):
        pending = session.advance()
        if pending is not None:
            session.resolve_event(pending.event_id, 0)
    assert session.is_final_phase

    result = session.complete()
    assert 0 <= result.performance_score <= 100
    assert not session.is_active

    try:
        session.complete()
    except InvalidStateError:
        pass
    else:
        raise AssertionError("completing twice must fail")


if __name__ == "__main__":
    _run_unit_tests()
    print("performance_session.py: ok")
