# -*- coding: utf-8 -*-
########################
# performance_clock.py
########################
# Purpose:
# - Qt wall-clock driver that auto-advances a PerformanceSession through its phases.
# - Emits signals for UI subscribers when phases change, events appear and the performance completes.
#
# Design notes:
# - Gameplay logic must not depend on PerformanceClock. PerformanceSession is the source of truth.
# - PhaseTimer owns the pacing arithmetic; this module only wires it to a QTimer.
# - All session calls happen on the Qt thread, which serializes them (single writer per session).
# - While an event is pending the clock holds; the owner resolves or discards it, then the clock resumes.
#
########################
# Interfaces:
# Public classes:
# - class PerformanceClock(PyQt6.QtCore.QObject)
#   - Signals:
#     - tickUpdated(float)            elapsed seconds in the current phase
#     - phaseAdvanced(object)         PerformancePhase
#     - eventRaised(object)           PerformanceEvent
#     - performanceCompleted(object)  PerformanceResult
#     - errorOccurred(str)
#   - Methods:
#     - start() -> None
#     - stop() -> None
#     - is_running() -> bool
#     - tick(delta_seconds: float = 1.0) -> TimerAction
#
# Inputs:
# - A started PerformanceSession.
#
# Outputs:
# - Qt signals, and calls to session.advance() / session.complete().
#
########################

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from performance_models import PerformanceError
from performance_session import PerformanceSession
from phase_timer import PhaseTimer, TimerAction


logger = logging.getLogger(__name__)


class PerformanceClock(QObject):
    tickUpdated = pyqtSignal(float)
    phaseAdvanced = pyqtSignal(object)
    eventRaised = pyqtSignal(object)
    performanceCompleted = pyqtSignal(object)
    errorOccurred = pyqtSignal(str)

    def __init__(
        self,
        session: PerformanceSession,
        *,
        tick_interval_ms: int = 1000,
        seconds_per_tick: float = 1.0,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._session = session
        self._phase_timer = PhaseTimer()
        self._seconds_per_tick = float(seconds_per_tick)
        self._announced_event_id: Optional[str] = None

        self._timer = QTimer(self)
        self._timer.setInterval(int(max(10, tick_interval_ms)))
        self._timer.timeout.connect(self._on_timeout)

    def start(self) -> None:
        if not self._session.is_active:
            raise PerformanceError("PerformanceClock needs a started session")
        self._phase_timer.reset()
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def is_running(self) -> bool:
        return bool(self._timer.isActive())

    def _on_timeout(self) -> None:
        self.tick(self._seconds_per_tick)

    def tick(self, delta_seconds: float = 1.0) -> TimerAction:
        session = self._session
        if not session.is_active:
            self.stop()
            return TimerAction.IDLE

        action = self._phase_timer.tick(
            delta_seconds,
            phase_duration_seconds=session.current_phase.duration_seconds,
            is_final_phase=session.is_final_phase,
            has_pending_event=session.pending_event is not None,
        )

        try:
            if action == TimerAction.ADVANCE:
                pending = session.advance()
                self.phaseAdvanced.emit(session.current_phase)
                self._announce_event(pending)
            elif action == TimerAction.COMPLETE:
                self.stop()
                result = session.complete()
                self.performanceCompleted.emit(result)
            elif action == TimerAction.WAIT_FOR_EVENT:
                self._announce_event(session.pending_event)
        except PerformanceError as exception:
            logger.error("performance clock stopped: %s", exception)
            self.stop()
            self.errorOccurred.emit(str(exception))
            return action

        self.tickUpdated.emit(self._phase_timer.elapsed_seconds())
        return action

    def _announce_event(self, pending_event) -> None:
        if pending_event is None or pending_event.event_id == self._announced_event_id:
            return
        self._announced_event_id = pending_event.event_id
        self.eventRaised.emit(pending_event)
