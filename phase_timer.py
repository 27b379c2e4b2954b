# -*- coding: utf-8 -*-
########################
# phase_timer.py
########################
# Purpose:
# - Caller-side wall-clock pacing for a performance: accumulates elapsed seconds against the nominal
#   duration of the current phase and says what the driver should do next.
#
# Design notes:
# - No Qt usage. Keep this module pure and deterministic; PerformanceClock feeds it ticks.
# - The engine itself never sleeps or schedules. This helper belongs to the caller.
# - Time does not accumulate while an event waits for a response.
#
########################
# Interfaces:
# Public enums:
# - class TimerAction(enum.Enum): IDLE | ADVANCE | COMPLETE | WAIT_FOR_EVENT
#
# Public classes:
# - class PhaseTimer
#   - elapsed_seconds() -> float
#   - reset() -> None
#   - tick(delta_seconds: float, *, phase_duration_seconds: float, is_final_phase: bool,
#          has_pending_event: bool) -> TimerAction
#
########################

from __future__ import annotations

import enum


class TimerAction(enum.Enum):
    IDLE = "idle"
    ADVANCE = "advance"
    COMPLETE = "complete"
    WAIT_FOR_EVENT = "wait_for_event"


class PhaseTimer:
    def __init__(self) -> None:
        self._elapsed_seconds = 0.0

    def elapsed_seconds(self) -> float:
        return float(self._elapsed_seconds)

    def reset(self) -> None:
        self._elapsed_seconds = 0.0

    def tick(
        self,
        delta_seconds: float,
        *,
        phase_duration_seconds: float,
        is_final_phase: bool,
        has_pending_event: bool,
    ) -> TimerAction:
        if has_pending_event:
            return TimerAction.WAIT_FOR_EVENT

        self._elapsed_seconds += max(0.0, float(delta_seconds))
        if self._elapsed_seconds < float(phase_duration_seconds):
            return TimerAction.IDLE

        if is_final_phase:
            return TimerAction.COMPLETE

        self._elapsed_seconds = 0.0
        return TimerAction.ADVANCE


def _run_unit_tests() -> None:
    timer = PhaseTimer()
    assert timer.tick(1.0, phase_duration_seconds=2, is_final_phase=False, has_pending_event=False) == TimerAction.IDLE
    assert timer.tick(1.0, phase_duration_seconds=2, is_final_phase=False, has_pending_event=False) == TimerAction.ADVANCE
    assert timer.elapsed_seconds() == 0.0

    assert timer.tick(5.0, phase_duration_seconds=2, is_final_phase=False, has_pending_event=True) == TimerAction.WAIT_FOR_EVENT
    assert timer.elapsed_seconds() == 0.0

    assert timer.tick(2.0, phase_duration_seconds=2, is_final_phase=True, has_pending_event=False) == TimerAction.COMPLETE


if __name__ == "__main__":
    _run_unit_tests()
    print("phase_timer.py: ok")
