# -*- coding: utf-8 -*-
########################
# phase_sequencer.py
########################
# Purpose:
# - Owns the fixed, ordered list of performance phases and the current phase index.
# - Advances on an external trigger (timer tick or explicit advance call).
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - The phase catalog is static configuration, shared read-only across sessions.
# - Advancing past the final phase is a no-op, not an error.
#
########################
# Interfaces:
# Public constants:
# - PERFORMANCE_PHASES: tuple[PerformancePhase, ...]
#
# Public classes:
# - class PhaseSequencer
#   - __init__(phases: Sequence[PerformancePhase] = PERFORMANCE_PHASES)
#   - phases() -> tuple[PerformancePhase, ...]
#   - phase_count() -> int
#   - current_index() -> int
#   - current_phase() -> PerformancePhase
#   - is_final_phase() -> bool
#   - reset() -> None
#   - advance() -> bool
#
########################

from __future__ import annotations

from typing import Sequence, Tuple

from performance_models import PerformancePhase, PhaseType


PERFORMANCE_PHASES: Tuple[PerformancePhase, ...] = (
    PerformancePhase(
        phase_id="soundcheck",
        name="Soundcheck",
        description="Tune your instruments and test the sound system",
        duration_seconds=30,
        phase_type=PhaseType.SOUNDCHECK,
    ),
    PerformancePhase(
        phase_id="opening",
        name="Opening",
        description="Build energy and warm up the crowd",
        duration_seconds=45,
        phase_type=PhaseType.OPENING,
    ),
    PerformancePhase(
        phase_id="main_set",
        name="Main Set",
        description="Perform your core setlist songs",
        duration_seconds=90,
        phase_type=PhaseType.MAIN_SET,
    ),
    PerformancePhase(
        phase_id="crowd_interaction",
        name="Crowd Interaction",
        description="Engage with the audience",
        duration_seconds=30,
        phase_type=PhaseType.CROWD_INTERACTION,
    ),
    PerformancePhase(
        phase_id="climax",
        name="Climax/Encore",
        description="End with a bang!",
        duration_seconds=45,
        phase_type=PhaseType.CLIMAX,
    ),
)


class PhaseSequencer:
    def __init__(self, phases: Sequence[PerformancePhase] = PERFORMANCE_PHASES) -> None:
        phase_tuple = tuple(phases)
        if not phase_tuple:
            raise ValueError("phases must contain at least one PerformancePhase")
        self._phases = phase_tuple
        self._current_index = 0

    def phases(self) -> Tuple[PerformancePhase, ...]:
        return self._phases

    def phase_count(self) -> int:
        return len(self._phases)

    def current_index(self) -> int:
        return int(self._current_index)

    def current_phase(self) -> PerformancePhase:
        return self._phases[self._current_index]

    def is_final_phase(self) -> bool:
        return self._current_index >= len(self._phases) - 1

    def reset(self) -> None:
        self._current_index = 0

    def advance(self) -> bool:
        """Move to the next phase. Returns False (and changes nothing) at the final phase."""
        if self.is_final_phase():
            return False
        self._current_index += 1
        return True


def _run_unit_tests() -> None:
    sequencer = PhaseSequencer()
    assert sequencer.current_phase().phase_type == PhaseType.SOUNDCHECK

    steps = 0
    while sequencer.advance():
        steps += 1
    assert steps == len(PERFORMANCE_PHASES) - 1
    assert sequencer.is_final_phase()
    assert sequencer.advance() is False
    assert sequencer.current_phase().phase_type == PhaseType.CLIMAX

    sequencer.reset()
    assert sequencer.current_index() == 0


if __name__ == "__main__":
    _run_unit_tests()
    print("phase_sequencer.py: ok")
