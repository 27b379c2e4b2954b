# -*- coding: utf-8 -*-
########################
# crowd_energy.py
########################
# Purpose:
# - Tracks the crowd energy scalar in [0, 100] and its full, append-only history.
# - Mutated by natural fluctuation on each phase advance, by event outcomes and by stage actions.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Randomness comes from the injected random.Random so sessions replay deterministically.
# - Every mutation appends exactly one history sample. An advance that also raises an event that is later
#   resolved therefore contributes two samples (ambient drift plus event correction).
#
########################
# Interfaces:
# Public enums:
# - class StageAction(enum.Enum): HYPE | ENGAGE_FANS | STAGE_DIVE | BUILD_TENSION
#   - delta -> float
#   - label -> str
#
# Public classes:
# - class CrowdEnergyTracker
#   - __init__(rng: random.Random, *, initial_energy: float = 50.0, fluctuation: float = 10.0)
#   - energy -> float
#   - history() -> tuple[float, ...]
#   - peak() -> float
#   - average() -> float
#   - reset() -> None
#   - natural_fluctuation() -> float
#   - apply_event_outcome(score: int) -> float
#   - apply_delta(delta: float) -> float
#
########################

from __future__ import annotations

import enum
import logging
import random
from typing import List, Tuple

from performance_models import clamp_unit_score


logger = logging.getLogger(__name__)

DEFAULT_INITIAL_ENERGY = 50.0
DEFAULT_FLUCTUATION = 10.0


class StageAction(enum.Enum):
    HYPE = "hype"
    ENGAGE_FANS = "engage_fans"
    STAGE_DIVE = "stage_dive"
    BUILD_TENSION = "build_tension"

    @property
    def delta(self) -> float:
        return _STAGE_ACTION_DELTAS[self]

    @property
    def label(self) -> str:
        return _STAGE_ACTION_LABELS[self]


_STAGE_ACTION_DELTAS = {
    StageAction.HYPE: 12.0,
    StageAction.ENGAGE_FANS: 8.0,
    StageAction.STAGE_DIVE: 6.0,
    StageAction.BUILD_TENSION: -3.0,
}

_STAGE_ACTION_LABELS = {
    StageAction.HYPE: "Jump & Hype!",
    StageAction.ENGAGE_FANS: "Engage Fans",
    StageAction.STAGE_DIVE: "Stage Dive",
    StageAction.BUILD_TENSION: "Build Tension",
}


class CrowdEnergyTracker:
    def __init__(
        self,
        rng: random.Random,
        *,
        initial_energy: float = DEFAULT_INITIAL_ENERGY,
        fluctuation: float = DEFAULT_FLUCTUATION,
    ) -> None:
        if fluctuation < 0.0:
            raise ValueError("fluctuation must be non-negative")
        self._rng = rng
        self._initial_energy = clamp_unit_score(initial_energy)
        self._fluctuation = float(fluctuation)
        self._energy = self._initial_energy
        self._history: List[float] = [self._initial_energy]

    @property
    def energy(self) -> float:
        return float(self._energy)

    def history(self) -> Tuple[float, ...]:
        return tuple(self._history)

    def peak(self) -> float:
        return float(max(self._history))

    def average(self) -> float:
        return float(sum(self._history) / len(self._history))

    def reset(self) -> None:
        self._energy = self._initial_energy
        self._history = [self._initial_energy]

    def natural_fluctuation(self) -> float:
        delta = self._rng.uniform(-self._fluctuation, self._fluctuation)
        return self._record(self._energy + delta)

    def apply_event_outcome(self, score: int) -> float:
        delta = (float(score) - 50.0) / 2.0
        return self._record(self._energy + delta)

    def apply_delta(self, delta: float) -> float:
        return self._record(self._energy + float(delta))

    def _record(self, raw_energy: float) -> float:
        self._energy = clamp_unit_score(raw_energy)
        self._history.append(self._energy)
        logger.debug("crowd energy sample %.2f (samples=%d)", self._energy, len(self._history))
        return self._energy


def _run_unit_tests() -> None:
    tracker = CrowdEnergyTracker(random.Random(7))
    assert tracker.history() == (50.0,)

    for _ in range(200):
        value = tracker.natural_fluctuation()
        assert 0.0 <= value <= 100.0

    tracker.reset()
    assert tracker.apply_event_outcome(100) == 75.0
    assert tracker.apply_event_outcome(0) == 50.0
    assert tracker.apply_delta(StageAction.BUILD_TENSION.delta) == 47.0
    assert tracker.peak() == 75.0
    assert len(tracker.history()) == 4


if __name__ == "__main__":
    _run_unit_tests()
    print("crowd_energy.py: ok")
