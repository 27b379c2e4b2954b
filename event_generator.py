# -*- coding: utf-8 -*-
########################
# event_generator.py
########################
# Purpose:
# - Stochastic injection of mid-performance events with pre-scored response options.
# - Owns the pending event slot and the ordered list of resolved response scores.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Only the catalog selection is random. Option scores are fixed catalog data.
# - At most one event is pending. maybe_generate() never replaces a pending event.
# - Event ids are drawn from the injected rng so a seeded session replays identically.
#
########################
# Interfaces:
# Public constants:
# - EVENT_CATALOG: tuple[EventTemplate, ...]
# - DEFAULT_EVENT_PROBABILITY: float
#
# Public classes:
# - class EventGenerator
#   - __init__(rng: random.Random, tracker: CrowdEnergyTracker, *, event_probability: float = 0.4,
#              catalog: Sequence[EventTemplate] = EVENT_CATALOG, clock: Callable[[], float] = time.time)
#   - pending_event -> Optional[PerformanceEvent]
#   - responses() -> tuple[int, ...]
#   - reset() -> None
#   - maybe_generate() -> Optional[PerformanceEvent]
#   - resolve(event_id: str, option_index: int) -> float
#   - discard_pending() -> PerformanceEvent
#
# Inputs:
# - Called by PerformanceSession on every phase advance and on player responses.
#
# Outputs:
# - PerformanceEvent objects for the caller; response scores forwarded to CrowdEnergyTracker.
#
########################

from __future__ import annotations

import logging
import random
import time
import uuid
from typing import Callable, List, Optional, Sequence, Tuple

from crowd_energy import CrowdEnergyTracker
from performance_models import (
    EventOption,
    EventTemplate,
    EventType,
    InvalidEventError,
    PerformanceEvent,
)


logger = logging.getLogger(__name__)

DEFAULT_EVENT_PROBABILITY = 0.4


EVENT_CATALOG: Tuple[EventTemplate, ...] = (
    EventTemplate(
        event_type=EventType.TECHNICAL_ISSUE,
        description="A microphone starts cutting out!",
        options=(
            EventOption(label="Quickly switch mics", score=80),
            EventOption(label="Keep singing louder", score=50),
            EventOption(label="Stop and fix it", score=30),
        ),
    ),
    EventTemplate(
        event_type=EventType.CROWD_SURFER,
        description="A crowd surfer reaches the stage!",
        options=(
            EventOption(label="Help them up for a high-five", score=90),
            EventOption(label="Keep playing", score=60),
            EventOption(label="Motion security", score=40),
        ),
    ),
    EventTemplate(
        event_type=EventType.CROWD_CHANT,
        description="The crowd starts chanting your band name!",
        options=(
            EventOption(label="Lead the chant", score=95),
            EventOption(label="Acknowledge with a wave", score=70),
            EventOption(label="Continue playing", score=50),
        ),
    ),
    EventTemplate(
        event_type=EventType.ENCORE_REQUEST,
        description="The crowd is demanding an encore!",
        options=(
            EventOption(label="Play your biggest hit", score=100),
            EventOption(label="Play a surprise cover", score=80),
            EventOption(label="Wave goodbye", score=40),
        ),
    ),
    EventTemplate(
        event_type=EventType.EQUIPMENT_FAILURE,
        description="Your amp blows a fuse!",
        options=(
            EventOption(label="Borrow from another band", score=70),
            EventOption(label="Go acoustic", score=60),
            EventOption(label="Take a break", score=30),
        ),
    ),
)


def _validate_catalog(catalog: Sequence[EventTemplate]) -> Tuple[EventTemplate, ...]:
    templates = tuple(catalog)
    if not templates:
        raise ValueError("event catalog must not be empty")
    for template in templates:
        if not 2 <= len(template.options) <= 3:
            raise ValueError(f"event {template.event_type.value} must offer 2 or 3 options")
        for option in template.options:
            if not 0 <= int(option.score) <= 100:
                raise ValueError(f"option score out of range for {template.event_type.value}: {option.score}")
    return templates


class EventGenerator:
    def __init__(
        self,
        rng: random.Random,
        tracker: CrowdEnergyTracker,
        *,
        event_probability: float = DEFAULT_EVENT_PROBABILITY,
        catalog: Sequence[EventTemplate] = EVENT_CATALOG,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not 0.0 <= float(event_probability) <= 1.0:
            raise ValueError("event_probability must be within [0, 1]")
        self._rng = rng
        self._tracker = tracker
        self._event_probability = float(event_probability)
        self._catalog = _validate_catalog(catalog)
        self._clock = clock
        self._pending_event: Optional[PerformanceEvent] = None
        self._responses: List[int] = []

    @property
    def pending_event(self) -> Optional[PerformanceEvent]:
        return self._pending_event

    def responses(self) -> Tuple[int, ...]:
        return tuple(self._responses)

    def reset(self) -> None:
        self._pending_event = None
        self._responses.clear()

    def maybe_generate(self) -> Optional[PerformanceEvent]:
        if self._pending_event is not None:
            return None
        if self._rng.random() >= self._event_probability:
            return None

        template = self._catalog[self._rng.randrange(len(self._catalog))]
        event = PerformanceEvent(
            event_id=uuid.UUID(int=self._rng.getrandbits(128), version=4).hex,
            event_type=template.event_type,
            description=template.description,
            options=template.options,
            timestamp=float(self._clock()),
        )
        self._pending_event = event
        logger.debug("event raised: %s (%s)", event.event_type.value, event.event_id)
        return event

    def resolve(self, event_id: str, option_index: int) -> float:
        """Consume the pending event with the chosen option. Returns the new crowd energy."""
        pending = self._pending_event
        if pending is None:
            raise InvalidEventError("no event is pending")
        if str(event_id) != pending.event_id:
            raise InvalidEventError(f"event {event_id} is not the pending event")
        if isinstance(option_index, bool) or not isinstance(option_index, int):
            raise InvalidEventError(f"option index must be an integer, got {option_index!r}")
        if not 0 <= option_index < len(pending.options):
            raise InvalidEventError(
                f"option index {option_index} out of range for event with {len(pending.options)} options"
            )

        chosen = pending.options[option_index]
        self._pending_event = None
        self._responses.append(int(chosen.score))
        logger.debug("event %s resolved with %r (score=%d)", pending.event_id, chosen.label, chosen.score)
        return self._tracker.apply_event_outcome(chosen.score)

    def discard_pending(self) -> PerformanceEvent:
        """Drop the pending event without recording a response or touching crowd energy."""
        pending = self._pending_event
        if pending is None:
            raise InvalidEventError("no event is pending")
        self._pending_event = None
        logger.info("event %s discarded without a response", pending.event_id)
        return pending


def _run_unit_tests() -> None:
    rng = random.Random(3)
    tracker = CrowdEnergyTracker(rng)
    generator = EventGenerator(rng, tracker, event_probability=1.0, clock=lambda: 0.0)

    event = generator.maybe_generate()
    assert event is not None
    assert generator.maybe_generate() is None

    energy = generator.resolve(event.event_id, 0)
    assert energy == tracker.energy
    assert generator.responses() == (event.options[0].score,)

    try:
        generator.resolve(event.event_id, 0)
    except InvalidEventError:
        pass
    else:
        raise AssertionError("resolving twice must fail")


if __name__ == "__main__":
    _run_unit_tests()
    print("event_generator.py: ok")
