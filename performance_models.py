# -*- coding: utf-8 -*-
########################
# performance_models.py
########################
# Purpose:
# - Core data models for the live performance pipeline.
# - Defines phases, events, metric inputs, reward context and the terminal PerformanceResult.
# - Defines the error kinds shared by the sequencer, event generator, metrics provider and session.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - No Qt usage. These are plain dataclasses.
# - Everything that leaves the engine is frozen; only PerformanceSession holds mutable state.
#
########################
# Interfaces:
# Public enums:
# - class PhaseType(enum.Enum): SOUNDCHECK | OPENING | MAIN_SET | CROWD_INTERACTION | CLIMAX
# - class EventType(enum.Enum): TECHNICAL_ISSUE | CROWD_SURFER | EQUIPMENT_FAILURE | CROWD_CHANT | ENCORE_REQUEST
#
# Public dataclasses:
# - PerformancePhase(phase_id: str, name: str, description: str, duration_seconds: int, phase_type: PhaseType)
# - EventOption(label: str, score: int)
# - EventTemplate(event_type: EventType, description: str, options: tuple[EventOption, ...])
# - PerformanceEvent(event_id: str, event_type: EventType, description: str, options: tuple[EventOption, ...],
#                    timestamp: float)
# - MetricsSnapshot(song_familiarity: float, gear_quality: float, band_chemistry: float, setlist_flow: float)
# - RewardBaselines(base_payment: int, base_fame: int, base_merch: int, base_fans: int, audience_size: int)
# - PerformanceContext(band_id: str, venue_name: str, slot_type: str, baselines: RewardBaselines)
# - PerformanceMetrics(song_familiarity, gear_quality, band_chemistry, setlist_flow, crowd_management,
#                      event_responses)
# - PerformanceResult(...)
#   - to_dict() -> dict[str, Any]
#
# Public exceptions:
# - class PerformanceError(Exception)
# - class InvalidStateError(PerformanceError)
# - class InvalidEventError(PerformanceError)
# - class MetricsUnavailableError(PerformanceError)
#
# Inputs/Outputs:
# - These types are exchanged between PhaseSequencer, CrowdEnergyTracker, EventGenerator, scoring,
#   rewards, review, PerformanceSession and the outcome store.
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import enum
from typing import Any, Dict, Tuple


SLOT_TYPES = ("opening", "support", "main", "headliner")


class PerformanceError(Exception):
    """Base class for engine errors."""


class InvalidStateError(PerformanceError):
    """Raised when a session operation is invoked outside its valid state."""


class InvalidEventError(PerformanceError):
    """Raised when resolving an event that is not pending, or with an unknown option."""


class MetricsUnavailableError(PerformanceError):
    """Raised when the metrics snapshot cannot be fetched or is out of range."""


class PhaseType(enum.Enum):
    SOUNDCHECK = "soundcheck"
    OPENING = "opening"
    MAIN_SET = "main_set"
    CROWD_INTERACTION = "crowd_interaction"
    CLIMAX = "climax"


class EventType(enum.Enum):
    TECHNICAL_ISSUE = "technical_issue"
    CROWD_SURFER = "crowd_surfer"
    EQUIPMENT_FAILURE = "equipment_failure"
    CROWD_CHANT = "crowd_chant"
    ENCORE_REQUEST = "encore_request"


@dataclass(frozen=True)
class PerformancePhase:
    phase_id: str
    name: str
    description: str
    duration_seconds: int
    phase_type: PhaseType


@dataclass(frozen=True)
class EventOption:
    label: str
    score: int


@dataclass(frozen=True)
class EventTemplate:
    event_type: EventType
    description: str
    options: Tuple[EventOption, ...]


@dataclass(frozen=True)
class PerformanceEvent:
    event_id: str
    event_type: EventType
    description: str
    options: Tuple[EventOption, ...]
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "description": self.description,
            "options": [{"label": option.label, "score": option.score} for option in self.options],
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class MetricsSnapshot:
    song_familiarity: float
    gear_quality: float
    band_chemistry: float
    setlist_flow: float


@dataclass(frozen=True)
class RewardBaselines:
    base_payment: int = 5000
    base_fame: int = 500
    base_merch: int = 1000
    base_fans: int = 100
    audience_size: int = 0


@dataclass(frozen=True)
class PerformanceContext:
    band_id: str = ""
    venue_name: str = ""
    slot_type: str = "support"
    baselines: RewardBaselines = field(default_factory=RewardBaselines)


@dataclass(frozen=True)
class PerformanceMetrics:
    song_familiarity: float
    gear_quality: float
    band_chemistry: float
    setlist_flow: float
    crowd_management: float
    event_responses: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "song_familiarity": self.song_familiarity,
            "gear_quality": self.gear_quality,
            "band_chemistry": self.band_chemistry,
            "setlist_flow": self.setlist_flow,
            "crowd_management": self.crowd_management,
            "event_responses": self.event_responses,
        }


@dataclass(frozen=True)
class PerformanceResult:
    performance_score: int
    crowd_energy_peak: float
    crowd_energy_avg: int
    payment_earned: int
    fame_earned: int
    merch_revenue: int
    new_fans_gained: int
    critic_score: int
    fan_score: int
    review_headline: str
    review_summary: str
    highlights: Tuple[str, ...]
    metrics: PerformanceMetrics
    crowd_energy_history: Tuple[float, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "performance_score": self.performance_score,
            "crowd_energy_peak": self.crowd_energy_peak,
            "crowd_energy_avg": self.crowd_energy_avg,
            "payment_earned": self.payment_earned,
            "fame_earned": self.fame_earned,
            "merch_revenue": self.merch_revenue,
            "new_fans_gained": self.new_fans_gained,
            "critic_score": self.critic_score,
            "fan_score": self.fan_score,
            "review_headline": self.review_headline,
            "review_summary": self.review_summary,
            "highlights": list(self.highlights),
            "metrics": self.metrics.to_dict(),
            "crowd_energy_history": list(self.crowd_energy_history),
        }


def clamp_unit_score(value: float) -> float:
    """Clamp a value onto the shared [0, 100] scale."""
    return float(min(100.0, max(0.0, float(value))))
