# -*- coding: utf-8 -*-
########################
# metrics_provider.py
########################
# Purpose:
# - Read-only source of the per-performance metrics snapshot: song familiarity, gear quality,
#   band chemistry and setlist flow.
# - Provides a static provider (tests, scripted runs) and a band roster file provider.
#
########################
# Key Logic:
# - The snapshot is fetched exactly once, when a session starts.
# - Strict contract:
#   - Never silently default on failure. Missing band, unreadable file or out-of-range values raise
#     MetricsUnavailableError.
#   - Defaults only apply where the band data itself is empty (no equipped gear, no rehearsed songs).
#
########################
# Interfaces:
# Public protocols:
# - class MetricsProvider(Protocol)
#   - fetch(context: PerformanceContext, rng: random.Random) -> MetricsSnapshot
#
# Public classes:
# - class StaticMetricsProvider
#   - __init__(snapshot: MetricsSnapshot)
# - class BandFileMetricsProvider
#   - __init__(bands_path: pathlib.Path)
#   - load_band(band_id: str) -> BandRecord
#
# Public functions:
# - validate_snapshot(snapshot: MetricsSnapshot) -> MetricsSnapshot
#
# Band roster file (UTF-8 JSON):
# {
#   "bands": {
#     "band-1": {
#       "name": "The Amps",
#       "chemistry": 72,
#       "equipment": [{"name": "Tube Amp", "quality_rating": 80, "is_equipped": true}],
#       "songs": [{"title": "Opener", "familiarity": 65}],
#       "setlist_flow": 78
#     }
#   }
# }
#
########################

from __future__ import annotations

import json
import logging
import math
import random
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError

from performance_models import MetricsSnapshot, MetricsUnavailableError, PerformanceContext


logger = logging.getLogger(__name__)

DEFAULT_GEAR_QUALITY = 50.0
DEFAULT_SONG_FAMILIARITY = 50.0
SIMULATED_SETLIST_FLOW_BASE = 70.0
SIMULATED_SETLIST_FLOW_SPAN = 20.0


@runtime_checkable
class MetricsProvider(Protocol):
    def fetch(self, context: PerformanceContext, rng: random.Random) -> MetricsSnapshot:
        ...


def validate_snapshot(snapshot: MetricsSnapshot) -> MetricsSnapshot:
    if not isinstance(snapshot, MetricsSnapshot):
        raise MetricsUnavailableError(f"metrics provider returned {type(snapshot).__name__}, not a MetricsSnapshot")
    for snapshot_field in fields(snapshot):
        value = getattr(snapshot, snapshot_field.name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MetricsUnavailableError(f"{snapshot_field.name} is not numeric: {value!r}")
        if math.isnan(float(value)) or not 0.0 <= float(value) <= 100.0:
            raise MetricsUnavailableError(f"{snapshot_field.name} out of range [0, 100]: {value!r}")
    return snapshot


class StaticMetricsProvider:
    def __init__(self, snapshot: MetricsSnapshot) -> None:
        self._snapshot = snapshot

    def fetch(self, context: PerformanceContext, rng: random.Random) -> MetricsSnapshot:
        return validate_snapshot(self._snapshot)


class EquipmentRecord(BaseModel):
    name: str = ""
    quality_rating: float = Field(default=DEFAULT_GEAR_QUALITY, ge=0, le=100)
    is_equipped: bool = True


class SongRecord(BaseModel):
    title: str = ""
    familiarity: float = Field(default=0.0, ge=0, le=100)


class BandRecord(BaseModel):
    name: str = ""
    chemistry: float = Field(ge=0, le=100)
    equipment: List[EquipmentRecord] = Field(default_factory=list)
    songs: List[SongRecord] = Field(default_factory=list)
    setlist_flow: Optional[float] = Field(default=None, ge=0, le=100)

    def gear_quality(self) -> float:
        equipped = [item.quality_rating for item in self.equipment if item.is_equipped]
        if not equipped:
            return DEFAULT_GEAR_QUALITY
        return float(sum(equipped) / len(equipped))

    def song_familiarity(self) -> float:
        if not self.songs:
            return DEFAULT_SONG_FAMILIARITY
        return float(sum(song.familiarity for song in self.songs) / len(self.songs))


class BandFileMetricsProvider:
    def __init__(self, bands_path: Path) -> None:
        self._bands_path = Path(bands_path)

    def _read_roster(self) -> Dict[str, Any]:
        try:
            raw_text = self._bands_path.read_text(encoding="utf-8")
        except OSError as exception:
            raise MetricsUnavailableError(f"Failed to read band roster: {self._bands_path}. Error: {exception}") from exception

        try:
            parsed = json.loads(raw_text)
        except json.JSONDecodeError as exception:
            raise MetricsUnavailableError(f"Band roster is not valid JSON: {self._bands_path}. Error: {exception}") from exception

        bands = parsed.get("bands") if isinstance(parsed, dict) else None
        if not isinstance(bands, dict):
            raise MetricsUnavailableError(f"Band roster must contain a 'bands' object: {self._bands_path}")
        return bands

    def load_band(self, band_id: str) -> BandRecord:
        band_id_text = str(band_id or "").strip()
        if not band_id_text:
            raise MetricsUnavailableError("band_id must be a non-empty string")

        bands = self._read_roster()
        band_payload = bands.get(band_id_text)
        if band_payload is None:
            raise MetricsUnavailableError(f"Band {band_id_text} not found in {self._bands_path}")

        try:
            return BandRecord.model_validate(band_payload)
        except ValidationError as exception:
            raise MetricsUnavailableError(f"Band {band_id_text} has invalid metrics:\n{exception}") from exception

    def fetch(self, context: PerformanceContext, rng: random.Random) -> MetricsSnapshot:
        band = self.load_band(context.band_id)

        setlist_flow = band.setlist_flow
        if setlist_flow is None:
            setlist_flow = SIMULATED_SETLIST_FLOW_BASE + rng.random() * SIMULATED_SETLIST_FLOW_SPAN

        snapshot = MetricsSnapshot(
            song_familiarity=band.song_familiarity(),
            gear_quality=band.gear_quality(),
            band_chemistry=float(band.chemistry),
            setlist_flow=float(setlist_flow),
        )
        logger.info("metrics fetched for band %s: %s", context.band_id, snapshot)
        return validate_snapshot(snapshot)
