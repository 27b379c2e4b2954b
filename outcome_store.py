# -*- coding: utf-8 -*-
########################
# outcome_store.py
########################
# Purpose:
# - Outcome persister boundary plus a JSON file implementation.
# - Records each PerformanceResult and applies the band economy update
#   (fame += fame earned, balance += payment + merch).
#
# Design notes:
# - The engine only emits PerformanceResult. Persisting is the caller's job.
# - Writes go to a temporary file first and replace the store in one step.
#
########################
# Interfaces:
# Public protocols:
# - class OutcomePersister(Protocol)
#   - persist(context: PerformanceContext, result: PerformanceResult) -> None
#
# Public classes:
# - class JsonOutcomeStore
#   - __init__(store_path: pathlib.Path, *, clock: Callable[[], float] = time.time)
#   - persist(context, result) -> None
#   - history(band_id: Optional[str] = None) -> list[dict[str, Any]]
#   - band_totals(band_id: str) -> BandTotals
#
# Errors:
# - OutcomeStoreError for unreadable, corrupt or unwritable store files.
#
########################

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from performance_models import PerformanceContext, PerformanceResult


logger = logging.getLogger(__name__)


class OutcomeStoreError(Exception):
    pass


@runtime_checkable
class OutcomePersister(Protocol):
    def persist(self, context: PerformanceContext, result: PerformanceResult) -> None:
        ...


@dataclass(frozen=True)
class BandTotals:
    band_id: str
    fame: int
    balance: int
    fans: int
    performances: int


class JsonOutcomeStore:
    """Performance history and band totals in one UTF-8 JSON document.

    Layout:
    {
      "history": [{"band_id": ..., "venue_name": ..., "slot_type": ..., "recorded_at": ..., "result": {...}}],
      "bands": {"<band_id>": {"fame": 0, "balance": 0, "fans": 0, "performances": 0}}
    }
    """

    def __init__(self, store_path: Path, *, clock: Callable[[], float] = time.time) -> None:
        self._store_path = Path(store_path)
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def store_path(self) -> Path:
        return self._store_path

    def _read(self) -> Dict[str, Any]:
        if not self._store_path.exists():
            return {"history": [], "bands": {}}
        try:
            payload = json.loads(self._store_path.read_text(encoding="utf-8"))
        except OSError as exception:
            raise OutcomeStoreError(f"Failed to read outcome store: {self._store_path}. Error: {exception}") from exception
        except json.JSONDecodeError as exception:
            raise OutcomeStoreError(f"Outcome store is not valid JSON: {self._store_path}. Error: {exception}") from exception

        if not isinstance(payload, dict):
            raise OutcomeStoreError(f"Outcome store root must be a JSON object: {self._store_path}")
        payload.setdefault("history", [])
        payload.setdefault("bands", {})
        return payload

    def _write(self, payload: Dict[str, Any]) -> None:
        temporary_path = self._store_path.with_suffix(self._store_path.suffix + ".tmp")
        try:
            self._store_path.parent.mkdir(parents=True, exist_ok=True)
            temporary_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
            temporary_path.replace(self._store_path)
        except OSError as exception:
            raise OutcomeStoreError(f"Failed to write outcome store: {self._store_path}. Error: {exception}") from exception

    def persist(self, context: PerformanceContext, result: PerformanceResult) -> None:
        with self._lock:
            payload = self._read()
            payload["history"].append(
                {
                    "band_id": context.band_id,
                    "venue_name": context.venue_name,
                    "slot_type": context.slot_type,
                    "recorded_at": float(self._clock()),
                    "result": result.to_dict(),
                }
            )

            if context.band_id:
                band_entry = payload["bands"].setdefault(
                    context.band_id, {"fame": 0, "balance": 0, "fans": 0, "performances": 0}
                )
                band_entry["fame"] = int(band_entry.get("fame", 0)) + result.fame_earned
                band_entry["balance"] = int(band_entry.get("balance", 0)) + result.payment_earned + result.merch_revenue
                band_entry["fans"] = int(band_entry.get("fans", 0)) + result.new_fans_gained
                band_entry["performances"] = int(band_entry.get("performances", 0)) + 1

            self._write(payload)
        logger.info(
            "recorded performance for band %r: score=%d -> %s",
            context.band_id,
            result.performance_score,
            self._store_path,
        )

    def history(self, band_id: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            entries = list(self._read()["history"])
        if band_id is None:
            return entries
        return [entry for entry in entries if entry.get("band_id") == band_id]

    def band_totals(self, band_id: str) -> BandTotals:
        with self._lock:
            band_entry = self._read()["bands"].get(band_id) or {}
        return BandTotals(
            band_id=band_id,
            fame=int(band_entry.get("fame", 0)),
            balance=int(band_entry.get("balance", 0)),
            fans=int(band_entry.get("fans", 0)),
            performances=int(band_entry.get("performances", 0)),
        )
