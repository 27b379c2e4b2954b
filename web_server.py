# -*- coding: utf-8 -*-
from __future__ import annotations

########################
# web_server.py
########################
# Purpose:
# - Local Flask control API for live performances.
# - Creates sessions and forwards start / advance / resolve / discard / action / complete calls.
# - Hands every completed PerformanceResult to the configured OutcomePersister.
#
# Design notes:
# - SessionRegistry is the server-side owner of sessions; keep it thread-safe and explicit.
# - Each session has its own lock so engine calls against one session never run concurrently.
# - A completed session leaves the registry once its result is persisted; the registry holds at most
#   max_sessions, evicting the oldest first.
# - Error kinds map to HTTP status codes; bodies are always {"ok": bool, ...}.
#
########################
# Interfaces:
# Public dataclasses:
# - WebServerConfig(host: str, port: int, debug: bool)
#
# Public classes:
# - class SessionRegistry
#   - create(context: PerformanceContext, *, seed: Optional[int] = None) -> PerformanceSession
#   - get(session_id: str) -> PerformanceSession
#   - run(session_id: str, operation: Callable[[PerformanceSession], T]) -> T
#   - remove(session_id: str, *, missing_ok: bool = False) -> None
#   - session_ids() -> list[str]
#
# Public functions:
# - create_flask_app(engine: PerformanceEngine, *, rewards_config: Optional[RewardsConfig] = None,
#                    persister: Optional[OutcomePersister] = None,
#                    max_sessions: int = DEFAULT_MAX_SESSIONS) -> flask.Flask
# - main() -> int
#
# Inputs:
# - HTTP requests:
#   - /api/health, /api/phases, /api/events (GET)
#   - /api/sessions (GET, POST)
#   - /api/sessions/<id> (GET, DELETE)
#   - /api/sessions/<id>/start|advance|resolve|discard|action|complete (POST)
#
# Outputs:
# - JSON responses.
#
########################
# Tests:
#   - python web_server.py --host 127.0.0.1 --port 5180
########################

import argparse
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

from flask import Flask, Response, jsonify, request
from pydantic import BaseModel, Field, ValidationError, field_validator

import config as app_config_module
import metrics_provider
import paths
from config import RewardsConfig
from crowd_energy import StageAction
from outcome_store import JsonOutcomeStore, OutcomePersister, OutcomeStoreError
from performance_models import (
    SLOT_TYPES,
    InvalidEventError,
    InvalidStateError,
    MetricsUnavailableError,
    PerformanceContext,
    RewardBaselines,
)
from performance_session import PerformanceEngine, PerformanceSession


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_SESSIONS = 256


@dataclass(frozen=True)
class WebServerConfig:
    host: str
    port: int
    debug: bool = False


class UnknownSessionError(KeyError):
    pass


class CreateSessionRequest(BaseModel):
    band_id: str = ""
    venue_name: str = ""
    slot_type: str = "support"
    seed: Optional[int] = None
    base_payment: Optional[int] = Field(default=None, ge=0)
    base_fame: Optional[int] = Field(default=None, ge=0)
    base_merch: Optional[int] = Field(default=None, ge=0)
    base_fans: Optional[int] = Field(default=None, ge=0)
    audience_size: int = Field(default=0, ge=0)

    @field_validator("slot_type")
    @classmethod
    def validate_slot_type(cls, value: str) -> str:
        normalized = (value or "").strip().lower()
        if normalized not in SLOT_TYPES:
            raise ValueError(f"slot_type must be one of: {', '.join(SLOT_TYPES)}")
        return normalized

    def to_context(self, rewards_config: RewardsConfig) -> PerformanceContext:
        def pick(value: Optional[int], default: int) -> int:
            return int(default) if value is None else int(value)

        return PerformanceContext(
            band_id=self.band_id.strip(),
            venue_name=self.venue_name.strip(),
            slot_type=self.slot_type,
            baselines=RewardBaselines(
                base_payment=pick(self.base_payment, rewards_config.base_payment),
                base_fame=pick(self.base_fame, rewards_config.base_fame),
                base_merch=pick(self.base_merch, rewards_config.base_merch),
                base_fans=pick(self.base_fans, rewards_config.base_fans),
                audience_size=int(self.audience_size),
            ),
        )


class ResolveEventRequest(BaseModel):
    event_id: str
    option_index: int = Field(ge=0)


class StageActionRequest(BaseModel):
    action: StageAction


class SessionRegistry:
    def __init__(self, engine: PerformanceEngine, *, max_sessions: int = DEFAULT_MAX_SESSIONS) -> None:
        self._engine = engine
        self._max_sessions = max(1, int(max_sessions))
        self._lock = threading.RLock()
        self._sessions: Dict[str, PerformanceSession] = {}
        self._session_locks: Dict[str, threading.Lock] = {}

    def create(self, context: PerformanceContext, *, seed: Optional[int] = None) -> PerformanceSession:
        with self._lock:
            session = self._engine.create_session(context, seed=seed)
            while len(self._sessions) >= self._max_sessions:
                evicted_id = next(iter(self._sessions))
                del self._sessions[evicted_id]
                self._session_locks.pop(evicted_id, None)
                logger.info("session registry full, evicted oldest session %s", evicted_id)
            self._sessions[session.session_id] = session
            self._session_locks[session.session_id] = threading.Lock()
        return session

    def get(self, session_id: str) -> PerformanceSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise UnknownSessionError(session_id)
        return session

    def run(self, session_id: str, operation: Callable[[PerformanceSession], T]) -> T:
        with self._lock:
            session = self._sessions.get(session_id)
            session_lock = self._session_locks.get(session_id)
        if session is None or session_lock is None:
            raise UnknownSessionError(session_id)
        with session_lock:
            return operation(session)

    def remove(self, session_id: str, *, missing_ok: bool = False) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None and not missing_ok:
                raise UnknownSessionError(session_id)
            self._session_locks.pop(session_id, None)

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions.keys())


def _error(message: str, status_code: int) -> tuple[Response, int]:
    return jsonify({"ok": False, "error": message}), status_code


def create_flask_app(
    engine: PerformanceEngine,
    *,
    rewards_config: Optional[RewardsConfig] = None,
    persister: Optional[OutcomePersister] = None,
    max_sessions: int = DEFAULT_MAX_SESSIONS,
) -> Flask:
    flask_app = Flask(__name__)
    registry = SessionRegistry(engine, max_sessions=max_sessions)
    effective_rewards = rewards_config if rewards_config is not None else RewardsConfig()
    flask_app.extensions["encore_registry"] = registry

    @flask_app.after_request
    def add_no_cache_headers(response: Response) -> Response:
        response.headers["Cache-Control"] = "no-store"
        return response

    @flask_app.errorhandler(UnknownSessionError)
    def handle_unknown_session(exception: UnknownSessionError):
        return _error(f"Unknown session: {exception.args[0]}", 404)

    @flask_app.errorhandler(InvalidStateError)
    def handle_invalid_state(exception: InvalidStateError):
        return _error(str(exception), 409)

    @flask_app.errorhandler(InvalidEventError)
    def handle_invalid_event(exception: InvalidEventError):
        return _error(str(exception), 400)

    @flask_app.errorhandler(MetricsUnavailableError)
    def handle_metrics_unavailable(exception: MetricsUnavailableError):
        return _error(str(exception), 503)

    @flask_app.errorhandler(ValidationError)
    def handle_validation_error(exception: ValidationError):
        return _error(f"Invalid request: {exception}", 400)

    def session_payload(session: PerformanceSession) -> Dict[str, Any]:
        return {"ok": True, "session": session.snapshot()}

    # Catalogs

    @flask_app.get("/api/health")
    def api_health() -> Response:
        return jsonify({"ok": True, "sessions": len(registry.session_ids())})

    @flask_app.get("/api/phases")
    def api_phases() -> Response:
        phases = [
            {
                "phase_id": phase.phase_id,
                "name": phase.name,
                "description": phase.description,
                "duration_seconds": phase.duration_seconds,
                "phase_type": phase.phase_type.value,
            }
            for phase in engine.phases()
        ]
        return jsonify({"ok": True, "phases": phases})

    @flask_app.get("/api/events")
    def api_events() -> Response:
        events = [
            {
                "event_type": template.event_type.value,
                "description": template.description,
                "options": [{"label": option.label, "score": option.score} for option in template.options],
            }
            for template in engine.catalog()
        ]
        return jsonify({"ok": True, "events": events})

    # Sessions

    @flask_app.get("/api/sessions")
    def api_list_sessions() -> Response:
        return jsonify({"ok": True, "session_ids": registry.session_ids()})

    @flask_app.post("/api/sessions")
    def api_create_session():
        body = CreateSessionRequest.model_validate(request.get_json(silent=True) or {})
        session = registry.create(body.to_context(effective_rewards), seed=body.seed)
        return jsonify(session_payload(session)), 201

    @flask_app.get("/api/sessions/<session_id>")
    def api_get_session(session_id: str) -> Response:
        return jsonify(session_payload(registry.get(session_id)))

    @flask_app.delete("/api/sessions/<session_id>")
    def api_abandon_session(session_id: str) -> Response:
        registry.remove(session_id)
        return jsonify({"ok": True})

    @flask_app.post("/api/sessions/<session_id>/start")
    def api_start(session_id: str) -> Response:
        def operation(session: PerformanceSession) -> Dict[str, Any]:
            session.start()
            return session_payload(session)

        return jsonify(registry.run(session_id, operation))

    @flask_app.post("/api/sessions/<session_id>/advance")
    def api_advance(session_id: str) -> Response:
        def operation(session: PerformanceSession) -> Dict[str, Any]:
            session.advance()
            return session_payload(session)

        return jsonify(registry.run(session_id, operation))

    @flask_app.post("/api/sessions/<session_id>/resolve")
    def api_resolve(session_id: str) -> Response:
        body = ResolveEventRequest.model_validate(request.get_json(silent=True) or {})

        def operation(session: PerformanceSession) -> Dict[str, Any]:
            session.resolve_event(body.event_id, body.option_index)
            return session_payload(session)

        return jsonify(registry.run(session_id, operation))

    @flask_app.post("/api/sessions/<session_id>/discard")
    def api_discard(session_id: str) -> Response:
        def operation(session: PerformanceSession) -> Dict[str, Any]:
            session.discard_pending_event()
            return session_payload(session)

        return jsonify(registry.run(session_id, operation))

    @flask_app.post("/api/sessions/<session_id>/action")
    def api_stage_action(session_id: str) -> Response:
        body = StageActionRequest.model_validate(request.get_json(silent=True) or {})

        def operation(session: PerformanceSession) -> Dict[str, Any]:
            session.perform_stage_action(body.action)
            return session_payload(session)

        return jsonify(registry.run(session_id, operation))

    @flask_app.post("/api/sessions/<session_id>/complete")
    def api_complete(session_id: str):
        def operation(session: PerformanceSession):
            result = session.complete()
            return session, result

        session, result = registry.run(session_id, operation)

        payload = session_payload(session)
        payload["persisted"] = False
        if persister is not None:
            try:
                persister.persist(session.context, result)
                payload["persisted"] = True
            except OutcomeStoreError as exception:
                logger.error("failed to persist session %s: %s", session_id, exception)
                payload["persist_error"] = str(exception)
        registry.remove(session_id, missing_ok=True)
        return jsonify(payload)

    return flask_app


def _parse_args(app_config: app_config_module.AppConfig) -> WebServerConfig:
    argument_parser = argparse.ArgumentParser(description="Encore local control API")
    argument_parser.add_argument("--host", default=app_config.web_server.host, help="Bind host")
    argument_parser.add_argument("--port", type=int, default=app_config.web_server.port, help="Bind port")
    argument_parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")
    parsed = argument_parser.parse_args()

    return WebServerConfig(host=str(parsed.host), port=int(parsed.port), debug=bool(parsed.debug))


def build_app_from_config(app_config: app_config_module.AppConfig) -> Flask:
    provider = metrics_provider.BandFileMetricsProvider(paths.bands_path(app_config))
    engine = PerformanceEngine(provider, engine_config=app_config.engine)
    store = JsonOutcomeStore(paths.results_path(app_config))
    return create_flask_app(
        engine,
        rewards_config=app_config.rewards,
        persister=store,
        max_sessions=app_config.web_server.max_sessions,
    )


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app_config, _config_path = app_config_module.get_config()
    server_config = _parse_args(app_config)
    flask_app = build_app_from_config(app_config)

    flask_app.run(
        host=server_config.host,
        port=server_config.port,
        debug=server_config.debug,
        use_reloader=False,
        threaded=False,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
