"""
encore.py

Entrypoint for the live performance engine.

Commands
- simulate: run one headless performance end to end and print the result JSON
- realtime: drive a performance on the wall clock with PerformanceClock (Qt event loop, no window)
- serve: run the local Flask control API
- phases: print the phase catalog

Integration
- Loads config and paths
- Builds the metrics provider (band roster file, or the static metrics given on the command line)
- Instantiates PerformanceEngine and hands completed results to JsonOutcomeStore when --persist is set
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from pathlib import Path
from typing import Dict, Optional

import metrics_provider
import paths
from config import AppConfig, get_config
from outcome_store import JsonOutcomeStore
from performance_models import (
    SLOT_TYPES,
    MetricsSnapshot,
    PerformanceContext,
    PerformanceError,
    PerformanceEvent,
    PerformanceResult,
    RewardBaselines,
)
from performance_session import PerformanceEngine, PerformanceSession


logger = logging.getLogger(__name__)

RESPONSE_STRATEGIES = ("best", "worst", "random", "discard")


def _choose_option(event: PerformanceEvent, strategy: str, rng: random.Random) -> Optional[int]:
    scores = [option.score for option in event.options]
    if strategy == "best":
        return scores.index(max(scores))
    if strategy == "worst":
        return scores.index(min(scores))
    if strategy == "random":
        return rng.randrange(len(scores))
    return None


def _build_provider(parsed_args: argparse.Namespace, app_config: AppConfig) -> metrics_provider.MetricsProvider:
    if parsed_args.band_file or parsed_args.band_id:
        band_file = Path(parsed_args.band_file) if parsed_args.band_file else paths.bands_path(app_config)
        return metrics_provider.BandFileMetricsProvider(band_file)

    return metrics_provider.StaticMetricsProvider(
        MetricsSnapshot(
            song_familiarity=float(parsed_args.familiarity),
            gear_quality=float(parsed_args.gear),
            band_chemistry=float(parsed_args.chemistry),
            setlist_flow=float(parsed_args.setlist_flow),
        )
    )


def _build_context(parsed_args: argparse.Namespace, app_config: AppConfig) -> PerformanceContext:
    return PerformanceContext(
        band_id=str(parsed_args.band_id or ""),
        venue_name=str(parsed_args.venue or ""),
        slot_type=str(parsed_args.slot_type),
        baselines=RewardBaselines(
            base_payment=app_config.rewards.base_payment,
            base_fame=app_config.rewards.base_fame,
            base_merch=app_config.rewards.base_merch,
            base_fans=app_config.rewards.base_fans,
            audience_size=int(parsed_args.audience),
        ),
    )


def _respond_to_event(session: PerformanceSession, event: PerformanceEvent, strategy: str, rng: random.Random) -> None:
    option_index = _choose_option(event, strategy, rng)
    if option_index is None:
        session.discard_pending_event()
        return
    new_energy = session.resolve_event(event.event_id, option_index)
    logger.info("%s -> %r (energy %.1f)", event.description, event.options[option_index].label, new_energy)


def run_simulation(session: PerformanceSession, *, strategy: str, rng: random.Random) -> PerformanceResult:
    session.start()
    while not session.is_final_phase:
        pending = session.advance()
        if pending is not None:
            _respond_to_event(session, pending, strategy, rng)
    return session.complete()


def _command_simulate(parsed_args: argparse.Namespace, app_config: AppConfig) -> int:
    engine = PerformanceEngine(_build_provider(parsed_args, app_config), engine_config=app_config.engine)
    context = _build_context(parsed_args, app_config)
    session = engine.create_session(context, seed=parsed_args.seed)

    try:
        result = run_simulation(session, strategy=parsed_args.strategy, rng=random.Random(parsed_args.seed))
    except PerformanceError as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    if parsed_args.persist:
        store = JsonOutcomeStore(paths.results_path(app_config))
        store.persist(session.context, result)

    print(json.dumps({"ok": True, "result": result.to_dict()}, ensure_ascii=False, indent=2))
    return 0


def _command_realtime(parsed_args: argparse.Namespace, app_config: AppConfig) -> int:
    from PyQt6.QtCore import QCoreApplication

    from performance_clock import PerformanceClock

    engine = PerformanceEngine(_build_provider(parsed_args, app_config), engine_config=app_config.engine)
    session = engine.create_session(_build_context(parsed_args, app_config), seed=parsed_args.seed)
    try:
        session.start()
    except PerformanceError as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    qt_application = QCoreApplication(sys.argv)
    clock = PerformanceClock(session, tick_interval_ms=int(1000 / max(1.0, parsed_args.speed)))
    response_rng = random.Random(parsed_args.seed)
    exit_state: Dict[str, int] = {"code": 0}

    def on_phase_advanced(phase) -> None:
        print(f"-> {phase.name}: {phase.description} (energy {session.crowd_energy:.1f})")

    def on_event_raised(event: PerformanceEvent) -> None:
        print(f"!! {event.description}")
        _respond_to_event(session, event, parsed_args.strategy, response_rng)

    def on_completed(result) -> None:
        print(json.dumps({"ok": True, "result": result.to_dict()}, ensure_ascii=False, indent=2))
        qt_application.quit()

    def on_error(message: str) -> None:
        print(json.dumps({"ok": False, "error": message}, ensure_ascii=False, indent=2))
        exit_state["code"] = 2
        qt_application.quit()

    clock.phaseAdvanced.connect(on_phase_advanced)
    clock.eventRaised.connect(on_event_raised)
    clock.performanceCompleted.connect(on_completed)
    clock.errorOccurred.connect(on_error)

    print(f"-> {session.current_phase.name}: {session.current_phase.description}")
    clock.start()
    qt_application.exec()
    return exit_state["code"]


def _command_serve(parsed_args: argparse.Namespace, app_config: AppConfig) -> int:
    import web_server

    flask_app = web_server.build_app_from_config(app_config)
    flask_app.run(
        host=str(parsed_args.host or app_config.web_server.host),
        port=int(parsed_args.port or app_config.web_server.port),
        debug=False,
        use_reloader=False,
        threaded=False,
    )
    return 0


def _command_phases(parsed_args: argparse.Namespace, app_config: AppConfig) -> int:
    from phase_sequencer import PERFORMANCE_PHASES

    payload = [
        {"phase_id": phase.phase_id, "name": phase.name, "duration_seconds": phase.duration_seconds}
        for phase in PERFORMANCE_PHASES
    ]
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def _add_performance_arguments(command_parser: argparse.ArgumentParser) -> None:
    command_parser.add_argument("--seed", type=int, default=None, help="Seed for a replayable performance.")
    command_parser.add_argument("--band-file", default="", help="Band roster JSON file.")
    command_parser.add_argument("--band-id", default="", help="Band id inside the roster file.")
    command_parser.add_argument("--venue", default="", help="Venue or festival name.")
    command_parser.add_argument("--slot-type", choices=SLOT_TYPES, default="support")
    command_parser.add_argument("--audience", type=int, default=0, help="Audience size.")
    command_parser.add_argument("--strategy", choices=RESPONSE_STRATEGIES, default="best")
    command_parser.add_argument("--familiarity", type=float, default=70.0)
    command_parser.add_argument("--gear", type=float, default=60.0)
    command_parser.add_argument("--chemistry", type=float, default=65.0)
    command_parser.add_argument("--setlist-flow", type=float, default=75.0)


def main(argv: Optional[list] = None) -> int:
    argument_parser = argparse.ArgumentParser(description="Encore live performance engine")
    argument_parser.add_argument("--log-level", default="WARNING", help="DEBUG, INFO, WARNING or ERROR")
    subparsers = argument_parser.add_subparsers(dest="command", required=True)

    simulate_parser = subparsers.add_parser("simulate", help="Run one headless performance.")
    _add_performance_arguments(simulate_parser)
    simulate_parser.add_argument("--persist", action="store_true", help="Record the result in the history file.")

    realtime_parser = subparsers.add_parser("realtime", help="Run a performance on the wall clock.")
    _add_performance_arguments(realtime_parser)
    realtime_parser.add_argument("--speed", type=float, default=1.0, help="Phase seconds per wall-clock second.")

    serve_parser = subparsers.add_parser("serve", help="Run the local control API.")
    serve_parser.add_argument("--host", default="")
    serve_parser.add_argument("--port", type=int, default=0)

    subparsers.add_parser("phases", help="Print the phase catalog.")

    parsed_args = argument_parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(parsed_args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app_config, config_path = get_config()
    logger.debug("config loaded from %s", config_path or "defaults")

    commands = {
        "simulate": _command_simulate,
        "realtime": _command_realtime,
        "serve": _command_serve,
        "phases": _command_phases,
    }
    return commands[parsed_args.command](parsed_args, app_config)


if __name__ == "__main__":
    raise SystemExit(main())
