"""
config.py

Typed configuration loading and validation for Encore.

Design goals
- Load at most one UTF-8 JSON config file
- Every setting has a default; pydantic validates whatever the file overrides
- ENCORE_* environment variables win over file values
- Reads the config file only; never creates directories

Config file location
- If ENCORE_CONFIG_PATH is set, that file is used (and must exist).
- Otherwise Encore searches these paths in order and uses the first one that exists:
  1) ./encore_config.json (current working directory)
  2) <user config dir>/Encore/Encore/encore_config.json
  3) <user config dir>/Encore/Encore/config.json
- If none exists, built-in defaults are used.

Example config file (encore_config.json)
{
  "engine": {
    "event_probability": 0.4,
    "initial_energy": 50,
    "energy_fluctuation": 10,
    "seed": null
  },
  "rewards": {
    "base_payment": 5000,
    "base_fame": 500,
    "base_merch": 1000,
    "base_fans": 100
  },
  "web_server": {
    "host": "127.0.0.1",
    "port": 5180,
    "max_sessions": 256
  },
  "storage": {
    "results_path": "",
    "bands_path": ""
  }
}
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator


logger = logging.getLogger(__name__)


class EngineConfig(BaseModel):
    event_probability: float = Field(default=0.4, ge=0.0, le=1.0, description="Chance of an event per phase advance.")
    initial_energy: float = Field(default=50.0, ge=0.0, le=100.0, description="Crowd energy when a session starts.")
    energy_fluctuation: float = Field(default=10.0, ge=0.0, le=50.0, description="Natural drift bound per advance.")
    seed: Optional[int] = Field(default=None, description="Seed for the engine random source. None for entropy.")


class RewardsConfig(BaseModel):
    base_payment: int = Field(default=5000, ge=0)
    base_fame: int = Field(default=500, ge=0)
    base_merch: int = Field(default=1000, ge=0)
    base_fans: int = Field(default=100, ge=0)


class WebServerConfig(BaseModel):
    host: str = Field(default="127.0.0.1", description="Bind address for the local control API.")
    port: int = Field(default=5180, ge=1, le=65535, description="Port for the local control API.")
    max_sessions: int = Field(default=256, ge=1, description="Live sessions held by the control API before the oldest is evicted.")


class StorageConfig(BaseModel):
    results_path: Optional[str] = Field(default=None, description="Performance history JSON file.")
    bands_path: Optional[str] = Field(default=None, description="Band roster JSON file used for metrics.")

    @field_validator("results_path", "bands_path")
    @classmethod
    def normalize_optional_strings(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class AppConfig(BaseModel):
    engine: EngineConfig = Field(default_factory=EngineConfig)
    rewards: RewardsConfig = Field(default_factory=RewardsConfig)
    web_server: WebServerConfig = Field(default_factory=WebServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("Encore", "Encore"))
    return [
        Path.cwd() / "encore_config.json",
        config_directory / "encore_config.json",
        config_directory / "config.json",
    ]


# (environment variable, config section, key, parser)
_ENVIRONMENT_OVERRIDES: Tuple[Tuple[str, str, str, Callable[[str], Any]], ...] = (
    ("ENCORE_EVENT_PROBABILITY", "engine", "event_probability", float),
    ("ENCORE_ENERGY_FLUCTUATION", "engine", "energy_fluctuation", float),
    ("ENCORE_SEED", "engine", "seed", int),
    ("ENCORE_WEB_HOST", "web_server", "host", str),
    ("ENCORE_WEB_PORT", "web_server", "port", int),
    ("ENCORE_RESULTS_PATH", "storage", "results_path", str),
    ("ENCORE_BANDS_PATH", "storage", "bands_path", str),
)


def _resolve_config_path() -> Optional[Path]:
    override_text = os.environ.get("ENCORE_CONFIG_PATH", "").strip()
    if override_text:
        return Path(override_text)
    return next((candidate for candidate in _default_config_candidates() if candidate.exists()), None)


def _load_config_document(config_path: Path) -> Dict[str, Any]:
    try:
        document = json.loads(config_path.read_text(encoding="utf-8"))
    except OSError as exception:
        raise OSError(f"Cannot read config file {config_path}: {exception}") from exception
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file {config_path} is not valid JSON: {exception}") from exception

    if not isinstance(document, dict):
        raise ValueError(f"Config file {config_path} must hold a JSON object at the top level")
    return document


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Layer ENCORE_* variables over the file values. Unparseable values are logged and skipped."""
    merged = {
        section_name: dict(section) if isinstance(section, dict) else section
        for section_name, section in config_dict.items()
    }

    for env_name, section_name, key_name, parse in _ENVIRONMENT_OVERRIDES:
        raw_value = os.environ.get(env_name, "").strip()
        if not raw_value:
            continue
        try:
            parsed_value = parse(raw_value)
        except ValueError:
            logger.warning("ignoring %s=%r: expected %s", env_name, raw_value, parse.__name__)
            continue

        section = merged.get(section_name)
        if not isinstance(section, dict):
            section = merged[section_name] = {}
        section[key_name] = parsed_value

    return merged


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    """Return the validated config and the file it came from (None when running on defaults)."""
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    if resolved_path is None:
        logger.debug("no config file found, using defaults")
        document: Dict[str, Any] = {}
    else:
        document = _load_config_document(resolved_path)

    try:
        app_config = AppConfig.model_validate(_apply_environment_overrides(document))
    except ValidationError as exception:
        raise ValueError(f"Invalid config ({resolved_path or 'defaults'}):\n{exception}") from exception

    return app_config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def to_json(app_config: AppConfig) -> str:
    return json.dumps(app_config.model_dump(), ensure_ascii=False, indent=2)


def main() -> int:
    try:
        app_config, resolved_path = load_config()
    except (OSError, ValueError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    print(
        json.dumps(
            {
                "ok": True,
                "config_path": str(resolved_path) if resolved_path is not None else None,
                "config": app_config.model_dump(),
            },
            ensure_ascii=False,
            indent=2,
        )
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
