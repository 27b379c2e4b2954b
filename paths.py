# -*- coding: utf-8 -*-
########################
# paths.py
########################
# Purpose:
# - Central filesystem path helpers for the app.
# - Defines where the performance history and the band roster live.
#
# Design notes:
# - Keep path derivation consistent across modules.
# - Return pathlib.Path only. Nothing is created here.
# - Explicit storage paths from config win over the platform data directory.
#
########################
# Interfaces:
# Public functions:
# - data_dir() -> pathlib.Path
# - results_path(app_config: Optional[AppConfig] = None) -> pathlib.Path
# - bands_path(app_config: Optional[AppConfig] = None) -> pathlib.Path
#
# Inputs:
# - StorageConfig from config.py (optional).
#
# Outputs:
# - Paths used by outcome_store.py, metrics_provider.py and encore.py.
#
########################

from __future__ import annotations

from pathlib import Path
from typing import Optional

from platformdirs import user_data_dir

from config import AppConfig


def data_dir() -> Path:
    """Return the per-user data directory (not created automatically)."""
    return Path(user_data_dir("Encore", "Encore"))


def results_path(app_config: Optional[AppConfig] = None) -> Path:
    """Return the performance history file path (not created automatically)."""
    if app_config is not None and app_config.storage.results_path:
        return Path(app_config.storage.results_path).expanduser()
    return data_dir() / "performance_history.json"


def bands_path(app_config: Optional[AppConfig] = None) -> Path:
    """Return the band roster file path (not created automatically)."""
    if app_config is not None and app_config.storage.bands_path:
        return Path(app_config.storage.bands_path).expanduser()
    return data_dir() / "bands.json"
