"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from windowsession.config.merge import merge_configs
from windowsession.config.paths import get_config_paths
from windowsession.config.schema import (
    Config,
    EnvironmentConfig,
    LoggingConfig,
    StateConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("windowsession.config")

_cached_config: Config | None = None

_KNOWN_SECTIONS = {"state", "environment", "logging"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables (highest priority)."""
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("WS_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    state_dir = os.environ.get("WS_STATE_DIR")
    if state_dir:
        overrides.setdefault("state", {})["directory"] = state_dir

    return overrides


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass."""
    state_data = _section(data, "state")
    state = StateConfig(
        enabled=bool(state_data.get("enabled", True)),
        directory=state_data.get("directory"),
        debounce_interval=float(state_data.get("debounce_interval", 1.0)),
        order_independent_keys=bool(state_data.get("order_independent_keys", False)),
    )

    env_data = _section(data, "environment")
    environment = EnvironmentConfig(
        open_empty_editor_on_start=bool(env_data.get("open_empty_editor_on_start", True)),
    )

    log_data = _section(data, "logging")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    extra = {k: v for k, v in data.items() if k not in _KNOWN_SECTIONS}

    return Config(
        state=state,
        environment=environment,
        logging=logging_config,
        extra=extra,
    )


def load_config(project_root: str | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config ($project_root/.windowsession/config.yaml)
    3. User config (~/.config/windowsession/config.yaml or %APPDATA%)
    4. System config (/etc/windowsession/ or %PROGRAMDATA%)

    Args:
        project_root: Project directory for project-level config.
        reload: Force reload even if cached.
    """
    global _cached_config

    if _cached_config is not None and not reload and project_root is None:
        return _cached_config

    layers: list[dict[str, Any]] = []
    for path in get_config_paths(project_root):
        layer = load_yaml_file(path)
        if layer:
            _log.debug("Loaded config from %s", path)
            layers.append(layer)

    layers.append(env_overrides())

    config = dict_to_config(merge_configs(*layers))

    # Only the global config is cached
    if project_root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config. Useful for testing or forcing a reload."""
    global _cached_config
    _cached_config = None
