"""Configuration schema dataclasses for windowsession.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class StateConfig:
    """Window state persistence configuration.

    Example config.yaml:
        state:
          enabled: true
          directory: ~/.config/windowsession/state
          debounce_interval: 1.0
          order_independent_keys: false
    """

    enabled: bool = True  # Persist window state at all
    directory: str | None = None  # Backing store location (default: <user config dir>/state)
    debounce_interval: float = 1.0  # Seconds between input activity and idle save
    order_independent_keys: bool = False  # Sort project paths before deriving keys


@dataclass
class EnvironmentConfig:
    """Startup behaviour of the environment."""

    open_empty_editor_on_start: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    state: StateConfig = field(default_factory=StateConfig)
    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level sections
    extra: dict[str, Any] = field(default_factory=dict)
