"""Configuration management for windowsession.

Provides hierarchical YAML-based configuration with:
- System-level config (/etc/windowsession/ or %PROGRAMDATA%)
- User-level config (~/.config/windowsession/ or %APPDATA%)
- Project-level config ($project_root/.windowsession/)
- Environment variable overrides (highest priority)

Example usage:
    from windowsession.config import load_config

    config = load_config()
    print(config.state.debounce_interval)
"""

from windowsession.config.loader import (
    get_config,
    load_config,
    reset_config,
)
from windowsession.config.paths import (
    get_config_paths,
    get_default_state_dir,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from windowsession.config.schema import (
    Config,
    EnvironmentConfig,
    LoggingConfig,
    StateConfig,
)

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "EnvironmentConfig",
    "LoggingConfig",
    "StateConfig",
    "get_config_paths",
    "get_default_state_dir",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
