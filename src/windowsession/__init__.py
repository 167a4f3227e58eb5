"""windowsession: window state persistence and restoration for editor windows."""

__version__ = "0.1.0"

# Public API
from windowsession.collaborators import Collaborators
from windowsession.config import Config, get_config, load_config
from windowsession.environment import STATE_VERSION, Environment, SaveOptions
from windowsession.errors import (
    AssertionFailure,
    ErrorEvent,
    MissingPathsError,
    StateStoreError,
    StorageContention,
    WillThrowErrorEvent,
    WindowSessionError,
)
from windowsession.events import CompositeDisposable, Disposable, Emitter
from windowsession.host import AsyncioHost
from windowsession.ipc import Location, LoadSettings, UpdateAvailable
from windowsession.notifications import format_missing_paths
from windowsession.release import ReleaseChannel, get_release_channel, is_released_version
from windowsession.restoration import RestorationDecisionEngine, RestorationOutcome
from windowsession.scheduler import SaveScheduler, SchedulerState
from windowsession.state import StateStore, derive_key

__all__ = [
    # Main entry points
    "Environment",
    "Collaborators",
    "SaveOptions",
    "STATE_VERSION",
    # Components
    "RestorationDecisionEngine",
    "RestorationOutcome",
    "SaveScheduler",
    "SchedulerState",
    "StateStore",
    "derive_key",
    "format_missing_paths",
    "AsyncioHost",
    # Events
    "CompositeDisposable",
    "Disposable",
    "Emitter",
    # Errors
    "AssertionFailure",
    "ErrorEvent",
    "MissingPathsError",
    "StateStoreError",
    "StorageContention",
    "WillThrowErrorEvent",
    "WindowSessionError",
    # IPC
    "Location",
    "LoadSettings",
    "UpdateAvailable",
    # Release
    "ReleaseChannel",
    "get_release_channel",
    "is_released_version",
    # Config
    "Config",
    "load_config",
    "get_config",
]
