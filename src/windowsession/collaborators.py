"""Ports for the collaborators the environment drives.

The environment never renders, installs packages, or talks to the OS
directly. It is constructed from a ``Collaborators`` bundle whose members
satisfy these protocols; tests pass fakes, hosts pass real adapters.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from windowsession.events import Disposable
    from windowsession.state.store import StateStore

# -----------------------------------------------------------------------------
# Workspace model
# -----------------------------------------------------------------------------


class TextEditorItem(Protocol):
    """A pane item that edits a text buffer."""

    def get_path(self) -> str | None: ...

    def is_modified(self) -> bool: ...


class PaneItem(Protocol):
    """Any item hosted in a pane (editor, settings view, image viewer...)."""


class Pane(Protocol):
    def destroy(self) -> None: ...


class PaneContainer(Protocol):
    """The center or one of the docks."""

    def get_pane_items(self) -> Sequence[Any]: ...


class Workspace(Protocol):
    async def open(self, uri: str | None = None, **options: Any) -> Any: ...

    def get_active_text_editor(self) -> TextEditorItem | None: ...

    def is_text_editor(self, item: Any) -> bool:
        """Whether ``item`` is a text editor rather than some other pane item."""
        ...

    def get_center(self) -> PaneContainer: ...

    def get_pane_containers(self) -> Sequence[PaneContainer]: ...

    def get_pane_items(self) -> Sequence[Any]: ...

    def get_panes(self) -> Sequence[Pane]: ...

    def serialize(self) -> Any: ...

    def deserialize(self, state: Any) -> None: ...


# -----------------------------------------------------------------------------
# Project and editor registry
# -----------------------------------------------------------------------------


class Project(Protocol):
    def get_paths(self) -> list[str]: ...

    def set_paths(self, paths: Sequence[str]) -> None: ...

    def add_path(self, path: str) -> None: ...

    def serialize(self, options: Any = None) -> Any: ...

    async def deserialize(self, state: Any) -> None:
        """Restore project state.

        Raises:
            MissingPathsError: If saved directories are gone from disk.
        """
        ...


class EditorRegistry(Protocol):
    def serialize(self) -> Any: ...

    def deserialize(self, state: Any) -> None: ...


# -----------------------------------------------------------------------------
# Window chrome and dialogs
# -----------------------------------------------------------------------------


class NotificationCenter(Protocol):
    def add_error(self, title: str, *, description: str, stack: str | None = None) -> Any: ...


class WindowControl(Protocol):
    def confirm(self, *, message: str, detailed_message: str, buttons: Sequence[str]) -> int:
        """Show a modal dialog and return the index of the chosen button."""
        ...

    def open(
        self,
        *,
        paths_to_open: Sequence[str],
        new_window: bool,
        dev_mode: bool,
        safe_mode: bool,
    ) -> None:
        """Ask the host to spawn a window for ``paths_to_open``."""
        ...

    def pick_folder(self, callback: Callable[[list[str] | None], None]) -> None:
        """Show a folder picker; ``callback`` receives the selection or None."""
        ...

    def open_dev_tools(self) -> None: ...

    def execute_in_dev_tools(self, code: str) -> None: ...


# -----------------------------------------------------------------------------
# Host integration
# -----------------------------------------------------------------------------


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Host(Protocol):
    """Scheduling and input events provided by the host runtime."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def request_idle_callback(self, callback: Callable[[], None]) -> None: ...

    def add_event_listener(self, event_type: str, listener: Callable[[Any], None]) -> None: ...

    def remove_event_listener(self, event_type: str, listener: Callable[[Any], None]) -> None: ...


ErrorHandler = Callable[[str, str | None, int | None, int | None, BaseException | None], None]


class ErrorTrap(Protocol):
    """Installs a process-wide handler for uncaught errors."""

    def install(self, handler: ErrorHandler) -> None: ...

    def uninstall(self) -> None: ...


class Updater(Protocol):
    def on_did_complete_downloading_update(
        self, callback: Callable[[Mapping[str, Any]], None]
    ) -> Disposable: ...


class BlobStore(Protocol):
    def save(self) -> None: ...


UpdateProcessEnv = Callable[[Mapping[str, str]], Awaitable[None]]


@dataclass
class Collaborators:
    """Everything an ``Environment`` is wired to.

    Only the project, workspace, notification center and window control are
    required. A missing ``state_store`` is created from configuration on
    ``initialize()``.
    """

    project: Project
    workspace: Workspace
    notifications: NotificationCenter
    window: WindowControl
    state_store: StateStore | None = None
    editor_registry: EditorRegistry | None = None
    host: Host | None = None
    error_trap: ErrorTrap | None = None
    updater: Updater | None = None
    blob_store: BlobStore | None = None
    update_process_env: UpdateProcessEnv | None = None
