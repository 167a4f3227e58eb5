"""Deciding what to do with saved state for a requested set of folders.

When folders that have saved state are opened, the current window either
adopts that state silently (if nothing in it would be lost), or the user is
asked whether to restore it in a new window or discard it and add the
folders here.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

from windowsession.logging import get_logger

if TYPE_CHECKING:
    from windowsession.collaborators import Project, WindowControl, Workspace

log = get_logger("restoration")

NEW_WINDOW_CHOICE = 0
CURRENT_WINDOW_CHOICE = 1


class RestorationOutcome(Enum):
    RESTORED_SILENTLY = "restored_silently"
    PROMPTED_AND_MERGED = "prompted_and_merged"
    PROMPTED_NEW_WINDOW = "prompted_new_window"
    NO_SAVED_STATE = "no_saved_state"


def _is_modified(item: Any) -> bool:
    is_modified = getattr(item, "is_modified", None)
    return bool(is_modified()) if callable(is_modified) else False


def is_window_clean(
    project: Project,
    workspace: Workspace,
    requested_paths: Sequence[str] = (),
) -> bool:
    """Whether restoring saved state here would lose nothing.

    A window is clean when its project has no paths beyond the requested
    ones, every text editor is unnamed and unmodified, the center hosts
    nothing but such editors, and no dock item reports modifications.
    """
    requested = set(requested_paths)
    if any(path not in requested for path in project.get_paths()):
        return False

    center = workspace.get_center()
    for container in workspace.get_pane_containers():
        for item in container.get_pane_items():
            if workspace.is_text_editor(item):
                if item.get_path() or item.is_modified():
                    return False
            elif container is center or _is_modified(item):
                return False
    return True


def confirmation_text(project_paths: Sequence[str]) -> dict[str, Any]:
    """Dialog text for the restore prompt."""
    nouns = "folder" if len(project_paths) == 1 else "folders"
    return {
        "message": "Previous automatically-saved project state detected",
        "detailed_message": (
            f"There is previously saved state for the selected {nouns}. "
            f"Would you like to add the {nouns} to this window, permanently discarding "
            f"the saved state, or open the {nouns} in a new window, restoring the saved state?"
        ),
        "buttons": [
            "Open in new window and recover state",
            "Add to this window and discard state",
        ],
    }


class RestorationDecisionEngine:
    """Chooses between silent restore, prompting, and plain merging.

    Args:
        project: Project collaborator; receives merged folders.
        workspace: Workspace collaborator; inspected for cleanliness and
            used to open files.
        window: Window control for the prompt and for spawning windows.
        restore_state: Coroutine function applying saved state to this
            environment in place.
        launch_flags: Returns the ``(dev_mode, safe_mode)`` flags a spawned
            window should inherit.
    """

    def __init__(
        self,
        *,
        project: Project,
        workspace: Workspace,
        window: WindowControl,
        restore_state: Callable[[Any], Awaitable[None]],
        launch_flags: Callable[[], tuple[bool, bool]],
    ) -> None:
        self._project = project
        self._workspace = workspace
        self._window = window
        self._restore_state = restore_state
        self._launch_flags = launch_flags

    async def attempt_restore(
        self,
        state: Any,
        requested_paths: Sequence[str],
        files_to_open: Sequence[str] = (),
    ) -> RestorationOutcome:
        requested_paths = list(requested_paths)
        files_to_open = list(files_to_open)

        if not state:
            await self._merge(requested_paths, files_to_open)
            return RestorationOutcome.NO_SAVED_STATE

        if is_window_clean(self._project, self._workspace, requested_paths):
            log.info("Restoring saved state for %s into this window", requested_paths)
            await self._restore_state(state)
            await self._open_files(files_to_open)
            return RestorationOutcome.RESTORED_SILENTLY

        choice = self._window.confirm(**confirmation_text(requested_paths))

        if choice == NEW_WINDOW_CHOICE:
            dev_mode, safe_mode = self._launch_flags()
            log.info("Opening %s in a new window to recover saved state", requested_paths)
            self._window.open(
                paths_to_open=requested_paths + files_to_open,
                new_window=True,
                dev_mode=dev_mode,
                safe_mode=safe_mode,
            )
            return RestorationOutcome.PROMPTED_NEW_WINDOW

        log.info("Discarding saved state for %s and adding to this window", requested_paths)
        await self._merge(requested_paths, files_to_open)
        return RestorationOutcome.PROMPTED_AND_MERGED

    async def _merge(self, paths: Sequence[str], files_to_open: Sequence[str]) -> None:
        for path in paths:
            self._project.add_path(path)
        await self._open_files(files_to_open)

    async def _open_files(self, files_to_open: Sequence[str]) -> None:
        if files_to_open:
            await asyncio.gather(*(self._workspace.open(path) for path in files_to_open))
