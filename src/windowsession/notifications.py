"""User-facing reports for project directories that vanished from disk.

A project deserializer may fail for several directories at once; the user
sees one notification listing all of them.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from windowsession.logging import get_logger

if TYPE_CHECKING:
    from windowsession.collaborators import NotificationCenter

log = get_logger("notifications")


def join_with_and(items: Sequence[str]) -> str:
    """Join items as English prose: ``a``, ``a and b``, ``a, b, and c``."""
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return ", ".join(items[:-1]) + f", and {items[-1]}"


def format_missing_paths(paths: Sequence[str]) -> tuple[str, str]:
    """Build the (title, description) pair for missing project directories.

    Examples:
        >>> format_missing_paths(["/foo"])
        ('Unable to open project directory', 'Project directory `/foo` is no longer on disk.')
    """
    if len(paths) == 1:
        count, noun, to_be = "", "directory", "is"
    else:
        count, noun, to_be = f"{len(paths)} ", "directories", "are"

    group = join_with_and([f"`{path}`" for path in paths])
    title = f"Unable to open {count}project {noun}"
    description = f"Project {noun} {group} {to_be} no longer on disk."
    return title, description


class MissingPathsReport:
    """Accumulates missing project paths and reports them once."""

    def __init__(self) -> None:
        self._paths: list[str] = []

    def __bool__(self) -> bool:
        return bool(self._paths)

    @property
    def paths(self) -> list[str]:
        return list(self._paths)

    def add(self, paths: Sequence[str]) -> None:
        for path in paths:
            if path not in self._paths:
                self._paths.append(path)

    def flush(self, notifications: NotificationCenter) -> bool:
        """Send the consolidated notification, if anything was collected.

        Returns:
            True if a notification was sent.
        """
        if not self._paths:
            return False
        title, description = format_missing_paths(self._paths)
        log.info("%s: %s", title, ", ".join(self._paths))
        notifications.add_error(title, description=description)
        self._paths.clear()
        return True
