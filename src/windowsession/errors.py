"""Error types raised and reported by the environment."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any


class WindowSessionError(Exception):
    """Base class for windowsession errors."""


class MissingPathsError(WindowSessionError):
    """One or more project directories could not be found on disk.

    Raised by the project collaborator from ``deserialize``. Always
    recoverable: the environment turns it into a single notification.
    """

    def __init__(self, missing_project_paths: Sequence[str], message: str | None = None) -> None:
        paths = list(missing_project_paths)
        if not paths:
            raise ValueError("MissingPathsError requires at least one path")
        self.missing_project_paths = paths
        super().__init__(message or f"Missing project paths: {', '.join(paths)}")


class AssertionFailure(WindowSessionError):
    """A programmer invariant checked with ``Environment.assert_`` failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.metadata: Any = None
        self.stack: str = ""


class StorageContention(WindowSessionError):
    """Another instance holds the state store's exclusivity lock."""


class StateStoreError(WindowSessionError):
    """Reading or writing the backing store failed."""


@dataclass(frozen=True)
class ErrorEvent:
    """Descriptor of an uncaught error passed to error subscribers."""

    message: str
    url: str | None = None
    line: int | None = None
    column: int | None = None
    original_error: BaseException | None = None


@dataclass
class WillThrowErrorEvent:
    """Cancellable descriptor delivered to ``on_will_throw_error`` subscribers.

    Calling ``prevent_default()`` suppresses the default diagnostic action.
    """

    message: str
    url: str | None = None
    line: int | None = None
    column: int | None = None
    original_error: BaseException | None = None
    default_prevented: bool = field(default=False, compare=False)

    def prevent_default(self) -> None:
        self.default_prevented = True

    def to_error_event(self) -> ErrorEvent:
        return ErrorEvent(
            message=self.message,
            url=self.url,
            line=self.line,
            column=self.column,
            original_error=self.original_error,
        )
