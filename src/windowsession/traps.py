"""Process-level trap for uncaught exceptions."""

from __future__ import annotations

import sys
import traceback
from types import TracebackType

from windowsession.collaborators import ErrorHandler
from windowsession.logging import get_logger

log = get_logger("traps")


class ExceptHookErrorTrap:
    """Routes ``sys.excepthook`` through an environment error handler.

    ``url``/``line`` point at the innermost frame of the traceback. The
    previous hook is restored by ``uninstall()``.
    """

    def __init__(self) -> None:
        self._previous_hook = None
        self._handler: ErrorHandler | None = None

    @property
    def installed(self) -> bool:
        return self._handler is not None

    def install(self, handler: ErrorHandler) -> None:
        if self._handler is not None:
            self.uninstall()
        self._handler = handler
        self._previous_hook = sys.excepthook
        sys.excepthook = self._excepthook

    def uninstall(self) -> None:
        if self._handler is None:
            return
        if sys.excepthook is self._excepthook:
            sys.excepthook = self._previous_hook or sys.__excepthook__
        self._handler = None
        self._previous_hook = None

    def _excepthook(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        if self._handler is None or issubclass(exc_type, KeyboardInterrupt):
            (self._previous_hook or sys.__excepthook__)(exc_type, exc, tb)
            return

        url = line = column = None
        frames = traceback.extract_tb(tb) if tb is not None else []
        if frames:
            url, line, column = frames[-1].filename, frames[-1].lineno, frames[-1].colno

        message = "".join(traceback.format_exception_only(exc_type, exc)).strip()
        try:
            self._handler(message, url, line, column, exc)
        except Exception:
            log.exception("Uncaught error handler failed")
            (self._previous_hook or sys.__excepthook__)(exc_type, exc, tb)
