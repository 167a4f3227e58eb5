"""Idle-time save scheduling.

User input marks the window state as worth saving. Rather than saving on
every keystroke, the scheduler waits for the debounce interval, then asks
the host for an idle opportunity and saves once.

States:
    IDLE          no save pending
    PENDING_SAVE  a debounce timer or idle callback is outstanding
    UNLOADED      terminal; input is ignored and nothing is scheduled
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from windowsession.events import Disposable
from windowsession.logging import get_logger

if TYPE_CHECKING:
    from windowsession.collaborators import Host, TimerHandle

log = get_logger("scheduler")

QUALIFYING_EVENTS = ("mousedown", "keydown")

DEFAULT_DEBOUNCE_INTERVAL = 1.0


class SchedulerState(Enum):
    IDLE = "idle"
    PENDING_SAVE = "pending_save"
    UNLOADED = "unloaded"


class SaveScheduler:
    """Debounces input activity into a single deferred save."""

    def __init__(
        self,
        host: Host,
        save: Callable[[], Awaitable[Any] | None],
        *,
        debounce_interval: float = DEFAULT_DEBOUNCE_INTERVAL,
    ) -> None:
        self._host = host
        self._save = save
        self.debounce_interval = debounce_interval
        self._state = SchedulerState.IDLE
        self._timer: TimerHandle | None = None
        self._in_flight: asyncio.Future[Any] | None = None
        self._listeners: Disposable | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def in_flight(self) -> asyncio.Future[Any] | None:
        """The save started by the last idle callback, if still running."""
        if self._in_flight is not None and self._in_flight.done():
            return None
        return self._in_flight

    def start(self) -> Disposable:
        """Listen for qualifying input events on the host.

        Returns:
            Disposable that removes the listeners; idempotent.
        """
        if self._listeners is not None and not self._listeners.disposed:
            return self._listeners

        for event_type in QUALIFYING_EVENTS:
            self._host.add_event_listener(event_type, self._on_input)

        def remove_listeners() -> None:
            for event_type in QUALIFYING_EVENTS:
                self._host.remove_event_listener(event_type, self._on_input)

        self._listeners = Disposable(remove_listeners)
        return self._listeners

    def notify_activity(self) -> None:
        """Record user activity, scheduling a save if none is pending."""
        if self._state is not SchedulerState.IDLE:
            return
        self._state = SchedulerState.PENDING_SAVE
        self._timer = self._host.call_later(self.debounce_interval, self._on_debounce_elapsed)

    def unload(self) -> None:
        """Stop scheduling saves for good. A save already running continues."""
        if self._state is SchedulerState.UNLOADED:
            return
        self._state = SchedulerState.UNLOADED
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        log.debug("Save scheduler unloaded")

    def stop(self) -> None:
        """Unload, cancel a save still in flight, and detach from the host."""
        self.unload()
        in_flight, self._in_flight = self._in_flight, None
        if in_flight is not None and not in_flight.done():
            in_flight.cancel()
        if self._listeners is not None:
            self._listeners.dispose()

    def _on_input(self, event: Any = None) -> None:
        self.notify_activity()

    def _on_debounce_elapsed(self) -> None:
        self._timer = None
        if self._state is not SchedulerState.PENDING_SAVE:
            return
        self._host.request_idle_callback(self._on_idle)

    def _on_idle(self) -> None:
        if self._state is not SchedulerState.PENDING_SAVE:
            return
        self._state = SchedulerState.IDLE

        result = self._save()
        if not inspect.isawaitable(result):
            return

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No running loop, finish the save synchronously
            asyncio.run(_await(result))
            return

        self._in_flight = asyncio.ensure_future(result)
        self._in_flight.add_done_callback(_log_save_failure)


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def _log_save_failure(future: asyncio.Future[Any]) -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        log.warning("Idle save failed: %s", error)
