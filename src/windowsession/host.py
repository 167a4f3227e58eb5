"""Host adapter backed by the running asyncio event loop."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from windowsession.logging import get_logger

log = get_logger("host")


class AsyncioHost:
    """Implements the ``Host`` port on top of an asyncio loop.

    asyncio has no native idle notion; idle callbacks run on the next loop
    iteration, after whatever is already queued. The UI layer forwards
    input with ``dispatch_event``.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._listeners: dict[str, list[Callable[[Any], None]]] = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def request_idle_callback(self, callback: Callable[[], None]) -> None:
        self.loop.call_soon(callback)

    def add_event_listener(self, event_type: str, listener: Callable[[Any], None]) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def remove_event_listener(self, event_type: str, listener: Callable[[Any], None]) -> None:
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def dispatch_event(self, event_type: str, event: Any = None) -> None:
        for listener in list(self._listeners.get(event_type, ())):
            try:
                listener(event)
            except Exception:
                log.exception("Listener for %s failed", event_type)
