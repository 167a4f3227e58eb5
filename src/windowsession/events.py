"""Subscription registries with disposable handles.

Every ``on_*`` hook of the environment returns a ``Disposable``; the
environment keeps them in a ``CompositeDisposable`` so ``destroy()`` can
release every listener deterministically.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from windowsession.logging import get_logger

log = get_logger("events")


class Disposable:
    """Handle that runs a cleanup callback at most once."""

    def __init__(self, callback: Callable[[], None] | None = None) -> None:
        self._callback = callback
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Run the cleanup callback. Further calls are no-ops."""
        if self._disposed:
            return
        self._disposed = True
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


class CompositeDisposable(Disposable):
    """Groups disposables so they can be released together."""

    def __init__(self, *disposables: Disposable) -> None:
        super().__init__()
        self._children: list[Disposable] = list(disposables)

    def add(self, *disposables: Disposable) -> None:
        if self.disposed:
            # Late additions are released immediately
            for disposable in disposables:
                disposable.dispose()
            return
        self._children.extend(disposables)

    def remove(self, disposable: Disposable) -> None:
        if disposable in self._children:
            self._children.remove(disposable)

    def __len__(self) -> int:
        return len(self._children)

    def dispose(self) -> None:
        if self.disposed:
            return
        super().dispose()
        children, self._children = self._children, []
        for child in children:
            try:
                child.dispose()
            except Exception as e:
                log.warning("Error while disposing subscription: %s", e)


class Emitter:
    """Named event fan-out.

    Handler exceptions are logged and do not stop delivery to the remaining
    handlers.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callable[[Any], None]]] = {}
        self._disposed = False

    def on(self, event_name: str, handler: Callable[[Any], None]) -> Disposable:
        """Register ``handler`` for ``event_name``."""
        if self._disposed:
            return Disposable()
        self._handlers.setdefault(event_name, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_name)
            if handlers and handler in handlers:
                handlers.remove(handler)

        return Disposable(unsubscribe)

    def once(self, event_name: str, handler: Callable[[Any], None]) -> Disposable:
        """Register ``handler`` to run on the next emission only."""
        disposable: Disposable

        def wrapper(value: Any) -> None:
            disposable.dispose()
            handler(value)

        disposable = self.on(event_name, wrapper)
        return disposable

    def emit(self, event_name: str, value: Any = None) -> None:
        for handler in list(self._handlers.get(event_name, ())):
            try:
                handler(value)
            except Exception as e:
                log.warning("Handler for %r raised: %s", event_name, e)

    def listener_count(self, event_name: str) -> int:
        return len(self._handlers.get(event_name, ()))

    def clear(self) -> None:
        self._handlers.clear()

    def dispose(self) -> None:
        self.clear()
        self._disposed = True
