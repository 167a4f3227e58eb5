"""Shared fakes for the collaborator ports."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, Mock

from windowsession.errors import MissingPathsError
from windowsession.events import Disposable


class FakeTextEditor:
    """Minimal text editor pane item."""

    def __init__(self, path: str | None = None, text: str = "") -> None:
        self.path = path
        self.text = text
        self._saved_text = text

    def get_path(self) -> str | None:
        return self.path

    def is_modified(self) -> bool:
        return self.text != self._saved_text

    def set_text(self, text: str) -> None:
        self.text = text


class FakePanelItem:
    """A non-editor pane item, e.g. a tree view or settings page."""

    def __init__(self, title: str = "title", modified: bool = False) -> None:
        self.title = title
        self.modified = modified

    def get_title(self) -> str:
        return self.title

    def is_modified(self) -> bool:
        return self.modified


class FakeImageView:
    """A non-editor item that still has a path, like an image viewer."""

    def __init__(self, path: str, modified: bool = False) -> None:
        self.path = path
        self.modified = modified

    def get_path(self) -> str:
        return self.path

    def is_modified(self) -> bool:
        return self.modified


class FakeContainer:
    def __init__(self, name: str) -> None:
        self.name = name
        self.items: list[Any] = []

    def add_item(self, item: Any) -> Any:
        self.items.append(item)
        return item

    def get_pane_items(self) -> list[Any]:
        return list(self.items)


class FakePane:
    def __init__(self, workspace: FakeWorkspace) -> None:
        self.workspace = workspace
        self.destroyed = False

    def destroy(self) -> None:
        self.destroyed = True
        self.workspace.center.items.clear()


class FakeWorkspace:
    def __init__(self) -> None:
        self.center = FakeContainer("center")
        self.left_dock = FakeContainer("left")
        self.right_dock = FakeContainer("right")
        self.bottom_dock = FakeContainer("bottom")
        self.panes = [FakePane(self)]
        self.open = AsyncMock(return_value=None)
        self.deserialized: list[Any] = []

    def get_active_text_editor(self) -> FakeTextEditor | None:
        for item in reversed(self.center.items):
            if isinstance(item, FakeTextEditor):
                return item
        return None

    def is_text_editor(self, item: Any) -> bool:
        return isinstance(item, FakeTextEditor)

    def get_center(self) -> FakeContainer:
        return self.center

    def get_pane_containers(self) -> list[FakeContainer]:
        return [self.center, self.left_dock, self.right_dock, self.bottom_dock]

    def get_pane_items(self) -> list[Any]:
        return [item for container in self.get_pane_containers() for item in container.items]

    def get_panes(self) -> list[FakePane]:
        return list(self.panes)

    def serialize(self) -> dict[str, Any]:
        return {"items": len(self.center.items)}

    def deserialize(self, state: Any) -> None:
        self.deserialized.append(state)


class FakeProject:
    def __init__(self, paths: list[str] | None = None) -> None:
        self.paths: list[str] = list(paths or [])
        self.serialize_calls: list[Any] = []
        self.deserialize_error: Exception | None = None

    def get_paths(self) -> list[str]:
        return list(self.paths)

    def set_paths(self, paths: list[str]) -> None:
        self.paths = list(paths)

    def add_path(self, path: str) -> None:
        if path not in self.paths:
            self.paths.append(path)

    def serialize(self, options: Any = None) -> dict[str, Any]:
        self.serialize_calls.append(options)
        return {"paths": list(self.paths)}

    async def deserialize(self, state: Any) -> None:
        if self.deserialize_error is not None:
            raise self.deserialize_error
        self.paths = list(state.get("paths", []))


def missing_paths_project(paths: list[str]) -> FakeProject:
    project = FakeProject()
    project.deserialize_error = MissingPathsError(paths, "deserialization failure")
    return project


class FakeWindow:
    def __init__(self, picked: list[str] | None = None, choice: int = 1) -> None:
        self.picked = picked
        self.confirm = Mock(return_value=choice)
        self.open = Mock()
        self.open_dev_tools = Mock()
        self.execute_in_dev_tools = Mock()

    def pick_folder(self, callback: Callable[[list[str] | None], None]) -> None:
        callback(self.picked)


class FakeTimer:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeHost:
    """Manual clock and idle queue for driving the save scheduler."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []
        self.idle_callbacks: list[Callable[[], None]] = []
        self.listeners: dict[str, list[Callable[[Any], None]]] = {}

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def request_idle_callback(self, callback: Callable[[], None]) -> None:
        self.idle_callbacks.append(callback)

    def add_event_listener(self, event_type: str, listener: Callable[[Any], None]) -> None:
        self.listeners.setdefault(event_type, []).append(listener)

    def remove_event_listener(self, event_type: str, listener: Callable[[Any], None]) -> None:
        listeners = self.listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self) -> int:
        return sum(len(listeners) for listeners in self.listeners.values())

    def dispatch(self, event_type: str, event: Any = None) -> None:
        for listener in list(self.listeners.get(event_type, [])):
            listener(event)

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [t for t in self.timers if t.when <= self.now and not t.cancelled]
        self.timers = [t for t in self.timers if t not in due]
        for timer in sorted(due, key=lambda t: t.when):
            timer.callback()

    def run_idle_callbacks(self) -> int:
        callbacks, self.idle_callbacks = self.idle_callbacks, []
        for callback in callbacks:
            callback()
        return len(callbacks)


class FakeErrorTrap:
    def __init__(self) -> None:
        self.handler: Callable[..., None] | None = None
        self.install_count = 0
        self.uninstall_count = 0

    def install(self, handler: Callable[..., None]) -> None:
        self.handler = handler
        self.install_count += 1

    def uninstall(self) -> None:
        self.handler = None
        self.uninstall_count += 1

    def trigger(self, error: BaseException, url: str = "abc", line: int = 2, column: int = 3) -> None:
        assert self.handler is not None
        self.handler(str(error), url, line, column, error)


class FakeUpdater:
    def __init__(self) -> None:
        self.callbacks: list[Callable[[Any], None]] = []

    def on_did_complete_downloading_update(self, callback: Callable[[Any], None]) -> Disposable:
        self.callbacks.append(callback)
        return Disposable(lambda: self.callbacks.remove(callback))

    def emit(self, details: Any) -> None:
        for callback in list(self.callbacks):
            callback(details)
