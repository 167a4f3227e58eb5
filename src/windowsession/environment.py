"""The environment of one editor window.

Wires the state store, save scheduler and restoration engine to the
project, workspace and window collaborators, and exposes the lifecycle:

    initialize() -> start_editor_window() -> ... -> unload_editor_window() -> destroy()
"""

from __future__ import annotations

import asyncio
import inspect
import os
import traceback
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from windowsession import __version__
from windowsession.collaborators import Collaborators
from windowsession.config import Config, get_config, get_default_state_dir
from windowsession.errors import (
    AssertionFailure,
    ErrorEvent,
    MissingPathsError,
    WillThrowErrorEvent,
)
from windowsession.events import CompositeDisposable, Disposable, Emitter
from windowsession.ipc import Location, LoadSettings, UpdateAvailable
from windowsession.logging import get_logger, setup_logging
from windowsession.notifications import MissingPathsReport
from windowsession.release import ReleaseChannel, get_release_channel, is_released_version
from windowsession.restoration import RestorationDecisionEngine, RestorationOutcome
from windowsession.scheduler import SaveScheduler
from windowsession.state.keys import derive_key
from windowsession.state.store import StateStore
from windowsession.traps import ExceptHookErrorTrap

log = get_logger("environment")

# Bumped whenever the envelope written by serialize() changes incompatibly
STATE_VERSION = 1

DEV_TOOLS_SCRIPT = 'DevToolsAPI.showPanel("console")'


@dataclass
class SaveOptions:
    """Options for ``Environment.save_state``.

    ``extra`` is forwarded untouched to the project serializer.
    """

    is_unloading: bool = False
    extra: dict[str, Any] = field(default_factory=dict)


class Environment:
    """Session persistence and restoration for a single window."""

    def __init__(
        self,
        collaborators: Collaborators,
        *,
        config: Config | None = None,
        load_settings: LoadSettings | Mapping[str, Any] | None = None,
        version: str | None = None,
    ) -> None:
        self._collaborators = collaborators
        self.project = collaborators.project
        self.workspace = collaborators.workspace
        self.notifications = collaborators.notifications
        self.window = collaborators.window

        self.config = config or get_config()
        if load_settings is None:
            load_settings = LoadSettings()
        elif not isinstance(load_settings, LoadSettings):
            load_settings = LoadSettings.model_validate(load_settings)
        self._load_settings = load_settings
        self._version = version or __version__

        self.enable_persistence = self.config.state.enabled
        self.save_state_debounce_interval = self.config.state.debounce_interval

        self.state_store: StateStore | None = collaborators.state_store
        self.emitter = Emitter()
        self.disposables = CompositeDisposable()
        self.save_scheduler: SaveScheduler | None = None
        self.restoration = RestorationDecisionEngine(
            project=self.project,
            workspace=self.workspace,
            window=self.window,
            restore_state=self.restore_state_into_this_environment,
            launch_flags=lambda: (self.in_dev_mode(), self.in_safe_mode()),
        )

        self._error_trap = collaborators.error_trap
        self.unloading = False
        self.initialized = False
        self.destroyed = False
        self.shell_environment_loaded = False
        self.last_uncaught_error: ErrorEvent | None = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self) -> None:
        """Create the store, install the error trap and input listeners."""
        if self.initialized:
            return
        setup_logging(self.config.logging)

        if self.state_store is None:
            directory = self.config.state.directory or get_default_state_dir()
            self.state_store = StateStore(directory)

        if self._error_trap is None:
            self._error_trap = ExceptHookErrorTrap()
        self._error_trap.install(self.handle_uncaught_error)
        trap = self._error_trap
        self.disposables.add(Disposable(trap.uninstall))

        host = self._collaborators.host
        if host is not None:
            self.save_scheduler = SaveScheduler(
                host,
                self._save_state_when_idle,
                debounce_interval=self.save_state_debounce_interval,
            )
            self.disposables.add(self.save_scheduler.start())

        self.initialized = True
        log.debug("Environment initialized (version %s)", self._version)

    async def start_editor_window(self) -> None:
        """Restore the window from saved state and finish startup."""
        self.unloading = False
        if not self.initialized:
            self.initialize()

        if self.enable_persistence and self.state_store is not None:
            await self.state_store.connect()

        state = await self.load_state()
        await self.deserialize(state)
        await self.open_initial_empty_editor_if_necessary()

        if self._collaborators.update_process_env is not None:
            await self.update_process_env_and_trigger_hooks()
        if self._collaborators.updater is not None:
            self.listen_for_updates()

    async def prepare_to_unload(self) -> None:
        """Save final state, then stop scheduling saves."""
        await self.save_state(SaveOptions(is_unloading=True))
        self.unload_editor_window()

    def unload_editor_window(self) -> None:
        if self.unloading or self.destroyed:
            return
        blob_store = self._collaborators.blob_store
        if blob_store is not None:
            try:
                blob_store.save()
            except Exception as e:
                log.warning("Failed to save blob store: %s", e)
        if self.save_scheduler is not None:
            self.save_scheduler.unload()
        self.unloading = True

    def destroy(self) -> None:
        """Release every listener, the error trap and the store lock.

        A save still in flight is cancelled, and the store is closed so it
        cannot take the lock again. Safe after a partial or failed ``initialize()`` and when called twice.
        """
        if self.destroyed:
            return
        self.destroyed = True
        if self.save_scheduler is not None:
            self.save_scheduler.stop()
        self.disposables.dispose()
        self.emitter.dispose()
        if self.state_store is not None:
            self.state_store.disconnect()
        log.debug("Environment destroyed")

    # -------------------------------------------------------------------------
    # Load settings and version
    # -------------------------------------------------------------------------

    def get_load_settings(self) -> LoadSettings:
        return self._load_settings

    def in_dev_mode(self) -> bool:
        return self.get_load_settings().dev_mode

    def in_safe_mode(self) -> bool:
        return self.get_load_settings().safe_mode

    def get_version(self) -> str:
        return self._version

    def get_release_channel(self) -> ReleaseChannel:
        return get_release_channel(self.get_version())

    def is_released_version(self) -> bool:
        return is_released_version(self.get_version())

    # -------------------------------------------------------------------------
    # Saving and loading
    # -------------------------------------------------------------------------

    def get_state_key(self, paths: Iterable[str]) -> str:
        return derive_key(paths, order_independent=self.config.state.order_independent_keys)

    def serialize(self, options: SaveOptions | None = None) -> dict[str, Any]:
        state: dict[str, Any] = {
            "version": STATE_VERSION,
            "project": self.project.serialize(options),
            "workspace": self.workspace.serialize(),
        }
        registry = self._collaborators.editor_registry
        if registry is not None:
            state["text_editors"] = registry.serialize()
        return state

    async def save_state(
        self,
        options: SaveOptions | None = None,
        storage_key: str | None = None,
    ) -> bool:
        """Serialize the window and persist it under the current project key.

        Failures never propagate: they are logged, and reported to the user
        unless the window is unloading.

        Returns:
            True if the state was written.
        """
        options = options or SaveOptions()
        if self.destroyed or not self.enable_persistence or self.state_store is None:
            return False

        try:
            state = self.serialize(options)
            key = storage_key or self.get_state_key(self.project.get_paths())
            written = await self.state_store.save(key, state)
        except Exception as e:
            if options.is_unloading:
                log.warning("Failed to save state while unloading: %s", e)
            else:
                log.error("Failed to save state: %s", e)
                self.notifications.add_error("Unable to save window state", description=str(e))
            return False
        return written

    async def load_state(self, state_key: str | None = None) -> Any | None:
        """Load saved state, keyed by ``state_key`` or the initial paths."""
        if self.destroyed or not self.enable_persistence or self.state_store is None:
            return None

        if state_key is None:
            state_key = self.get_state_key(self.get_load_settings().initial_paths)

        state = await self.state_store.load(state_key)
        if isinstance(state, Mapping) and state.get("version", STATE_VERSION) != STATE_VERSION:
            log.warning(
                "Ignoring saved state %s with version %r (expected %r)",
                state_key,
                state.get("version"),
                STATE_VERSION,
            )
            return None
        return state

    async def deserialize(self, state: Any) -> None:
        """Apply saved state. Never raises.

        Project directories that are gone from disk are gathered into one
        notification; any other failure is reported per section and the
        remaining sections are still restored.
        """
        if not state:
            return
        if not isinstance(state, Mapping):
            log.warning("Ignoring saved state of unexpected type %s", type(state).__name__)
            return

        missing = MissingPathsReport()

        project_state = state.get("project")
        if project_state is not None:
            try:
                await self.project.deserialize(project_state)
            except MissingPathsError as e:
                missing.add(e.missing_project_paths)
            except Exception as e:
                self._report_deserialize_failure("project", e)

        workspace_state = state.get("workspace")
        if workspace_state is not None:
            try:
                self.workspace.deserialize(workspace_state)
            except Exception as e:
                self._report_deserialize_failure("workspace", e)

        registry = self._collaborators.editor_registry
        editors_state = state.get("text_editors")
        if registry is not None and editors_state is not None:
            try:
                registry.deserialize(editors_state)
            except Exception as e:
                self._report_deserialize_failure("text editors", e)

        missing.flush(self.notifications)

    def _report_deserialize_failure(self, section: str, error: Exception) -> None:
        log.warning("Unable to deserialize %s: %s", section, error)
        stack = "".join(traceback.format_exception(error))
        self.notifications.add_error(
            f"Unable to deserialize {section}", description=str(error), stack=stack
        )

    async def restore_state_into_this_environment(self, state: Any) -> None:
        for pane in list(self.workspace.get_panes()):
            pane.destroy()
        await self.deserialize(state)

    def _save_state_when_idle(self) -> Any:
        if self.unloading:
            return None
        return self.save_state(SaveOptions(is_unloading=False))

    # -------------------------------------------------------------------------
    # Opening folders and files
    # -------------------------------------------------------------------------

    async def attempt_restore_project_state_for_paths(
        self,
        state: Any,
        project_paths: Sequence[str],
        files_to_open: Sequence[str] = (),
    ) -> RestorationOutcome:
        return await self.restoration.attempt_restore(state, project_paths, files_to_open)

    def pick_folder(self, callback: Callable[[list[str] | None], None]) -> None:
        self.window.pick_folder(callback)

    async def add_project_folder(self) -> None:
        """Ask the user for folders and add them, restoring saved state if any."""
        loop = asyncio.get_running_loop()
        picked: asyncio.Future[list[str] | None] = loop.create_future()

        def on_picked(paths: list[str] | None) -> None:
            if not picked.done():
                picked.set_result(paths)

        self.pick_folder(on_picked)
        selected = await picked
        if selected:
            await self.add_to_project(selected)

    async def add_to_project(self, project_paths: Sequence[str]) -> None:
        project_paths = list(project_paths)
        state = await self.load_state(self.get_state_key(project_paths))
        if state and not self.project.get_paths():
            await self.attempt_restore_project_state_for_paths(state, project_paths)
        else:
            for folder in project_paths:
                self.project.add_path(folder)

    async def open_locations(self, locations: Sequence[Location | Mapping[str, Any]]) -> None:
        """Open paths requested by the host.

        Folders are only collected when the project is still empty or the
        location forces it into this window. Missing files resolve to their
        containing folder; anything that is not a directory is opened in
        the workspace.
        """
        needs_project_paths = not self.project.get_paths()
        folders_to_add: list[str] = []
        files_to_open: list[Location] = []

        for raw in locations:
            location = raw if isinstance(raw, Location) else Location.model_validate(raw)
            path = location.path_to_open

            if path and (needs_project_paths or location.force_add_to_window):
                folder = await self._resolve_project_folder(path)
                if folder not in folders_to_add:
                    folders_to_add.append(folder)

            if not path or not await _run_blocking(os.path.isdir, path):
                files_to_open.append(location)

        restored = False
        if folders_to_add:
            state = await self.load_state(self.get_state_key(folders_to_add))
            if state and needs_project_paths:
                files = [loc.path_to_open for loc in files_to_open if loc.path_to_open]
                await self.attempt_restore_project_state_for_paths(state, folders_to_add, files)
                restored = True
            else:
                existing = self.project.get_paths()
                for folder in folders_to_add:
                    if folder not in existing:
                        self.project.add_path(folder)

        if not restored and files_to_open:
            await asyncio.gather(
                *(
                    self.workspace.open(
                        loc.path_to_open,
                        initial_line=loc.initial_line,
                        initial_column=loc.initial_column,
                    )
                    for loc in files_to_open
                )
            )

    async def _resolve_project_folder(self, path: str) -> str:
        if await _run_blocking(os.path.isdir, path):
            return path
        if await _run_blocking(os.path.exists, path):
            return os.path.dirname(path)
        parent = os.path.dirname(path)
        if parent and await _run_blocking(os.path.isdir, parent):
            return parent
        # Not on the local filesystem (e.g. remote://...), keep as-is
        return path

    async def open_initial_empty_editor_if_necessary(self) -> None:
        if not self.config.environment.open_empty_editor_on_start:
            return
        if not self.get_load_settings().initial_paths and not self.workspace.get_pane_items():
            await self.workspace.open(None)

    # -------------------------------------------------------------------------
    # Shell environment and updates
    # -------------------------------------------------------------------------

    def when_shell_environment_loaded(self, callback: Callable[[], None]) -> Disposable:
        if self.shell_environment_loaded:
            callback()
            return Disposable()
        return self.emitter.once("loaded-shell-environment", lambda _: callback())

    async def update_process_env_and_trigger_hooks(self) -> None:
        update_process_env = self._collaborators.update_process_env
        if update_process_env is not None:
            await update_process_env(self.get_load_settings().env)
        self.shell_environment_loaded = True
        self.emitter.emit("loaded-shell-environment")

    def listen_for_updates(self) -> None:
        updater = self._collaborators.updater
        if updater is None:
            return
        self.disposables.add(
            updater.on_did_complete_downloading_update(self._emit_update_available)
        )

    def _emit_update_available(self, details: Mapping[str, Any] | UpdateAvailable) -> None:
        if not isinstance(details, UpdateAvailable):
            details = UpdateAvailable.model_validate(details)
        log.info("Update %s available", details.release_version)
        self.emitter.emit("update-available", details)

    def on_update_available(self, callback: Callable[[UpdateAvailable], None]) -> Disposable:
        return self._subscribe("update-available", callback)

    # -------------------------------------------------------------------------
    # Errors and assertions
    # -------------------------------------------------------------------------

    def on_will_throw_error(self, callback: Callable[[WillThrowErrorEvent], None]) -> Disposable:
        return self._subscribe("will-throw-error", callback)

    def on_did_throw_error(self, callback: Callable[[ErrorEvent], None]) -> Disposable:
        return self._subscribe("did-throw-error", callback)

    def on_did_fail_assertion(self, callback: Callable[[AssertionFailure], None]) -> Disposable:
        return self._subscribe("did-fail-assertion", callback)

    def _subscribe(self, event_name: str, callback: Callable[[Any], None]) -> Disposable:
        subscription = self.emitter.on(event_name, callback)

        def unsubscribe() -> None:
            subscription.dispose()
            self.disposables.remove(handle)

        handle = Disposable(unsubscribe)
        self.disposables.add(handle)
        return handle

    def handle_uncaught_error(
        self,
        message: str,
        url: str | None = None,
        line: int | None = None,
        column: int | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        """Two-phase uncaught error handling.

        ``will-throw-error`` subscribers may call ``prevent_default()`` to
        keep the dev tools closed; ``did-throw-error`` always fires.
        """
        event = WillThrowErrorEvent(
            message=message,
            url=url,
            line=line,
            column=column,
            original_error=original_error,
        )
        self.last_uncaught_error = event.to_error_event()
        log.error("Uncaught error: %s (%s:%s)", message, url, line)

        self.emitter.emit("will-throw-error", event)
        if not event.default_prevented:
            self.open_dev_tools()
            self.execute_in_dev_tools(DEV_TOOLS_SCRIPT)

        self.emitter.emit("did-throw-error", event.to_error_event())

    def open_dev_tools(self) -> None:
        self.window.open_dev_tools()

    def execute_in_dev_tools(self, code: str) -> None:
        self.window.execute_in_dev_tools(code)

    def assert_(
        self,
        condition: Any,
        message: str,
        metadata_or_callback: Any = None,
    ) -> bool:
        """Check a programmer invariant.

        On failure subscribers of ``on_did_fail_assertion`` are notified.
        Dev builds then raise the failure; released builds return False.

        Args:
            condition: Value that should be truthy.
            message: Description of the invariant.
            metadata_or_callback: Data attached as ``error.metadata``, or a
                callable invoked with the error instead.

        Raises:
            AssertionFailure: On failure in an unreleased build.
        """
        if condition:
            return True

        error = AssertionFailure(f"Assertion failed: {message}")
        caller = inspect.currentframe()
        caller = caller.f_back if caller is not None else None
        error.stack = "".join(traceback.format_stack(caller))
        del caller

        if metadata_or_callback is not None:
            if callable(metadata_or_callback):
                metadata_or_callback(error)
            else:
                error.metadata = metadata_or_callback

        self.emitter.emit("did-fail-assertion", error)
        if not self.is_released_version():
            raise error
        return False


async def _run_blocking(func: Callable[..., Any], *args: Any) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)
