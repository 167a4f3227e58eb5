"""Persistent key/value store for window state.

Each key is stored as one YAML document under the store directory:

  <directory>/<sha1(key)>.yaml   {key, saved_at, value}

Exclusive access is negotiated through a ``FileLock`` on
``<directory>/.lock``. Only the instance holding the lock reads or writes;
every other instance sees ``connect() -> False`` and treats persistence as
unavailable until it is disconnected.

``disconnect()`` closes the store: later reads and writes are dropped
instead of silently taking the lock again. An explicit ``connect()``
reopens it.
"""

from __future__ import annotations

import asyncio
import hashlib
import os
import tempfile
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

import yaml
from filelock import FileLock, Timeout

from windowsession.errors import StateStoreError, StorageContention
from windowsession.logging import get_logger

log = get_logger("store")

LOCK_FILENAME = ".lock"

T = TypeVar("T")


class StateStore:
    """Directory-backed state store with an exclusivity handshake."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).expanduser()
        self._lock: FileLock | None = None
        # None: not attempted yet, False: contended or unusable
        self._connected: bool | None = None
        self._closed = False
        # Bumped by disconnect() so acquisitions still in flight back out
        self._generation = 0
        self._state_lock = threading.Lock()
        self._connect_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def connected(self) -> bool:
        return bool(self._connected)

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(self) -> bool:
        """Acquire exclusive access to the backing directory.

        Reopens a store closed by ``disconnect()``. A failed attempt is
        remembered until the next ``disconnect()``.

        Returns:
            True if this instance now holds the lock, False if another
            instance holds it or the directory is unusable.
        """
        self._closed = False
        return await self._ensure_connected()

    async def _ensure_connected(self) -> bool:
        if self._closed:
            return False
        if self._connected is not None:
            return self._connected
        async with self._connect_lock:
            if self._closed:
                return False
            if self._connected is not None:
                return self._connected
            if self._lock is None:
                generation = self._generation
                try:
                    acquired = await self._run(lambda: self._acquire_lock(generation))
                except StorageContention:
                    log.info("State store %s is in use by another instance", self._directory)
                    self._connected = False
                    return False
                except OSError as e:
                    log.warning("Cannot open state store %s: %s", self._directory, e)
                    self._connected = False
                    return False
                if not acquired or self._closed:
                    return False
            self._connected = True
        log.debug("Connected to state store %s", self._directory)
        return True

    def disconnect(self) -> None:
        """Release the exclusivity lock and close the store. Idempotent."""
        with self._state_lock:
            self._generation += 1
            lock, self._lock = self._lock, None
        self._closed = True
        self._connected = None
        if lock is None:
            return
        lock.release()
        log.debug("Disconnected from state store %s", self._directory)

    async def save(self, key: str, value: Any) -> bool:
        """Persist ``value`` under ``key``, replacing any previous value.

        Writes are serialized per store. A store that is closed or cannot
        connect drops the write and returns False.

        Raises:
            StateStoreError: If the value cannot be encoded or written.
        """
        async with self._write_lock:
            if not await self._ensure_connected():
                return False
            await self._run(lambda: self._write(key, value))
        log.debug("Saved state for %s", key)
        return True

    async def load(self, key: str) -> Any | None:
        """Return the value saved under ``key``, or None if there is none."""
        if not await self._ensure_connected():
            return None
        return await self._run(lambda: self._read(key))

    async def clear(self) -> None:
        """Delete every saved value."""
        async with self._write_lock:
            if not await self._ensure_connected():
                return
            await self._run(self._clear)

    async def count(self) -> int:
        """Number of keys with a saved value."""
        return len(await self.keys())

    async def keys(self) -> list[str]:
        """Stored keys, sorted."""
        if not await self._ensure_connected():
            return []
        return await self._run(self._keys)

    # -- blocking helpers (run in the default executor) ---------------------

    async def _run(self, func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    def _acquire_lock(self, generation: int) -> bool:
        self._directory.mkdir(parents=True, exist_ok=True)
        # Released from whichever thread calls disconnect()
        lock = FileLock(self._directory / LOCK_FILENAME, thread_local=False)
        try:
            lock.acquire(timeout=0)
        except Timeout as e:
            raise StorageContention(str(self._directory)) from e

        with self._state_lock:
            if generation == self._generation:
                self._lock = lock
                return True
        # disconnect() ran while the lock was being taken
        lock.release()
        return False

    def _path_for(self, key: str) -> Path:
        name = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self._directory / f"{name}.yaml"

    def _write(self, key: str, value: Any) -> None:
        path = self._path_for(key)
        document = {
            "key": key,
            "saved_at": datetime.now().isoformat(),
            "value": value,
        }
        temp_path: Path | None = None
        try:
            fd, temp_name = tempfile.mkstemp(dir=self._directory, prefix=f"{path.stem}.", suffix=".tmp")
            temp_path = Path(temp_name)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(document, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
            os.replace(temp_path, path)
        except (OSError, yaml.YAMLError) as e:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise StateStoreError(f"Failed to save state for {key}: {e}") from e

    def _read_document(self, path: Path) -> dict[str, Any] | None:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            return None
        except (OSError, yaml.YAMLError) as e:
            log.warning("Failed to read saved state from %s: %s", path, e)
            return None
        return data if isinstance(data, dict) else None

    def _read(self, key: str) -> Any | None:
        document = self._read_document(self._path_for(key))
        if document is None or document.get("key") != key:
            return None
        return document.get("value")

    def _keys(self) -> list[str]:
        if not self._directory.exists():
            return []
        keys: list[str] = []
        for path in self._directory.glob("*.yaml"):
            document = self._read_document(path)
            if document and isinstance(document.get("key"), str):
                keys.append(document["key"])
        return sorted(keys)

    def _clear(self) -> None:
        for path in self._directory.glob("*.yaml"):
            path.unlink()
        log.debug("Cleared state store %s", self._directory)
