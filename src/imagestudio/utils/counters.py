"""
Persistent usage counters.

Two monotonic counters (successful edits and successful generations) are kept
in a small key-value store as decimal strings. The store is injected, so
tests use MemoryStore and the CLI uses FileStore (a JSON file).
"""

import json
import os
import sys
import tempfile
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from imagestudio.logging_config import get_logger

if sys.platform != "win32":
    import fcntl

logger = get_logger(__name__)

EDIT_COUNT_KEY = "gemini-edit-count"
GENERATION_COUNT_KEY = "gemini-gen-count"


class KeyValueStore(Protocol):
    """String key-value store holding counter values."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def update(self, key: str, fn: Callable[[str | None], str]) -> str:
        """Atomically replace the value of key with fn(old value); return the new value."""
        ...

    def clear(self) -> None: ...


class MemoryStore:
    """In-process store backed by a dict."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def update(self, key: str, fn: Callable[[str | None], str]) -> str:
        with self._lock:
            value = fn(self._data.get(key))
            self._data[key] = value
            return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class FileStore:
    """Store persisted as a JSON object in a file.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace. update() holds a thread lock and, on POSIX, an
    exclusive flock on a sidecar ``.lock`` file so concurrent processes do not
    lose increments.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._lock:
            if sys.platform == "win32":
                yield
                return
            self.path.parent.mkdir(parents=True, exist_ok=True)
            lock_path = self.path.with_name(self.path.name + ".lock")
            with lock_path.open("a") as lock_file:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Counter file %s is not valid JSON; starting from empty", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            dir=str(self.path.parent),
            prefix=self.path.name + ".",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            tmp_path = Path(f.name)
            json.dump(data, f, indent=2, sort_keys=True)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._locked():
            data = self._read()
            data[key] = value
            self._write(data)

    def update(self, key: str, fn: Callable[[str | None], str]) -> str:
        with self._locked():
            data = self._read()
            value = fn(data.get(key))
            data[key] = value
            self._write(data)
            return value

    def clear(self) -> None:
        with self._locked():
            self._write({})


def _parse_count(raw: str | None) -> int:
    if raw is None:
        return 0
    try:
        return max(int(raw.strip()), 0)
    except ValueError:
        return 0


class UsageCounters:
    """Monotonic counters over a KeyValueStore. Values are stored as decimal strings."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def get(self, key: str) -> int:
        """Return the counter value; missing or unparsable values read as 0."""
        return _parse_count(self.store.get(key))

    def increment(self, key: str) -> int:
        """Add one to the counter and return the new value."""
        new_value = self.store.update(key, lambda raw: str(_parse_count(raw) + 1))
        logger.debug("Counter %s -> %s", key, new_value)
        return int(new_value)

    @property
    def edit_count(self) -> int:
        return self.get(EDIT_COUNT_KEY)

    @property
    def generation_count(self) -> int:
        return self.get(GENERATION_COUNT_KEY)

    def record_edit(self) -> int:
        return self.increment(EDIT_COUNT_KEY)

    def record_generation(self) -> int:
        return self.increment(GENERATION_COUNT_KEY)


__all__ = [
    "EDIT_COUNT_KEY",
    "GENERATION_COUNT_KEY",
    "FileStore",
    "KeyValueStore",
    "MemoryStore",
    "UsageCounters",
]
