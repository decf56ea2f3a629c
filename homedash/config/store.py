"""Namespaced key/value persistence with JSON documents and default seeding."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Generic, Iterator, Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..core.errors import StorageParseError
from .paths import key_filename

T = TypeVar("T")
WatchCallback = Callable[[str, Any], None]

logger = logging.getLogger("homedash.store")

_JSONABLE: TypeAdapter[Any] = TypeAdapter(Any)
_MISSING = object()


class StoreBackend(Protocol):
    """Raw string storage addressed by namespace key."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, raw: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> Iterator[str]: ...


class MemoryBackend:
    """In-process backend, the equivalent of a fresh browser profile."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self.data.get(key)

    def write(self, key: str, raw: str) -> None:
        self.data[key] = raw

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self.data))


class JsonDirectoryBackend:
    """One ``<key>.json`` document per namespace key inside ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / key_filename(key)

    def read(self, key: str) -> str | None:
        path = self._path(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        return raw.decode("utf-8", errors="replace").lstrip("\ufeff")

    def write(self, key: str, raw: str) -> None:
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=self.root)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(raw)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> Iterator[str]:
        for path in sorted(self.root.glob("*.json")):
            yield path.stem


class PersistentStore:
    """JSON (de)serialization over a backend with default seeding.

    ``get`` never raises on malformed persisted data: the caller default is
    returned (and re-persisted when ``seed`` is true) and the problem is
    logged as a :class:`StorageParseError`.
    """

    def __init__(self, backend: StoreBackend | None = None) -> None:
        self.backend: StoreBackend = backend if backend is not None else MemoryBackend()
        self._watchers: dict[str, list[WatchCallback]] = {}

    def get(self, key: str, default: Any = None, *, schema: Any | None = None, seed: bool = True) -> Any:
        raw = self.backend.read(key)
        if raw is not None:
            value = self._decode(key, raw, schema)
            if value is not _MISSING:
                return value
        if seed and default is not None:
            with contextlib.suppress(OSError):
                self.set(key, default)
        return default

    def set(self, key: str, value: Any) -> None:
        raw = json.dumps(_JSONABLE.dump_python(value, mode="json", by_alias=True), ensure_ascii=False)
        try:
            self.backend.write(key, raw)
        except OSError:
            logger.exception("Failed to persist key %s", key)
            raise
        for callback in list(self._watchers.get(key, ())):
            try:
                callback(key, value)
            except Exception:
                logger.exception("Store watcher failed for key %s", key)

    def delete(self, key: str) -> None:
        self.backend.delete(key)

    def keys(self) -> list[str]:
        return list(self.backend.keys())

    def watch(self, key: str, callback: WatchCallback) -> Callable[[], None]:
        """Register ``callback`` for writes to ``key``; returns an unsubscribe function."""
        self._watchers.setdefault(key, []).append(callback)

        def _unwatch() -> None:
            callbacks = self._watchers.get(key, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return _unwatch

    def bind(self, key: str, default: T, *, schema: Any | None = None) -> "StoredValue[T]":
        return StoredValue(self, key, default, schema)

    def _decode(self, key: str, raw: str, schema: Any | None) -> Any:
        try:
            value = json.loads(raw)
        except ValueError as exc:
            error = StorageParseError(details={"key": key, "reason": str(exc)})
            logger.warning("%s (key=%s)", error.message, key)
            return _MISSING
        if schema is None:
            return value
        try:
            return TypeAdapter(schema).validate_python(value)
        except ValidationError as exc:
            error = StorageParseError(details={"key": key, "errors": exc.error_count()})
            logger.warning("%s (key=%s)", error.message, key)
            return _MISSING


class StoredValue(Generic[T]):
    """Handle on one namespace key: load default, save on change."""

    def __init__(self, store: PersistentStore, key: str, default: T, schema: Any | None = None) -> None:
        self.store = store
        self.key = key
        self.default = default
        self.schema = schema

    def get(self) -> T:
        return self.store.get(self.key, self.default, schema=self.schema)

    def set(self, value: T) -> None:
        self.store.set(self.key, value)

    def update(self, fn: Callable[[T], T]) -> T:
        value = fn(self.get())
        self.set(value)
        return value

    def watch(self, callback: WatchCallback) -> Callable[[], None]:
        return self.store.watch(self.key, callback)
