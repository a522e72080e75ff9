"""StoreBackend protocol, concrete backends, and store selection."""

from __future__ import annotations

import contextlib
import copy
import json
import logging
import os
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEFAULT_STORE_NAME = "standard"


class StoreError(Exception):
    """Raised by a backend when it cannot read or write its storage."""

    pass


class CorruptStoreError(StoreError):
    """The stored document exists but does not decode to a key-value object."""

    pass


class StoreBackend(Protocol):
    """Protocol for key-value persistence.

    Values are plain JSON-compatible objects (dicts, lists, str, int, ...).
    How they are serialized is up to the backend.
    """

    def get(self, key: str) -> Any | None: ...
    def set(self, key: str, value: Any) -> None: ...
    def delete(self, key: str) -> None: ...


class MemoryBackend:
    """In-memory storage for development and testing.

    WARNING: State lost on restart.
    Values are deep-copied in and out, so callers never share mutable
    state with the store.
    """

    def __init__(self):
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileBackend:
    """One JSON document on disk holding every key of the store.

    Writes go through a temp file and ``os.replace`` so readers never see a
    half-written document. Concurrent writers are not coordinated. A
    document that does not decode to an object makes ``get`` raise, and the
    next ``set`` or ``delete`` replaces it.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StoreError(f"Cannot read {self._path}: {e}") from e

        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as e:
            raise CorruptStoreError(f"Corrupt store {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise CorruptStoreError(f"Corrupt store {self._path}: top level must be an object")
        return data

    def _read_for_update(self) -> dict[str, Any]:
        try:
            return self._read()
        except CorruptStoreError as e:
            logger.warning("%s; overwriting", e)
            return {}

    def _write(self, data: dict[str, Any]) -> None:
        try:
            payload = json.dumps(data, sort_keys=True)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Cannot write {self._path}: {e}") from e

        tmp = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self._path)
        except OSError as e:
            if tmp is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp)
            raise StoreError(f"Cannot write {self._path}: {e}") from e

    def get(self, key: str) -> Any | None:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read_for_update()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read_for_update()
        if key in data:
            del data[key]
            self._write(data)


# ---------------------------------------------------------------------------
# Local store factories
# ---------------------------------------------------------------------------


class LocalStoreFactory(Protocol):
    """Opens local stores by namespace.

    ``open(None)`` returns the default private store. A namespace that
    cannot be opened returns None.
    """

    def open(self, namespace: str | None) -> StoreBackend | None: ...


class MemoryStores:
    """One MemoryBackend per namespace. Names in *unavailable* fail to open."""

    def __init__(self, unavailable: tuple[str, ...] | list[str] = ()):
        self._stores: dict[str | None, MemoryBackend] = {}
        self._unavailable = set(unavailable)

    def open(self, namespace: str | None) -> MemoryBackend | None:
        if namespace is not None and namespace in self._unavailable:
            return None
        if namespace not in self._stores:
            self._stores[namespace] = MemoryBackend()
        return self._stores[namespace]


class FileStores:
    """JSON file stores under one root directory.

    The default store is ``<root>/standard.json``; a namespace maps to
    ``<root>/<namespace>.json``.
    """

    def __init__(self, root: str | Path):
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    def open(self, namespace: str | None) -> FileBackend | None:
        if namespace is None:
            name = DEFAULT_STORE_NAME
        elif not _is_valid_namespace(namespace):
            return None
        else:
            name = namespace

        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create store directory %s: %s", self._root, e)
            return None
        return FileBackend(self._root / f"{name}.json")


def _is_valid_namespace(namespace: str) -> bool:
    if not namespace or namespace == DEFAULT_STORE_NAME:
        return False
    if "/" in namespace or "\\" in namespace or ".." in namespace:
        return False
    return namespace != "."


# ---------------------------------------------------------------------------
# Synchronized store
# ---------------------------------------------------------------------------


class SynchronizedStore:
    """A backend shared across a user's devices.

    Usable only while *identity* returns a token for the current user.
    """

    def __init__(self, backend: StoreBackend, identity: Callable[[], str | None]):
        self.backend = backend
        self._identity = identity

    def identity_token(self) -> str | None:
        try:
            return self._identity()
        except Exception as e:
            logger.warning("Synchronized store identity check failed: %s", e)
            return None

    def is_available(self) -> bool:
        return self.identity_token() is not None


# ---------------------------------------------------------------------------
# Store selection
# ---------------------------------------------------------------------------


class StoreKind(StrEnum):
    LOCAL = "local"
    SYNCHRONIZED = "synchronized"


def choose_store_kind(prefer_synchronized: bool, synchronized_available: bool) -> StoreKind:
    """Synchronized only when the caller asked for it AND it is available."""
    if prefer_synchronized and synchronized_available:
        return StoreKind.SYNCHRONIZED
    return StoreKind.LOCAL


@dataclass(frozen=True)
class ResolvedStore:
    """Outcome of store selection, fixed for the lifetime of its owner."""

    backend: StoreBackend
    kind: StoreKind
    synchronized_available: bool


class StorageLocator:
    """Chooses between the local stores and the synchronized store."""

    def __init__(self, local: LocalStoreFactory, synchronized: SynchronizedStore | None = None):
        self.local = local
        self.synchronized = synchronized

    def synchronized_available(self) -> bool:
        if self.synchronized is None:
            return False
        return self.synchronized.is_available()

    def local_store(self, namespace: str | None = None) -> StoreBackend:
        """Open *namespace*, falling back to the default private store."""
        if namespace is not None:
            store = self.local.open(namespace)
            if store is not None:
                return store
            logger.info("Store namespace '%s' unavailable, using default store", namespace)

        store = self.local.open(None)
        if store is None:
            raise StoreError("Default local store cannot be opened")
        return store

    def resolve(self, namespace: str | None = None, prefer_synchronized: bool = False) -> ResolvedStore:
        available = self.synchronized_available()
        kind = choose_store_kind(prefer_synchronized, available)

        if kind is StoreKind.SYNCHRONIZED:
            return ResolvedStore(backend=self.synchronized.backend, kind=kind, synchronized_available=available)

        if prefer_synchronized:
            logger.info("Synchronized store requested but unavailable, using local store")
        return ResolvedStore(backend=self.local_store(namespace), kind=kind, synchronized_available=available)


def default_store_root() -> Path:
    return Path(os.environ.get("DEVICEINFO_HOME", "~/.deviceinfo")).expanduser()


def default_locator() -> StorageLocator:
    """File stores under ``$DEVICEINFO_HOME`` (``~/.deviceinfo``), no synchronized store."""
    return StorageLocator(FileStores(default_store_root()))
