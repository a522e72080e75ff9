"""Versioned counters — per-app-version event counts in a key-value store."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any, Protocol

from deviceinfo.bundle import UNKNOWN
from deviceinfo.storage import StorageLocator, StoreBackend, StoreKind, default_locator
from deviceinfo.telemetry import CounterTelemetry

logger = logging.getLogger(__name__)


class CounterKind(StrEnum):
    """Independent counters. The value is the storage key."""

    LAUNCHES = "versions"
    REVIEW_PROMPTS = "reviewPromptVersions"


class VersionProvider(Protocol):
    @property
    def app_version(self) -> str: ...


def _decode_counts(value: Any) -> dict[str, int] | None:
    """Return the stored map, or None if it is not a version -> count mapping."""
    if not isinstance(value, dict):
        return None
    for version, count in value.items():
        if not isinstance(version, str):
            return None
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            return None
    return dict(value)


class VersionedCounter:
    """Counts events per app version, e.g. launches of "1.0.1".

    The store is chosen once, at construction: the synchronized store when
    *prefer_synchronized_store* is set and a synchronized identity is
    available, otherwise the local store for *storage_namespace* (or the
    default store if that namespace cannot be opened).

    Best-effort semantics: store errors are logged, never raised. A failed
    or undecodable read counts as an empty map, a failed write is dropped.

    Increments are NOT serialized. Two callers that interleave the
    read-modify-write on the same store can lose an update.
    """

    def __init__(
        self,
        kind: CounterKind,
        *,
        storage_namespace: str | None = None,
        prefer_synchronized_store: bool = False,
        version_provider: VersionProvider | None = None,
        locator: StorageLocator | None = None,
        telemetry: CounterTelemetry | None = None,
    ):
        if version_provider is None:
            from deviceinfo.device import DeviceInfoService

            version_provider = DeviceInfoService()

        self.kind = CounterKind(kind)
        self.storage_namespace = storage_namespace
        self.prefer_synchronized_store = prefer_synchronized_store
        self.version_provider = version_provider
        self.telemetry = telemetry or CounterTelemetry()

        resolved = (locator or default_locator()).resolve(storage_namespace, prefer_synchronized_store)
        self.backend: StoreBackend = resolved.backend
        self.store_kind = resolved.kind
        self.synchronized_store_available = resolved.synchronized_available

    @property
    def storage_key(self) -> str:
        return self.kind.value

    @property
    def uses_synchronized_store(self) -> bool:
        return self.store_kind is StoreKind.SYNCHRONIZED

    @property
    def current_version(self) -> str:
        """The provider's app version, or "Unknown" if the bundle cannot be loaded."""
        from deviceinfo import DeviceInfoConfigError

        try:
            return self.version_provider.app_version
        except DeviceInfoConfigError as e:
            logger.warning("App version unavailable, counting as '%s': %s", UNKNOWN, e)
            return UNKNOWN

    def counts_for_all_versions(self) -> dict[str, int]:
        """The full version -> count map. Empty if absent or unreadable."""
        try:
            value = self.backend.get(self.storage_key)
        except Exception as e:
            logger.warning("Reading '%s' failed, treating as empty: %s", self.storage_key, e)
            self.telemetry.record_read_failure(self.kind.value)
            return {}

        if value is None:
            return {}
        counts = _decode_counts(value)
        if counts is None:
            logger.warning("Stored '%s' is not a version count map, treating as empty", self.storage_key)
            self.telemetry.record_read_failure(self.kind.value)
            return {}
        return counts

    def count_for_version(self, version: str) -> int:
        return self.counts_for_all_versions().get(version, 0)

    def count_for_current_version(self) -> int:
        return self.count_for_version(self.current_version)

    def total_count_all_versions(self) -> int:
        return sum(self.counts_for_all_versions().values())

    def increment_count_for_version(self, version: str) -> bool:
        """Read the map, bump *version*, write the map back.

        Always returns True; write failures are logged and dropped.
        """
        counts = self.counts_for_all_versions()
        counts[version] = 1 + counts.get(version, 0)
        try:
            self.backend.set(self.storage_key, counts)
        except Exception as e:
            logger.warning("Writing '%s' failed, increment dropped: %s", self.storage_key, e)
            self.telemetry.record_write_failure(self.kind.value)
        else:
            self.telemetry.record_increment(self.kind.value, self.store_kind.value)
        return True

    def increment_count_for_current_version(self) -> bool:
        return self.increment_count_for_version(self.current_version)


class LaunchCountService(VersionedCounter):
    """Launches of the app, per version."""

    def __init__(self, **kwargs: Any):
        super().__init__(CounterKind.LAUNCHES, **kwargs)

    @property
    def launch_count_for_current_version(self) -> int:
        return self.count_for_current_version()

    @property
    def launch_count_for_all_versions(self) -> int:
        return self.total_count_all_versions()

    def increment_launch_count_for_current_version(self) -> bool:
        return self.increment_count_for_current_version()


class ReviewPromptCountService(VersionedCounter):
    """Review prompts shown to the user, per version."""

    def __init__(self, **kwargs: Any):
        super().__init__(CounterKind.REVIEW_PROMPTS, **kwargs)

    @property
    def review_prompt_count_for_current_version(self) -> int:
        return self.count_for_current_version()

    @property
    def review_prompt_count_for_all_versions(self) -> int:
        return self.total_count_all_versions()

    def increment_review_prompt_count_for_current_version(self) -> bool:
        return self.increment_count_for_current_version()
