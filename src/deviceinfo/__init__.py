"""deviceinfo — Device, app and locale metadata plus per-version counters."""

from __future__ import annotations

from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("deviceinfo")
except Exception:  # pragma: no cover — editable installs, test envs
    __version__ = "0.0.0-dev"


class DeviceInfoConfigError(Exception):
    """Raised for configuration/load-time errors (invalid YAML, schema failures, unreadable bundles)."""

    pass


from deviceinfo.bundle import AppBundle, VersionNumberService  # noqa: E402
from deviceinfo.counters import (  # noqa: E402
    CounterKind,
    LaunchCountService,
    ReviewPromptCountService,
    VersionedCounter,
)
from deviceinfo.device import DeviceInfoService, DeviceProfile, ScreenMetrics  # noqa: E402
from deviceinfo.notifications import (  # noqa: E402
    AlertStyle,
    AuthorizationStatus,
    NotificationSetting,
    NotificationSettings,
)
from deviceinfo.storage import (  # noqa: E402
    CorruptStoreError,
    FileBackend,
    FileStores,
    MemoryBackend,
    MemoryStores,
    ResolvedStore,
    StorageLocator,
    StoreBackend,
    StoreError,
    StoreKind,
    SynchronizedStore,
    choose_store_kind,
    default_locator,
)
from deviceinfo.telemetry import CounterTelemetry, has_otel  # noqa: E402

__all__ = [
    "__version__",
    "DeviceInfoConfigError",
    "AppBundle",
    "VersionNumberService",
    "CounterKind",
    "VersionedCounter",
    "LaunchCountService",
    "ReviewPromptCountService",
    "DeviceInfoService",
    "DeviceProfile",
    "ScreenMetrics",
    "NotificationSetting",
    "AuthorizationStatus",
    "AlertStyle",
    "NotificationSettings",
    "StoreBackend",
    "StoreError",
    "CorruptStoreError",
    "MemoryBackend",
    "FileBackend",
    "MemoryStores",
    "FileStores",
    "SynchronizedStore",
    "StoreKind",
    "ResolvedStore",
    "StorageLocator",
    "choose_store_kind",
    "default_locator",
    "CounterTelemetry",
    "has_otel",
]
