"""Configuration loader — parse YAML, validate against JSON Schema, apply env overrides."""

from __future__ import annotations

import importlib.resources as _resources
import json
import os
from dataclasses import dataclass
from pathlib import Path

try:
    import jsonschema
    import yaml
except ImportError as _exc:
    raise ImportError("Configuration loading requires pyyaml and jsonschema.") from _exc

from deviceinfo.bundle import AppBundle
from deviceinfo.storage import FileBackend, FileStores, StorageLocator, SynchronizedStore, default_store_root

MAX_CONFIG_SIZE = 1_048_576  # 1 MB

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}

# Lazy-loaded schema singleton
_schema_cache: dict | None = None


def _get_schema() -> dict:
    """Load and cache the JSON Schema for validation."""
    global _schema_cache  # noqa: PLW0603
    if _schema_cache is None:
        schema_text = _resources.files("deviceinfo").joinpath("deviceinfo-v1.schema.json").read_text(encoding="utf-8")
        _schema_cache = json.loads(schema_text)
    return _schema_cache


@dataclass
class CounterConfig:
    """Where counters are stored and which bundle describes the app."""

    storage_root: Path
    storage_namespace: str | None = None
    prefer_synchronized_store: bool = False
    synchronized_root: Path | None = None
    synchronized_identity: str | None = None
    bundle_path: Path | None = None

    @classmethod
    def defaults(cls) -> CounterConfig:
        return cls(storage_root=default_store_root())


def _validate_schema(data: dict) -> None:
    from deviceinfo import DeviceInfoConfigError

    try:
        jsonschema.validate(instance=data, schema=_get_schema())
    except jsonschema.ValidationError as e:
        raise DeviceInfoConfigError(f"Schema validation failed: {e.message}") from e


def _parse_bool(name: str, raw: str) -> bool:
    from deviceinfo import DeviceInfoConfigError

    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise DeviceInfoConfigError(f"{name} must be a boolean, got '{raw}'")


def _resolve_path(value: str, base: Path) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base / path


def load_config_file(path: str | Path) -> dict:
    """Read and validate a YAML config file. Returns the parsed document.

    Raises:
        DeviceInfoConfigError: If the file is missing, too large, not valid
            YAML, or fails schema validation.
    """
    from deviceinfo import DeviceInfoConfigError

    path = Path(path)
    try:
        size = path.stat().st_size
    except OSError as e:
        raise DeviceInfoConfigError(f"Cannot read config '{path}': {e}") from e
    if size > MAX_CONFIG_SIZE:
        raise DeviceInfoConfigError(f"Config file too large ({size} bytes, max {MAX_CONFIG_SIZE})")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise DeviceInfoConfigError(f"YAML parse error: {e}") from e
    except OSError as e:
        raise DeviceInfoConfigError(f"Cannot read config '{path}': {e}") from e

    if not isinstance(data, dict):
        raise DeviceInfoConfigError("Config must be a YAML mapping")
    _validate_schema(data)
    return data


def load_config(path: str | Path | None = None) -> CounterConfig:
    """Defaults, then the YAML file (if given), then environment overrides.

    Environment variables win over the file:
    - DEVICEINFO_HOME overrides storage.root
    - DEVICEINFO_NAMESPACE overrides storage.namespace
    - DEVICEINFO_PREFER_SYNC overrides storage.prefer_synchronized
    - DEVICEINFO_SYNC_ROOT overrides storage.synchronized.root
    - DEVICEINFO_SYNC_IDENTITY overrides storage.synchronized.identity
    - DEVICEINFO_INFO_PLIST overrides bundle

    Relative paths in the file are resolved against the file's directory.
    """
    config = CounterConfig.defaults()

    if path is not None:
        data = load_config_file(path)
        base = Path(path).resolve().parent
        storage = data.get("storage") or {}
        if "root" in storage:
            config.storage_root = _resolve_path(storage["root"], base)
        config.storage_namespace = storage.get("namespace")
        config.prefer_synchronized_store = storage.get("prefer_synchronized", False)
        synchronized = storage.get("synchronized")
        if synchronized:
            config.synchronized_root = _resolve_path(synchronized["root"], base)
            config.synchronized_identity = synchronized.get("identity")
        if data.get("bundle"):
            config.bundle_path = _resolve_path(data["bundle"], base)

    env = os.environ
    if env.get("DEVICEINFO_HOME"):
        config.storage_root = Path(env["DEVICEINFO_HOME"]).expanduser()
    if "DEVICEINFO_NAMESPACE" in env:
        config.storage_namespace = env["DEVICEINFO_NAMESPACE"] or None
    if "DEVICEINFO_PREFER_SYNC" in env:
        config.prefer_synchronized_store = _parse_bool("DEVICEINFO_PREFER_SYNC", env["DEVICEINFO_PREFER_SYNC"])
    if env.get("DEVICEINFO_SYNC_ROOT"):
        config.synchronized_root = Path(env["DEVICEINFO_SYNC_ROOT"]).expanduser()
    if "DEVICEINFO_SYNC_IDENTITY" in env:
        config.synchronized_identity = env["DEVICEINFO_SYNC_IDENTITY"] or None
    if env.get("DEVICEINFO_INFO_PLIST"):
        config.bundle_path = Path(env["DEVICEINFO_INFO_PLIST"]).expanduser()

    return config


def build_locator(config: CounterConfig) -> StorageLocator:
    """File-backed local stores plus, if configured, a file-backed synchronized store."""
    synchronized = None
    if config.synchronized_root is not None:
        identity = config.synchronized_identity
        synchronized = SynchronizedStore(
            FileBackend(config.synchronized_root / "ubiquitous.json"),
            identity=lambda: identity,
        )
    return StorageLocator(FileStores(config.storage_root), synchronized)


def build_bundle(config: CounterConfig) -> AppBundle:
    if config.bundle_path is not None:
        return AppBundle.from_file(config.bundle_path)
    return AppBundle.main()
