"""App bundle metadata — the running app's Info.plist dictionary."""

from __future__ import annotations

import json
import os
import plistlib
from pathlib import Path
from typing import Any

import yaml

UNKNOWN = "Unknown"
UNNAMED_APP = "Unnamed App"


class AppBundle:
    """Read-only view over an Info.plist-style dictionary.

    Missing keys fall back to the same defaults the platform bundle
    accessors use ("Unknown" for versions).
    """

    def __init__(self, info: dict[str, Any] | None = None):
        self.info: dict[str, Any] = dict(info or {})

    @classmethod
    def from_file(cls, path: str | Path) -> AppBundle:
        """Load a bundle from ``.plist``, ``.yaml``/``.yml`` or ``.json``.

        Raises DeviceInfoConfigError if the file cannot be read or is not a mapping.
        """
        from deviceinfo import DeviceInfoConfigError

        path = Path(path).expanduser()
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise DeviceInfoConfigError(f"Cannot read bundle info '{path}': {e}") from e

        suffix = path.suffix.lower()
        try:
            if suffix == ".plist":
                info = plistlib.loads(raw)
            elif suffix in (".yaml", ".yml"):
                info = yaml.safe_load(raw)
            elif suffix == ".json":
                info = json.loads(raw)
            else:
                raise DeviceInfoConfigError(f"Unsupported bundle info format: '{path.name}'")
        except (plistlib.InvalidFileException, yaml.YAMLError, json.JSONDecodeError, ValueError) as e:
            raise DeviceInfoConfigError(f"Invalid bundle info '{path}': {e}") from e

        if not isinstance(info, dict):
            raise DeviceInfoConfigError(f"Bundle info '{path}' must be a mapping")
        return cls(info)

    @classmethod
    def main(cls) -> AppBundle:
        """The running app's bundle: ``$DEVICEINFO_INFO_PLIST``, then ``./Info.plist``."""
        env_path = os.environ.get("DEVICEINFO_INFO_PLIST")
        if env_path:
            return cls.from_file(env_path)
        local = Path("Info.plist")
        if local.is_file():
            return cls.from_file(local)
        return cls()

    def _string(self, key: str) -> str | None:
        value = self.info.get(key)
        return value if isinstance(value, str) else None

    @property
    def short_version(self) -> str:
        """e.g. "1.0.1" """
        return self._string("CFBundleShortVersionString") or UNKNOWN

    @property
    def build_number(self) -> str:
        """e.g. "142" or "1.0.1.142" """
        return self._string("CFBundleVersion") or UNKNOWN

    @property
    def name(self) -> str | None:
        """Display name if set, else bundle name."""
        return self._string("CFBundleDisplayName") or self._string("CFBundleName")

    @property
    def identifier(self) -> str | None:
        """e.g. "com.example.app" """
        return self._string("CFBundleIdentifier")

    @property
    def localizations(self) -> list[str]:
        locs = self.info.get("CFBundleLocalizations")
        if isinstance(locs, list) and locs:
            return [str(loc) for loc in locs]
        region = self._string("CFBundleDevelopmentRegion")
        return [region] if region else []

    def preferred_localization(self, languages: list[str]) -> str:
        """First bundle localization matching the user's languages.

        Tries exact matches ("en-US"), then language-only ("en"), then the
        first localization the bundle ships. Empty string if it ships none.
        """
        available = self.localizations
        if not available:
            return ""
        lowered = {loc.lower().replace("_", "-"): loc for loc in available}
        for lang in languages:
            key = lang.lower().replace("_", "-")
            if key in lowered:
                return lowered[key]
            base = key.split("-", 1)[0]
            if base in lowered:
                return lowered[base]
        return available[0]


class VersionNumberService:
    """Version and build numbers of the running app."""

    def __init__(self, bundle: AppBundle | None = None):
        self.bundle = bundle if bundle is not None else AppBundle.main()

    @property
    def version_number(self) -> str:
        return self.bundle.short_version

    @property
    def build_number(self) -> str:
        return self.bundle.build_number

    @property
    def app_name_with_version(self) -> str:
        """e.g. "Lister version 1.0.1 (142)" """
        name = self.bundle.name or UNNAMED_APP
        return f"{name} version {self.version_number} ({self.build_number})"
