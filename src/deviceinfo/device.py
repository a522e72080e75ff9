"""Device, OS, app and locale metadata."""

from __future__ import annotations

import os
import platform
import socket
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from deviceinfo import models
from deviceinfo.bundle import UNNAMED_APP, AppBundle
from deviceinfo.notifications import NotificationSettingsProvider

_VENDOR_NAMESPACE = uuid.UUID("6f1c2a0e-8d8b-5b8e-9a51-3f0f8c1e9d27")


@dataclass(frozen=True)
class ScreenMetrics:
    """Screen scale and size in points."""

    density: float = 1.0
    height: float = 0.0
    width: float = 0.0


@dataclass(frozen=True)
class DeviceProfile:
    """Hardware and OS facts about the device the app runs on."""

    name: str
    system_name: str
    system_version: str
    model_identifier: str
    screen: ScreenMetrics = field(default_factory=ScreenMetrics)

    @classmethod
    def current(cls) -> DeviceProfile:
        system = platform.system()
        version = platform.mac_ver()[0] if system == "Darwin" else platform.release()
        return cls(
            name=socket.gethostname(),
            system_name=system,
            system_version=version or platform.release(),
            model_identifier=models.model_identifier(),
        )


def _env_locale() -> str | None:
    for var in ("LC_ALL", "LC_MESSAGES", "LANG"):
        value = os.environ.get(var)
        if value and value not in ("C", "POSIX"):
            # "en_US.UTF-8" -> "en_US"
            return value.split(".", 1)[0].split("@", 1)[0]
    return None


def _env_languages() -> list[str]:
    languages = [lang for lang in os.environ.get("LANGUAGE", "").split(":") if lang]
    if not languages:
        loc = _env_locale()
        if loc:
            languages = [loc]
    return [lang.replace("_", "-") for lang in languages] or ["en"]


def _env_timezone() -> str:
    tz = os.environ.get("TZ")
    if tz:
        return tz.lstrip(":")
    try:
        target = str(Path("/etc/localtime").resolve())
    except OSError:
        target = ""
    if "zoneinfo/" in target:
        return target.split("zoneinfo/", 1)[1]
    return time.tzname[0]


class DeviceInfoService:
    """Metadata about the device, its OS, the running app and the user's locale.

    Every source can be injected; anything left as None is read from the
    host the first time it is needed.
    """

    def __init__(
        self,
        *,
        bundle: AppBundle | None = None,
        device: DeviceProfile | None = None,
        preferred_languages: list[str] | None = None,
        locale_identifier: str | None = None,
        timezone: str | None = None,
        notification_settings: NotificationSettingsProvider | None = None,
    ):
        self._bundle = bundle
        self._device = device
        self._languages = preferred_languages
        self._locale = locale_identifier
        self._timezone = timezone
        self._notification_settings = notification_settings

    @property
    def bundle(self) -> AppBundle:
        if self._bundle is None:
            self._bundle = AppBundle.main()
        return self._bundle

    @property
    def device(self) -> DeviceProfile:
        if self._device is None:
            self._device = DeviceProfile.current()
        return self._device

    # -- OS ------------------------------------------------------------------

    @property
    def os_name(self) -> str:
        """e.g. "iPhone OS" """
        return self.device.system_name

    @property
    def os_version(self) -> str:
        """e.g. "9.3" """
        return self.device.system_version

    # -- App -----------------------------------------------------------------

    @property
    def app_build_number(self) -> str:
        """e.g. "142" or "1.0.1.142" """
        return self.bundle.build_number

    @property
    def app_identifier(self) -> str:
        """e.g. "com.example.app" """
        return self.bundle.identifier or ""

    @property
    def app_name(self) -> str:
        """e.g. "Lister" """
        return self.bundle.name or UNNAMED_APP

    @property
    def app_version(self) -> str:
        """e.g. "1.0.1" """
        return self.bundle.short_version

    @property
    def app_name_with_version(self) -> str:
        """e.g. "Lister 1.0.1.142" """
        return f"{self.app_name} {self.app_build_number}"

    # -- Hardware ------------------------------------------------------------

    @property
    def device_display_name(self) -> str:
        """User-facing display name of device, e.g. "John's iPhone" """
        return self.device.name

    @property
    def device_model_name(self) -> str:
        """e.g. "iPhone 6S Plus" """
        return models.model_name(self.device.model_identifier)

    @property
    def device_type(self) -> str:
        """e.g. "iPhone" """
        return models.device_type(self.device.model_identifier)

    @property
    def device_version(self) -> str:
        """Identifier of device model, e.g. "iPhone8,2" """
        return self.device.model_identifier

    @property
    def device_identifier(self) -> str:
        """Stable per host, shared by all apps from one vendor."""
        identifier = self.app_identifier
        vendor = identifier.rsplit(".", 1)[0] if "." in identifier else identifier
        return str(uuid.uuid5(_VENDOR_NAMESPACE, f"{vendor}:{uuid.getnode():012x}")).upper()

    # -- Locale --------------------------------------------------------------

    @property
    def preferred_languages(self) -> list[str]:
        if self._languages is None:
            self._languages = _env_languages()
        return self._languages

    @property
    def language(self) -> str:
        """The first preferred language of the user, e.g. "en-US" """
        return self.preferred_languages[0]

    @property
    def locale(self) -> str:
        """Identifier of the user's current locale, e.g. "en_US" """
        if self._locale is None:
            self._locale = _env_locale() or self.language.replace("-", "_")
        return self._locale

    @property
    def translation(self) -> str:
        """Localization of the app in use, e.g. "en" """
        return self.bundle.preferred_localization(self.preferred_languages)

    @property
    def timezone(self) -> str:
        """e.g. "America/Denver" """
        if self._timezone is None:
            self._timezone = _env_timezone()
        return self._timezone

    # -- Screen --------------------------------------------------------------

    @property
    def screen_density(self) -> float:
        return self.device.screen.density

    @property
    def screen_height(self) -> float:
        return self.device.screen.height

    @property
    def screen_width(self) -> float:
        return self.device.screen.width

    # -- Reports -------------------------------------------------------------

    def formatted_token(self, device_token: bytes) -> str:
        """Push token bytes as uppercase hex, e.g. b"\\x0a\\xff" -> "0AFF"."""
        return "".join(f"{b:02X}" for b in device_token)

    def device_info_dictionary(
        self,
        token: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
        null_for_missing_values: bool = False,
    ) -> dict[str, Any]:
        """Device information for push registration and analytics.

        Missing optional values (token, lat, lng) are omitted, or set to
        None when *null_for_missing_values* is True.
        """
        location: dict[str, Any] = {"timezone": self.timezone}
        if latitude is not None:
            location["lat"] = latitude
        elif null_for_missing_values:
            location["lat"] = None
        if longitude is not None:
            location["lng"] = longitude
        elif null_for_missing_values:
            location["lng"] = None

        app: dict[str, Any] = {
            "name": self.app_name,
            "version": self.app_version,
            "build": self.app_build_number,
            "identifier": self.app_identifier,
        }
        if token is not None:
            app["token"] = token
        elif null_for_missing_values:
            app["token"] = None

        return {
            "name": self.device_display_name,
            "location": location,
            "locale": {
                "translation": self.translation,
                "language": self.language,
                "identifier": self.locale,
            },
            "hardware": {
                "name": self.device_model_name,
                "version": self.device_version,
                "type": self.device_type,
                "identifier": self.device_identifier,
            },
            "OS": {
                "name": self.os_name,
                "version": self.os_version,
            },
            "app": app,
            "screen_metrics": {
                "density": self.screen_density,
                "h": self.screen_height,
                "w": self.screen_width,
            },
        }

    async def device_and_settings_info(
        self,
        token: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
        null_for_missing_values: bool = False,
    ) -> dict[str, Any]:
        """device_info_dictionary() plus the user's notification settings.

        Without a notification settings provider the plain dictionary is
        returned.
        """
        info = self.device_info_dictionary(token, latitude, longitude, null_for_missing_values)
        if self._notification_settings is not None:
            settings = await self._notification_settings()
            info["notification_settings"] = settings.as_dict()
        return info
