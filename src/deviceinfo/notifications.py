"""Notification settings and the string keys reported for them."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum


class NotificationSetting(StrEnum):
    NOT_SUPPORTED = "notSupported"
    DISABLED = "disabled"
    ENABLED = "enabled"


class AuthorizationStatus(StrEnum):
    AUTHORIZED = "authorized"
    DENIED = "denied"
    NOT_DETERMINED = "notDetermined"
    PROVISIONAL = "provisional"


class AlertStyle(StrEnum):
    ALERT = "alert"
    BANNER = "banner"
    NONE = "none"


@dataclass(frozen=True)
class NotificationSettings:
    """Snapshot of the user's notification settings for the app."""

    authorization: AuthorizationStatus = AuthorizationStatus.NOT_DETERMINED
    notification_center: NotificationSetting = NotificationSetting.NOT_SUPPORTED
    lock_screen: NotificationSetting = NotificationSetting.NOT_SUPPORTED
    car_play: NotificationSetting = NotificationSetting.NOT_SUPPORTED
    alert: NotificationSetting = NotificationSetting.NOT_SUPPORTED
    alert_style: AlertStyle = AlertStyle.NONE
    badge: NotificationSetting = NotificationSetting.NOT_SUPPORTED
    sound: NotificationSetting = NotificationSetting.NOT_SUPPORTED

    def as_dict(self) -> dict[str, str]:
        return {
            "authorization": self.authorization.value,
            "notificationCenter": self.notification_center.value,
            "lockScreen": self.lock_screen.value,
            "carPlay": self.car_play.value,
            "alert": self.alert.value,
            "alertStyle": self.alert_style.value,
            "badge": self.badge.value,
            "sound": self.sound.value,
        }


# Async source of the current settings, e.g. a push-notification bridge
NotificationSettingsProvider = Callable[[], Awaitable[NotificationSettings]]
