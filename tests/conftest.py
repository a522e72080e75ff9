"""Shared test fixtures."""

from __future__ import annotations

import pytest

from deviceinfo.bundle import AppBundle
from deviceinfo.device import DeviceInfoService, DeviceProfile, ScreenMetrics
from deviceinfo.storage import MemoryBackend, MemoryStores, StorageLocator


class FakeVersion:
    """Version provider whose app_version tests can change."""

    def __init__(self, app_version: str = "1.0.1"):
        self.app_version = app_version


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep the host's env and working directory out of every test."""
    for var in (
        "DEVICEINFO_HOME",
        "DEVICEINFO_NAMESPACE",
        "DEVICEINFO_PREFER_SYNC",
        "DEVICEINFO_SYNC_ROOT",
        "DEVICEINFO_SYNC_IDENTITY",
        "DEVICEINFO_INFO_PLIST",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def version():
    return FakeVersion()


@pytest.fixture
def stores():
    return MemoryStores()


@pytest.fixture
def locator(stores):
    return StorageLocator(stores)


@pytest.fixture
def cloud_backend():
    return MemoryBackend()


@pytest.fixture
def bundle():
    return AppBundle(
        {
            "CFBundleIdentifier": "com.example.lister",
            "CFBundleName": "Lister",
            "CFBundleShortVersionString": "1.0.1",
            "CFBundleVersion": "142",
            "CFBundleLocalizations": ["en", "de"],
        }
    )


@pytest.fixture
def profile():
    return DeviceProfile(
        name="John's iPhone",
        system_name="iPhone OS",
        system_version="9.3",
        model_identifier="iPhone8,2",
        screen=ScreenMetrics(density=3.0, height=736.0, width=414.0),
    )


@pytest.fixture
def device_info(bundle, profile):
    return DeviceInfoService(
        bundle=bundle,
        device=profile,
        preferred_languages=["en-US", "de-DE"],
        locale_identifier="en_US",
        timezone="America/Denver",
    )
