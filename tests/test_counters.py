"""Tests for VersionedCounter and its launch / review-prompt specializations."""

from __future__ import annotations

import pytest

from deviceinfo.counters import (
    CounterKind,
    LaunchCountService,
    ReviewPromptCountService,
    VersionedCounter,
)
from deviceinfo.storage import (
    MemoryBackend,
    MemoryStores,
    StorageLocator,
    StoreError,
    StoreKind,
    SynchronizedStore,
)


class _Version:
    app_version = "1.0.1"


@pytest.fixture
def counter(locator, version):
    return VersionedCounter(CounterKind.LAUNCHES, version_provider=version, locator=locator)


class TestVersionedCounter:
    def test_fresh_store_counts_are_zero(self, counter):
        assert counter.count_for_current_version() == 0
        assert counter.total_count_all_versions() == 0
        assert counter.count_for_version("9.9.9") == 0

    def test_sequential_increments(self, counter):
        for _ in range(5):
            counter.increment_count_for_current_version()
        assert counter.count_for_current_version() == 5

    def test_increment_returns_true(self, counter):
        assert counter.increment_count_for_current_version() is True

    def test_versions_counted_separately(self, counter, version):
        for _ in range(3):
            counter.increment_count_for_current_version()
        assert counter.count_for_current_version() == 3

        version.app_version = "1.1.0"
        counter.increment_count_for_current_version()
        assert counter.count_for_current_version() == 1
        assert counter.count_for_version("1.0.1") == 3
        assert counter.total_count_all_versions() == 4

    def test_total_is_sum_of_versions(self, counter):
        for v, n in {"1.0": 2, "1.1": 5, "2.0-beta": 1}.items():
            for _ in range(n):
                counter.increment_count_for_version(v)
        all_counts = counter.counts_for_all_versions()
        assert all_counts == {"1.0": 2, "1.1": 5, "2.0-beta": 1}
        assert counter.total_count_all_versions() == sum(all_counts.values()) == 8

    def test_reads_are_idempotent(self, counter):
        counter.increment_count_for_current_version()
        assert counter.count_for_current_version() == counter.count_for_current_version() == 1

    def test_version_strings_are_opaque(self, counter):
        counter.increment_count_for_version("1.0")
        counter.increment_count_for_version("1.0.0")
        counter.increment_count_for_version(" 1.0 ")
        assert counter.count_for_version("1.0") == 1
        assert counter.count_for_version("1.0.0") == 1
        assert counter.count_for_version(" 1.0 ") == 1

    def test_stored_under_kind_key(self, counter, stores):
        counter.increment_count_for_current_version()
        assert stores.open(None).get("versions") == {"1.0.1": 1}

    def test_counts_for_all_versions_is_a_copy(self, counter):
        counter.increment_count_for_current_version()
        counter.counts_for_all_versions()["1.0.1"] = 100
        assert counter.count_for_current_version() == 1

    def test_picks_up_existing_map(self, stores, locator, version):
        stores.open(None).set("versions", {"1.0.1": 41, "0.9": 1})
        counter = VersionedCounter(CounterKind.LAUNCHES, version_provider=version, locator=locator)
        counter.increment_count_for_current_version()
        assert counter.count_for_current_version() == 42
        assert counter.total_count_all_versions() == 43


class TestIsolation:
    def test_namespace_isolation(self, locator, version):
        a = VersionedCounter(CounterKind.LAUNCHES, storage_namespace="A", version_provider=version, locator=locator)
        b = VersionedCounter(CounterKind.LAUNCHES, storage_namespace="B", version_provider=version, locator=locator)
        default = VersionedCounter(CounterKind.LAUNCHES, version_provider=version, locator=locator)

        a.increment_count_for_current_version()
        a.increment_count_for_current_version()

        assert a.count_for_current_version() == 2
        assert b.count_for_current_version() == 0
        assert default.total_count_all_versions() == 0

    def test_same_namespace_shares_counts(self, locator, version):
        first = VersionedCounter(CounterKind.LAUNCHES, storage_namespace="A", version_provider=version, locator=locator)
        second = VersionedCounter(CounterKind.LAUNCHES, storage_namespace="A", version_provider=version, locator=locator)
        first.increment_count_for_current_version()
        assert second.count_for_current_version() == 1

    def test_kind_isolation(self, locator, version):
        launches = LaunchCountService(version_provider=version, locator=locator)
        prompts = ReviewPromptCountService(version_provider=version, locator=locator)

        launches.increment_launch_count_for_current_version()
        launches.increment_launch_count_for_current_version()
        prompts.increment_review_prompt_count_for_current_version()

        assert launches.launch_count_for_all_versions == 2
        assert prompts.review_prompt_count_for_all_versions == 1

    def test_unavailable_namespace_uses_default_store(self, version):
        stores = MemoryStores(unavailable=["group.broken"])
        locator = StorageLocator(stores)
        counter = VersionedCounter(
            CounterKind.LAUNCHES,
            storage_namespace="group.broken",
            version_provider=version,
            locator=locator,
        )
        counter.increment_count_for_current_version()
        assert stores.open(None).get("versions") == {"1.0.1": 1}


class TestStoreSelection:
    def test_synchronized_store_used_when_preferred_and_available(self, version):
        cloud = MemoryBackend()
        locator = StorageLocator(MemoryStores(), SynchronizedStore(cloud, identity=lambda: "user"))
        counter = VersionedCounter(
            CounterKind.LAUNCHES,
            prefer_synchronized_store=True,
            version_provider=version,
            locator=locator,
        )
        counter.increment_count_for_current_version()
        assert counter.uses_synchronized_store
        assert counter.store_kind is StoreKind.SYNCHRONIZED
        assert cloud.get("versions") == {"1.0.1": 1}

    def test_local_store_when_not_preferred(self, version):
        cloud = MemoryBackend()
        stores = MemoryStores()
        locator = StorageLocator(stores, SynchronizedStore(cloud, identity=lambda: "user"))
        counter = VersionedCounter(CounterKind.LAUNCHES, version_provider=version, locator=locator)
        counter.increment_count_for_current_version()
        assert not counter.uses_synchronized_store
        assert counter.synchronized_store_available is True
        assert cloud.get("versions") is None
        assert stores.open(None).get("versions") == {"1.0.1": 1}

    def test_local_store_when_identity_missing(self, version):
        locator = StorageLocator(MemoryStores(), SynchronizedStore(MemoryBackend(), identity=lambda: None))
        counter = VersionedCounter(
            CounterKind.LAUNCHES,
            prefer_synchronized_store=True,
            version_provider=version,
            locator=locator,
        )
        assert counter.store_kind is StoreKind.LOCAL
        assert counter.synchronized_store_available is False

    def test_resolution_fixed_at_construction(self, version):
        """Identity appearing later is not observed by an existing instance."""
        token: list[str | None] = [None]
        cloud = MemoryBackend()
        stores = MemoryStores()
        locator = StorageLocator(stores, SynchronizedStore(cloud, identity=lambda: token[0]))
        counter = VersionedCounter(
            CounterKind.LAUNCHES,
            prefer_synchronized_store=True,
            version_provider=version,
            locator=locator,
        )

        token[0] = "signed-in"
        counter.increment_count_for_current_version()

        assert counter.store_kind is StoreKind.LOCAL
        assert cloud.get("versions") is None
        assert stores.open(None).get("versions") == {"1.0.1": 1}

        fresh = VersionedCounter(
            CounterKind.LAUNCHES,
            prefer_synchronized_store=True,
            version_provider=version,
            locator=locator,
        )
        assert fresh.store_kind is StoreKind.SYNCHRONIZED


class _FailingBackend:
    def __init__(self, fail_get=False, fail_set=False):
        self.data = {}
        self.fail_get = fail_get
        self.fail_set = fail_set

    def get(self, key):
        if self.fail_get:
            raise StoreError("read failed")
        return self.data.get(key)

    def set(self, key, value):
        if self.fail_set:
            raise StoreError("write failed")
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


class _SingleStore:
    def __init__(self, backend):
        self.backend = backend

    def open(self, namespace):
        return self.backend


def _counter_on(backend, version=None):
    return VersionedCounter(
        CounterKind.LAUNCHES,
        version_provider=version or _Version(),
        locator=StorageLocator(_SingleStore(backend)),
    )


class TestBestEffort:
    @pytest.mark.parametrize(
        "stored",
        [
            "not a map",
            ["1.0.1", 3],
            {"1.0.1": "3"},
            {"1.0.1": 2.5},
            {"1.0.1": True},
            {"1.0.1": -1},
            {1: 3},
        ],
    )
    def test_undecodable_map_reads_as_empty(self, stored):
        backend = _FailingBackend()
        backend.data["versions"] = stored
        counter = _counter_on(backend)
        assert counter.count_for_current_version() == 0
        assert counter.total_count_all_versions() == 0

    def test_undecodable_map_is_replaced_on_increment(self):
        backend = _FailingBackend()
        backend.data["versions"] = "garbage"
        counter = _counter_on(backend)
        counter.increment_count_for_current_version()
        assert backend.data["versions"] == {"1.0.1": 1}

    def test_read_error_reads_as_empty(self, caplog):
        counter = _counter_on(_FailingBackend(fail_get=True))
        with caplog.at_level("WARNING", logger="deviceinfo.counters"):
            assert counter.count_for_current_version() == 0
            assert counter.total_count_all_versions() == 0
        assert "treating as empty" in caplog.text

    def test_write_error_is_swallowed(self, caplog):
        backend = _FailingBackend(fail_set=True)
        counter = _counter_on(backend)
        with caplog.at_level("WARNING", logger="deviceinfo.counters"):
            assert counter.increment_count_for_current_version() is True
        assert counter.count_for_current_version() == 0
        assert "increment dropped" in caplog.text

    def test_corrupt_file_store_reads_as_empty(self, tmp_path, version):
        from deviceinfo.storage import FileStores

        (tmp_path / "standard.json").write_text("{broken")
        counter = VersionedCounter(
            CounterKind.LAUNCHES,
            version_provider=version,
            locator=StorageLocator(FileStores(tmp_path)),
        )
        assert counter.count_for_current_version() == 0
        for _ in range(3):
            assert counter.increment_count_for_current_version() is True
        assert counter.count_for_current_version() == 3

    def test_unloadable_bundle_counts_as_unknown(self, tmp_path, monkeypatch, locator, caplog):
        monkeypatch.setenv("DEVICEINFO_INFO_PLIST", str(tmp_path / "missing.plist"))
        counter = LaunchCountService(locator=locator)
        with caplog.at_level("WARNING", logger="deviceinfo.counters"):
            assert counter.increment_count_for_current_version() is True
            assert counter.count_for_current_version() == 1
        assert counter.count_for_version("Unknown") == 1
        assert "App version unavailable" in caplog.text


class _InterleavingBackend(MemoryBackend):
    """Runs *on_first_get* right after the first read, before the caller writes."""

    def __init__(self):
        super().__init__()
        self.on_first_get = None

    def get(self, key):
        value = super().get(key)
        hook, self.on_first_get = self.on_first_get, None
        if hook is not None:
            hook()
        return value


class TestUnserializedIncrements:
    def test_interleaved_increments_can_lose_an_update(self):
        """Increments are not serialized: both callers read c and both write c + 1."""
        backend = _InterleavingBackend()
        backend.set("versions", {"1.0.1": 5})
        first = _counter_on(backend)
        second = _counter_on(backend)

        backend.on_first_get = second.increment_count_for_current_version
        first.increment_count_for_current_version()

        assert first.count_for_current_version() == 6  # not 7

    def test_sequential_increments_from_two_instances_both_count(self):
        backend = MemoryBackend()
        first = _counter_on(backend)
        second = _counter_on(backend)
        first.increment_count_for_current_version()
        second.increment_count_for_current_version()
        assert first.count_for_current_version() == 2


class TestSpecializations:
    def test_launch_service_uses_versions_key(self, stores, locator, version):
        service = LaunchCountService(version_provider=version, locator=locator)
        service.increment_launch_count_for_current_version()
        assert service.kind is CounterKind.LAUNCHES
        assert stores.open(None).get("versions") == {"1.0.1": 1}
        assert service.launch_count_for_current_version == 1

    def test_review_prompt_service_uses_own_key(self, stores, locator, version):
        service = ReviewPromptCountService(version_provider=version, locator=locator)
        service.increment_review_prompt_count_for_current_version()
        assert stores.open(None).get("reviewPromptVersions") == {"1.0.1": 1}
        assert stores.open(None).get("versions") is None
        assert service.review_prompt_count_for_current_version == 1

    def test_default_version_provider_reads_bundle(self, tmp_path, monkeypatch, locator):
        plist = tmp_path / "Info.json"
        plist.write_text('{"CFBundleShortVersionString": "3.2.1"}')
        monkeypatch.setenv("DEVICEINFO_INFO_PLIST", str(plist))
        service = LaunchCountService(locator=locator)
        service.increment_launch_count_for_current_version()
        assert service.count_for_version("3.2.1") == 1

    def test_default_locator_uses_deviceinfo_home(self, tmp_path, monkeypatch, version):
        monkeypatch.setenv("DEVICEINFO_HOME", str(tmp_path / "home"))
        service = LaunchCountService(version_provider=version)
        service.increment_launch_count_for_current_version()
        assert (tmp_path / "home" / "standard.json").exists()
