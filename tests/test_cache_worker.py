import os
import sys
from unittest.mock import MagicMock

import pytest

# Add the project root to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..'))

from cache_worker import (
    CacheStorage,
    ClientPage,
    FileCacheStorage,
    OfflineCacheWorker,
    WorkerRegistration,
    WorkerState,
)
from domain.errors import AssetFetchError, WorkerStateError
from domain.models import CachedAsset

ASSETS = ["/app/", "/app/index.html", "/app/script.js"]


def asset(path, content=None):
    return CachedAsset(path=path, status_code=200, content_type="text/plain", content=content or path.encode())


def make_network():
    return MagicMock(side_effect=lambda path: asset(path, b"network:" + path.encode()))


def test_install_caches_whole_manifest():
    storage = CacheStorage()
    network = make_network()
    worker = OfflineCacheWorker("cache-v1", ASSETS, storage, network)

    worker.install()

    assert worker.state is WorkerState.INSTALLED
    assert worker.skip_waiting
    assert storage.keys() == ["cache-v1"]
    assert sorted(storage.open("cache-v1").assets) == sorted(ASSETS)
    assert network.call_count == len(ASSETS)


def test_manifest_served_without_network_after_install():
    storage = CacheStorage()
    worker = OfflineCacheWorker("cache-v1", ASSETS, storage, make_network())
    worker.install()
    worker.activate()

    worker.network = MagicMock(side_effect=AssetFetchError("offline"))

    for path in ASSETS:
        assert worker.fetch(path).path == path
    worker.network.assert_not_called()


def test_paths_outside_manifest_go_to_network_and_are_not_cached():
    storage = CacheStorage()
    worker = OfflineCacheWorker("cache-v1", ASSETS, storage, make_network())
    worker.install()
    worker.activate()

    response = worker.fetch("/api/anime")

    assert response.content == b"network:/api/anime"
    assert storage.match("/api/anime") is None


def test_failed_install_stores_nothing_and_cannot_activate():
    storage = CacheStorage()

    def flaky(path):
        if path.endswith("script.js"):
            raise AssetFetchError("404")
        return asset(path)

    worker = OfflineCacheWorker("cache-v1", ASSETS, storage, flaky)

    with pytest.raises(AssetFetchError):
        worker.install()

    assert worker.state is WorkerState.REDUNDANT
    assert storage.match("/app/index.html") is None
    with pytest.raises(WorkerStateError):
        worker.activate()


def test_activate_requires_finished_install():
    worker = OfflineCacheWorker("cache-v1", ASSETS, CacheStorage(), make_network())

    with pytest.raises(WorkerStateError):
        worker.activate()
    with pytest.raises(WorkerStateError):
        worker.fetch("/app/")


def test_new_version_evicts_old_caches_and_claims_clients():
    storage = CacheStorage()
    registration = WorkerRegistration()
    registration.clients = [ClientPage("tab-1"), ClientPage("tab-2")]

    v1 = registration.register(OfflineCacheWorker("cache-v1", ASSETS, storage, make_network()))
    storage.open("unrelated-cache")
    v2 = registration.register(OfflineCacheWorker("cache-v2", ASSETS[:1], storage, make_network()))

    assert storage.keys() == ["cache-v2"]
    assert v1.state is WorkerState.REDUNDANT
    assert v2.state is WorkerState.ACTIVATED
    assert registration.active is v2
    assert all(client.controller is v2 for client in registration.clients)


def test_failed_new_version_leaves_previous_active():
    storage = CacheStorage()
    registration = WorkerRegistration()
    v1 = registration.register(OfflineCacheWorker("cache-v1", ASSETS, storage, make_network()))

    broken = OfflineCacheWorker("cache-v2", ASSETS, storage, MagicMock(side_effect=AssetFetchError("offline")))
    with pytest.raises(AssetFetchError):
        registration.register(broken)

    assert registration.active is v1
    assert v1.state is WorkerState.ACTIVATED
    assert registration.fetch("/app/index.html").path == "/app/index.html"


def test_file_storage_survives_restart(tmp_path):
    directory = str(tmp_path / "caches")
    worker = OfflineCacheWorker("cache-v1", ASSETS, FileCacheStorage(directory), make_network())
    worker.install()
    worker.activate()

    reopened = FileCacheStorage(directory)
    resumed = OfflineCacheWorker("cache-v1", ASSETS, reopened, MagicMock(side_effect=AssetFetchError("offline")))
    resumed.resume()

    assert resumed.fetch("/app/script.js").content == b"network:/app/script.js"

    reopened.delete("cache-v1")
    assert not os.path.exists(os.path.join(directory, "cache-v1.json"))


def test_version_that_does_not_skip_waiting_stays_installed():
    storage = CacheStorage()
    registration = WorkerRegistration()
    v1 = registration.register(OfflineCacheWorker("cache-v1", ASSETS, storage, make_network()))

    v2 = OfflineCacheWorker("cache-v2", ASSETS, storage, make_network())
    v2.install = lambda: setattr(v2, "state", WorkerState.INSTALLED)
    registration.register(v2)

    assert registration.active is v1
    assert registration.waiting is v2
    assert v2.state is WorkerState.INSTALLED
    assert storage.has("cache-v1")
