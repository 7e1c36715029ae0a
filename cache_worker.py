import base64
import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from domain.errors import WorkerStateError
from domain.models import CachedAsset

Fetch = Callable[[str], CachedAsset]


class WorkerState(Enum):
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class AssetCache:
    """One named cache store: request path -> stored asset."""

    def __init__(self, name: str):
        self.name = name
        self.assets: Dict[str, CachedAsset] = {}

    def match(self, path: str) -> Optional[CachedAsset]:
        return self.assets.get(path)

    def put(self, asset: CachedAsset):
        self.assets[asset.path] = asset

    def add_all(self, paths: Iterable[str], fetch: Fetch):
        """
        Fetches every path, then stores them. If any fetch fails nothing is
        stored and the error propagates.
        """
        fetched = [fetch(path) for path in paths]
        for asset in fetched:
            self.put(asset)


class CacheStorage:
    """The set of named cache stores, kept in memory."""

    def __init__(self):
        self.caches: Dict[str, AssetCache] = {}

    def open(self, name: str) -> AssetCache:
        if name not in self.caches:
            self.caches[name] = AssetCache(name)
        return self.caches[name]

    def has(self, name: str) -> bool:
        return name in self.caches

    def keys(self) -> List[str]:
        return list(self.caches)

    def delete(self, name: str) -> bool:
        return self.caches.pop(name, None) is not None

    def match(self, path: str) -> Optional[CachedAsset]:
        for cache in self.caches.values():
            asset = cache.match(path)
            if asset is not None:
                return asset
        return None

    def persist(self, cache: AssetCache):
        pass


class FileCacheStorage(CacheStorage):
    """
    CacheStorage that writes each store to <directory>/<name>.json so an
    installed cache is still there in the next process.
    """
    def __init__(self, directory: str):
        super().__init__()
        self.directory = directory
        if os.path.isdir(directory):
            for file_name in sorted(os.listdir(directory)):
                if file_name.endswith(".json"):
                    self._load(os.path.join(directory, file_name))

    def _path(self, name: str) -> str:
        return os.path.join(self.directory, f"{name}.json")

    def _load(self, file_path: str):
        try:
            with open(file_path, mode='r', encoding='utf-8') as f:
                data = json.load(f)
            cache = AssetCache(data["name"])
            for item in data["assets"]:
                cache.put(CachedAsset(
                    path=item["path"],
                    status_code=item["status_code"],
                    content_type=item["content_type"],
                    content=base64.b64decode(item["content"]),
                ))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logging.warning(f"Skipping unreadable cache file {file_path}: {e}")
            return
        self.caches[cache.name] = cache

    def persist(self, cache: AssetCache):
        os.makedirs(self.directory, exist_ok=True)
        data = {
            "name": cache.name,
            "assets": [
                {
                    "path": asset.path,
                    "status_code": asset.status_code,
                    "content_type": asset.content_type,
                    "content": base64.b64encode(asset.content).decode("ascii"),
                }
                for asset in cache.assets.values()
            ],
        }
        with open(self._path(cache.name), mode='w', encoding='utf-8') as f:
            json.dump(data, f)

    def delete(self, name: str) -> bool:
        removed = super().delete(name)
        if os.path.exists(self._path(name)):
            os.remove(self._path(name))
        return removed


@dataclass
class ClientPage:
    """An open page that a worker can take control of."""
    client_id: str
    controller: Optional["OfflineCacheWorker"] = None


class OfflineCacheWorker:
    """
    One version of the offline asset cache.

    installing -> installed: the whole manifest is stored under cache_name.
    activating -> activated: every other cache store is deleted, then the
    open pages are claimed. Only an activated worker serves requests:
    cache first, network otherwise. Network responses are never cached.
    """
    def __init__(self, cache_name: str, assets: List[str], storage: CacheStorage, network: Fetch):
        self.cache_name = cache_name
        self.assets = list(assets)
        self.storage = storage
        self.network = network
        self.state: Optional[WorkerState] = None
        self.skip_waiting = False

    def install(self):
        if self.state is not None:
            raise WorkerStateError(f"Worker {self.cache_name} cannot install from state {self.state.value}")
        self.state = WorkerState.INSTALLING
        try:
            cache = self.storage.open(self.cache_name)
            cache.add_all(self.assets, self.network)
            self.storage.persist(cache)
        except Exception:
            self.state = WorkerState.REDUNDANT
            logging.error(f"Install of {self.cache_name} failed; the version will not activate.")
            raise
        self.state = WorkerState.INSTALLED
        self.skip_waiting = True
        logging.info(f"Cached {len(self.assets)} assets in {self.cache_name}.")

    def activate(self, clients: Iterable[ClientPage] = ()):
        if self.state is not WorkerState.INSTALLED:
            current = self.state.value if self.state else "new"
            raise WorkerStateError(f"Worker {self.cache_name} cannot activate from state {current}")
        self.state = WorkerState.ACTIVATING
        for name in self.storage.keys():
            if name != self.cache_name:
                self.storage.delete(name)
                logging.info(f"Deleted old cache {name}.")
        self.state = WorkerState.ACTIVATED
        self.claim(clients)

    def resume(self):
        """Treat a cache installed by an earlier process as this worker's, already activated."""
        if not self.storage.has(self.cache_name):
            raise WorkerStateError(f"No installed cache named {self.cache_name}")
        self.state = WorkerState.ACTIVATED
        self.skip_waiting = True

    def claim(self, clients: Iterable[ClientPage]):
        for client in clients:
            client.controller = self

    def fetch(self, path: str) -> CachedAsset:
        if self.state is not WorkerState.ACTIVATED:
            raise WorkerStateError(f"Worker {self.cache_name} is not active")
        cached = self.storage.match(path)
        if cached is not None:
            return cached
        return self.network(path)


class WorkerRegistration:
    """
    Tracks which worker version is in charge. A new version replaces the
    active one only after its install has finished; a failed install leaves
    the current version in place.
    """
    def __init__(self):
        self.active: Optional[OfflineCacheWorker] = None
        self.waiting: Optional[OfflineCacheWorker] = None
        self.clients: List[ClientPage] = []

    def register(self, worker: OfflineCacheWorker) -> OfflineCacheWorker:
        worker.install()
        if not worker.skip_waiting:
            # Stays installed until the current version lets go
            self.waiting = worker
            return worker
        previous = self.active
        worker.activate(self.clients)
        if previous is not None and previous is not worker:
            previous.state = WorkerState.REDUNDANT
        self.active = worker
        return worker

    def fetch(self, path: str) -> CachedAsset:
        if self.active is None:
            raise WorkerStateError("No active offline cache worker")
        return self.active.fetch(path)
