"""Ortak test fixture'ları."""

import pytest

from src.app import BakeryPOS
from src.settings import Settings
from src.sync.connectivity import ConnectivityMonitor
from src.sync.engine import SyncEngine
from src.sync.errors import RemoteUnavailable
from src.sync.local_store import MemoryLocalStore
from src.sync.notifications import NotificationBus
from src.sync.pending_queue import PendingSyncQueue
from src.sync.remote_store import InMemoryCollectionStore


class FlakyCollectionStore(InMemoryCollectionStore):
    """``failing`` True iken her çağrıda RemoteUnavailable fırlatan bellek içi depo."""

    def __init__(self):
        super().__init__()
        self.failing = False
        self.failing_collections = set()
        self.fail_next = 0
        self.calls = []

    def _call(self, operation, collection):
        self.calls.append((operation, collection))
        if self.fail_next:
            self.fail_next -= 1
            raise RemoteUnavailable(f"{operation} {collection}: tek seferlik simüle edilmiş hata")
        if self.failing or collection in self.failing_collections:
            raise RemoteUnavailable(f"{operation} {collection}: simüle edilmiş hata")

    def query_all(self, collection):
        self._call("query_all", collection)
        return super().query_all(collection)

    def get_by_id(self, collection, entity_id):
        self._call("get_by_id", collection)
        return super().get_by_id(collection, entity_id)

    def get_singleton(self, collection, filters):
        self._call("get_singleton", collection)
        return super().get_singleton(collection, filters)

    def upsert(self, collection, entity, expected_version=None):
        self._call("upsert", collection)
        return super().upsert(collection, entity, expected_version)

    def delete_all(self, collection):
        self._call("delete_all", collection)
        super().delete_all(collection)

    def delete_by_id(self, collection, entity_id):
        self._call("delete_by_id", collection)
        super().delete_by_id(collection, entity_id)

    def ping(self):
        return not self.failing

    def content(self, collection):
        """Sürüm damgaları çıkarılmış, id sıralı uzak içerik."""
        rows = [
            {k: v for k, v in e.items() if k not in ("version", "updatedAt")}
            for e in super().query_all(collection)
        ]
        return sorted(rows, key=lambda r: str(r["id"]))


@pytest.fixture
def remote():
    return FlakyCollectionStore()


@pytest.fixture
def local():
    return MemoryLocalStore()


@pytest.fixture
def connectivity():
    return ConnectivityMonitor(initially_online=True)


@pytest.fixture
def notifications():
    return NotificationBus()


@pytest.fixture
def engine(local, remote, connectivity, notifications):
    return SyncEngine(
        local=local,
        remote=remote,
        connectivity=connectivity,
        queue=PendingSyncQueue(local),
        notifications=notifications,
    )


@pytest.fixture
def pos(local, remote, connectivity):
    """Bellek içi depolarla kurulmuş, çevrimiçi başlayan servis nesnesi."""
    return BakeryPOS(
        settings=Settings(remote_backend="memory"),
        local=local,
        remote=remote,
        connectivity=connectivity,
    )
