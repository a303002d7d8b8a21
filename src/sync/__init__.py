from src.sync.connectivity import ConnectivityMonitor, ConnectivityState
from src.sync.engine import SyncEngine
from src.sync.local_store import LocalStore, MemoryLocalStore, SqliteLocalStore
from src.sync.notifications import NotificationBus
from src.sync.pending_queue import PendingSyncQueue
from src.sync.remote_store import (
    DynamoDBCollectionStore,
    InMemoryCollectionStore,
    RemoteCollectionStore,
)

__all__ = [
    "ConnectivityMonitor",
    "ConnectivityState",
    "SyncEngine",
    "LocalStore",
    "MemoryLocalStore",
    "SqliteLocalStore",
    "NotificationBus",
    "PendingSyncQueue",
    "DynamoDBCollectionStore",
    "InMemoryCollectionStore",
    "RemoteCollectionStore",
]
