"""Fırın POS servis nesnesi - başlangıçta bir kez kurulur.

Yerel depo, uzak depo, bildirim yolu, bağlantı izleyici, bekleyen senkron
kuyruğu ve senkron motoru burada oluşturulur ve repository/iş akışlarına
enjekte edilir. Global durum yoktur.
"""

from __future__ import annotations

import logging
from typing import Optional

from src.repositories.products import ProductRepository
from src.repositories.sales import SalesRepository
from src.repositories.shifts import ActiveShiftRepository, ShiftHistoryRepository
from src.settings import Settings
from src.sync.connectivity import ConnectivityMonitor
from src.sync.engine import SyncEngine
from src.sync.local_store import LocalStore, SqliteLocalStore
from src.sync.notifications import NotificationBus
from src.sync.pending_queue import PendingSyncQueue
from src.sync.remote_store import DynamoDBCollectionStore, InMemoryCollectionStore, RemoteCollectionStore
from src.models.bakery import DrainResult
from src.workflows.checkout import CheckoutWorkflow
from src.workflows.refund import RefundWorkflow
from src.workflows.shift import ShiftWorkflow
from src.workflows.stock import StockWorkflow

logger = logging.getLogger(__name__)


def build_remote_store(settings: Settings) -> RemoteCollectionStore:
    if settings.remote_backend == "memory":
        return InMemoryCollectionStore()
    return DynamoDBCollectionStore(table_prefix=settings.table_prefix, region_name=settings.region_name)


class BakeryPOS:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        local: Optional[LocalStore] = None,
        remote: Optional[RemoteCollectionStore] = None,
        connectivity: Optional[ConnectivityMonitor] = None,
    ):
        self.settings = settings or Settings.from_env()
        self.local = local or SqliteLocalStore(self.settings.db_path)
        self.remote = remote or build_remote_store(self.settings)
        self.notifications = NotificationBus()
        self.connectivity = connectivity or ConnectivityMonitor(probe=self.remote.ping)
        self.queue = PendingSyncQueue(self.local, max_attempts=self.settings.max_sync_attempts)
        self.engine = SyncEngine(
            local=self.local,
            remote=self.remote,
            connectivity=self.connectivity,
            queue=self.queue,
            notifications=self.notifications,
        )

        self.products = ProductRepository(self.engine)
        self.sales = SalesRepository(self.engine)
        self.active_shift = ActiveShiftRepository(self.engine)
        self.shift_history = ShiftHistoryRepository(self.engine)

        self.stock = StockWorkflow(
            self.products, self.local, self.notifications, self.settings.low_stock_threshold
        )
        self.checkout = CheckoutWorkflow(self.products, self.sales, self.active_shift, self.local)
        self.refunds = RefundWorkflow(self.products, self.sales, self.active_shift)
        self.shifts = ShiftWorkflow(self.active_shift, self.shift_history)

        logger.info(
            "BakeryPOS başlatıldı (uzak=%s, bekleyen=%d)",
            type(self.remote).__name__, len(self.queue),
        )

    def start(self, seed_sample_data: bool = True) -> None:
        """Bağlantıyı yoklar (çevrimiçiyse kuyruk boşaltılır) ve örnek veriyi yükler."""
        self.connectivity.check()
        if seed_sample_data:
            self.stock.initialize_sample_data()

    def set_online(self, online: bool) -> None:
        self.connectivity.set_online(online)

    def sync_now(self) -> DrainResult:
        return self.engine.drain()

    def pending_syncs(self) -> list[dict]:
        return self.queue.describe()

    def close(self) -> None:
        if isinstance(self.local, SqliteLocalStore):
            self.local.close()
