"""Bekleyen senkron kuyruğu unit testleri."""

import pytest

from src.models.bakery import SyncType
from src.sync.errors import RetryExhausted
from src.sync.local_store import MemoryLocalStore
from src.sync.pending_queue import DEAD_LETTER_KEY, QUEUE_KEY, PendingSyncQueue


class TestEnqueue:
    def test_enqueue_persists_record(self):
        store = MemoryLocalStore()
        queue = PendingSyncQueue(store)
        record = queue.enqueue(SyncType.PRODUCTS, [{"id": 1}])
        stored = store.read_json(QUEUE_KEY)
        assert len(stored) == 1
        assert stored[0]["id"] == record.id
        assert stored[0]["type"] == "products"
        assert stored[0]["attempts"] == 0

    def test_ids_strictly_increasing(self):
        queue = PendingSyncQueue(MemoryLocalStore())
        ids = [queue.enqueue(SyncType.SALE, {"id": str(i)}).id for i in range(20)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 20

    def test_records_in_fifo_order(self):
        queue = PendingSyncQueue(MemoryLocalStore())
        queue.enqueue(SyncType.PRODUCTS, [])
        queue.enqueue(SyncType.SALE, {"id": "s1"})
        queue.enqueue(SyncType.SHIFT, {"id": "sh1"})
        assert [r.type for r in queue.records()] == [SyncType.PRODUCTS, SyncType.SALE, SyncType.SHIFT]

    def test_queue_survives_restart(self):
        """Kuyruk yeni bir process'te aynı depodan geri yüklenmeli."""
        store = MemoryLocalStore()
        first = PendingSyncQueue(store)
        record = first.enqueue(SyncType.SHIFT, {"id": "sh1"})

        second = PendingSyncQueue(store)
        assert len(second) == 1
        assert second.get(record.id).payload == {"id": "sh1"}
        assert second.enqueue(SyncType.SALE, {"id": "s1"}).id > record.id

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            PendingSyncQueue(MemoryLocalStore(), max_attempts=0)


class TestRetry:
    def test_mark_consumed_removes_record(self):
        store = MemoryLocalStore()
        queue = PendingSyncQueue(store)
        record = queue.enqueue(SyncType.PRODUCTS, [])
        queue.mark_consumed(record)
        assert len(queue) == 0
        assert store.read_json(QUEUE_KEY) == []

    def test_failure_increments_attempts(self):
        store = MemoryLocalStore()
        queue = PendingSyncQueue(store)
        record = queue.enqueue(SyncType.PRODUCTS, [])
        queue.record_failure(record)
        assert queue.get(record.id).attempts == 1
        assert store.read_json(QUEUE_KEY)[0]["attempts"] == 1

    def test_discard_after_max_attempts(self):
        """Üçüncü başarısız denemede kayıt dead-letter listesine taşınmalı."""
        store = MemoryLocalStore()
        queue = PendingSyncQueue(store, max_attempts=3)
        record = queue.enqueue(SyncType.SALE, {"id": "s1"})
        queue.record_failure(record)
        queue.record_failure(record)
        with pytest.raises(RetryExhausted) as exc:
            queue.record_failure(record)

        assert exc.value.record.id == record.id
        assert len(queue) == 0
        dead = queue.dead_letters()
        assert len(dead) == 1
        assert dead[0].attempts == 3
        assert store.read_json(DEAD_LETTER_KEY)[0]["payload"] == {"id": "s1"}

    def test_clear_dead_letters(self):
        queue = PendingSyncQueue(MemoryLocalStore(), max_attempts=1)
        record = queue.enqueue(SyncType.SALE, {"id": "s1"})
        with pytest.raises(RetryExhausted):
            queue.record_failure(record)
        assert queue.clear_dead_letters() == 1
        assert queue.dead_letters() == []

    def test_describe(self):
        queue = PendingSyncQueue(MemoryLocalStore())
        queue.enqueue(SyncType.SHIFT_HISTORY, [])
        summary = queue.describe()
        assert summary[0]["type"] == "shiftHistory"
        assert summary[0]["attempts"] == 0
        assert "payload" not in summary[0]
