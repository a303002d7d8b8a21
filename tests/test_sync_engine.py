"""Senkron motoru unit testleri."""

from unittest.mock import MagicMock

import pytest

from src.models.bakery import NotificationLevel, SyncType
from src.sync.errors import ValidationError

PRODUCTS = [
    {"id": 1, "name": "Bread", "price": 1000, "quantity": 20},
    {"id": 2, "name": "Croissant", "price": 1500, "quantity": 15},
]


def _with(products, product_id, **changes):
    return [{**p, **changes} if p["id"] == product_id else dict(p) for p in products]


def _upserts(remote, collection):
    return [c for c in remote.calls if c == ("upsert", collection)]


class TestLocalFirstWrite:
    def test_online_write_reaches_local_and_remote(self, engine, local, remote):
        result = engine.sync(SyncType.PRODUCTS, PRODUCTS)
        assert result.remote_applied is True
        assert result.queued_record_id is None
        assert local.read_json("products") == PRODUCTS
        assert remote.content("products") == PRODUCTS
        assert engine.pending_count == 0

    def test_offline_read_returns_exact_payload(self, engine, connectivity):
        """Yazılan yük, uzak durumdan bağımsız olarak aynen geri okunmalı."""
        connectivity.set_online(False)
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        fetch = MagicMock()
        assert engine.read_through(SyncType.PRODUCTS, fetch) == PRODUCTS
        fetch.assert_not_called()

    def test_remote_failure_is_queued_not_raised(self, engine, local, remote):
        remote.failing = True
        result = engine.sync(SyncType.PRODUCTS, PRODUCTS)
        assert result.remote_applied is False
        assert result.queued_record_id is not None
        assert local.read_json("products") == PRODUCTS
        records = engine.queue.records()
        assert len(records) == 1
        assert records[0].type == SyncType.PRODUCTS
        assert records[0].payload == PRODUCTS
        assert records[0].attempts == 0

    def test_offline_write_skips_remote(self, engine, connectivity, remote):
        connectivity.set_online(False)
        result = engine.sync(SyncType.SHIFT, {"id": "sh1", "endTime": None})
        assert result.remote_applied is False
        assert remote.calls == []
        assert engine.pending_count == 1

    def test_single_entity_gets_id(self, engine, local):
        engine.sync(SyncType.SALE, {"total": 500})
        sales = local.read_json("sales")
        assert len(sales) == 1
        assert sales[0]["id"]

    def test_sale_write_replaces_by_id(self, engine, local):
        engine.sync(SyncType.SALE, {"id": "s1", "total": 500, "refunded": False})
        engine.sync(SyncType.SALE, {"id": "s2", "total": 300, "refunded": False})
        engine.sync(SyncType.SALE, {"id": "s1", "total": 500, "refunded": True})
        sales = local.read_json("sales")
        assert [s["id"] for s in sales] == ["s1", "s2"]
        assert sales[0]["refunded"] is True

    @pytest.mark.parametrize(
        "sync_type,payload",
        [
            (SyncType.PRODUCTS, {"id": 1}),
            (SyncType.PRODUCTS, [{"name": "id yok"}]),
            (SyncType.PRODUCTS, [{"id": 1}, {"id": 1}]),
            (SyncType.SHIFT, [{"id": "sh1"}]),
            ("bilinmeyen", []),
        ],
    )
    def test_invalid_payload_rejected_before_write(self, engine, local, sync_type, payload):
        with pytest.raises(ValidationError):
            engine.sync(sync_type, payload)
        assert local.read_json("products") is None
        assert engine.pending_count == 0


class TestEntityDiff:
    def test_unchanged_entities_not_rewritten(self, engine, remote):
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        remote.calls.clear()
        engine.sync(SyncType.PRODUCTS, _with(PRODUCTS, 2, quantity=14))
        assert len(_upserts(remote, "products")) == 1
        assert remote.get_by_id("products", 2)["version"] == 2
        assert remote.get_by_id("products", 1)["version"] == 1

    def test_removed_entity_deleted_remotely(self, engine, remote):
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        engine.sync(SyncType.PRODUCTS, PRODUCTS[:1])
        assert remote.content("products") == PRODUCTS[:1]

    def test_history_trim_keeps_remote_shifts(self, engine, remote):
        history = [
            {"id": "h1", "endTime": "2024-01-02T18:00:00"},
            {"id": "h2", "endTime": "2024-01-01T18:00:00"},
        ]
        engine.sync(SyncType.SHIFT_HISTORY, history)
        engine.sync(SyncType.SHIFT_HISTORY, history[:1])
        assert [s["id"] for s in remote.content("shifts")] == ["h1", "h2"]


class TestDrain:
    def test_reconnect_drains_queue(self, engine, connectivity, remote, notifications):
        """Çevrimdışı eklenen ürün bağlantı gelince uzağa ulaşmalı."""
        connectivity.set_online(False)
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        assert remote.content("products") == []

        connectivity.set_online(True)

        assert remote.content("products") == PRODUCTS
        assert engine.pending_count == 0
        assert notifications.get_log(NotificationLevel.SUCCESS)

    def test_drain_while_offline_is_skipped(self, engine, connectivity, remote):
        connectivity.set_online(False)
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        result = engine.drain()
        assert result.skipped_offline is True
        assert result.remaining == 1
        assert remote.calls == []

    def test_empty_queue_drain(self, engine):
        result = engine.drain()
        assert result.synced == 0
        assert result.remaining == 0

    def test_record_discarded_after_three_failures(self, engine, remote, notifications):
        remote.failing = True
        engine.sync(SyncType.SALE, {"id": "s1", "total": 100})

        first = engine.drain()
        assert first.retried == 1
        assert engine.queue.records()[0].attempts == 1
        second = engine.drain()
        assert second.retried == 1
        assert engine.queue.records()[0].attempts == 2
        third = engine.drain()
        assert third.discarded == 1

        assert engine.pending_count == 0
        assert len(engine.queue.dead_letters()) == 1
        assert notifications.get_log(NotificationLevel.ERROR)

    def test_fifo_and_per_record_commit(self, engine, connectivity, remote):
        """Bir kaydın hatası sonraki kayıtları engellemez; başarılılar kuyruktan çıkar."""
        connectivity.set_online(False)
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        engine.sync(SyncType.SALE, {"id": "s1", "total": 2000})
        engine.sync(SyncType.SHIFT, {"id": "sh1", "endTime": None, "sales": ["s1"]})
        remote.failing_collections = {"sales"}

        connectivity.set_online(True)

        records = engine.queue.records()
        assert len(records) == 1
        assert records[0].type == SyncType.SALE
        assert records[0].attempts == 1
        assert remote.content("products") == PRODUCTS
        assert remote.get_by_id("shifts", "sh1") is not None
        assert remote.calls.index(("upsert", "products")) < remote.calls.index(("upsert", "shifts"))

    def test_later_record_wins(self, engine, connectivity, remote, local):
        connectivity.set_online(False)
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        updated = _with(PRODUCTS, 1, quantity=18)
        engine.sync(SyncType.PRODUCTS, updated)

        connectivity.set_online(True)

        assert remote.content("products") == updated
        assert local.read_json("products") == updated

    def test_replaying_record_twice_is_idempotent(self, engine, connectivity, remote):
        connectivity.set_online(False)
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        record = engine.queue.records()[0]
        connectivity.set_online(True)
        after_first = remote.query_all("products")

        engine.queue.enqueue(record.type, record.payload, record.versions)
        remote.calls.clear()
        result = engine.drain()

        assert result.synced == 1
        assert _upserts(remote, "products") == []
        assert remote.query_all("products") == after_first

    def test_sale_replay_does_not_duplicate(self, engine, connectivity, remote):
        connectivity.set_online(False)
        engine.sync(SyncType.SALE, {"id": "s1", "total": 100})
        record = engine.queue.records()[0]
        connectivity.set_online(True)

        engine.queue.enqueue(record.type, record.payload, record.versions)
        engine.drain()

        assert len(remote.query_all("sales")) == 1

    def test_drain_is_remote_only(self, engine, connectivity, local):
        connectivity.set_online(False)
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        local.write_json("products", PRODUCTS[:1])
        connectivity.set_online(True)
        assert local.read_json("products") == PRODUCTS[:1]

    def test_late_sale_record_does_not_undo_refund(self, engine, connectivity, remote):
        """Eski kayıt başarısız olup yenisi uzağa ulaştıysa, eski kaydın tekrarı veriyi geri almaz."""
        connectivity.set_online(False)
        engine.sync(SyncType.SALE, {"id": "s1", "total": 100, "refunded": False})
        engine.sync(SyncType.SALE, {"id": "s1", "total": 100, "refunded": True})
        remote.fail_next = 1

        connectivity.set_online(True)
        assert engine.pending_count == 1
        assert remote.get_by_id("sales", "s1")["refunded"] is True

        result = engine.drain()

        assert result.synced == 1
        assert engine.pending_count == 0
        assert remote.get_by_id("sales", "s1")["refunded"] is True

    def test_late_shift_record_does_not_undo_totals(self, engine, connectivity, remote):
        connectivity.set_online(False)
        engine.sync(SyncType.SHIFT, {"id": "sh1", "endTime": None, "total": 0})
        engine.sync(SyncType.SHIFT, {"id": "sh1", "endTime": None, "total": 5000})
        remote.fail_next = 1

        connectivity.set_online(True)
        engine.drain()

        assert remote.get_by_id("shifts", "sh1")["total"] == 5000
        assert engine.read_through(
            SyncType.SHIFT, lambda: remote.get_singleton("shifts", {"endTime": None})
        )["total"] == 5000

    def test_late_snapshot_does_not_delete_newer_products(self, engine, remote, local):
        remote.failing = True
        engine.sync(SyncType.PRODUCTS, PRODUCTS[:1])
        remote.failing = False
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        assert remote.content("products") == PRODUCTS

        engine.drain()

        assert engine.pending_count == 0
        assert remote.content("products") == PRODUCTS
        assert local.read_json("products") == PRODUCTS

    def test_late_delete_does_not_remove_readded_product(self, engine, remote):
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        remote.fail_next = 1
        engine.sync(SyncType.PRODUCTS, PRODUCTS[:1])
        assert remote.content("products") == PRODUCTS

        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        engine.drain()

        assert remote.content("products") == PRODUCTS

    def test_queued_delete_still_applied(self, engine, connectivity, remote):
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        connectivity.set_online(False)
        engine.sync(SyncType.PRODUCTS, PRODUCTS[:1])

        connectivity.set_online(True)

        assert remote.content("products") == PRODUCTS[:1]
        assert engine.pending_count == 0


class TestConflicts:
    """Başka bir cihazın aynı varlığı değiştirdiği durumlar."""

    def _other_device_writes(self, remote, updated_at, version=2, **changes):
        remote.upsert("products", {**PRODUCTS[0], **changes, "version": version, "updatedAt": updated_at})

    def test_newer_remote_change_is_kept(self, engine, remote, local, notifications):
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        self._other_device_writes(remote, "2999-01-01T00:00:00", name="Sourdough")

        engine.sync(SyncType.PRODUCTS, _with(PRODUCTS, 1, price=1200))

        assert remote.get_by_id("products", 1)["name"] == "Sourdough"
        assert remote.get_by_id("products", 1)["price"] == 1000
        cached = {p["id"]: p for p in local.read_json("products")}
        assert cached[1]["name"] == "Sourdough"
        assert notifications.get_log(NotificationLevel.WARNING)

    def test_newer_local_change_wins(self, engine, remote):
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        self._other_device_writes(remote, "2000-01-01T00:00:00", name="Sourdough")

        engine.sync(SyncType.PRODUCTS, _with(PRODUCTS, 1, price=1200))

        stored = remote.get_by_id("products", 1)
        assert stored["price"] == 1200
        assert stored["name"] == "Bread"
        assert stored["version"] == 3

    def test_identical_remote_content_counts_as_applied(self, engine, remote):
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        self._other_device_writes(remote, "2000-01-01T00:00:00", version=5, price=1200)

        result = engine.sync(SyncType.PRODUCTS, _with(PRODUCTS, 1, price=1200))

        assert result.remote_applied is True
        assert remote.get_by_id("products", 1)["version"] == 5

    def test_other_product_untouched_by_conflict(self, engine, remote):
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        self._other_device_writes(remote, "2999-01-01T00:00:00", name="Sourdough")
        engine.sync(SyncType.PRODUCTS, _with(PRODUCTS, 2, quantity=10))
        assert remote.get_by_id("products", 2)["quantity"] == 10
        assert remote.get_by_id("products", 1)["name"] == "Sourdough"


class TestReadThrough:
    def test_online_read_replaces_cache(self, engine, remote, local):
        remote.upsert("products", {"id": 9, "name": "Bagel", "price": 700, "quantity": 4,
                                   "version": 4, "updatedAt": "2024-01-01T00:00:00"})
        products = engine.read_through(SyncType.PRODUCTS, lambda: remote.query_all("products"))
        expected = [{"id": 9, "name": "Bagel", "price": 700, "quantity": 4}]
        assert products == expected
        assert local.read_json("products") == expected

    def test_edit_after_read_continues_remote_version(self, engine, remote):
        remote.upsert("products", {"id": 9, "name": "Bagel", "price": 700, "quantity": 4,
                                   "version": 4, "updatedAt": "2024-01-01T00:00:00"})
        products = engine.read_through(SyncType.PRODUCTS, lambda: remote.query_all("products"))
        products[0]["quantity"] = 3
        engine.sync(SyncType.PRODUCTS, products)
        assert remote.get_by_id("products", 9)["version"] == 5
        assert remote.get_by_id("products", 9)["quantity"] == 3

    def test_remote_error_falls_back_to_cache(self, engine, remote):
        engine.sync(SyncType.PRODUCTS, PRODUCTS)
        remote.failing = True
        assert engine.read_through(SyncType.PRODUCTS, lambda: remote.query_all("products")) == PRODUCTS

    def test_empty_singleton_falls_back_to_cache(self, engine, remote):
        shift = {"id": "sh1", "cashier": "Amina", "endTime": None}
        engine.sync(SyncType.SHIFT, shift)
        remote.delete_all("shifts")
        result = engine.read_through(SyncType.SHIFT, lambda: remote.get_singleton("shifts", {"endTime": None}))
        assert result == shift

    def test_missing_cache_defaults(self, engine, connectivity):
        connectivity.set_online(False)
        assert engine.read_through(SyncType.PRODUCTS, MagicMock()) == []
        assert engine.read_through(SyncType.SHIFT, MagicMock()) is None

    def test_clear_local(self, engine):
        engine.sync(SyncType.SHIFT, {"id": "sh1", "endTime": None})
        engine.clear_local(SyncType.SHIFT)
        assert engine.read_local(SyncType.SHIFT) is None
