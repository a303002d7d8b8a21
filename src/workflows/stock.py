"""Stok yönetimi iş akışları - ürün ekleme/silme, düşük stok ve stok senkronu."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from src.models.bakery import UNLIMITED, Product
from src.models.forms import AddStockForm
from src.repositories.products import ProductRepository
from src.sync.errors import RemoteUnavailable
from src.sync.local_store import LocalStore
from src.sync.notifications import NotificationBus

logger = logging.getLogger(__name__)

INITIALIZED_KEY = "bakeryPosInitialized"

SAMPLE_PRODUCTS = [
    {"id": 1, "name": "Bread", "price": 1000, "quantity": 20},
    {"id": 2, "name": "Croissant", "price": 1500, "quantity": 15},
    {"id": 3, "name": "Cake", "price": 5000, "quantity": 5},
    {"id": 4, "name": "Donut", "price": 800, "quantity": 30},
    {"id": 5, "name": "Cookie", "price": 300, "quantity": 50},
]


def _next_product_id(products: list[Product]) -> Any:
    ids = [p.id for p in products]
    if all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
        return max(ids, default=0) + 1
    return str(uuid.uuid4())


class StockWorkflow:
    def __init__(
        self,
        products: ProductRepository,
        local: LocalStore,
        notifications: NotificationBus,
        low_stock_threshold: int = 5,
    ):
        self.products = products
        self.local = local
        self.notifications = notifications
        self.low_stock_threshold = low_stock_threshold

    def add_stock(self, name: Any, price: Any, quantity: Any) -> Product:
        """Ürün ekler; aynı isimde (büyük/küçük harf duyarsız) ürün varsa stoğunu artırır."""
        form = AddStockForm.parse(name, price, quantity)
        products = self.products.get()

        existing = ProductRepository.find_by_name(products, form.name)
        if existing is not None:
            if form.quantity == UNLIMITED or existing.is_unlimited:
                existing.quantity = UNLIMITED
            else:
                existing.quantity += form.quantity
            existing.price = form.price
            product = existing
            logger.info("Stok artırıldı: %s -> %s", product.name, product.quantity)
        else:
            product = Product(
                id=_next_product_id(products),
                name=form.name,
                price=form.price,
                quantity=form.quantity,
            )
            products.append(product)
            logger.info("Yeni ürün eklendi: %s (id=%s)", product.name, product.id)

        self.products.save(products)
        return product

    def delete_stock(self, product_id: Any) -> Product:
        products = self.products.get()
        product = ProductRepository.find(products, product_id)
        remaining = [p for p in products if p is not product]
        self.products.save(remaining)
        logger.info("Ürün silindi: %s (id=%s)", product.name, product.id)
        return product

    def low_stock_alerts(self) -> list[Product]:
        alerts = self.products.low_stock(self.low_stock_threshold)
        if alerts:
            self.notifications.warning(
                f"{len(alerts)} ürünün stoğu azaldı",
                products=[p.name for p in alerts],
            )
        return alerts

    def initialize_sample_data(self) -> bool:
        """İlk çalıştırmada örnek ürünleri yükler. Yüklendiyse True döner."""
        if self.local.read_json(INITIALIZED_KEY, False):
            return False
        self.products.save([Product.from_dict(p) for p in SAMPLE_PRODUCTS])
        self.local.write_json(INITIALIZED_KEY, True)
        logger.info("Örnek ürünler yüklendi (%d)", len(SAMPLE_PRODUCTS))
        return True

    def sync_stock(self) -> Optional[list[Product]]:
        """Uzakta olup yerelde bulunmayan ürünleri yerel listeye katar ve kaydeder."""
        if not self.products.engine.connectivity.is_online:
            self.notifications.warning("Stok senkronize edilemiyor - çevrimdışı")
            return None

        self.notifications.info("Stok senkronize ediliyor...")
        try:
            remote_products = self.products.fetch_remote()
        except RemoteUnavailable as e:
            logger.error("Stok senkronu başarısız: %s", e)
            self.notifications.error("Stok senkronu başarısız")
            return None

        merged = self.products.cached()
        known = {str(p.id) for p in merged}
        for product in remote_products:
            if str(product.id) not in known:
                merged.append(product)
                known.add(str(product.id))

        self.products.save(merged)
        self.notifications.success("Stok başarıyla senkronize edildi!")
        return merged
