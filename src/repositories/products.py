"""Ürün stoğu repository'si."""

from __future__ import annotations

import logging
from typing import Any, Optional

from src.models.bakery import Product, SyncResult, SyncType
from src.repositories.base import BaseRepository
from src.sync.errors import NotFoundError

logger = logging.getLogger(__name__)


class ProductRepository(BaseRepository):
    sync_type = SyncType.PRODUCTS

    def get(self) -> list[Product]:
        rows = self._read_through(lambda: self.remote.query_all(self.collection))
        return [Product.from_dict(r) for r in rows]

    def cached(self) -> list[Product]:
        return [Product.from_dict(r) for r in self.engine.read_local(self.sync_type)]

    def fetch_remote(self) -> list[Product]:
        """Önbelleğe yazmadan uzak ürünleri okur; hata durumunda RemoteUnavailable fırlatır."""
        return [Product.from_dict(r) for r in self.remote.query_all(self.collection)]

    def save(self, products: list[Product]) -> SyncResult:
        return self._write([p.to_dict() for p in products])

    @staticmethod
    def find(products: list[Product], product_id: Any) -> Product:
        for product in products:
            if str(product.id) == str(product_id):
                return product
        raise NotFoundError(f"Ürün bulunamadı: {product_id}")

    @staticmethod
    def find_by_name(products: list[Product], name: str) -> Optional[Product]:
        wanted = name.strip().casefold()
        for product in products:
            if product.name.strip().casefold() == wanted:
                return product
        return None

    def low_stock(self, threshold: int) -> list[Product]:
        """Miktarı eşiğin altına düşen ürünler (sınırsız ürünler hariç)."""
        return [
            p for p in self.get()
            if not p.is_unlimited and p.quantity < threshold
        ]
