"""Satış kayıtları repository'si."""

from __future__ import annotations

from src.models.bakery import Sale, SyncResult, SyncType
from src.repositories.base import BaseRepository
from src.sync.errors import NotFoundError


class SalesRepository(BaseRepository):
    sync_type = SyncType.SALES

    def get(self) -> list[Sale]:
        rows = self._read_through(lambda: self.remote.query_all(self.collection))
        return sorted((Sale.from_dict(r) for r in rows), key=lambda s: s.date)

    def cached(self) -> list[Sale]:
        return [Sale.from_dict(r) for r in self.engine.read_local(self.sync_type)]

    def save_all(self, sales: list[Sale]) -> SyncResult:
        return self._write([s.to_dict() for s in sales])

    def record(self, sale: Sale) -> SyncResult:
        """Tek satışı id ile yazar (yeni satış ya da iade geçişi)."""
        return self._write(sale.to_dict(), SyncType.SALE)

    def find(self, sale_id: str) -> Sale:
        for sale in self.get():
            if str(sale.id) == str(sale_id):
                return sale
        raise NotFoundError(f"Satış bulunamadı: {sale_id}")

    def for_shift(self, shift_id: str) -> list[Sale]:
        return [s for s in self.get() if s.shiftId == shift_id]
