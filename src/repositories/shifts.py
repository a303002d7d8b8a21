"""Aktif vardiya ve vardiya geçmişi repository'leri.

İkisi de uzakta aynı ``shifts`` koleksiyonunu kullanır: aktif vardiya
``endTime`` alanı boş olan tek kayıttır, geçmiş ise kapanmış vardiyalardır.
"""

from __future__ import annotations

from typing import Optional

from src.models.bakery import Shift, SyncResult, SyncType
from src.repositories.base import BaseRepository


class ActiveShiftRepository(BaseRepository):
    sync_type = SyncType.SHIFT

    def get(self) -> Optional[Shift]:
        row = self._read_through(
            lambda: self.remote.get_singleton(self.collection, {"endTime": None})
        )
        return Shift.from_dict(row) if row else None

    def cached(self) -> Optional[Shift]:
        row = self.engine.read_local(self.sync_type)
        return Shift.from_dict(row) if row else None

    def save(self, shift: Shift) -> SyncResult:
        return self._write(shift.to_dict())

    def clear(self) -> None:
        self.engine.clear_local(self.sync_type)


class ShiftHistoryRepository(BaseRepository):
    sync_type = SyncType.SHIFT_HISTORY

    def _fetch_closed(self) -> list[dict]:
        closed = [s for s in self.remote.query_all(self.collection) if s.get("endTime")]
        return sorted(closed, key=lambda s: s.get("startTime") or "", reverse=True)

    def get(self) -> list[Shift]:
        return [Shift.from_dict(r) for r in self._read_through(self._fetch_closed)]

    def cached(self) -> list[Shift]:
        return [Shift.from_dict(r) for r in self.engine.read_local(self.sync_type)]

    def save(self, history: list[Shift]) -> SyncResult:
        return self._write([s.to_dict() for s in history])

    def archive(self, shift: Shift) -> SyncResult:
        """Kapanan vardiyayı geçmişin başına ekler."""
        history = [s for s in self.get() if s.id != shift.id]
        history.insert(0, shift)
        return self.save(history)
