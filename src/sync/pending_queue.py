"""Bekleyen senkron kuyruğu - uzak depoya henüz ulaşmamış yazmalar.

Kuyruk yerel depoda ``pendingSyncs`` anahtarında tutulur ve her değişiklikten
sonra kalıcı hale getirilir; sayfa/process yeniden başladığında kaldığı
yerden devam eder. Kayıtlar ekleme sırasıyla (FIFO) işlenir.

Kayıt durum makinesi::

    Queued -> Consumed (başarı)
           -> Queued (attempts + 1)
           -> Discarded (attempts >= max_attempts, dead-letter listesine)
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from src.models.bakery import PendingSync, SyncType
from src.sync.errors import RetryExhausted
from src.sync.local_store import LocalStore

logger = logging.getLogger(__name__)

QUEUE_KEY = "pendingSyncs"
DEAD_LETTER_KEY = "failedSyncs"
DEFAULT_MAX_ATTEMPTS = 3


class PendingSyncQueue:
    def __init__(self, store: LocalStore, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts en az 1 olmalı")
        self._store = store
        self.max_attempts = max_attempts
        self._records: list[PendingSync] = [
            PendingSync.from_dict(r) for r in store.read_json(QUEUE_KEY, [])
        ]
        self._last_id = max((r.id for r in self._records), default=0)
        if self._records:
            logger.info("%d bekleyen senkron kaydı yüklendi", len(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def _next_id(self) -> int:
        # Oluşturma zamanı (ms) tabanlı, kesin artan token
        candidate = time.time_ns() // 1_000_000
        self._last_id = max(candidate, self._last_id + 1)
        return self._last_id

    def _persist(self) -> None:
        self._store.write_json(QUEUE_KEY, [r.to_dict() for r in self._records])

    def enqueue(self, sync_type: SyncType, payload: Any, versions: Optional[dict] = None) -> PendingSync:
        record = PendingSync(
            id=self._next_id(),
            type=sync_type,
            payload=payload,
            versions=dict(versions or {}),
        )
        self._records.append(record)
        self._persist()
        logger.info("Senkron kuyruğa eklendi: %s (id=%d, kuyruk=%d)", sync_type.value, record.id, len(self._records))
        return record

    def records(self) -> list[PendingSync]:
        """Kayıtların FIFO sıralı kopyasını döndürür."""
        return list(self._records)

    def get(self, record_id: int) -> Optional[PendingSync]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def mark_consumed(self, record: PendingSync) -> None:
        self._records = [r for r in self._records if r.id != record.id]
        self._persist()

    def record_failure(self, record: PendingSync) -> PendingSync:
        """Başarısız denemeyi sayar.

        Deneme sınırı aşıldığında kaydı kuyruktan çıkarır, dead-letter
        listesine yazar ve ``RetryExhausted`` fırlatır.
        """
        record.attempts += 1
        if record.attempts >= self.max_attempts:
            self._records = [r for r in self._records if r.id != record.id]
            dead = self._store.read_json(DEAD_LETTER_KEY, [])
            dead.append(record.to_dict())
            self._store.write_json(DEAD_LETTER_KEY, dead)
            self._persist()
            raise RetryExhausted(record)
        self._persist()
        return record

    def dead_letters(self) -> list[PendingSync]:
        return [PendingSync.from_dict(r) for r in self._store.read_json(DEAD_LETTER_KEY, [])]

    def clear_dead_letters(self) -> int:
        count = len(self._store.read_json(DEAD_LETTER_KEY, []))
        self._store.write_json(DEAD_LETTER_KEY, [])
        return count

    def describe(self) -> list[dict]:
        """Arayüzde listelemek için kısa kayıt özetleri."""
        return [
            {"id": r.id, "type": r.type.value, "createdAt": r.createdAt, "attempts": r.attempts}
            for r in self._records
        ]
