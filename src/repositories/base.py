"""Tüm domain repository'leri için temel sınıf."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from src.models.bakery import SyncResult, SyncType
from src.sync.engine import BINDINGS, SyncEngine

logger = logging.getLogger(__name__)


class BaseRepository(ABC):
    """Senkron motoru üzerine kurulu tipli erişimci.

    Alt sınıflar ``sync_type`` ile hangi önbellek/koleksiyona yazdığını,
    ``get`` ile de okuma politikasını tanımlar.
    """

    sync_type: SyncType

    def __init__(self, engine: SyncEngine):
        self.engine = engine
        self.remote = engine.remote

    @property
    def collection(self) -> str:
        return BINDINGS[self.sync_type].remote_collection

    def _write(self, payload: Any, sync_type: SyncType | None = None) -> SyncResult:
        return self.engine.sync(sync_type or self.sync_type, payload)

    def _read_through(self, fetch) -> Any:
        return self.engine.read_through(self.sync_type, fetch)

    @abstractmethod
    def get(self) -> Any:
        """Çevrimiçiyse uzaktan, değilse yerel önbellekten okur."""
        ...

    @abstractmethod
    def cached(self) -> Any:
        """Yalnızca yerel önbelleği okur."""
        ...
