"""Bağlantı izleyici - çevrimiçi/çevrimdışı geçişlerini takip eder.

Platform sinyali iki yoldan gelir: ``set_online`` ile doğrudan bildirilen
durum ya da ``probe`` fonksiyonu ile yoklanan durum (``check``). Yalnızca
gerçek geçişlerde dinleyiciler çağrılır.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ConnectivityState(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


Listener = Callable[[ConnectivityState], None]


class ConnectivityMonitor:
    def __init__(
        self,
        initially_online: bool = False,
        probe: Optional[Callable[[], bool]] = None,
    ) -> None:
        self._state = ConnectivityState.ONLINE if initially_online else ConnectivityState.OFFLINE
        self._probe = probe
        self._listeners: list[Listener] = []

    @property
    def state(self) -> ConnectivityState:
        return self._state

    @property
    def is_online(self) -> bool:
        return self._state == ConnectivityState.ONLINE

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_online(self, online: bool) -> bool:
        """Platform sinyalini uygular. Durum değiştiyse True döner."""
        new_state = ConnectivityState.ONLINE if online else ConnectivityState.OFFLINE
        if new_state == self._state:
            return False

        self._state = new_state
        logger.info("Bağlantı durumu değişti: %s", new_state.value)
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception as e:
                logger.error("Bağlantı dinleyici hatası: %s", e)
        return True

    def check(self) -> ConnectivityState:
        """Probe fonksiyonu ile durumu yoklar ve gerekirse geçişi tetikler."""
        if self._probe is None:
            return self._state
        try:
            reachable = bool(self._probe())
        except Exception as e:
            logger.warning("Bağlantı yoklama hatası: %s", e)
            reachable = False
        self.set_online(reachable)
        return self._state
