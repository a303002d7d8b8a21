"""Bildirim yolu - senkron olaylarını arayüze ve operatöre iletir.

Arayüz katmanı ``subscribe`` ile abone olur; motor ve bağlantı izleyici
``publish`` ile bildirim gönderir. Abone hataları yayını durdurmaz.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional

from src.models.bakery import Notification, NotificationLevel

logger = logging.getLogger(__name__)

Handler = Callable[[Notification], None]


class NotificationBus:
    def __init__(self, max_log_size: int = 500) -> None:
        self._handlers: list[Handler] = []
        self._log: list[Notification] = []
        self._max_log_size = max_log_size

    def subscribe(self, handler: Handler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: Handler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(
        self,
        level: NotificationLevel,
        message: str,
        payload: Optional[dict] = None,
    ) -> Notification:
        notification = Notification(
            notification_id=str(uuid.uuid4()),
            level=level,
            message=message,
            payload=payload or {},
        )
        self._log.append(notification)
        if len(self._log) > self._max_log_size:
            del self._log[: len(self._log) - self._max_log_size]

        logger.debug("Bildirim [%s]: %s", level.value, message)
        for handler in list(self._handlers):
            try:
                handler(notification)
            except Exception as e:
                logger.warning("Bildirim handler hatası: %s", e)
        return notification

    def info(self, message: str, **payload) -> Notification:
        return self.publish(NotificationLevel.INFO, message, payload)

    def success(self, message: str, **payload) -> Notification:
        return self.publish(NotificationLevel.SUCCESS, message, payload)

    def warning(self, message: str, **payload) -> Notification:
        return self.publish(NotificationLevel.WARNING, message, payload)

    def error(self, message: str, **payload) -> Notification:
        return self.publish(NotificationLevel.ERROR, message, payload)

    def get_log(self, level: Optional[NotificationLevel] = None) -> list[Notification]:
        if level is None:
            return list(self._log)
        return [n for n in self._log if n.level == level]
