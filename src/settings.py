"""Uygulama ayarları - ortam değişkenlerinden okunur.

Scriptler ``env_loader``'ı import ederek proje kökündeki ``.env`` dosyasını
önce yükler; bu modül yalnızca ``os.environ`` okur.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

REMOTE_BACKENDS = ("dynamodb", "memory")


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} tam sayı olmalı: {raw!r}") from None


@dataclass
class Settings:
    region_name: str = "us-west-2"
    table_prefix: str = "Bakery"
    db_path: str = "pos.sqlite"
    max_sync_attempts: int = 3
    low_stock_threshold: int = 5
    remote_backend: str = "dynamodb"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        backend = (env.get("POS_REMOTE_BACKEND") or "dynamodb").strip().lower()
        if backend not in REMOTE_BACKENDS:
            raise ValueError(f"POS_REMOTE_BACKEND şunlardan biri olmalı: {', '.join(REMOTE_BACKENDS)}")

        settings = cls(
            region_name=env.get("AWS_DEFAULT_REGION") or cls.region_name,
            table_prefix=env.get("POS_TABLE_PREFIX") or cls.table_prefix,
            db_path=env.get("POS_DB_PATH") or cls.db_path,
            max_sync_attempts=_int_env(env, "POS_MAX_SYNC_ATTEMPTS", cls.max_sync_attempts),
            low_stock_threshold=_int_env(env, "POS_LOW_STOCK_THRESHOLD", cls.low_stock_threshold),
            remote_backend=backend,
        )
        if settings.max_sync_attempts < 1:
            raise ValueError("POS_MAX_SYNC_ATTEMPTS en az 1 olmalı")
        return settings
