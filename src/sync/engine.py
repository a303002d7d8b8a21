"""Senkronizasyon motoru - her domain yazmasının yerel + uzak yolunu yönetir.

Yazma yolu (``sync``):
1. Yükü yerel depoya yazar (önceki anlık görüntünün yerine) - her zaman, önce.
2. Çevrimiçiyse uzak depoya yazar; hata olursa kuyruğa kayıt ekler.
3. Çevrimdışıysa uzak denemeyi atlar ve doğrudan kuyruğa ekler.
Çağıran tarafa uzak hata asla yansımaz; yerel kalıcılık uzak başarıya bağlı değildir.

Toplu koleksiyonlar (products, sales, shiftHistory) silip-yeniden-yazma yerine
varlık bazında fark ile gönderilir. Her varlığın motor tarafından tutulan bir
sürüm damgası (``version``, ``updatedAt``) vardır ve yalnızca içeriği
değiştiğinde artar. Uzağa yalnızca son senkron tabanına göre eklenen/değişen
varlıklar koşullu olarak yazılır, tabandan silinenler uzakta da silinir.

Okuma yolu (``read_through``): çevrimiçiyken uzak depo yetkilidir ve sonuç
yerel önbelleğin üzerine yazılır; uzak hata veya çevrimdışı durumda yerel
önbellek döner. Okuma yolu kuyruğa bakmaz.
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

from src.models.bakery import DrainResult, SyncResult, SyncType, utc_now_iso
from src.sync.connectivity import ConnectivityMonitor, ConnectivityState
from src.sync.errors import RemoteUnavailable, RetryExhausted, ValidationError, VersionConflict
from src.sync.local_store import LocalStore
from src.sync.notifications import NotificationBus
from src.sync.pending_queue import PendingSyncQueue
from src.sync.remote_store import RemoteCollectionStore, entity_key

logger = logging.getLogger(__name__)

META_FIELDS = ("version", "updatedAt")


@dataclass(frozen=True)
class CollectionBinding:
    sync_type: SyncType
    cache_key: str
    remote_collection: str
    bulk: bool
    prune_removed: bool = True

    @property
    def meta_key(self) -> str:
        return f"syncMeta:{self.cache_key}"

    @property
    def base_key(self) -> str:
        return f"syncBase:{self.cache_key}"


BINDINGS: dict[SyncType, CollectionBinding] = {
    SyncType.PRODUCTS: CollectionBinding(SyncType.PRODUCTS, "products", "products", bulk=True),
    SyncType.SALES: CollectionBinding(SyncType.SALES, "sales", "sales", bulk=True),
    SyncType.SALE: CollectionBinding(SyncType.SALE, "sales", "sales", bulk=False),
    SyncType.SHIFT: CollectionBinding(SyncType.SHIFT, "activeShift", "shifts", bulk=False),
    # Geçmiş, aktif vardiya ile aynı uzak koleksiyonu paylaşır; yerelden
    # düşmesi uzakta silinmesi anlamına gelmez.
    SyncType.SHIFT_HISTORY: CollectionBinding(
        SyncType.SHIFT_HISTORY, "shiftHistory", "shifts", bulk=True, prune_removed=False
    ),
}


def content_digest(entity: dict) -> str:
    content = {k: v for k, v in entity.items() if k not in META_FIELDS}
    raw = json.dumps(content, sort_keys=True, default=str)
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


def split_meta(entity: dict) -> tuple[dict, dict]:
    content = {k: v for k, v in entity.items() if k not in META_FIELDS}
    stamp = {
        "version": int(entity.get("version") or 0),
        "updatedAt": entity.get("updatedAt") or "",
    }
    return content, stamp


class SyncEngine:
    """Process ömürlü senkron servisi.

    Kuyruk, bağlantı izleyici ve depolar dışarıdan enjekte edilir; repository
    katmanı yalnızca bu sınıf üzerinden yazar.
    """

    def __init__(
        self,
        local: LocalStore,
        remote: RemoteCollectionStore,
        connectivity: ConnectivityMonitor,
        queue: Optional[PendingSyncQueue] = None,
        notifications: Optional[NotificationBus] = None,
    ):
        self.local = local
        self.remote = remote
        self.connectivity = connectivity
        self.queue = queue or PendingSyncQueue(local)
        self.notifications = notifications or NotificationBus()
        self._draining = False
        self.connectivity.add_listener(self._on_connectivity_change)

    # --- Yazma yolu ---

    def sync(self, sync_type: SyncType, payload: Any) -> SyncResult:
        binding = self._binding(sync_type)
        payload = copy.deepcopy(payload)
        entities = self._entities(binding, payload)

        versions = self._write_local(binding, payload, entities)

        if not self.connectivity.is_online:
            record = self.queue.enqueue(sync_type, payload, versions)
            return SyncResult(sync_type=sync_type, remote_applied=False, queued_record_id=record.id)

        try:
            self._push(binding, payload, versions)
        except RemoteUnavailable as e:
            logger.warning("Uzak yazma başarısız (%s), kuyruğa alınıyor: %s", sync_type.value, e)
            record = self.queue.enqueue(sync_type, payload, versions)
            return SyncResult(sync_type=sync_type, remote_applied=False, queued_record_id=record.id)

        return SyncResult(sync_type=sync_type, remote_applied=True)

    def _binding(self, sync_type: SyncType) -> CollectionBinding:
        try:
            return BINDINGS[SyncType(sync_type)]
        except (KeyError, ValueError):
            raise ValidationError(f"Bilinmeyen senkron tipi: {sync_type!r}") from None

    def _entities(self, binding: CollectionBinding, payload: Any) -> list[dict]:
        if binding.bulk:
            if not isinstance(payload, list):
                raise ValidationError(f"{binding.sync_type.value} için liste bekleniyor")
            entities = payload
        else:
            if not isinstance(payload, dict):
                raise ValidationError(f"{binding.sync_type.value} için tek kayıt bekleniyor")
            if payload.get("id") is None:
                payload["id"] = str(uuid.uuid4())
            entities = [payload]

        seen = set()
        for entity in entities:
            if not isinstance(entity, dict) or entity.get("id") is None:
                raise ValidationError(f"{binding.sync_type.value} kaydında id eksik")
            key = entity_key(entity["id"])
            if key in seen:
                raise ValidationError(f"{binding.sync_type.value} içinde tekrarlanan id: {key}")
            seen.add(key)
        return entities

    def _write_local(self, binding: CollectionBinding, payload: Any, entities: list[dict]) -> dict:
        """Önbelleği tamamen değiştirir ve değişen varlıkların sürümünü artırır.

        Toplu yazmada önceki anlık görüntüden düşen varlıklar için, silinme de
        bir değişiklik sayılarak sürümü artırılmış bir silme işareti
        (``removed``) tutulur. Kuyruk kaydı bu işaretleri taşır; uzakta yalnızca
        kaydın bildiği sürümden yeni olmayan varlıklar silinir.
        """
        meta = self.local.read_json(binding.meta_key, {})
        base = self.local.read_json(binding.base_key, {})
        now = utc_now_iso()
        versions: dict[str, dict] = {}

        for entity in entities:
            key = entity_key(entity["id"])
            digest = content_digest(entity)
            current = meta.get(key)
            if current is None or current.get("removed") or current.get("digest") != digest:
                previous = max(int((current or {}).get("version", 0)), int(base.get(key, 0)))
                current = {"version": previous + 1, "updatedAt": now, "digest": digest}
                meta[key] = current
            versions[key] = {"version": current["version"], "updatedAt": current["updatedAt"]}

        if binding.sync_type == SyncType.SALE:
            cached = self.local.read_json(binding.cache_key, [])
            self.local.write_json(binding.cache_key, _replace_by_id(cached, payload))
        else:
            self.local.write_json(binding.cache_key, payload)

        if binding.bulk and binding.prune_removed:
            for key in (set(meta) | set(base)) - set(versions):
                current = meta.get(key) or {}
                if not current.get("removed"):
                    previous = max(int(current.get("version", 0)), int(base.get(key, 0)))
                    current = {"version": previous + 1, "updatedAt": now, "removed": True}
                    meta[key] = current
                versions[key] = {**current}
        elif binding.bulk:
            meta = {k: v for k, v in meta.items() if k in versions}

        self.local.write_json(binding.meta_key, meta)
        return versions

    # --- Uzak yazma ---

    def _push(self, binding: CollectionBinding, payload: Any, versions: dict) -> None:
        """Kaydı uzağa uygular.

        Taban sürümü kaydın sürümüne eşit ya da daha yeni olan varlıklar
        atlanır; geç oynatılan eski bir kayıt uzaktaki yeni veriyi geri almaz.
        """
        entities = self._entities(binding, copy.deepcopy(payload))
        base = self.local.read_json(binding.base_key, {})

        present = set()
        for entity in entities:
            key = entity_key(entity["id"])
            present.add(key)
            stamp = versions.get(key) or {"version": 1, "updatedAt": utc_now_iso()}
            base_version = base.get(key)
            if base_version is not None and base_version >= stamp["version"]:
                continue
            applied = self._upsert_entity(binding, entity, stamp, expected_version=base_version or 0)
            base[key] = max(applied, base_version or 0)
            self.local.write_json(binding.base_key, base)

        if not (binding.bulk and binding.prune_removed):
            return
        for key in [k for k in base if k not in present]:
            removed = versions.get(key) or {}
            # Kaydın bilmediği ya da sonradan yeniden yazılmış varlıklar kalır
            if not removed.get("removed") or base[key] >= removed["version"]:
                continue
            self.remote.delete_by_id(binding.remote_collection, key)
            del base[key]
            self.local.write_json(binding.base_key, base)

    def _upsert_entity(
        self, binding: CollectionBinding, entity: dict, stamp: dict, expected_version: int
    ) -> int:
        """Varlığı koşullu yazar; çakışmada varlık bazında birleştirir.

        Uzaktaki son sürümü döndürür.
        """
        collection = binding.remote_collection
        try:
            self.remote.upsert(collection, {**entity, **stamp}, expected_version=expected_version)
            return stamp["version"]
        except VersionConflict:
            pass

        current = self.remote.get_by_id(collection, entity["id"])
        if current is None:
            self.remote.upsert(collection, {**entity, **stamp})
            return stamp["version"]

        remote_content, remote_stamp = split_meta(current)
        if content_digest(remote_content) == content_digest(entity):
            # Önceki deneme uzağa ulaşmış, onayı kaybolmuş
            return remote_stamp["version"]

        if remote_stamp["updatedAt"] <= stamp["updatedAt"]:
            winner = {
                "version": max(remote_stamp["version"], stamp["version"]) + 1,
                "updatedAt": stamp["updatedAt"],
            }
            self.remote.upsert(collection, {**entity, **winner}, expected_version=remote_stamp["version"])
            self._set_meta(binding, entity, winner)
            logger.info("Çakışma yerel kayıt lehine çözüldü: %s/%s", collection, entity["id"])
            return winner["version"]

        self._adopt_remote(binding, remote_content, remote_stamp)
        logger.warning("Çakışma uzak kayıt lehine çözüldü: %s/%s", collection, entity["id"])
        self.notifications.warning(
            "Başka bir cihazdaki daha yeni değişiklik korundu",
            collection=collection,
            entity_id=entity["id"],
        )
        return remote_stamp["version"]

    def _set_meta(self, binding: CollectionBinding, entity: dict, stamp: dict) -> None:
        meta = self.local.read_json(binding.meta_key, {})
        meta[entity_key(entity["id"])] = {**stamp, "digest": content_digest(entity)}
        self.local.write_json(binding.meta_key, meta)

    def _adopt_remote(self, binding: CollectionBinding, content: dict, stamp: dict) -> None:
        cached = self.local.read_json(binding.cache_key, [])
        if isinstance(cached, list):
            self.local.write_json(binding.cache_key, _replace_by_id(cached, content))
        elif isinstance(cached, dict) and entity_key(cached.get("id")) == entity_key(content["id"]):
            self.local.write_json(binding.cache_key, content)
        self._set_meta(binding, content, stamp)

    # --- Okuma yolu ---

    def read_local(self, sync_type: SyncType) -> Any:
        binding = self._binding(sync_type)
        default = [] if binding.bulk or binding.sync_type == SyncType.SALE else None
        return self.local.read_json(binding.cache_key, default)

    def read_through(self, sync_type: SyncType, fetch: Callable[[], Any]) -> Any:
        """Çevrimiçiyse ``fetch`` sonucunu önbelleğe yazıp döndürür, değilse önbelleği.

        Tekil sorgularda (aktif vardiya) uzak sonuç boşsa yerel önbellek döner.
        """
        if self.connectivity.is_online:
            try:
                fetched = fetch()
            except RemoteUnavailable as e:
                logger.warning(
                    "Uzak okuma başarısız (%s), yerel önbellek kullanılıyor: %s", SyncType(sync_type).value, e
                )
            else:
                if fetched is not None:
                    return self._cache_remote(self._binding(sync_type), fetched)
        return self.read_local(sync_type)

    def _cache_remote(self, binding: CollectionBinding, fetched: Any) -> Any:
        items = fetched if isinstance(fetched, list) else [fetched]
        meta = self.local.read_json(binding.meta_key, {})
        base = self.local.read_json(binding.base_key, {})
        if isinstance(fetched, list):
            base = {}

        contents = []
        for item in items:
            content, stamp = split_meta(item)
            key = entity_key(content["id"])
            # Yerel sürüm geri alınmaz; kuyruktaki eski kayıtlar sonraki yazmayı ezemez
            known = int((meta.get(key) or {}).get("version", 0))
            meta[key] = {**stamp, "version": max(stamp["version"], known), "digest": content_digest(content)}
            base[key] = stamp["version"]
            contents.append(content)

        value = contents if isinstance(fetched, list) else contents[0]
        self.local.write_json(binding.cache_key, value)
        self.local.write_json(binding.meta_key, meta)
        self.local.write_json(binding.base_key, base)
        return copy.deepcopy(value)

    def clear_local(self, sync_type: SyncType) -> None:
        """Önbellek yuvasını boşaltır (örn. kapanan vardiya). Uzakta işlem yapmaz."""
        binding = self._binding(sync_type)
        empty = [] if binding.bulk else None
        self.local.write_json(binding.cache_key, empty)

    # --- Kuyruk boşaltma ---

    def drain(self) -> DrainResult:
        """Bekleyen kayıtları FIFO sırasıyla uzak depoya yeniden oynatır.

        Boşaltma kayıtlar arası atomik değildir: her kayıttan sonra kuyruk
        kalıcı hale gelir. Yerel önbelleğe dokunmaz.
        """
        if self._draining:
            return DrainResult(remaining=len(self.queue))

        if not self.connectivity.is_online:
            self.notifications.warning("Senkron yapılamıyor - çevrimdışı")
            return DrainResult(remaining=len(self.queue), skipped_offline=True)

        result = DrainResult()
        if not len(self.queue):
            return result

        self.notifications.info("Veriler senkronize ediliyor...")
        self._draining = True
        try:
            for record in self.queue.records():
                binding = self._binding(record.type)
                try:
                    self._push(binding, record.payload, record.versions)
                except RemoteUnavailable as e:
                    logger.warning("Senkron denemesi başarısız (id=%d, %s): %s", record.id, record.type.value, e)
                    try:
                        self.queue.record_failure(record)
                        result.retried += 1
                    except RetryExhausted as exhausted:
                        result.discarded += 1
                        logger.error("Senkron edilemeyen veri atıldı: %s", exhausted)
                        self.notifications.error(
                            "Senkron edilemeyen veri atıldı",
                            record_id=record.id,
                            type=record.type.value,
                            created_at=record.createdAt,
                        )
                else:
                    self.queue.mark_consumed(record)
                    result.synced += 1
        finally:
            self._draining = False

        result.remaining = len(self.queue)
        if result.remaining == 0:
            self.notifications.success("Tüm veriler senkronize edildi!")
        else:
            self.notifications.warning(
                f"Senkron tamamlandı, {result.remaining} kayıt beklemede",
                remaining=result.remaining,
            )
        logger.info(
            "Kuyruk boşaltıldı: %d başarılı, %d tekrar, %d atıldı, %d kalan",
            result.synced, result.retried, result.discarded, result.remaining,
        )
        return result

    def _on_connectivity_change(self, state: ConnectivityState) -> None:
        if state == ConnectivityState.ONLINE:
            self.notifications.success("Tekrar çevrimiçi - veriler senkronize ediliyor")
            self.drain()
        else:
            self.notifications.warning(
                "Çevrimdışı çalışılıyor - değişiklikler bağlantı gelince senkronize edilecek"
            )

    @property
    def pending_count(self) -> int:
        return len(self.queue)


def _replace_by_id(entities: list[dict], entity: dict) -> list[dict]:
    key = entity_key(entity["id"])
    replaced = False
    result = []
    for existing in entities:
        if entity_key(existing.get("id")) == key:
            result.append(entity)
            replaced = True
        else:
            result.append(existing)
    if not replaced:
        result.append(entity)
    return result
