"""Uzak koleksiyon deposu - yalnızca çevrimiçiyken erişilen doküman deposu.

İki uygulama vardır:
- ``DynamoDBCollectionStore``: her koleksiyon için bir DynamoDB tablosu
- ``InMemoryCollectionStore``: geliştirme, demo ve testler için bellek içi depo

Tüm boto3 hataları bu katmanda ``RemoteUnavailable`` (koşul hatası ise
``VersionConflict``) hatasına çevrilir; üst katmanlar boto3'ü bilmez.
"""

from __future__ import annotations

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Iterator, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import BotoCoreError, ClientError

from src.sync.errors import RemoteUnavailable, VersionConflict

logger = logging.getLogger(__name__)

KEY_ATTRIBUTE = "pk"


def entity_key(entity_id: Any) -> str:
    return str(entity_id)


def collection_table_name(prefix: str, collection: str) -> str:
    """products -> BakeryProducts"""
    return f"{prefix}{collection[:1].upper()}{collection[1:]}"


class RemoteCollectionStore(ABC):
    """CRUD + basit sorgu destekleyen soyut koleksiyon deposu."""

    @abstractmethod
    def query_all(self, collection: str) -> list[dict]:
        ...

    @abstractmethod
    def get_by_id(self, collection: str, entity_id: Any) -> Optional[dict]:
        ...

    @abstractmethod
    def get_singleton(self, collection: str, filters: dict) -> Optional[dict]:
        ...

    @abstractmethod
    def upsert(self, collection: str, entity: dict, expected_version: Optional[int] = None) -> dict:
        """Varlığı id'ye göre yazar.

        ``expected_version``: None ise koşulsuz yazar; 0 ise varlık uzakta
        bulunmamalıdır; pozitif ise uzak ``version`` bu değere eşit olmalıdır.
        Koşul sağlanmazsa ``VersionConflict`` fırlatır.
        """
        ...

    @abstractmethod
    def delete_all(self, collection: str) -> None:
        ...

    @abstractmethod
    def delete_by_id(self, collection: str, entity_id: Any) -> None:
        ...

    @abstractmethod
    def ping(self) -> bool:
        ...


class InMemoryCollectionStore(RemoteCollectionStore):
    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict]] = {}

    def _bucket(self, collection: str) -> dict[str, dict]:
        return self._collections.setdefault(collection, {})

    def query_all(self, collection: str) -> list[dict]:
        return [copy.deepcopy(e) for e in self._bucket(collection).values()]

    def get_by_id(self, collection: str, entity_id: Any) -> Optional[dict]:
        entity = self._bucket(collection).get(entity_key(entity_id))
        return copy.deepcopy(entity) if entity is not None else None

    def get_singleton(self, collection: str, filters: dict) -> Optional[dict]:
        for entity in self._bucket(collection).values():
            if all(entity.get(k) == v for k, v in filters.items()):
                return copy.deepcopy(entity)
        return None

    def upsert(self, collection: str, entity: dict, expected_version: Optional[int] = None) -> dict:
        entity = copy.deepcopy(entity)
        if entity.get("id") is None:
            entity["id"] = str(uuid.uuid4())
        bucket = self._bucket(collection)
        existing = bucket.get(entity_key(entity["id"]))
        if expected_version is not None:
            if expected_version == 0 and existing is not None:
                raise VersionConflict(collection, entity["id"], expected_version)
            if expected_version > 0 and (existing is None or existing.get("version") != expected_version):
                raise VersionConflict(collection, entity["id"], expected_version)
        bucket[entity_key(entity["id"])] = entity
        return copy.deepcopy(entity)

    def delete_all(self, collection: str) -> None:
        self._bucket(collection).clear()

    def delete_by_id(self, collection: str, entity_id: Any) -> None:
        self._bucket(collection).pop(entity_key(entity_id), None)

    def ping(self) -> bool:
        return True


def to_dynamo(obj: Any) -> Any:
    """float değerleri DynamoDB'nin kabul ettiği Decimal'e çevirir."""
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: to_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [to_dynamo(i) for i in obj]
    return obj


def from_dynamo(obj: Any) -> Any:
    """Decimal ve diğer DynamoDB tiplerini yerel Python tiplerine çevirir."""
    if isinstance(obj, Decimal):
        return int(obj) if obj == int(obj) else float(obj)
    if isinstance(obj, dict):
        return {k: from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [from_dynamo(i) for i in obj]
    return obj


class DynamoDBCollectionStore(RemoteCollectionStore):
    """Her koleksiyonu ``<prefix><Koleksiyon>`` adlı bir tabloda tutar.

    Hash anahtarı ``pk`` varlık id'sinin string halidir; böylece varlığın
    kendi ``id`` alanı tipini korur.
    """

    def __init__(
        self,
        table_prefix: str = "Bakery",
        region_name: str = "us-west-2",
        dynamodb_resource: Optional[Any] = None,
    ):
        self.table_prefix = table_prefix
        self.region_name = region_name
        # dependency injection destekli
        self.dynamodb = dynamodb_resource or boto3.resource("dynamodb", region_name=region_name)
        self._tables: dict[str, Any] = {}

    def table_name(self, collection: str) -> str:
        return collection_table_name(self.table_prefix, collection)

    def _table(self, collection: str) -> Any:
        if collection not in self._tables:
            self._tables[collection] = self.dynamodb.Table(self.table_name(collection))
        return self._tables[collection]

    @contextmanager
    def _remote_call(self, operation: str, collection: str) -> Iterator[None]:
        try:
            yield
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            logger.debug("DynamoDB hatası [%s %s]: %s", operation, collection, code or e)
            raise RemoteUnavailable(f"{operation} {collection}: {code or e}") from e
        except BotoCoreError as e:
            logger.debug("DynamoDB bağlantı hatası [%s %s]: %s", operation, collection, e)
            raise RemoteUnavailable(f"{operation} {collection}: {e}") from e

    @staticmethod
    def _strip_key(item: dict) -> dict:
        item = from_dynamo(item)
        item.pop(KEY_ATTRIBUTE, None)
        return item

    def _scan(self, collection: str, **scan_kwargs: Any) -> Iterator[dict]:
        table = self._table(collection)
        while True:
            resp = table.scan(**scan_kwargs)
            for item in resp.get("Items", []):
                yield item
            if "LastEvaluatedKey" not in resp:
                break
            scan_kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]

    def query_all(self, collection: str) -> list[dict]:
        with self._remote_call("scan", collection):
            return [self._strip_key(item) for item in self._scan(collection)]

    def get_by_id(self, collection: str, entity_id: Any) -> Optional[dict]:
        with self._remote_call("get_item", collection):
            resp = self._table(collection).get_item(Key={KEY_ATTRIBUTE: entity_key(entity_id)})
        item = resp.get("Item")
        return self._strip_key(item) if item else None

    def get_singleton(self, collection: str, filters: dict) -> Optional[dict]:
        condition = None
        for attr_name, value in filters.items():
            if value is None:
                part = Attr(attr_name).not_exists() | Attr(attr_name).eq(None)
            else:
                part = Attr(attr_name).eq(to_dynamo(value))
            condition = part if condition is None else condition & part

        scan_kwargs = {"FilterExpression": condition} if condition is not None else {}
        with self._remote_call("scan", collection):
            for item in self._scan(collection, **scan_kwargs):
                return self._strip_key(item)
        return None

    def upsert(self, collection: str, entity: dict, expected_version: Optional[int] = None) -> dict:
        entity = dict(entity)
        if entity.get("id") is None:
            entity["id"] = str(uuid.uuid4())
        item = to_dynamo(entity)
        item[KEY_ATTRIBUTE] = entity_key(entity["id"])

        put_kwargs: dict[str, Any] = {"Item": item}
        if expected_version == 0:
            put_kwargs["ConditionExpression"] = Attr(KEY_ATTRIBUTE).not_exists()
        elif expected_version is not None:
            put_kwargs["ConditionExpression"] = Attr("version").eq(expected_version)

        try:
            with self._remote_call("put_item", collection):
                self._table(collection).put_item(**put_kwargs)
        except RemoteUnavailable as e:
            cause = e.__cause__
            if isinstance(cause, ClientError) and (
                cause.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"
            ):
                raise VersionConflict(collection, entity["id"], expected_version) from cause
            raise
        return entity

    def delete_all(self, collection: str) -> None:
        with self._remote_call("delete_all", collection):
            table = self._table(collection)
            keys = [item[KEY_ATTRIBUTE] for item in self._scan(collection, ProjectionExpression=KEY_ATTRIBUTE)]
            with table.batch_writer() as batch:
                for key in keys:
                    batch.delete_item(Key={KEY_ATTRIBUTE: key})
        logger.info("%s koleksiyonu temizlendi (%d kayıt)", collection, len(keys))

    def delete_by_id(self, collection: str, entity_id: Any) -> None:
        with self._remote_call("delete_item", collection):
            self._table(collection).delete_item(Key={KEY_ATTRIBUTE: entity_key(entity_id)})

    def ping(self) -> bool:
        try:
            self.dynamodb.meta.client.list_tables(Limit=1)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.info("DynamoDB erişilemiyor: %s", e)
            return False
