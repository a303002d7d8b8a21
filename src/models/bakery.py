"""Fırın POS veri modelleri - ürün, satış, vardiya ve bekleyen senkron kayıtları."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

UNLIMITED = "unlimited"

Quantity = Union[int, float, str]


def utc_now_iso() -> str:
    return datetime.utcnow().isoformat()


class PaymentMethod(str, Enum):
    CASH = "cash"
    MOMO = "momo"


class SyncType(str, Enum):
    SALE = "sale"
    PRODUCTS = "products"
    SALES = "sales"
    SHIFT = "shift"
    SHIFT_HISTORY = "shiftHistory"


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Product:
    id: Any
    name: str
    price: float
    quantity: Quantity

    @property
    def is_unlimited(self) -> bool:
        return self.quantity == UNLIMITED

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "price": self.price, "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            price=data.get("price", 0),
            quantity=data.get("quantity", 0),
        )


@dataclass
class SaleItem:
    productId: Any
    name: str
    price: float
    quantity: int

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "productId": self.productId,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SaleItem":
        return cls(
            productId=data["productId"],
            name=data.get("name", ""),
            price=data.get("price", 0),
            quantity=data.get("quantity", 0),
        )


@dataclass
class Sale:
    id: str
    items: list[SaleItem]
    total: float
    paymentMethod: PaymentMethod
    shiftId: Optional[str]
    date: str = field(default_factory=utc_now_iso)
    refunded: bool = False
    refundDate: Optional[str] = None
    refundShiftId: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "date": self.date,
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "paymentMethod": self.paymentMethod.value,
            "shiftId": self.shiftId,
            "refunded": self.refunded,
        }
        if self.refundDate is not None:
            data["refundDate"] = self.refundDate
        if self.refundShiftId is not None:
            data["refundShiftId"] = self.refundShiftId
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Sale":
        return cls(
            id=data["id"],
            date=data.get("date") or utc_now_iso(),
            items=[SaleItem.from_dict(i) for i in data.get("items") or []],
            total=data.get("total", 0),
            paymentMethod=PaymentMethod(data.get("paymentMethod", PaymentMethod.CASH.value)),
            shiftId=data.get("shiftId"),
            refunded=bool(data.get("refunded", False)),
            refundDate=data.get("refundDate"),
            refundShiftId=data.get("refundShiftId"),
        )


@dataclass
class Shift:
    id: str
    cashier: str
    startingCash: float = 0
    startTime: str = field(default_factory=utc_now_iso)
    endTime: Optional[str] = None
    sales: list[str] = field(default_factory=list)
    refunds: list[str] = field(default_factory=list)
    cashTotal: float = 0
    momoTotal: float = 0
    total: float = 0

    @property
    def is_active(self) -> bool:
        return self.endTime is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "startTime": self.startTime,
            "endTime": self.endTime,
            "sales": list(self.sales),
            "cashTotal": self.cashTotal,
            "momoTotal": self.momoTotal,
            "total": self.total,
            "cashier": self.cashier,
            "startingCash": self.startingCash,
            "refunds": list(self.refunds),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Shift":
        return cls(
            id=data["id"],
            cashier=data.get("cashier", ""),
            startingCash=data.get("startingCash", 0),
            startTime=data.get("startTime") or utc_now_iso(),
            endTime=data.get("endTime"),
            sales=list(data.get("sales") or []),
            refunds=list(data.get("refunds") or []),
            cashTotal=data.get("cashTotal", 0),
            momoTotal=data.get("momoTotal", 0),
            total=data.get("total", 0),
        )


@dataclass
class CartLine:
    productId: Any
    quantity: int

    def to_dict(self) -> dict:
        return {"productId": self.productId, "quantity": self.quantity}


@dataclass
class PendingSync:
    id: int
    type: SyncType
    payload: Any
    createdAt: str = field(default_factory=utc_now_iso)
    attempts: int = 0
    # Kayıt anındaki varlık sürüm damgaları: {str(id): {"version": n, "updatedAt": ts}}
    versions: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "payload": self.payload,
            "createdAt": self.createdAt,
            "attempts": self.attempts,
            "versions": self.versions,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PendingSync":
        return cls(
            id=int(data["id"]),
            type=SyncType(data["type"]),
            payload=data.get("payload"),
            createdAt=data.get("createdAt") or utc_now_iso(),
            attempts=int(data.get("attempts") or 0),
            versions=dict(data.get("versions") or {}),
        )


@dataclass
class SyncResult:
    sync_type: SyncType
    remote_applied: bool
    queued_record_id: Optional[int] = None


@dataclass
class DrainResult:
    synced: int = 0
    retried: int = 0
    discarded: int = 0
    remaining: int = 0
    skipped_offline: bool = False


@dataclass
class Notification:
    notification_id: str
    level: NotificationLevel
    message: str
    payload: dict = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_now_iso)
