"""Kullanıcı girdisi formları - ham değerleri tipli isteklere dönüştürür.

Her form ``parse`` ile oluşturulur ve hatalı girdide ``ValidationError``
fırlatır; böylece hiçbir depo yazması hatalı veriyle başlamaz.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Union

from src.models.bakery import UNLIMITED, PaymentMethod
from src.sync.errors import ValidationError


def _parse_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} sayısal olmalı: {value!r}")
    if isinstance(value, (int, float)):
        number = value
    else:
        text = str(value if value is not None else "").strip().replace(",", "")
        try:
            number = float(text)
        except ValueError:
            raise ValidationError(f"{field_name} sayısal olmalı: {value!r}") from None
        if number.is_integer():
            number = int(number)
    if isinstance(number, float) and not math.isfinite(number):
        raise ValidationError(f"{field_name} sayısal olmalı: {value!r}")
    return number


def parse_price(value: Any) -> float:
    price = _parse_number(value, "Fiyat")
    if price <= 0:
        raise ValidationError(f"Fiyat pozitif olmalı: {value!r}")
    return price


def parse_quantity(value: Any, allow_unlimited: bool = True) -> Union[int, str]:
    if allow_unlimited and isinstance(value, str) and value.strip().lower() == UNLIMITED:
        return UNLIMITED
    quantity = _parse_number(value, "Miktar")
    if quantity < 0:
        raise ValidationError(f"Miktar negatif olamaz: {value!r}")
    if quantity != int(quantity):
        raise ValidationError(f"Miktar tam sayı olmalı: {value!r}")
    return int(quantity)


@dataclass
class AddStockForm:
    name: str
    price: float
    quantity: Union[int, str]

    @classmethod
    def parse(cls, name: Any, price: Any, quantity: Any) -> "AddStockForm":
        clean_name = str(name or "").strip()
        if not clean_name:
            raise ValidationError("Ürün adı boş olamaz")
        return cls(name=clean_name, price=parse_price(price), quantity=parse_quantity(quantity))


@dataclass
class OpenShiftForm:
    cashier: str
    startingCash: float

    @classmethod
    def parse(cls, cashier: Any, starting_cash: Any) -> "OpenShiftForm":
        clean_cashier = str(cashier or "").strip()
        if not clean_cashier:
            raise ValidationError("Kasiyer adı boş olamaz")
        cash = _parse_number(starting_cash if starting_cash not in (None, "") else 0, "Başlangıç kasası")
        if cash < 0:
            raise ValidationError(f"Başlangıç kasası negatif olamaz: {starting_cash!r}")
        return cls(cashier=clean_cashier, startingCash=cash)


@dataclass
class CheckoutForm:
    paymentMethod: PaymentMethod

    @classmethod
    def parse(cls, payment_method: Any) -> "CheckoutForm":
        raw = payment_method.value if isinstance(payment_method, PaymentMethod) else str(payment_method or "")
        try:
            method = PaymentMethod(raw.strip().lower())
        except ValueError:
            raise ValidationError(f"Geçersiz ödeme yöntemi: {payment_method!r}") from None
        return cls(paymentMethod=method)
