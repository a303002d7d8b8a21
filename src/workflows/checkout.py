"""Sepet ve satış (checkout) iş akışı.

Checkout üç bağımsız senkron çağrısından oluşur: stok düşümü, satış kaydı ve
vardiya toplamları. Adımlar arasında oluşan bir hata önceki adımları geri
almaz; her adım kendi başına kalıcıdır.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from src.models.bakery import CartLine, PaymentMethod, Sale, SaleItem
from src.models.forms import CheckoutForm, parse_quantity
from src.repositories.products import ProductRepository
from src.repositories.sales import SalesRepository
from src.repositories.shifts import ActiveShiftRepository
from src.sync.errors import InsufficientStockError, ShiftStateError, ValidationError
from src.sync.local_store import LocalStore

logger = logging.getLogger(__name__)

CART_KEY = "cart"


def _merge_lines(lines: list[CartLine]) -> dict[str, CartLine]:
    merged: dict[str, CartLine] = {}
    for line in lines:
        key = str(line.productId)
        if key in merged:
            merged[key].quantity += line.quantity
        else:
            merged[key] = CartLine(productId=line.productId, quantity=line.quantity)
    return merged


class CheckoutWorkflow:
    def __init__(
        self,
        products: ProductRepository,
        sales: SalesRepository,
        shifts: ActiveShiftRepository,
        local: LocalStore,
    ):
        self.products = products
        self.sales = sales
        self.shifts = shifts
        self.local = local

    # --- Sepet ---

    def cart(self) -> list[CartLine]:
        return [CartLine(productId=r["productId"], quantity=r["quantity"]) for r in self.local.read_json(CART_KEY, [])]

    def _save_cart(self, lines: list[CartLine]) -> None:
        self.local.write_json(CART_KEY, [line.to_dict() for line in lines])

    def add_to_cart(self, product_id: Any, quantity: Any = 1) -> list[CartLine]:
        qty = parse_quantity(quantity, allow_unlimited=False)
        if qty <= 0:
            raise ValidationError(f"Miktar pozitif olmalı: {quantity!r}")

        product = ProductRepository.find(self.products.get(), product_id)
        lines = self.cart()
        in_cart = sum(line.quantity for line in lines if str(line.productId) == str(product.id))
        if not product.is_unlimited and in_cart + qty > product.quantity:
            raise InsufficientStockError(
                f"Yetersiz stok: {product.name} mevcut={product.quantity}, istenen={in_cart + qty}"
            )

        lines.append(CartLine(productId=product.id, quantity=qty))
        merged = list(_merge_lines(lines).values())
        self._save_cart(merged)
        return merged

    def remove_from_cart(self, product_id: Any) -> list[CartLine]:
        lines = [line for line in self.cart() if str(line.productId) != str(product_id)]
        self._save_cart(lines)
        return lines

    def clear_cart(self) -> None:
        self._save_cart([])

    def cart_total(self) -> float:
        products = self.products.cached()
        total = 0
        for line in self.cart():
            total += ProductRepository.find(products, line.productId).price * line.quantity
        return total

    # --- Satış ---

    def checkout(self, payment_method: Any, lines: Optional[list[CartLine]] = None) -> Sale:
        """Sepeti satışa dönüştürür.

        ``lines`` verilmezse kayıtlı sepet kullanılır ve başarıdan sonra boşaltılır.
        """
        form = CheckoutForm.parse(payment_method)
        use_stored_cart = lines is None
        merged = _merge_lines(self.cart() if use_stored_cart else lines)
        if not merged:
            raise ValidationError("Sepet boş")
        for line in merged.values():
            if parse_quantity(line.quantity, allow_unlimited=False) <= 0:
                raise ValidationError(f"Miktar pozitif olmalı: {line.quantity!r}")

        shift = self.shifts.get()
        if shift is None:
            raise ShiftStateError("Aktif vardiya yok - önce vardiya açın")

        products = self.products.get()
        items: list[SaleItem] = []
        for line in merged.values():
            product = ProductRepository.find(products, line.productId)
            if not product.is_unlimited and product.quantity < line.quantity:
                raise InsufficientStockError(
                    f"Yetersiz stok: {product.name} mevcut={product.quantity}, istenen={line.quantity}"
                )
            items.append(SaleItem(productId=product.id, name=product.name, price=product.price, quantity=line.quantity))

        for item in items:
            product = ProductRepository.find(products, item.productId)
            if not product.is_unlimited:
                product.quantity -= item.quantity

        sale = Sale(
            id=str(uuid.uuid4()),
            items=items,
            total=sum(item.line_total for item in items),
            paymentMethod=form.paymentMethod,
            shiftId=shift.id,
        )

        self.products.save(products)
        self.sales.record(sale)

        shift.sales.append(sale.id)
        shift.total += sale.total
        if sale.paymentMethod == PaymentMethod.CASH:
            shift.cashTotal += sale.total
        else:
            shift.momoTotal += sale.total
        self.shifts.save(shift)

        if use_stored_cart:
            self.clear_cart()
        logger.info("Satış tamamlandı: %s (%s %s)", sale.id, sale.total, sale.paymentMethod.value)
        return sale
