"""İade iş akışı."""

from __future__ import annotations

import logging

from src.models.bakery import PaymentMethod, Sale, utc_now_iso
from src.repositories.products import ProductRepository
from src.repositories.sales import SalesRepository
from src.repositories.shifts import ActiveShiftRepository
from src.sync.errors import AlreadyRefundedError, NotFoundError, ShiftStateError

logger = logging.getLogger(__name__)


class RefundWorkflow:
    def __init__(
        self,
        products: ProductRepository,
        sales: SalesRepository,
        shifts: ActiveShiftRepository,
    ):
        self.products = products
        self.sales = sales
        self.shifts = shifts

    def refund(self, sale_id: str) -> Sale:
        """Satışı iade eder: stoklar geri eklenir, vardiya toplamları düşülür.

        Zaten iade edilmiş satış için hiçbir yazma yapılmadan
        ``AlreadyRefundedError`` fırlatılır.
        """
        sale = self.sales.find(sale_id)
        if sale.refunded:
            raise AlreadyRefundedError(f"Satış zaten iade edilmiş: {sale_id}")

        shift = self.shifts.get()
        if shift is None:
            raise ShiftStateError("Aktif vardiya yok - iade için vardiya açın")

        products = self.products.get()
        for item in sale.items:
            try:
                product = ProductRepository.find(products, item.productId)
            except NotFoundError:
                logger.warning("İade edilen ürün artık stokta yok: %s", item.productId)
                continue
            if not product.is_unlimited:
                product.quantity += item.quantity
        self.products.save(products)

        shift.refunds.append(sale.id)
        shift.total -= sale.total
        if sale.paymentMethod == PaymentMethod.CASH:
            shift.cashTotal -= sale.total
        else:
            shift.momoTotal -= sale.total
        self.shifts.save(shift)

        sale.refunded = True
        sale.refundDate = utc_now_iso()
        sale.refundShiftId = shift.id
        self.sales.record(sale)

        logger.info("Satış iade edildi: %s (%s)", sale.id, sale.total)
        return sale
