"""Vardiya açma/kapama iş akışı.

Aynı anda en fazla bir aktif vardiya olabilir; bu kural depo tarafından
değil bu iş akışı tarafından korunur.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from src.models.bakery import Shift, utc_now_iso
from src.models.forms import OpenShiftForm
from src.repositories.shifts import ActiveShiftRepository, ShiftHistoryRepository
from src.sync.errors import ShiftStateError

logger = logging.getLogger(__name__)


@dataclass
class ShiftSummary:
    shift_id: str
    cashier: str
    start_time: str
    end_time: Optional[str]
    sale_count: int
    refund_count: int
    cash_total: float
    momo_total: float
    total: float
    starting_cash: float
    expected_cash: float


class ShiftWorkflow:
    def __init__(self, shifts: ActiveShiftRepository, history: ShiftHistoryRepository):
        self.shifts = shifts
        self.history = history

    def current(self) -> Optional[Shift]:
        return self.shifts.get()

    def open_shift(self, cashier: Any, starting_cash: Any = 0) -> Shift:
        form = OpenShiftForm.parse(cashier, starting_cash)
        if self.shifts.get() is not None:
            raise ShiftStateError("Zaten aktif bir vardiya var")

        shift = Shift(id=str(uuid.uuid4()), cashier=form.cashier, startingCash=form.startingCash)
        self.shifts.save(shift)
        logger.info("Vardiya açıldı: %s (%s)", shift.id, shift.cashier)
        return shift

    def close_shift(self) -> Shift:
        """Aktif vardiyayı kapatır, geçmişe ekler ve aktif yuvayı boşaltır."""
        shift = self.shifts.get()
        if shift is None:
            raise ShiftStateError("Kapatılacak aktif vardiya yok")

        shift.endTime = utc_now_iso()
        self.shifts.save(shift)
        self.history.archive(shift)
        self.shifts.clear()
        logger.info("Vardiya kapandı: %s (toplam=%s)", shift.id, shift.total)
        return shift

    @staticmethod
    def summarize(shift: Shift) -> ShiftSummary:
        return ShiftSummary(
            shift_id=shift.id,
            cashier=shift.cashier,
            start_time=shift.startTime,
            end_time=shift.endTime,
            sale_count=len(shift.sales),
            refund_count=len(shift.refunds),
            cash_total=shift.cashTotal,
            momo_total=shift.momoTotal,
            total=shift.total,
            starting_cash=shift.startingCash,
            expected_cash=shift.startingCash + shift.cashTotal,
        )
