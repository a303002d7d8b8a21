"""POS hata sınıfları."""

from __future__ import annotations

from typing import Any, Optional


class PosError(Exception):
    """Tüm POS hatalarının temel sınıfı."""
    pass


class ValidationError(PosError):
    """Hatalı domain girdisi - hiçbir yazma yapılmadan reddedilir."""
    pass


class InsufficientStockError(ValidationError):
    """Yetersiz stok hatası."""
    pass


class AlreadyRefundedError(ValidationError):
    """Satış zaten iade edilmiş."""
    pass


class ShiftStateError(ValidationError):
    """Vardiya durumu işleme uygun değil (aktif vardiya yok / zaten var)."""
    pass


class NotFoundError(PosError):
    """Referans verilen varlık bulunamadı."""
    pass


class RemoteUnavailable(PosError):
    """Uzak depoya erişilemedi veya depo isteği reddetti."""
    pass


class VersionConflict(RemoteUnavailable):
    """Koşullu yazma uzak sürümle çakıştı."""

    def __init__(self, collection: str, entity_id: Any, expected_version: Optional[int]):
        super().__init__(
            f"Sürüm çakışması: {collection}/{entity_id} (beklenen={expected_version})"
        )
        self.collection = collection
        self.entity_id = entity_id
        self.expected_version = expected_version


class RetryExhausted(PosError):
    """Bekleyen senkron kaydı deneme sınırını aştı - veri uzak depoya ulaşmadı."""

    def __init__(self, record: Any):
        super().__init__(
            f"Senkron kaydı {record.id} ({record.type.value}) {record.attempts} denemeden sonra atıldı"
        )
        self.record = record
