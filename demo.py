"""
Fırın POS çevrimdışı senkron demo script'i.

Bellek içi uzak depo ile çevrimdışı satış -> yeniden bağlanma -> kuyruk
boşaltma akışını adım adım gösterir. Gerçek DynamoDB ile denemek için:

    export POS_REMOTE_BACKEND="dynamodb"
    export AWS_DEFAULT_REGION="us-west-2"
    python -m data_layer.scripts.setup_aws
    python demo.py

Kullanım:
    python demo.py
"""

import logging
import os

import env_loader

from src.app import BakeryPOS
from src.settings import Settings
from src.sync.local_store import MemoryLocalStore

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")
logger = logging.getLogger("demo")


def print_notification(notification):
    print(f"   🔔 [{notification.level.value}] {notification.message}")


def main():
    os.environ.setdefault("POS_REMOTE_BACKEND", "memory")
    settings = Settings.from_env()
    pos = BakeryPOS(settings=settings, local=MemoryLocalStore())
    pos.notifications.subscribe(print_notification)

    print("=" * 60)
    print("🥖 Fırın POS - Çevrimdışı Senkron Demo")
    print(f"   Uzak depo: {settings.remote_backend}")
    print("=" * 60)

    print("\n--- 1. Başlangıç (çevrimiçi) ---")
    pos.start()
    print(f"   Ürünler: {[p.name for p in pos.products.get()]}")

    print("\n--- 2. Vardiya aç ---")
    shift = pos.shifts.open_shift("Amina", 5000)
    print(f"   Vardiya: {shift.id} (kasiyer={shift.cashier})")

    print("\n--- 3. Bağlantı kesildi, satış yapılıyor ---")
    pos.set_online(False)
    pos.checkout.add_to_cart(1, 2)
    pos.checkout.add_to_cart(4, 3)
    sale = pos.checkout.checkout("cash")
    print(f"   Satış: {sale.id} toplam={sale.total}")
    print(f"   Bekleyen senkron: {pos.pending_syncs()}")

    print("\n--- 4. Bağlantı geri geldi ---")
    pos.set_online(True)
    print(f"   Bekleyen senkron: {len(pos.pending_syncs())}")

    print("\n--- 5. İade ---")
    refunded = pos.refunds.refund(sale.id)
    print(f"   İade edildi: {refunded.id} ({refunded.refundDate})")

    print("\n--- 6. Vardiya kapat ---")
    closed = pos.shifts.close_shift()
    summary = pos.shifts.summarize(closed)
    print(f"   Toplam: {summary.total}, kasada beklenen: {summary.expected_cash}")
    print(f"   Geçmiş: {[s.id for s in pos.shift_history.get()]}")

    low = pos.stock.low_stock_alerts()
    print(f"\n   Düşük stok: {[p.name for p in low]}")
    pos.close()


if __name__ == "__main__":
    main()
