from src.repositories.base import BaseRepository
from src.repositories.products import ProductRepository
from src.repositories.sales import SalesRepository
from src.repositories.shifts import ActiveShiftRepository, ShiftHistoryRepository

__all__ = [
    "BaseRepository",
    "ProductRepository",
    "SalesRepository",
    "ActiveShiftRepository",
    "ShiftHistoryRepository",
]
