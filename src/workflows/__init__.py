from src.workflows.checkout import CheckoutWorkflow
from src.workflows.refund import RefundWorkflow
from src.workflows.shift import ShiftSummary, ShiftWorkflow
from src.workflows.stock import StockWorkflow

__all__ = [
    "CheckoutWorkflow",
    "RefundWorkflow",
    "ShiftSummary",
    "ShiftWorkflow",
    "StockWorkflow",
]
