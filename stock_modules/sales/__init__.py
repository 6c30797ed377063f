"""
Sales Module (``stock_modules.sales``).

Customer orders: stock is reserved at creation, consumed at shipment and
released on cancellation.
"""

from stock_modules.sales.models import SalesLineRequest
from stock_modules.sales.service import CANCELLATION_REASON, SalesOrderService
from stock_modules.sales.workflows import SALES_ORDER_WORKFLOW

__all__ = [
    "CANCELLATION_REASON",
    "SALES_ORDER_WORKFLOW",
    "SalesLineRequest",
    "SalesOrderService",
]
