"""
Purchasing Module (``stock_modules.purchasing``).

Supplier purchase orders: draft -> sent -> partial -> received, or
cancelled before any receipt.  Receipts restock the order's warehouse.
"""

from stock_modules.purchasing.models import PurchaseLineRequest
from stock_modules.purchasing.service import PurchaseOrderService
from stock_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW

__all__ = ["PURCHASE_ORDER_WORKFLOW", "PurchaseLineRequest", "PurchaseOrderService"]
