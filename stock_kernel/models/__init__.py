"""Domain models for the stock kernel."""

from stock_kernel.models.catalog import Product, Supplier, Warehouse
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.models.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from stock_kernel.models.sales_order import SalesOrder, SalesOrderItem, SalesOrderStatus
from stock_kernel.models.stock_transfer import (
    StockTransfer,
    StockTransferItem,
    TransferStatus,
)
from stock_kernel.models.transaction import (
    TRANSACTION_SIGNS,
    StockTransaction,
    TransactionType,
)

__all__ = [
    "InventoryRecord",
    "Product",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderStatus",
    "SalesOrder",
    "SalesOrderItem",
    "SalesOrderStatus",
    "StockTransaction",
    "Supplier",
    "StockTransfer",
    "StockTransferItem",
    "TRANSACTION_SIGNS",
    "TransactionType",
    "TransferStatus",
    "Warehouse",
]
