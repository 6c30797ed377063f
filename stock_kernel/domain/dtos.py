"""
Data Transfer Objects -- frozen read models crossing layer boundaries.

Responsibility:
    Services and selectors return these instead of ORM instances so that
    callers never hold a session-bound object and lifecycle logic never
    leaks query-library details (no lazy loads outside the unit of work).

Architecture position:
    Kernel > Domain -- pure data, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class ProductInfo:
    id: UUID
    sku: str
    name: str
    unit_price: Decimal
    cost_price: Decimal
    reorder_level: int | None
    reorder_quantity: int
    is_active: bool


@dataclass(frozen=True)
class WarehouseInfo:
    id: UUID
    name: str
    location: str
    capacity: int | None
    is_active: bool


@dataclass(frozen=True)
class SupplierInfo:
    id: UUID
    name: str
    contact_person: str | None
    email: str | None
    phone: str | None
    payment_terms: str | None
    is_active: bool


@dataclass(frozen=True)
class InventoryLevel:
    """Current ledger balance for one (product, warehouse) pair."""
    product_id: UUID
    warehouse_id: UUID
    available_quantity: int
    reserved_quantity: int
    total_quantity: int


@dataclass(frozen=True)
class TransactionRecord:
    """One immutable transaction-log entry."""
    id: UUID
    product_id: UUID
    warehouse_id: UUID
    transaction_type: str
    quantity: int
    reference_id: UUID | None
    performed_by: UUID
    reason: str | None
    created_at: datetime


@dataclass(frozen=True)
class PurchaseOrderLine:
    id: UUID
    line_number: int
    product_id: UUID
    quantity: int
    unit_price: Decimal
    received_quantity: int

    @property
    def outstanding_quantity(self) -> int:
        return max(self.quantity - self.received_quantity, 0)


@dataclass(frozen=True)
class PurchaseOrderInfo:
    id: UUID
    po_number: str
    supplier_id: UUID
    warehouse_id: UUID
    status: str
    total_amount: Decimal
    expected_date: date | None
    received_date: date | None
    lines: tuple[PurchaseOrderLine, ...]


@dataclass(frozen=True)
class SalesOrderLine:
    id: UUID
    line_number: int
    product_id: UUID
    warehouse_id: UUID
    quantity: int
    unit_price: Decimal
    total_price: Decimal


@dataclass(frozen=True)
class SalesOrderInfo:
    id: UUID
    order_number: str
    customer_name: str
    warehouse_id: UUID
    status: str
    total_amount: Decimal
    order_date: date
    fulfillment_date: date | None
    lines: tuple[SalesOrderLine, ...]


@dataclass(frozen=True)
class TransferLine:
    id: UUID
    line_number: int
    product_id: UUID
    quantity: int


@dataclass(frozen=True)
class StockTransferInfo:
    id: UUID
    transfer_number: str
    from_warehouse_id: UUID
    to_warehouse_id: UUID
    status: str
    transfer_date: date | None
    completed_date: date | None
    lines: tuple[TransferLine, ...]


@dataclass(frozen=True)
class LowStockAlert:
    product_id: UUID
    sku: str
    product_name: str
    warehouse_id: UUID
    warehouse_name: str
    total_quantity: int
    reorder_level: int
    shortage: int


@dataclass(frozen=True)
class WarehouseValuation:
    warehouse_id: UUID
    warehouse_name: str
    product_count: int
    total_quantity: int
    total_value: Decimal


@dataclass(frozen=True)
class StatusTotal:
    """Order count and value for one lifecycle status."""
    status: str
    order_count: int
    total_amount: Decimal


@dataclass(frozen=True)
class SupplierTotal:
    supplier_id: UUID
    supplier_name: str
    order_count: int
    item_count: int
    total_amount: Decimal


@dataclass(frozen=True)
class CustomerTotal:
    customer_name: str
    order_count: int
    item_count: int
    total_amount: Decimal


@dataclass(frozen=True)
class ProductSalesTotal:
    product_id: UUID
    sku: str
    product_name: str
    quantity_sold: int
    revenue: Decimal
