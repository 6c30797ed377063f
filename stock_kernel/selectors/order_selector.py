"""
OrderSelector -- header-plus-lines lookups for orders and transfers, and
order analytics (value by status, by supplier, by customer and by product).

Analytics count only committed orders unless told otherwise: purchase
orders once sent, sales orders once processing.  Amounts are summed as
Decimals in Python so SQLite and PostgreSQL agree to the cent.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from stock_kernel.domain.dtos import (
    CustomerTotal,
    ProductSalesTotal,
    PurchaseOrderInfo,
    SalesOrderInfo,
    StatusTotal,
    StockTransferInfo,
    SupplierTotal,
)
from stock_kernel.exceptions import NotFoundError
from stock_kernel.models.catalog import Product, Supplier
from stock_kernel.models.purchase_order import PurchaseOrder, PurchaseOrderStatus
from stock_kernel.models.sales_order import SalesOrder, SalesOrderItem, SalesOrderStatus
from stock_kernel.models.stock_transfer import StockTransfer
from stock_kernel.selectors.base import BaseSelector

COMMITTED_PURCHASE_STATUSES = (
    PurchaseOrderStatus.SENT.value,
    PurchaseOrderStatus.PARTIAL.value,
    PurchaseOrderStatus.RECEIVED.value,
)
COMMITTED_SALES_STATUSES = (
    SalesOrderStatus.PROCESSING.value,
    SalesOrderStatus.SHIPPED.value,
    SalesOrderStatus.DELIVERED.value,
)


def _window(stmt, model, since: datetime | None, until: datetime | None):
    if since is not None:
        stmt = stmt.where(model.created_at >= since)
    if until is not None:
        stmt = stmt.where(model.created_at < until)
    return stmt


def _status_values(statuses: Iterable) -> list[str]:
    return [getattr(s, "value", s) for s in statuses]


class OrderSelector(BaseSelector[PurchaseOrder]):

    def _one(self, model, entity_id: UUID):
        entity = self.session.execute(
            select(model)
            .where(model.id == entity_id)
            .options(selectinload(model.items))
        ).scalar_one_or_none()
        if entity is None:
            raise NotFoundError(model.__name__, str(entity_id))
        return entity

    def _list(self, model, status, warehouse_column=None, warehouse_id=None):
        stmt = select(model).options(selectinload(model.items))
        if status is not None:
            stmt = stmt.where(model.status == getattr(status, "value", status))
        if warehouse_id is not None:
            stmt = stmt.where(warehouse_column == warehouse_id)
        stmt = stmt.order_by(model.created_at.desc())
        return [e.to_dto() for e in self.session.execute(stmt).scalars()]

    def purchase_order(self, po_id: UUID) -> PurchaseOrderInfo:
        return self._one(PurchaseOrder, po_id).to_dto()

    def sales_order(self, order_id: UUID) -> SalesOrderInfo:
        return self._one(SalesOrder, order_id).to_dto()

    def transfer(self, transfer_id: UUID) -> StockTransferInfo:
        return self._one(StockTransfer, transfer_id).to_dto()

    def list_purchase_orders(
        self, status: str | None = None, warehouse_id: UUID | None = None
    ) -> list[PurchaseOrderInfo]:
        return self._list(PurchaseOrder, status, PurchaseOrder.warehouse_id, warehouse_id)

    def list_sales_orders(
        self, status: str | None = None, warehouse_id: UUID | None = None
    ) -> list[SalesOrderInfo]:
        return self._list(SalesOrder, status, SalesOrder.warehouse_id, warehouse_id)

    def list_transfers(
        self, status: str | None = None, warehouse_id: UUID | None = None
    ) -> list[StockTransferInfo]:
        """Transfers touching ``warehouse_id`` as source or destination."""
        stmt = select(StockTransfer).options(selectinload(StockTransfer.items))
        if status is not None:
            stmt = stmt.where(StockTransfer.status == getattr(status, "value", status))
        if warehouse_id is not None:
            stmt = stmt.where(
                (StockTransfer.from_warehouse_id == warehouse_id)
                | (StockTransfer.to_warehouse_id == warehouse_id)
            )
        stmt = stmt.order_by(StockTransfer.created_at.desc())
        return [t.to_dto() for t in self.session.execute(stmt).scalars()]

    # =========================================================================
    # Analytics
    # =========================================================================

    def _totals_by_status(self, model, since, until) -> list[StatusTotal]:
        stmt = _window(select(model.status, model.total_amount), model, since, until)
        counts: dict[str, int] = defaultdict(int)
        amounts: dict[str, Decimal] = defaultdict(Decimal)
        for status, amount in self.session.execute(stmt):
            counts[status] += 1
            amounts[status] += Decimal(amount)
        return [
            StatusTotal(status=status, order_count=counts[status], total_amount=amounts[status])
            for status in sorted(counts)
        ]

    def purchase_totals_by_status(
        self, since: datetime | None = None, until: datetime | None = None
    ) -> list[StatusTotal]:
        """Purchase-order count and value per status, every status included."""
        return self._totals_by_status(PurchaseOrder, since, until)

    def sales_totals_by_status(
        self, since: datetime | None = None, until: datetime | None = None
    ) -> list[StatusTotal]:
        """Sales-order count and value per status, every status included."""
        return self._totals_by_status(SalesOrder, since, until)

    def purchase_totals_by_supplier(
        self,
        statuses: Iterable = COMMITTED_PURCHASE_STATUSES,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[SupplierTotal]:
        """
        Spend per supplier, largest first (ties by name).

        ``item_count`` sums ordered units across the supplier's lines.
        """
        stmt = (
            select(PurchaseOrder, Supplier.name)
            .join(Supplier, PurchaseOrder.supplier_id == Supplier.id)
            .where(PurchaseOrder.status.in_(_status_values(statuses)))
            .options(selectinload(PurchaseOrder.items))
        )
        stmt = _window(stmt, PurchaseOrder, since, until)

        grouped: dict[UUID, list] = {}
        for po, name in self.session.execute(stmt):
            entry = grouped.setdefault(po.supplier_id, [name, 0, 0, Decimal("0")])
            entry[1] += 1
            entry[2] += sum(item.quantity for item in po.items)
            entry[3] += Decimal(po.total_amount)

        totals = [
            SupplierTotal(
                supplier_id=supplier_id,
                supplier_name=name,
                order_count=count,
                item_count=items,
                total_amount=amount,
            )
            for supplier_id, (name, count, items, amount) in grouped.items()
        ]
        totals.sort(key=lambda t: (-t.total_amount, t.supplier_name))
        return totals[:limit] if limit is not None else totals

    def sales_totals_by_customer(
        self,
        statuses: Iterable = COMMITTED_SALES_STATUSES,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[CustomerTotal]:
        """Revenue per customer name, largest first (ties by name)."""
        stmt = (
            select(SalesOrder)
            .where(SalesOrder.status.in_(_status_values(statuses)))
            .options(selectinload(SalesOrder.items))
        )
        stmt = _window(stmt, SalesOrder, since, until)

        grouped: dict[str, list] = {}
        for order in self.session.execute(stmt).scalars():
            entry = grouped.setdefault(order.customer_name, [0, 0, Decimal("0")])
            entry[0] += 1
            entry[1] += sum(item.quantity for item in order.items)
            entry[2] += Decimal(order.total_amount)

        totals = [
            CustomerTotal(
                customer_name=name, order_count=count, item_count=items, total_amount=amount
            )
            for name, (count, items, amount) in grouped.items()
        ]
        totals.sort(key=lambda t: (-t.total_amount, t.customer_name))
        return totals[:limit] if limit is not None else totals

    def top_selling_products(
        self,
        statuses: Iterable = COMMITTED_SALES_STATUSES,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = 5,
    ) -> list[ProductSalesTotal]:
        """Units and revenue per product across sales lines, most units first."""
        stmt = (
            select(
                SalesOrderItem.product_id,
                Product.sku,
                Product.name,
                SalesOrderItem.quantity,
                SalesOrderItem.total_price,
            )
            .join(SalesOrder, SalesOrderItem.order_id == SalesOrder.id)
            .join(Product, SalesOrderItem.product_id == Product.id)
            .where(SalesOrder.status.in_(_status_values(statuses)))
        )
        stmt = _window(stmt, SalesOrder, since, until)

        grouped: dict[UUID, list] = {}
        for product_id, sku, name, quantity, total_price in self.session.execute(stmt):
            entry = grouped.setdefault(product_id, [sku, name, 0, Decimal("0")])
            entry[2] += quantity
            entry[3] += Decimal(total_price)

        totals = [
            ProductSalesTotal(
                product_id=product_id,
                sku=sku,
                product_name=name,
                quantity_sold=quantity,
                revenue=revenue,
            )
            for product_id, (sku, name, quantity, revenue) in grouped.items()
        ]
        totals.sort(key=lambda t: (-t.quantity_sold, t.sku))
        return totals[:limit] if limit is not None else totals
