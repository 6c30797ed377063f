"""
InventorySelector -- stock levels, low-stock alerts, valuation and history.

All figures come from the ledger (``inventory``) and the append-only
transaction log; nothing here writes.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from stock_kernel.domain.dtos import (
    InventoryLevel,
    LowStockAlert,
    TransactionRecord,
    WarehouseValuation,
)
from stock_kernel.models.catalog import Product, Warehouse
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.models.transaction import StockTransaction, TransactionType
from stock_kernel.selectors.base import BaseSelector

DEFAULT_REORDER_LEVEL = 10


class InventorySelector(BaseSelector[InventoryRecord]):
    """
    Read-side queries over the inventory ledger.

    ``default_reorder_level`` applies to products whose own reorder level
    is unset.
    """

    def __init__(self, session, default_reorder_level: int = DEFAULT_REORDER_LEVEL):
        super().__init__(session)
        self.default_reorder_level = default_reorder_level

    def stock_level(self, product_id: UUID, warehouse_id: UUID) -> InventoryLevel:
        """Balance of one pair; a pair with no ledger row reads as all zeros."""
        record = self.session.execute(
            select(InventoryRecord).where(
                InventoryRecord.product_id == product_id,
                InventoryRecord.warehouse_id == warehouse_id,
            )
        ).scalar_one_or_none()
        if record is None:
            return InventoryLevel(
                product_id=product_id,
                warehouse_id=warehouse_id,
                available_quantity=0,
                reserved_quantity=0,
                total_quantity=0,
            )
        return record.to_dto()

    def stock_levels(
        self,
        warehouse_id: UUID | None = None,
        product_id: UUID | None = None,
    ) -> list[InventoryLevel]:
        stmt = select(InventoryRecord)
        if warehouse_id is not None:
            stmt = stmt.where(InventoryRecord.warehouse_id == warehouse_id)
        if product_id is not None:
            stmt = stmt.where(InventoryRecord.product_id == product_id)
        stmt = stmt.order_by(InventoryRecord.warehouse_id, InventoryRecord.product_id)
        return [r.to_dto() for r in self.session.execute(stmt).scalars()]

    def low_stock_alerts(self, warehouse_id: UUID | None = None) -> list[LowStockAlert]:
        """
        Ledger rows whose total is at or below the product's reorder level.

        Sorted by largest shortage first.
        """
        threshold = func.coalesce(Product.reorder_level, self.default_reorder_level)
        stmt = (
            select(InventoryRecord, Product, Warehouse)
            .join(Product, InventoryRecord.product_id == Product.id)
            .join(Warehouse, InventoryRecord.warehouse_id == Warehouse.id)
            .where(
                Product.is_active.is_(True),
                InventoryRecord.total_quantity <= threshold,
            )
        )
        if warehouse_id is not None:
            stmt = stmt.where(InventoryRecord.warehouse_id == warehouse_id)

        alerts = []
        for record, product, warehouse in self.session.execute(stmt):
            level = (
                product.reorder_level
                if product.reorder_level is not None
                else self.default_reorder_level
            )
            alerts.append(
                LowStockAlert(
                    product_id=product.id,
                    sku=product.sku,
                    product_name=product.name,
                    warehouse_id=warehouse.id,
                    warehouse_name=warehouse.name,
                    total_quantity=record.total_quantity,
                    reorder_level=level,
                    shortage=level - record.total_quantity,
                )
            )
        alerts.sort(key=lambda a: (-a.shortage, a.sku, a.warehouse_name))
        return alerts

    def valuation_by_warehouse(self) -> list[WarehouseValuation]:
        """Sum of total_quantity x cost_price per warehouse, by name."""
        stmt = (
            select(
                Warehouse.id,
                Warehouse.name,
                func.count(InventoryRecord.id),
                func.coalesce(func.sum(InventoryRecord.total_quantity), 0),
            )
            .join(InventoryRecord, InventoryRecord.warehouse_id == Warehouse.id)
            .group_by(Warehouse.id, Warehouse.name)
            .order_by(Warehouse.name)
        )
        totals = {
            row[0]: (row[1], row[2], int(row[3]))
            for row in self.session.execute(stmt)
        }

        # Decimal arithmetic in Python keeps SQLite and PostgreSQL results equal
        values: dict[UUID, Decimal] = {wid: Decimal("0") for wid in totals}
        priced = self.session.execute(
            select(InventoryRecord.warehouse_id, InventoryRecord.total_quantity, Product.cost_price)
            .join(Product, InventoryRecord.product_id == Product.id)
        )
        for warehouse_id, quantity, cost in priced:
            values[warehouse_id] += Decimal(quantity) * Decimal(cost)

        return [
            WarehouseValuation(
                warehouse_id=wid,
                warehouse_name=name,
                product_count=count,
                total_quantity=quantity,
                total_value=values[wid],
            )
            for wid, (name, count, quantity) in totals.items()
        ]

    def movement_history(
        self,
        product_id: UUID | None = None,
        warehouse_id: UUID | None = None,
        types: Iterable[TransactionType | str] | None = None,
        reference_id: UUID | None = None,
        limit: int | None = None,
    ) -> list[TransactionRecord]:
        """Transaction-log entries, newest first."""
        stmt = select(StockTransaction)
        if product_id is not None:
            stmt = stmt.where(StockTransaction.product_id == product_id)
        if warehouse_id is not None:
            stmt = stmt.where(StockTransaction.warehouse_id == warehouse_id)
        if types is not None:
            stmt = stmt.where(
                StockTransaction.transaction_type.in_([TransactionType(t).value for t in types])
            )
        if reference_id is not None:
            stmt = stmt.where(StockTransaction.reference_id == reference_id)
        stmt = stmt.order_by(StockTransaction.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return [t.to_dto() for t in self.session.execute(stmt).scalars()]
