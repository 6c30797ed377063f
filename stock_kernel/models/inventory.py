"""
InventoryRecord -- the ledger row for one (product, warehouse) pair.

Contract:
    The ledger is the source of truth for current quantity.  Rows are
    created lazily by ``InventoryLedger.adjust`` on the first movement into
    a warehouse and are only ever changed through that service.

Invariants (also enforced by CHECK constraints):
    - available_quantity >= 0
    - reserved_quantity >= 0
    - total_quantity == available_quantity + reserved_quantity
    - (product_id, warehouse_id) is unique
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import Base, UUIDString
from stock_kernel.models.catalog import Product, Warehouse


class InventoryRecord(Base):
    __tablename__ = "inventory"

    __table_args__ = (
        UniqueConstraint("product_id", "warehouse_id", name="uq_inventory_product_warehouse"),
        CheckConstraint("available_quantity >= 0", name="ck_inventory_available"),
        CheckConstraint("reserved_quantity >= 0", name="ck_inventory_reserved"),
        CheckConstraint(
            "total_quantity = available_quantity + reserved_quantity",
            name="ck_inventory_total",
        ),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("products.id"), nullable=False
    )
    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )

    available_quantity: Mapped[int] = mapped_column(default=0, nullable=False)
    reserved_quantity: Mapped[int] = mapped_column(default=0, nullable=False)
    total_quantity: Mapped[int] = mapped_column(default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    product: Mapped[Product] = relationship()
    warehouse: Mapped[Warehouse] = relationship()

    def __repr__(self) -> str:
        return (
            f"<InventoryRecord product={self.product_id} warehouse={self.warehouse_id} "
            f"avail={self.available_quantity} rsv={self.reserved_quantity}>"
        )

    def to_dto(self):
        from stock_kernel.domain.dtos import InventoryLevel

        return InventoryLevel(
            product_id=self.product_id,
            warehouse_id=self.warehouse_id,
            available_quantity=self.available_quantity,
            reserved_quantity=self.reserved_quantity,
            total_quantity=self.total_quantity,
        )
