"""
Purchase order header and lines.

Lifecycle: draft -> sent -> partial -> received, cancelled from draft or sent
(see stock_modules.purchasing.workflows).  Receiving increases the ledger
of the order's warehouse.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import Base, TrackedBase, UUIDString


class PurchaseOrderStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PARTIAL = "partial"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class PurchaseOrder(TrackedBase):
    __tablename__ = "purchase_orders"

    __table_args__ = (
        UniqueConstraint("po_number", name="uq_po_number"),
        Index("idx_po_status", "status"),
        Index("idx_po_warehouse", "warehouse_id"),
        Index("idx_po_supplier", "supplier_id"),
    )

    po_number: Mapped[str] = mapped_column(String(30), nullable=False)
    supplier_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("suppliers.id"), nullable=False
    )
    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20), default=PurchaseOrderStatus.DRAFT.value, nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    expected_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    received_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[list["PurchaseOrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.line_number",
    )

    def __repr__(self) -> str:
        return f"<PurchaseOrder {self.po_number}: {self.status}>"

    @property
    def is_fully_received(self) -> bool:
        return bool(self.items) and all(
            item.received_quantity >= item.quantity for item in self.items
        )

    def to_dto(self):
        from stock_kernel.domain.dtos import PurchaseOrderInfo, PurchaseOrderLine

        return PurchaseOrderInfo(
            id=self.id,
            po_number=self.po_number,
            supplier_id=self.supplier_id,
            warehouse_id=self.warehouse_id,
            status=self.status,
            total_amount=self.total_amount,
            expected_date=self.expected_date,
            received_date=self.received_date,
            lines=tuple(
                PurchaseOrderLine(
                    id=item.id,
                    line_number=item.line_number,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    received_quantity=item.received_quantity,
                )
                for item in self.items
            ),
        )


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_po_item_quantity"),
        CheckConstraint("received_quantity >= 0", name="ck_po_item_received"),
        Index("idx_po_item_order", "po_id"),
    )

    po_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("purchase_orders.id"), nullable=False
    )
    line_number: Mapped[int] = mapped_column(nullable=False)
    product_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("products.id"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    received_quantity: Mapped[int] = mapped_column(default=0, nullable=False)

    order: Mapped[PurchaseOrder] = relationship(back_populates="items")

    @property
    def parent(self) -> PurchaseOrder:
        return self.order

    @property
    def outstanding_quantity(self) -> int:
        return max(self.quantity - self.received_quantity, 0)
