"""
Sales order header and lines.

Lifecycle: pending -> processing -> shipped -> delivered, cancelled from
pending or processing (see stock_modules.sales.workflows).  Stock is
reserved at creation, consumed from the reserved bucket at shipment and
returned to the available bucket on cancellation.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import Base, TrackedBase, UUIDString


class SalesOrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class SalesOrder(TrackedBase):
    __tablename__ = "sales_orders"

    __table_args__ = (
        UniqueConstraint("order_number", name="uq_so_number"),
        Index("idx_so_status", "status"),
        Index("idx_so_warehouse", "warehouse_id"),
    )

    order_number: Mapped[str] = mapped_column(String(30), nullable=False)

    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    customer_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    shipping_address: Mapped[str | None] = mapped_column(Text, nullable=True)

    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=SalesOrderStatus.PENDING.value, nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    fulfillment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[list["SalesOrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="SalesOrderItem.line_number",
    )

    def __repr__(self) -> str:
        return f"<SalesOrder {self.order_number}: {self.status}>"

    def to_dto(self):
        from stock_kernel.domain.dtos import SalesOrderInfo, SalesOrderLine

        return SalesOrderInfo(
            id=self.id,
            order_number=self.order_number,
            customer_name=self.customer_name,
            warehouse_id=self.warehouse_id,
            status=self.status,
            total_amount=self.total_amount,
            order_date=self.order_date,
            fulfillment_date=self.fulfillment_date,
            lines=tuple(
                SalesOrderLine(
                    id=item.id,
                    line_number=item.line_number,
                    product_id=item.product_id,
                    warehouse_id=item.warehouse_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_price=item.total_price,
                )
                for item in self.items
            ),
        )


class SalesOrderItem(Base):
    __tablename__ = "sales_order_items"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_so_item_quantity"),
        CheckConstraint("unit_price >= 0", name="ck_so_item_unit_price"),
        Index("idx_so_item_order", "order_id"),
    )

    order_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("sales_orders.id"), nullable=False
    )
    line_number: Mapped[int] = mapped_column(nullable=False)
    product_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("products.id"), nullable=False
    )
    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    total_price: Mapped[Decimal] = mapped_column(nullable=False)

    order: Mapped[SalesOrder] = relationship(back_populates="items")

    @property
    def parent(self) -> SalesOrder:
        return self.order
