"""
Stock transfer header and lines.

Lifecycle: pending -> in_transit -> completed, cancelled from pending or
in_transit (see stock_modules.transfers.workflows).  Only completion touches
the ledger: the source warehouse loses the quantity, the destination gains it.
"""

from datetime import date
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import Base, TrackedBase, UUIDString


class TransferStatus(str, Enum):
    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StockTransfer(TrackedBase):
    __tablename__ = "stock_transfers"

    __table_args__ = (
        UniqueConstraint("transfer_number", name="uq_transfer_number"),
        CheckConstraint(
            "from_warehouse_id <> to_warehouse_id", name="ck_transfer_distinct_warehouses"
        ),
        Index("idx_transfer_status", "status"),
    )

    transfer_number: Mapped[str] = mapped_column(String(30), nullable=False)
    from_warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )
    to_warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=TransferStatus.PENDING.value, nullable=False
    )
    transfer_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[list["StockTransferItem"]] = relationship(
        back_populates="transfer",
        cascade="all, delete-orphan",
        order_by="StockTransferItem.line_number",
    )

    def __repr__(self) -> str:
        return f"<StockTransfer {self.transfer_number}: {self.status}>"

    def to_dto(self):
        from stock_kernel.domain.dtos import StockTransferInfo, TransferLine

        return StockTransferInfo(
            id=self.id,
            transfer_number=self.transfer_number,
            from_warehouse_id=self.from_warehouse_id,
            to_warehouse_id=self.to_warehouse_id,
            status=self.status,
            transfer_date=self.transfer_date,
            completed_date=self.completed_date,
            lines=tuple(
                TransferLine(
                    id=item.id,
                    line_number=item.line_number,
                    product_id=item.product_id,
                    quantity=item.quantity,
                )
                for item in self.items
            ),
        )


class StockTransferItem(Base):
    __tablename__ = "stock_transfer_items"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_transfer_item_quantity"),
        Index("idx_transfer_item_transfer", "transfer_id"),
    )

    transfer_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("stock_transfers.id"), nullable=False
    )
    line_number: Mapped[int] = mapped_column(nullable=False)
    product_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("products.id"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(nullable=False)

    transfer: Mapped[StockTransfer] = relationship(back_populates="items")

    @property
    def parent(self) -> StockTransfer:
        return self.transfer
