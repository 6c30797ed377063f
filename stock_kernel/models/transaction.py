"""
StockTransaction -- append-only record of one ledger quantity change.

Sign convention:
    negative = stock leaving the warehouse (sale, transfer_out, adjustment down)
    positive = stock entering (restock, transfer_in, return, adjustment up)

Rows are inserted by ``TransactionLog.record`` and never updated or deleted
(see db/immutability.py).
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import Base, UUIDString


class TransactionType(str, Enum):
    """Kind of ledger movement recorded in the log."""

    RESTOCK = "restock"
    SALE = "sale"
    RETURN = "return"
    ADJUSTMENT = "adjustment"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"


# Required sign per type: +1 inflow, -1 outflow, 0 either direction
TRANSACTION_SIGNS: dict[TransactionType, int] = {
    TransactionType.RESTOCK: 1,
    TransactionType.SALE: -1,
    TransactionType.RETURN: 1,
    TransactionType.ADJUSTMENT: 0,
    TransactionType.TRANSFER_IN: 1,
    TransactionType.TRANSFER_OUT: -1,
}


class StockTransaction(Base):
    __tablename__ = "stock_transactions"

    __table_args__ = (
        CheckConstraint("quantity <> 0", name="ck_transaction_quantity_nonzero"),
        Index("idx_transaction_product_warehouse", "product_id", "warehouse_id"),
        Index("idx_transaction_reference", "reference_id"),
        Index("idx_transaction_created", "created_at"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("products.id"), nullable=False
    )
    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )

    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)

    # Order / transfer that caused the movement
    reference_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    performed_by: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<StockTransaction {self.transaction_type} {self.quantity:+d} "
            f"product={self.product_id} warehouse={self.warehouse_id}>"
        )

    def to_dto(self):
        from stock_kernel.domain.dtos import TransactionRecord

        return TransactionRecord(
            id=self.id,
            product_id=self.product_id,
            warehouse_id=self.warehouse_id,
            transaction_type=self.transaction_type,
            quantity=self.quantity,
            reference_id=self.reference_id,
            performed_by=self.performed_by,
            reason=self.reason,
            created_at=self.created_at,
        )
