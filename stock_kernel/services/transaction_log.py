"""
TransactionLog -- append-only audit trail of ledger changes.

Responsibility:
    Inserts one ``StockTransaction`` per quantity change.  Never updates or
    deletes; the ORM listeners in db/immutability.py reject both.

Invariants enforced:
    - Sign convention per type (see models/transaction.py): outflow types
      carry negative quantities, inflow types positive, adjustments either.
    - Zero quantities are rejected.
    - performed_by is always present.

Non-goals:
    No read path in the kernel recomputes balances from the log; the ledger
    is the source of truth for current quantity.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.exceptions import ValidationError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.transaction import (
    TRANSACTION_SIGNS,
    StockTransaction,
    TransactionType,
)
from stock_kernel.services.base import BaseService

logger = get_logger("services.transaction_log")


class TransactionLog(BaseService[StockTransaction]):

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def record(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        transaction_type: TransactionType | str,
        quantity: int,
        reference_id: UUID | None,
        performed_by: UUID,
        reason: str | None = None,
    ) -> StockTransaction:
        """
        Append one log entry.

        Raises:
            ValidationError: unknown type, zero quantity, wrong sign for the
                type, or missing actor.
        """
        try:
            tx_type = TransactionType(transaction_type)
        except ValueError:
            raise ValidationError(
                "transaction_type", f"unknown transaction type {transaction_type!r}"
            ) from None

        if quantity == 0:
            raise ValidationError("quantity", "transaction quantity cannot be zero")

        sign = TRANSACTION_SIGNS[tx_type]
        if sign and (quantity > 0) != (sign > 0):
            direction = "positive" if sign > 0 else "negative"
            raise ValidationError(
                "quantity",
                f"{tx_type.value} transactions must be {direction}, got {quantity}",
            )

        if performed_by is None:
            raise ValidationError("performed_by", "an acting user is required")

        entry = StockTransaction(
            product_id=product_id,
            warehouse_id=warehouse_id,
            transaction_type=tx_type.value,
            quantity=quantity,
            reference_id=reference_id,
            performed_by=performed_by,
            reason=reason,
            created_at=self._clock.now(),
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "transaction_recorded",
            extra={
                "transaction_id": str(entry.id),
                "transaction_type": tx_type.value,
                "product_id": str(product_id),
                "warehouse_id": str(warehouse_id),
                "quantity": quantity,
                "reference_id": str(reference_id) if reference_id else None,
            },
        )
        return entry
