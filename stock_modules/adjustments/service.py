"""
Adjustments Module Service (``stock_modules.adjustments.service``).

Manual stock corrections (cycle-count differences, damage, shrinkage) and
customer returns.  Both change available stock directly and leave one log
entry: ``adjustment`` with the signed delta, or ``return`` with +q.
Each public method commits on success and rolls back on failure.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.dtos import InventoryLevel
from stock_kernel.exceptions import ValidationError
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.transaction import TransactionType
from stock_kernel.services.catalog_service import CatalogService
from stock_kernel.services.ledger_service import InventoryLedger
from stock_kernel.services.transaction_log import TransactionLog
from stock_modules._helpers import require_quantity, require_text

logger = get_logger("modules.adjustments.service")


class StockAdjustmentService:

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._catalog = CatalogService(session)
        self._ledger = InventoryLedger(session)
        self._log = TransactionLog(session, self._clock)

    def adjust_stock(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        delta: int,
        reason: str,
        actor_id: UUID,
        reference_id: UUID | None = None,
    ) -> InventoryLevel:
        """
        Add (delta > 0) or remove (delta < 0) available stock.

        Raises:
            ValidationError: zero delta or empty reason.
            InsufficientInventoryError: removing more than is available.
        """
        with LogContext.bind(actor_id=actor_id, operation="adjust_stock"):
            try:
                if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
                    raise ValidationError("delta", f"must be a non-zero whole number, got {delta!r}")
                reason = require_text(reason, "reason")
                self._catalog.get_product(product_id)
                self._catalog.get_warehouse(warehouse_id)

                record = self._ledger.adjust(product_id, warehouse_id, delta, 0)
                self._log.record(
                    product_id=product_id,
                    warehouse_id=warehouse_id,
                    transaction_type=TransactionType.ADJUSTMENT,
                    quantity=delta,
                    reference_id=reference_id,
                    performed_by=actor_id,
                    reason=reason,
                )
                level = record.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

        logger.info(
            "stock_adjusted",
            extra={
                "product_id": str(product_id),
                "warehouse_id": str(warehouse_id),
                "delta": delta,
                "reason": reason,
            },
        )
        return level

    def receive_return(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        quantity: int,
        actor_id: UUID,
        reference_id: UUID | None = None,
        reason: str | None = None,
    ) -> InventoryLevel:
        """Put returned goods back into available stock with a ``return`` entry."""
        with LogContext.bind(
            actor_id=actor_id, reference_id=reference_id, operation="receive_return"
        ):
            try:
                quantity = require_quantity(quantity)
                self._catalog.get_product(product_id)
                self._catalog.get_warehouse(warehouse_id)

                record = self._ledger.adjust(product_id, warehouse_id, quantity, 0)
                self._log.record(
                    product_id=product_id,
                    warehouse_id=warehouse_id,
                    transaction_type=TransactionType.RETURN,
                    quantity=quantity,
                    reference_id=reference_id,
                    performed_by=actor_id,
                    reason=reason,
                )
                level = record.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

        logger.info(
            "return_received",
            extra={
                "product_id": str(product_id),
                "warehouse_id": str(warehouse_id),
                "quantity": quantity,
            },
        )
        return level
