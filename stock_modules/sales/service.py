"""
Sales Module Service (``stock_modules.sales.service``).

Responsibility
--------------
Orchestrates the sales-order lifecycle.  Ledger effects per line:

=============  ==============================  =========================
Step           Ledger (available, reserved)    Transaction log
=============  ==============================  =========================
create         (-q, +q)                        none (total unchanged)
ship           (0, -q)                         ``sale`` -q
cancel         (+q, -q)                        ``adjustment`` +q
=============  ==============================  =========================

Invariants
----------
- Each public method owns its transaction boundary (commit / rollback).
  An order whose reservation fails for any line is not created at all.
- Reservation is released exactly once: by shipping or by cancelling.

Failure Modes
-------------
- ``InsufficientInventoryError`` -- not enough available stock to reserve.
- ``InvalidTransitionError`` -- wrong status or a concurrent transition won.
- ``NotFoundError`` / ``ValidationError`` -- bad references or inputs.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from uuid import UUID

from sqlalchemy.orm import Session

from stock_config.schema import NumberingConfig
from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.dtos import SalesOrderInfo
from stock_kernel.exceptions import ValidationError
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.sales_order import SalesOrder, SalesOrderItem, SalesOrderStatus
from stock_kernel.models.transaction import TransactionType
from stock_kernel.services.catalog_service import CatalogService
from stock_kernel.services.ledger_service import InventoryLedger
from stock_kernel.services.sequence_service import SequenceService
from stock_kernel.services.status_guard import StatusGuard
from stock_kernel.services.transaction_log import TransactionLog
from stock_modules._helpers import require_lines, require_quantity, require_text
from stock_modules.sales.models import SalesLineRequest
from stock_modules.sales.workflows import SALES_ORDER_WORKFLOW

logger = get_logger("modules.sales.service")

CANCELLATION_REASON = "Order cancelled - inventory restored"


class SalesOrderService:
    """
    Sales-order lifecycle: create (reserve), process, ship, deliver, cancel.

    Transaction boundary: this service commits on success, rolls back on
    failure.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        numbering: NumberingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._numbering = numbering or NumberingConfig()

        self._catalog = CatalogService(session)
        self._guard = StatusGuard(session)
        self._ledger = InventoryLedger(session)
        self._log = TransactionLog(session, self._clock)
        self._sequences = SequenceService(session)

    # =========================================================================
    # Creation
    # =========================================================================

    def create_order(
        self,
        customer_name: str,
        warehouse_id: UUID,
        items: Sequence[SalesLineRequest],
        actor_id: UUID,
        customer_email: str | None = None,
        customer_phone: str | None = None,
        shipping_address: str | None = None,
        notes: str | None = None,
    ) -> SalesOrderInfo:
        """
        Create a pending order and reserve stock for every line.

        Postconditions:
            - For each line, available -q and reserved +q at the line's
              warehouse.  Nothing is logged since total is unchanged.

        Raises:
            InsufficientInventoryError: a line cannot be reserved.  No order
                is created and no earlier line stays reserved.
        """
        with LogContext.bind(actor_id=actor_id, operation="create_sales_order"):
            try:
                customer_name = require_text(customer_name, "customer_name", 2)
                lines = require_lines(items)
                self._catalog.require_active_warehouse(warehouse_id)

                order = SalesOrder(
                    order_number=self._sequences.next_document_number(
                        self._numbering.sales_order_prefix,
                        self._clock.today(),
                        self._numbering.width,
                    ),
                    customer_name=customer_name,
                    customer_email=customer_email,
                    customer_phone=customer_phone,
                    shipping_address=shipping_address,
                    warehouse_id=warehouse_id,
                    status=SalesOrderStatus.PENDING.value,
                    order_date=self._clock.today(),
                    notes=notes,
                    created_by_id=actor_id,
                )

                total = Decimal("0")
                for number, line in enumerate(lines, start=1):
                    product = self._catalog.require_active_product(line.product_id)
                    line_warehouse = line.warehouse_id or warehouse_id
                    if line_warehouse != warehouse_id:
                        self._catalog.require_active_warehouse(line_warehouse)
                    quantity = require_quantity(line.quantity, item_id=str(line.product_id))
                    unit_price = self._unit_price(line, product.unit_price)
                    line_total = quantity * unit_price
                    order.items.append(
                        SalesOrderItem(
                            line_number=number,
                            product_id=line.product_id,
                            warehouse_id=line_warehouse,
                            quantity=quantity,
                            unit_price=unit_price,
                            total_price=line_total,
                        )
                    )
                    total += line_total
                order.total_amount = total

                self._session.add(order)
                self._session.flush()

                for item in order.items:
                    self._ledger.reserve(item.product_id, item.warehouse_id, item.quantity)

                info = order.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

        logger.info(
            "sales_order_created",
            extra={
                "order_id": str(info.id),
                "order_number": info.order_number,
                "line_count": len(info.lines),
                "total_amount": str(info.total_amount),
            },
        )
        return info

    # =========================================================================
    # Transitions
    # =========================================================================

    def process_order(self, order_id: UUID, actor_id: UUID) -> SalesOrderInfo:
        """pending -> processing.  No ledger effect."""
        return self._status_only(order_id, "process", actor_id)

    def deliver_order(self, order_id: UUID, actor_id: UUID) -> SalesOrderInfo:
        """shipped -> delivered.  Records the fulfillment date."""
        return self._status_only(
            order_id, "deliver", actor_id, fulfillment_date=self._clock.today()
        )

    def ship_order(self, order_id: UUID, actor_id: UUID) -> SalesOrderInfo:
        """
        processing -> shipped.

        Consumes each line's reservation and logs a ``sale`` of -q.
        """
        with LogContext.bind(
            actor_id=actor_id, reference_id=order_id, operation="ship_sales_order"
        ):
            try:
                order = self._guard.acquire(SalesOrder, order_id)
                transition = self._guard.resolve(order, SALES_ORDER_WORKFLOW, "ship")

                for item in order.items:
                    self._ledger.adjust(item.product_id, item.warehouse_id, 0, -item.quantity)
                    self._log.record(
                        product_id=item.product_id,
                        warehouse_id=item.warehouse_id,
                        transaction_type=TransactionType.SALE,
                        quantity=-item.quantity,
                        reference_id=order.id,
                        performed_by=actor_id,
                    )

                self._guard.swap(order, transition, actor_id)
                info = order.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning(
                    "sales_order_ship_failed",
                    extra={"order_id": str(order_id)},
                    exc_info=True,
                )
                raise
        return info

    def cancel_order(self, order_id: UUID, actor_id: UUID) -> SalesOrderInfo:
        """
        pending|processing -> cancelled.

        Releases each line's reservation back to available and logs an
        ``adjustment`` of +q.
        """
        with LogContext.bind(
            actor_id=actor_id, reference_id=order_id, operation="cancel_sales_order"
        ):
            try:
                order = self._guard.acquire(SalesOrder, order_id)
                transition = self._guard.resolve(order, SALES_ORDER_WORKFLOW, "cancel")

                for item in order.items:
                    self._ledger.release(item.product_id, item.warehouse_id, item.quantity)
                    self._log.record(
                        product_id=item.product_id,
                        warehouse_id=item.warehouse_id,
                        transaction_type=TransactionType.ADJUSTMENT,
                        quantity=item.quantity,
                        reference_id=order.id,
                        performed_by=actor_id,
                        reason=CANCELLATION_REASON,
                    )

                self._guard.swap(order, transition, actor_id)
                info = order.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
        logger.info("sales_order_cancelled", extra={"order_id": str(order_id)})
        return info

    # =========================================================================
    # Internals
    # =========================================================================

    def _status_only(self, order_id: UUID, action: str, actor_id: UUID, **values) -> SalesOrderInfo:
        with LogContext.bind(
            actor_id=actor_id, reference_id=order_id, operation=f"{action}_sales_order"
        ):
            try:
                order = self._guard.acquire(SalesOrder, order_id)
                self._guard.transition(order, SALES_ORDER_WORKFLOW, action, actor_id, **values)
                info = order.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
        return info

    @staticmethod
    def _unit_price(line: SalesLineRequest, list_price: Decimal) -> Decimal:
        if line.unit_price is None:
            return Decimal(list_price)
        try:
            price = Decimal(str(line.unit_price))
        except (InvalidOperation, ValueError):
            raise ValidationError(
                "unit_price", f"not a valid amount: {line.unit_price!r}", str(line.product_id)
            ) from None
        if not price.is_finite() or price < 0:
            raise ValidationError(
                "unit_price", f"cannot be negative, got {line.unit_price}", str(line.product_id)
            )
        return price
