"""
Purchasing Module Service (``stock_modules.purchasing.service``).

Responsibility
--------------
Orchestrates the purchase-order lifecycle by composing the kernel's
``StatusGuard``, ``InventoryLedger`` and ``TransactionLog``.  Receiving
goods is the only step that changes stock.

Invariants
----------
- Each public method owns its transaction boundary: ``session.commit()``
  on success, ``session.rollback()`` on any failure before re-raising.
  A receipt is therefore all-or-nothing across its lines: received
  quantities, ledger rows, ``restock`` log entries and the status change.
- A line never receives more than its outstanding quantity plus the
  configured over-receipt tolerance.
- Status moves to ``received`` when every line is fully received, else to
  ``partial``.

Failure Modes
-------------
- ``NotFoundError`` -- order, line, supplier, product or warehouse missing.
- ``InvalidTransitionError`` -- wrong status or a concurrent transition won.
- ``ValidationError`` -- bad quantity, price or over-receipt.

Usage::

    service = PurchaseOrderService(session, clock)
    po = service.create_order(
        supplier_id=supplier_id, warehouse_id=wh_id,
        items=[PurchaseLineRequest(product_id, 100, Decimal("4.50"))],
        actor_id=actor_id,
    )
    service.send_order(po.id, actor_id=actor_id)
    service.receive_items(po.id, {po.lines[0].id: 60}, actor_id=actor_id)
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from stock_config.schema import NumberingConfig, PolicyConfig
from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.dtos import PurchaseOrderInfo
from stock_kernel.exceptions import NotFoundError, ValidationError
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from stock_kernel.models.transaction import TransactionType
from stock_kernel.services.catalog_service import CatalogService
from stock_kernel.services.ledger_service import InventoryLedger
from stock_kernel.services.sequence_service import SequenceService
from stock_kernel.services.status_guard import StatusGuard
from stock_kernel.services.transaction_log import TransactionLog
from stock_modules._helpers import require_lines, require_price, require_quantity
from stock_modules.purchasing.models import PurchaseLineRequest
from stock_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW

logger = get_logger("modules.purchasing.service")


class PurchaseOrderService:
    """
    Purchase-order lifecycle: create, send, receive, cancel.

    Transaction boundary: this service commits on success, rolls back on
    failure.  Kernel services only flush.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: PolicyConfig | None = None,
        numbering: NumberingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._policy = policy or PolicyConfig()
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
        supplier_id: UUID,
        warehouse_id: UUID,
        items: Sequence[PurchaseLineRequest],
        actor_id: UUID,
        expected_date: date | None = None,
        notes: str | None = None,
    ) -> PurchaseOrderInfo:
        """
        Create a draft purchase order numbered ``PO-YYYYMMDD-NNNN``.

        Raises:
            ValidationError: no lines, bad quantity or price, inactive
                supplier, product or warehouse.
            NotFoundError: unknown supplier, product or warehouse.
        """
        with LogContext.bind(actor_id=actor_id, operation="create_purchase_order"):
            try:
                lines = require_lines(items)
                self._catalog.require_active_supplier(supplier_id)
                self._catalog.require_active_warehouse(warehouse_id)

                po = PurchaseOrder(
                    po_number=self._sequences.next_document_number(
                        self._numbering.purchase_order_prefix,
                        self._clock.today(),
                        self._numbering.width,
                    ),
                    supplier_id=supplier_id,
                    warehouse_id=warehouse_id,
                    status=PurchaseOrderStatus.DRAFT.value,
                    expected_date=expected_date,
                    notes=notes,
                    created_by_id=actor_id,
                )

                total = Decimal("0")
                for number, line in enumerate(lines, start=1):
                    self._catalog.require_active_product(line.product_id)
                    quantity = require_quantity(line.quantity, item_id=str(line.product_id))
                    unit_price = require_price(line.unit_price, item_id=str(line.product_id))
                    po.items.append(
                        PurchaseOrderItem(
                            line_number=number,
                            product_id=line.product_id,
                            quantity=quantity,
                            unit_price=unit_price,
                            received_quantity=0,
                        )
                    )
                    total += quantity * unit_price
                po.total_amount = total

                self._session.add(po)
                self._session.flush()
                info = po.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

        logger.info(
            "purchase_order_created",
            extra={
                "po_id": str(info.id),
                "po_number": info.po_number,
                "line_count": len(info.lines),
                "total_amount": str(info.total_amount),
            },
        )
        return info

    # =========================================================================
    # Transitions
    # =========================================================================

    def send_order(self, po_id: UUID, actor_id: UUID) -> PurchaseOrderInfo:
        """draft -> sent.  No ledger effect."""
        return self._status_only(po_id, "send", actor_id)

    def cancel_order(self, po_id: UUID, actor_id: UUID) -> PurchaseOrderInfo:
        """draft|sent -> cancelled.  Not allowed once anything was received."""
        return self._status_only(po_id, "cancel", actor_id)

    def receive_items(
        self,
        po_id: UUID,
        receipts: Mapping[UUID, int],
        actor_id: UUID,
    ) -> PurchaseOrderInfo:
        """
        Record receipt of goods against lines of a sent or partial order.

        Args:
            receipts: item id -> quantity received now.  Zero entries are
                ignored; at least one positive entry is required.

        Postconditions:
            - Each listed line's received_quantity grew by its quantity.
            - The order warehouse's available stock grew by the same amount,
              with one ``restock`` log entry per line.
            - Status is ``received`` (with received_date) or ``partial``.

        Raises:
            InvalidTransitionError: order not in sent or partial.
            NotFoundError: order or line missing.
            ValidationError: negative or over-receipt quantity.
        """
        with LogContext.bind(
            actor_id=actor_id, reference_id=po_id, operation="receive_purchase_order"
        ):
            try:
                po = self._guard.acquire(PurchaseOrder, po_id)
                self._guard.resolve(po, PURCHASE_ORDER_WORKFLOW, "receive")

                accepted = self._validate_receipts(po, receipts)

                for item, quantity in accepted:
                    item.received_quantity += quantity
                    self._ledger.adjust(item.product_id, po.warehouse_id, quantity, 0)
                    self._log.record(
                        product_id=item.product_id,
                        warehouse_id=po.warehouse_id,
                        transaction_type=TransactionType.RESTOCK,
                        quantity=quantity,
                        reference_id=po.id,
                        performed_by=actor_id,
                        reason=f"Received against {po.po_number}",
                    )

                if po.is_fully_received:
                    target = PurchaseOrderStatus.RECEIVED.value
                    values = {"received_date": self._clock.today()}
                else:
                    target = PurchaseOrderStatus.PARTIAL.value
                    values = {}
                transition = self._guard.resolve(
                    po, PURCHASE_ORDER_WORKFLOW, "receive", to_state=target
                )
                self._guard.swap(po, transition, actor_id, **values)

                info = po.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning(
                    "purchase_order_receipt_failed",
                    extra={"po_id": str(po_id)},
                    exc_info=True,
                )
                raise

        logger.info(
            "purchase_order_received",
            extra={
                "po_id": str(po_id),
                "status": info.status,
                "lines_received": len(accepted),
                "units_received": sum(q for _, q in accepted),
            },
        )
        return info

    # =========================================================================
    # Internals
    # =========================================================================

    def _status_only(self, po_id: UUID, action: str, actor_id: UUID) -> PurchaseOrderInfo:
        with LogContext.bind(
            actor_id=actor_id, reference_id=po_id, operation=f"{action}_purchase_order"
        ):
            try:
                po = self._guard.acquire(PurchaseOrder, po_id)
                self._guard.transition(po, PURCHASE_ORDER_WORKFLOW, action, actor_id)
                info = po.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
        return info

    def _validate_receipts(
        self,
        po: PurchaseOrder,
        receipts: Mapping[UUID, int],
    ) -> list[tuple[PurchaseOrderItem, int]]:
        items = {item.id: item for item in po.items}
        tolerance = self._policy.over_receipt_tolerance_percent
        accepted: list[tuple[PurchaseOrderItem, int]] = []

        for item_id, quantity in (receipts or {}).items():
            if isinstance(quantity, bool) or not isinstance(quantity, int):
                raise ValidationError(
                    "received_quantity", f"must be a whole number, got {quantity!r}", str(item_id)
                )
            if quantity < 0:
                raise ValidationError(
                    "received_quantity", f"cannot be negative, got {quantity}", str(item_id)
                )
            item = items.get(item_id)
            if item is None:
                raise NotFoundError("PurchaseOrderItem", str(item_id))
            if quantity == 0:
                continue

            ceiling = item.quantity + (item.quantity * tolerance) // 100
            allowed = max(ceiling - item.received_quantity, 0)
            if quantity > allowed:
                raise ValidationError(
                    "received_quantity",
                    f"receiving {quantity} exceeds the {allowed} still receivable",
                    str(item_id),
                )
            accepted.append((item, quantity))

        if not accepted:
            raise ValidationError("receipts", "no positive quantities to receive")
        return accepted
