"""
Transfers Module Service (``stock_modules.transfers.service``).

Responsibility
--------------
Orchestrates stock transfers between two warehouses.  Creation checks that
the source currently holds the requested quantities but reserves nothing;
the stock only moves on completion, as one ``transfer_out`` at the source
and one ``transfer_in`` at the destination per line.

Invariants
----------
- Each public method owns its transaction boundary (commit / rollback).
- Completion is all-or-nothing: if any line is short at the source, no
  ledger row, log entry or status change from that call survives.
- Of two concurrent completions of the same transfer exactly one applies
  its ledger effects; the other fails with ``InvalidTransitionError``.

Failure Modes
-------------
- ``InsufficientInventoryError`` -- source short at creation or completion.
- ``InvalidTransitionError`` -- wrong status or a concurrent transition won.
- ``ValidationError`` -- same source and destination, bad quantity,
  inactive product or warehouse.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from stock_config.schema import NumberingConfig, PolicyConfig
from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.dtos import StockTransferInfo
from stock_kernel.domain.quantities import AVAILABLE
from stock_kernel.exceptions import InsufficientInventoryError, ValidationError
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.stock_transfer import StockTransfer, StockTransferItem, TransferStatus
from stock_kernel.models.transaction import TransactionType
from stock_kernel.services.catalog_service import CatalogService
from stock_kernel.services.ledger_service import InventoryLedger
from stock_kernel.services.sequence_service import SequenceService
from stock_kernel.services.status_guard import StatusGuard
from stock_kernel.services.transaction_log import TransactionLog
from stock_modules._helpers import require_lines, require_quantity
from stock_modules.transfers.models import TransferLineRequest
from stock_modules.transfers.workflows import TRANSFER_WORKFLOW

logger = get_logger("modules.transfers.service")


class StockTransferService:
    """
    Transfer lifecycle: create, dispatch, complete, cancel.

    Transaction boundary: this service commits on success, rolls back on
    failure.
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

    def create_transfer(
        self,
        from_warehouse_id: UUID,
        to_warehouse_id: UUID,
        items: Sequence[TransferLineRequest],
        actor_id: UUID,
        transfer_date: date | None = None,
        notes: str | None = None,
    ) -> StockTransferInfo:
        """
        Create a pending transfer numbered ``TR-YYYYMMDD-NNNN``.

        Raises:
            ValidationError: source equals destination, bad lines.
            InsufficientInventoryError: the source does not currently hold
                a product's total requested quantity.
        """
        with LogContext.bind(actor_id=actor_id, operation="create_transfer"):
            try:
                if from_warehouse_id == to_warehouse_id:
                    raise ValidationError(
                        "to_warehouse_id", "source and destination warehouse must differ"
                    )
                lines = require_lines(items)
                self._catalog.require_active_warehouse(from_warehouse_id)
                self._catalog.require_active_warehouse(to_warehouse_id)

                transfer = StockTransfer(
                    transfer_number=self._sequences.next_document_number(
                        self._numbering.transfer_prefix,
                        self._clock.today(),
                        self._numbering.width,
                    ),
                    from_warehouse_id=from_warehouse_id,
                    to_warehouse_id=to_warehouse_id,
                    status=TransferStatus.PENDING.value,
                    transfer_date=transfer_date,
                    notes=notes,
                    created_by_id=actor_id,
                )

                requested: dict[UUID, int] = defaultdict(int)
                for number, line in enumerate(lines, start=1):
                    self._catalog.require_active_product(line.product_id)
                    quantity = require_quantity(line.quantity, item_id=str(line.product_id))
                    transfer.items.append(
                        StockTransferItem(
                            line_number=number,
                            product_id=line.product_id,
                            quantity=quantity,
                        )
                    )
                    requested[line.product_id] += quantity

                if self._policy.validate_transfer_stock_on_create:
                    self._check_source_stock(from_warehouse_id, requested)

                self._session.add(transfer)
                self._session.flush()
                info = transfer.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

        logger.info(
            "transfer_created",
            extra={
                "transfer_id": str(info.id),
                "transfer_number": info.transfer_number,
                "from_warehouse_id": str(from_warehouse_id),
                "to_warehouse_id": str(to_warehouse_id),
                "line_count": len(info.lines),
            },
        )
        return info

    def dispatch_transfer(self, transfer_id: UUID, actor_id: UUID) -> StockTransferInfo:
        """pending -> in_transit.  Sets transfer_date if it was not planned."""
        with LogContext.bind(
            actor_id=actor_id, reference_id=transfer_id, operation="dispatch_transfer"
        ):
            try:
                transfer = self._guard.acquire(StockTransfer, transfer_id)
                values = {}
                if transfer.transfer_date is None:
                    values["transfer_date"] = self._clock.today()
                self._guard.transition(transfer, TRANSFER_WORKFLOW, "dispatch", actor_id, **values)
                info = transfer.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
        return info

    def complete_transfer(self, transfer_id: UUID, actor_id: UUID) -> StockTransferInfo:
        """
        in_transit -> completed.

        Per line: source available -q with ``transfer_out`` -q, destination
        available +q (record created if absent) with ``transfer_in`` +q.
        """
        with LogContext.bind(
            actor_id=actor_id, reference_id=transfer_id, operation="complete_transfer"
        ):
            try:
                transfer = self._guard.acquire(StockTransfer, transfer_id)
                transition = self._guard.resolve(transfer, TRANSFER_WORKFLOW, "complete")

                for item in transfer.items:
                    self._ledger.adjust(
                        item.product_id, transfer.from_warehouse_id, -item.quantity, 0
                    )
                    self._log.record(
                        product_id=item.product_id,
                        warehouse_id=transfer.from_warehouse_id,
                        transaction_type=TransactionType.TRANSFER_OUT,
                        quantity=-item.quantity,
                        reference_id=transfer.id,
                        performed_by=actor_id,
                    )
                    self._ledger.adjust(
                        item.product_id, transfer.to_warehouse_id, item.quantity, 0
                    )
                    self._log.record(
                        product_id=item.product_id,
                        warehouse_id=transfer.to_warehouse_id,
                        transaction_type=TransactionType.TRANSFER_IN,
                        quantity=item.quantity,
                        reference_id=transfer.id,
                        performed_by=actor_id,
                    )

                self._guard.swap(
                    transfer, transition, actor_id, completed_date=self._clock.today()
                )
                info = transfer.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning(
                    "transfer_completion_failed",
                    extra={"transfer_id": str(transfer_id)},
                    exc_info=True,
                )
                raise

        logger.info(
            "transfer_completed",
            extra={
                "transfer_id": str(transfer_id),
                "units_moved": sum(line.quantity for line in info.lines),
            },
        )
        return info

    def cancel_transfer(self, transfer_id: UUID, actor_id: UUID) -> StockTransferInfo:
        """pending|in_transit -> cancelled.  No ledger effect."""
        with LogContext.bind(
            actor_id=actor_id, reference_id=transfer_id, operation="cancel_transfer"
        ):
            try:
                transfer = self._guard.acquire(StockTransfer, transfer_id)
                self._guard.transition(transfer, TRANSFER_WORKFLOW, "cancel", actor_id)
                info = transfer.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
        return info

    def _check_source_stock(self, warehouse_id: UUID, requested: dict[UUID, int]) -> None:
        for product_id, quantity in requested.items():
            record = self._ledger.get(product_id, warehouse_id)
            on_hand = record.available_quantity if record is not None else 0
            if on_hand < quantity:
                raise InsufficientInventoryError(
                    product_id=str(product_id),
                    warehouse_id=str(warehouse_id),
                    bucket=AVAILABLE,
                    on_hand=on_hand,
                    requested=quantity,
                )
