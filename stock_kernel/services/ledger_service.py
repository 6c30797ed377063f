"""
InventoryLedger -- the single writer of InventoryRecord quantities.

Responsibility:
    Applies (available, reserved) deltas to the ledger row of one
    (product, warehouse) pair, creating the row on first use.  Every
    lifecycle transition that moves stock goes through ``adjust``.

Architecture position:
    Kernel > Services.  Called by the purchasing, sales, transfer and
    adjustment services in ``stock_modules``; pairs each call with a
    ``TransactionLog.record`` in the same unit of work.

Invariants enforced:
    - available_quantity >= 0 and reserved_quantity >= 0 after every call
      (``StockBalance.apply`` raises before anything is written).
    - total_quantity == available_quantity + reserved_quantity.
    - Row lock: the ledger row is read with ``SELECT ... FOR UPDATE`` so
      concurrent adjusters of the same row serialize.

Failure modes:
    - InsufficientInventoryError: a bucket would go negative.  The row is
      left untouched (and not created if it did not exist).
    - NotFoundError: product or warehouse does not exist.
    - IntegrityError on a concurrent first insert is absorbed by a
      savepoint and the row is re-read under lock.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from stock_kernel.domain.quantities import StockBalance
from stock_kernel.exceptions import NotFoundError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.catalog import Product, Warehouse
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.services.base import BaseService

logger = get_logger("services.ledger")


class InventoryLedger(BaseService[InventoryRecord]):
    """
    Ledger of available/reserved quantities per (product, warehouse).

    Contract:
        ``adjust`` flushes but never commits; the caller owns the
        transaction and must record a matching transaction-log entry.
    """

    def get(self, product_id: UUID, warehouse_id: UUID) -> InventoryRecord | None:
        """Return the ledger row without locking or creating it."""
        return self.session.execute(
            select(InventoryRecord).where(
                InventoryRecord.product_id == product_id,
                InventoryRecord.warehouse_id == warehouse_id,
            )
        ).scalar_one_or_none()

    def adjust(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        available_delta: int,
        reserved_delta: int,
    ) -> InventoryRecord:
        """
        Apply both deltas to the (product, warehouse) ledger row.

        Preconditions:
            - The caller is inside an open transaction.
        Postconditions:
            - The row exists and holds the new balance (flushed).

        Raises:
            InsufficientInventoryError: a bucket would go negative.
            NotFoundError: unknown product or warehouse.
        """
        record = self._lock(product_id, warehouse_id)
        if record is None:
            self._require_catalog_entries(product_id, warehouse_id)
            before = StockBalance()
        else:
            before = StockBalance(record.available_quantity, record.reserved_quantity)

        after = before.apply(
            available_delta,
            reserved_delta,
            product_id=str(product_id),
            warehouse_id=str(warehouse_id),
        )

        if record is None:
            record = self._create(product_id, warehouse_id)
            # A concurrent creator may have stocked the row already
            before = StockBalance(record.available_quantity, record.reserved_quantity)
            after = before.apply(
                available_delta,
                reserved_delta,
                product_id=str(product_id),
                warehouse_id=str(warehouse_id),
            )

        record.available_quantity = after.available
        record.reserved_quantity = after.reserved
        record.total_quantity = after.total
        self.session.flush()

        logger.info(
            "inventory_adjusted",
            extra={
                "product_id": str(product_id),
                "warehouse_id": str(warehouse_id),
                "available_delta": available_delta,
                "reserved_delta": reserved_delta,
                "available_quantity": after.available,
                "reserved_quantity": after.reserved,
            },
        )
        return record

    def reserve(self, product_id: UUID, warehouse_id: UUID, quantity: int) -> InventoryRecord:
        """Move ``quantity`` from available to reserved."""
        return self.adjust(product_id, warehouse_id, -quantity, quantity)

    def release(self, product_id: UUID, warehouse_id: UUID, quantity: int) -> InventoryRecord:
        """Move ``quantity`` from reserved back to available."""
        return self.adjust(product_id, warehouse_id, quantity, -quantity)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock(self, product_id: UUID, warehouse_id: UUID) -> InventoryRecord | None:
        return self.session.execute(
            select(InventoryRecord)
            .where(
                InventoryRecord.product_id == product_id,
                InventoryRecord.warehouse_id == warehouse_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _require_catalog_entries(self, product_id: UUID, warehouse_id: UUID) -> None:
        if self.session.get(Product, product_id) is None:
            raise NotFoundError("Product", str(product_id))
        if self.session.get(Warehouse, warehouse_id) is None:
            raise NotFoundError("Warehouse", str(warehouse_id))

    def _create(self, product_id: UUID, warehouse_id: UUID) -> InventoryRecord:
        savepoint = self.session.begin_nested()
        try:
            record = InventoryRecord(
                product_id=product_id,
                warehouse_id=warehouse_id,
                available_quantity=0,
                reserved_quantity=0,
                total_quantity=0,
            )
            self.session.add(record)
            self.session.flush()
            savepoint.commit()
            logger.debug(
                "inventory_record_created",
                extra={"product_id": str(product_id), "warehouse_id": str(warehouse_id)},
            )
            return record
        except IntegrityError:
            logger.debug(
                "inventory_record_race_retry",
                extra={"product_id": str(product_id), "warehouse_id": str(warehouse_id)},
            )
            savepoint.rollback()
            return self.session.execute(
                select(InventoryRecord)
                .where(
                    InventoryRecord.product_id == product_id,
                    InventoryRecord.warehouse_id == warehouse_id,
                )
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one()
