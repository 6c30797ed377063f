"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The transaction log is the audit trail of every ledger change.  Rows are
appended and never touched again.  Order and transfer headers, once they
have left their initial status, have already moved (or reserved) stock, so
removing them would orphan ledger effects.

SQLAlchemy fires events before UPDATE/DELETE reach the database.  The
listeners here intercept those events:

    session.flush()
         |
         v
    [before_flush]  --> _check_guarded_deletes() ----+
    [before_update] --> _check_transaction_update() -+--> ImmutabilityViolationError
    [before_delete] --> _check_transaction_delete() -+

If a check fails the flush is aborted and the database is never modified.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                  | Rule
------------------------|----------------------------------------------------
StockTransaction        | ALWAYS immutable, never deleted
PurchaseOrder (+items)  | Deletable only while status = draft
SalesOrder (+items)     | Deletable only while status = pending
StockTransfer (+items)  | Deletable only while status = pending
InventoryRecord         | Deletable only while total_quantity = 0

===============================================================================
USAGE
===============================================================================

Registered by ``init_engine_from_url``.  Registration is idempotent.

    from stock_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import get_history

from stock_kernel.exceptions import ImmutabilityViolationError
from stock_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(entity_type: str, entity_id, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _persisted_status(obj) -> str:
    """Status as stored in the database, ignoring unflushed changes."""
    history = get_history(obj, "status")
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return obj.status


def _check_guarded_deletes(session, flush_context, instances):
    """
    Block deletion of headers past their initial status and of stocked
    inventory records.

    Runs in before_flush so the deletion is refused before the flush plan
    is finalized.
    """
    from stock_kernel.models.inventory import InventoryRecord
    from stock_kernel.models.purchase_order import PurchaseOrder, PurchaseOrderItem
    from stock_kernel.models.sales_order import SalesOrder, SalesOrderItem
    from stock_kernel.models.stock_transfer import StockTransfer, StockTransferItem

    headers = {
        PurchaseOrder: "draft",
        SalesOrder: "pending",
        StockTransfer: "pending",
    }
    items = (PurchaseOrderItem, SalesOrderItem, StockTransferItem)

    for obj in list(session.deleted):
        header_type = type(obj)
        if header_type in headers:
            status = _persisted_status(obj)
            if status != headers[header_type]:
                _block(
                    header_type.__name__,
                    obj.id,
                    "DELETE",
                    f"status '{status}' has inventory effects",
                )
        elif isinstance(obj, items):
            parent = obj.parent
            if parent is not None and _persisted_status(parent) != headers[type(parent)]:
                _block(
                    type(obj).__name__,
                    obj.id,
                    "DELETE",
                    f"parent is in status '{_persisted_status(parent)}'",
                )
        elif isinstance(obj, InventoryRecord):
            if obj.total_quantity != 0:
                _block(
                    "InventoryRecord",
                    obj.id,
                    "DELETE",
                    f"record still holds {obj.total_quantity} units",
                )


def _check_transaction_update(mapper, connection, target):
    """Transaction log rows are append-only."""
    _block(
        "StockTransaction",
        target.id,
        "UPDATE",
        "transaction log entries are immutable",
    )


def _check_transaction_delete(mapper, connection, target):
    """Transaction log rows are never deleted."""
    _block(
        "StockTransaction",
        target.id,
        "DELETE",
        "transaction log entries cannot be deleted",
    )


def _listeners():
    from stock_kernel.models.transaction import StockTransaction

    return (
        (Session, "before_flush", _check_guarded_deletes),
        (StockTransaction, "before_update", _check_transaction_update),
        (StockTransaction, "before_delete", _check_transaction_delete),
    )


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners.

    Must run before any database writes.  Safe to call repeatedly.
    """
    for target, event_name, fn in _listeners():
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)
    logger.debug("immutability_listeners_registered")


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that intentionally violate the rules.
    """
    for target, event_name, fn in _listeners():
        if event.contains(target, event_name, fn):
            event.remove(target, event_name, fn)
