"""
Typed Exception Hierarchy for the Stock Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (a web layer, a CLI, a test) must be able to tell a missing order
from an illegal status change from a stock shortage without parsing
message strings. Every error therefore:

  1. Has its own class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA identifying the offending entity or line item

Example:
    try:
        transfers.complete_transfer(transfer_id, actor_id=actor)
    except InsufficientInventoryError as e:
        api_response(
            code=e.code,
            product=e.product_id,
            warehouse=e.warehouse_id,
            on_hand=e.on_hand,
            requested=e.requested,
        )

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    StockKernelError (base)
    |
    +-- NotFoundError
    +-- InvalidTransitionError
    +-- InsufficientInventoryError
    +-- ValidationError
    |   +-- DuplicateSkuError
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                    | When Raised
------------------------|------------------------------------------------------
NOT_FOUND               | Order, transfer, item, product or warehouse missing
INVALID_TRANSITION      | Status precondition not met (incl. lost CAS race)
INSUFFICIENT_INVENTORY  | Ledger adjustment would drive a bucket below zero
VALIDATION_ERROR        | Malformed quantity, price, name or reference
DUPLICATE_SKU           | Product SKU already registered
IMMUTABILITY_VIOLATION  | Update/delete of an append-only or committed record

===============================================================================
HANDLING PATTERNS
===============================================================================

No error is retried or queued by the kernel. A failed precondition returns
immediately and the whole transition is rolled back (ledger rows, log rows
and the status change), so the caller may simply report the error.
"""


class StockKernelError(Exception):
    """
    Base exception for all stock kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STOCK_KERNEL_ERROR"


class NotFoundError(StockKernelError):
    """An order, transfer, line item, product or warehouse does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class InvalidTransitionError(StockKernelError):
    """
    The requested status change is not allowed from the current status.

    Also raised when the status compare-and-swap finds that another
    transaction changed the status first.
    """

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_status: str,
        action: str,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} {entity_type} {entity_id} "
            f"in status '{current_status}'"
        )


class InsufficientInventoryError(StockKernelError):
    """A ledger adjustment would make available or reserved quantity negative."""

    code: str = "INSUFFICIENT_INVENTORY"

    def __init__(
        self,
        product_id: str,
        warehouse_id: str,
        bucket: str,
        on_hand: int,
        requested: int,
    ):
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        self.bucket = bucket
        self.on_hand = on_hand
        self.requested = requested
        super().__init__(
            f"Insufficient {bucket} quantity for product {product_id} "
            f"in warehouse {warehouse_id}: on hand {on_hand}, "
            f"requested {requested}"
        )


class ValidationError(StockKernelError):
    """Input failed validation (quantities, prices, names, references)."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str, item_id: str | None = None):
        self.field = field
        self.reason = reason
        self.item_id = item_id
        location = f" (item {item_id})" if item_id else ""
        super().__init__(f"Invalid {field}{location}: {reason}")


class DuplicateSkuError(ValidationError):
    """A product with this SKU already exists."""

    code: str = "DUPLICATE_SKU"

    def __init__(self, sku: str):
        self.sku = sku
        super().__init__("sku", f"SKU '{sku}' is already registered")


class ImmutabilityViolationError(StockKernelError):
    """
    Attempted to modify or delete a record that may not change.

    Covers the append-only transaction log, headers past their initial
    status, and inventory records that still hold stock.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )
