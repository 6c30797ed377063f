"""
Stock balance arithmetic (``stock_kernel.domain.quantities``).

Responsibility
--------------
Pure value object for the two quantity buckets of an inventory record.
``InventoryLedger`` computes every new balance through ``StockBalance.apply``
so the non-negativity and total invariants live in one place, with no I/O.

Invariants
----------
- ``available >= 0`` and ``reserved >= 0``.
- ``total == available + reserved``.
"""

from __future__ import annotations

from dataclasses import dataclass

from stock_kernel.exceptions import InsufficientInventoryError

AVAILABLE = "available"
RESERVED = "reserved"


@dataclass(frozen=True)
class StockBalance:
    """Available and reserved units of one product in one warehouse."""

    available: int = 0
    reserved: int = 0

    def __post_init__(self):
        if self.available < 0 or self.reserved < 0:
            raise ValueError(
                f"Negative stock balance: available={self.available}, "
                f"reserved={self.reserved}"
            )

    @property
    def total(self) -> int:
        return self.available + self.reserved

    def apply(
        self,
        available_delta: int,
        reserved_delta: int,
        *,
        product_id: str = "",
        warehouse_id: str = "",
    ) -> StockBalance:
        """
        Return the balance after applying both deltas.

        Raises:
            InsufficientInventoryError: if either bucket would go negative.
                The available bucket is checked first.
        """
        new_available = self.available + available_delta
        if new_available < 0:
            raise InsufficientInventoryError(
                product_id=product_id,
                warehouse_id=warehouse_id,
                bucket=AVAILABLE,
                on_hand=self.available,
                requested=-available_delta,
            )
        new_reserved = self.reserved + reserved_delta
        if new_reserved < 0:
            raise InsufficientInventoryError(
                product_id=product_id,
                warehouse_id=warehouse_id,
                bucket=RESERVED,
                on_hand=self.reserved,
                requested=-reserved_delta,
            )
        return StockBalance(available=new_available, reserved=new_reserved)
