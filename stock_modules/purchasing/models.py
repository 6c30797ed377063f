"""Request types accepted by PurchaseOrderService."""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class PurchaseLineRequest:
    """One line of a new purchase order."""

    product_id: UUID
    quantity: int
    unit_price: Decimal
