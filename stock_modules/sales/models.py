"""Request types accepted by SalesOrderService."""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class SalesLineRequest:
    """
    One line of a new sales order.

    ``unit_price`` defaults to the product's list price.  ``warehouse_id``
    defaults to the order's warehouse.
    """

    product_id: UUID
    quantity: int
    unit_price: Decimal | None = None
    warehouse_id: UUID | None = None
