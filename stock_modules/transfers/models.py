"""Request types accepted by StockTransferService."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class TransferLineRequest:
    product_id: UUID
    quantity: int
