"""Kernel services: flush-only writers used by the lifecycle modules."""

from stock_kernel.services.catalog_service import CatalogService
from stock_kernel.services.ledger_service import InventoryLedger
from stock_kernel.services.sequence_service import SequenceCounter, SequenceService
from stock_kernel.services.status_guard import StatusGuard
from stock_kernel.services.transaction_log import TransactionLog

__all__ = [
    "CatalogService",
    "InventoryLedger",
    "SequenceCounter",
    "SequenceService",
    "StatusGuard",
    "TransactionLog",
]
