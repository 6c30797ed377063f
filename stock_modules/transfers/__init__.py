"""Transfers Module (``stock_modules.transfers``): warehouse-to-warehouse moves."""

from stock_modules.transfers.models import TransferLineRequest
from stock_modules.transfers.service import StockTransferService
from stock_modules.transfers.workflows import TRANSFER_WORKFLOW

__all__ = ["StockTransferService", "TRANSFER_WORKFLOW", "TransferLineRequest"]
