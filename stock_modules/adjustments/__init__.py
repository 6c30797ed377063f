"""Adjustments Module (``stock_modules.adjustments``): manual corrections and returns."""

from stock_modules.adjustments.service import StockAdjustmentService

__all__ = ["StockAdjustmentService"]
