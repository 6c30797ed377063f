"""Read-only query selectors returning frozen DTOs."""

from stock_kernel.selectors.base import BaseSelector
from stock_kernel.selectors.inventory_selector import InventorySelector
from stock_kernel.selectors.order_selector import OrderSelector

__all__ = ["BaseSelector", "InventorySelector", "OrderSelector"]
