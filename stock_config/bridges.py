"""
Config -> Kernel and Module Bridges.

Functions that turn a ``StockConfig`` into engines, selectors and
lifecycle services.  They live here because neither the kernel nor the
module services import the configuration loader; services receive only
the ``PolicyConfig`` / ``NumberingConfig`` sections they use.

Usage:
    from stock_config import get_active_config
    from stock_config.bridges import build_purchase_order_service, init_engine_from_config

    config = get_active_config()
    engine = init_engine_from_config(config)
    purchasing = build_purchase_order_service(session, config)
"""

from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from stock_config.schema import StockConfig
from stock_kernel.db.engine import init_engine_from_url
from stock_kernel.domain.clock import Clock
from stock_kernel.logging_config import configure_logging
from stock_kernel.selectors.inventory_selector import InventorySelector
from stock_modules.adjustments import StockAdjustmentService
from stock_modules.purchasing import PurchaseOrderService
from stock_modules.sales import SalesOrderService
from stock_modules.transfers import StockTransferService


def init_engine_from_config(config: StockConfig) -> Engine:
    """Configure logging at the configured level, then the engine."""
    configure_logging(level=config.logging.level)
    db = config.database
    return init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
    )


def build_inventory_selector(session: Session, config: StockConfig) -> InventorySelector:
    """InventorySelector using the configured default reorder level."""
    return InventorySelector(session, default_reorder_level=config.policy.default_reorder_level)


def build_purchase_order_service(
    session: Session, config: StockConfig, clock: Clock | None = None
) -> PurchaseOrderService:
    """PurchaseOrderService with the configured over-receipt tolerance and PO prefix."""
    return PurchaseOrderService(
        session, clock, policy=config.policy, numbering=config.numbering
    )


def build_sales_order_service(
    session: Session, config: StockConfig, clock: Clock | None = None
) -> SalesOrderService:
    return SalesOrderService(session, clock, numbering=config.numbering)


def build_stock_transfer_service(
    session: Session, config: StockConfig, clock: Clock | None = None
) -> StockTransferService:
    """StockTransferService with the configured create-time stock check and TR prefix."""
    return StockTransferService(
        session, clock, policy=config.policy, numbering=config.numbering
    )


def build_stock_adjustment_service(
    session: Session, config: StockConfig, clock: Clock | None = None
) -> StockAdjustmentService:
    # Adjustments read no policy; taking the config keeps every lifecycle
    # service built the same way.
    return StockAdjustmentService(session, clock)
