"""
StockConfig schema.

Frozen dataclasses for the YAML configuration set.  The loader parses
``sets/*.yaml`` into these types; services receive the sections they need
(``PolicyConfig`` for business rules, ``NumberingConfig`` for document
numbers) as constructor arguments.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseConfig:
    """Engine settings passed to ``stock_kernel.db.init_engine_from_url``."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class PolicyConfig:
    """Business rules that vary per deployment."""

    # Low-stock threshold for products without their own reorder level
    default_reorder_level: int = 10
    # Extra units a receipt may exceed the outstanding quantity by, in percent
    over_receipt_tolerance_percent: int = 0
    validate_transfer_stock_on_create: bool = True


@dataclass(frozen=True)
class NumberingConfig:
    purchase_order_prefix: str = "PO"
    sales_order_prefix: str = "SO"
    transfer_prefix: str = "TR"
    width: int = 4


@dataclass(frozen=True)
class StockConfig:
    """A fully parsed configuration set."""

    name: str
    database: DatabaseConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    numbering: NumberingConfig = field(default_factory=NumberingConfig)
