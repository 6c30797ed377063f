"""
stock_config -- single public entrypoint for runtime configuration.

Responsibility:
    ``get_active_config()`` is the one way to obtain configuration.  It
    loads a YAML set (``sets/default.yaml`` unless a path is given),
    applies the ``STOCK_DATABASE_URL`` environment override and returns a
    frozen ``StockConfig``.

Architecture position:
    Configuration sits above ``stock_kernel`` and beside
    ``stock_modules``.  The kernel never imports from this package; callers
    hand it the values it needs.

Failure modes:
    - ``FileNotFoundError`` -- the requested set does not exist.
    - ``ValueError`` / ``KeyError`` -- schema validation failures.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path

from stock_config.loader import load_config
from stock_config.schema import (
    DatabaseConfig,
    LoggingConfig,
    NumberingConfig,
    PolicyConfig,
    StockConfig,
)

_logger = logging.getLogger("stock_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
DATABASE_URL_ENV = "STOCK_DATABASE_URL"


def get_active_config(path: Path | str | None = None) -> StockConfig:
    """
    Load the active configuration set.

    Args:
        path: Explicit YAML file.  Defaults to ``sets/default.yaml``.

    Returns:
        A frozen ``StockConfig``.
    """
    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_DIR / "default.yaml"
    config = load_config(config_path)

    override = os.environ.get(DATABASE_URL_ENV)
    if override:
        config = dataclasses.replace(
            config, database=dataclasses.replace(config.database, url=override)
        )

    _logger.info(
        "stock_config_loaded",
        extra={
            "config_name": config.name,
            "config_path": str(config_path),
            "database_url_overridden": bool(override),
        },
    )
    return config


__all__ = [
    "DATABASE_URL_ENV",
    "DatabaseConfig",
    "LoggingConfig",
    "NumberingConfig",
    "PolicyConfig",
    "StockConfig",
    "get_active_config",
]
