"""
Configuration Loader (``stock_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen
``stock_config.schema`` dataclasses.  Runtime callers go through
``stock_config.get_active_config()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; the only required key is ``database.url``.
* Unknown keys in a section are rejected so typos do not silently fall
  back to defaults.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from stock_config.schema import (
    DatabaseConfig,
    LoggingConfig,
    NumberingConfig,
    PolicyConfig,
    StockConfig,
)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _section(data: dict[str, Any], name: str, cls) -> dict[str, Any]:
    raw = data.get(name) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config section '{name}' must be a mapping, got {type(raw).__name__}")
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise ValueError(f"Unknown keys in config section '{name}': {', '.join(unknown)}")
    return raw


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    raw = _section(data, "database", DatabaseConfig)
    if not raw.get("url"):
        raise KeyError("database.url is required")
    return DatabaseConfig(**raw)


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    raw = _section(data, "logging", LoggingConfig)
    level = str(raw.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Invalid logging.level {level!r}; expected one of {_LOG_LEVELS}")
    return LoggingConfig(level=level)


def parse_policy(data: dict[str, Any]) -> PolicyConfig:
    raw = _section(data, "policy", PolicyConfig)
    policy = PolicyConfig(**raw)
    if policy.default_reorder_level < 0:
        raise ValueError("policy.default_reorder_level cannot be negative")
    if policy.over_receipt_tolerance_percent < 0:
        raise ValueError("policy.over_receipt_tolerance_percent cannot be negative")
    return policy


def parse_numbering(data: dict[str, Any]) -> NumberingConfig:
    raw = _section(data, "numbering", NumberingConfig)
    numbering = NumberingConfig(**raw)
    if numbering.width < 1:
        raise ValueError("numbering.width must be at least 1")
    return numbering


def parse_config(data: dict[str, Any], name: str = "default") -> StockConfig:
    """Parse a configuration dict (already loaded from YAML)."""
    return StockConfig(
        name=data.get("name", name),
        database=parse_database(data),
        logging=parse_logging(data),
        policy=parse_policy(data),
        numbering=parse_numbering(data),
    )


def load_config(path: Path) -> StockConfig:
    """Load and parse one configuration file."""
    return parse_config(load_yaml_file(path), name=Path(path).stem)
