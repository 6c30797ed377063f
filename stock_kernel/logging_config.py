"""
Structured JSON logging for the stock kernel.

Every record is one JSON line.  Three layers of fields are merged, in
precedence order:

1. The fixed header: ``ts``, ``level``, ``logger``, ``message``.
2. The bound context (``LogContext``): who is acting, on which document,
   in which lifecycle operation, and -- inside ``StatusGuard`` -- which
   entity type and workflow action.
3. The record's ``extra`` mapping (ledger deltas, balances, numbers).

When a record carries an exception, the kernel error's ``code`` and the
fields that explain it are emitted under an ``exc_`` prefix, so a stock
shortage logs ``exc_bucket``, ``exc_on_hand`` and ``exc_requested``
without any parsing of the message text.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "actor_id",
    "reference_id",
    "operation",
    "entity_type",
    "action",
)

_context: ContextVar[dict[str, str]] = ContextVar("stock_log_context", default={})


def _merged(fields: dict[str, Any]) -> dict[str, str]:
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"unknown log context field(s): {', '.join(sorted(unknown))}")
    merged = dict(_context.get())
    merged.update({k: str(v) for k, v in fields.items() if v is not None})
    return merged


class LogContext:
    """
    Fields attached to every record logged in the current thread or task.

    The context is one ContextVar holding a dict that is replaced, never
    mutated.  ``bind`` installs a merged copy and restores the previous
    dict on exit.  Only names in ``CONTEXT_FIELDS`` are accepted.
    """

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Merge non-None ``fields`` into the current context."""
        _context.set(_merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set({})

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[None]:
        """Bind ``fields`` for the duration of the block; values are stringified."""
        token = _context.set(_merged(fields))
        try:
            yield
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}

# Attributes that explain each kernel error, by error code
_EXCEPTION_FIELDS: dict[str, tuple[str, ...]] = {
    "INSUFFICIENT_INVENTORY": ("product_id", "warehouse_id", "bucket", "on_hand", "requested"),
    "INVALID_TRANSITION": ("entity_type", "entity_id", "current_status", "action"),
    "NOT_FOUND": ("entity_type", "entity_id"),
    "VALIDATION_ERROR": ("field", "reason", "item_id"),
    "DUPLICATE_SKU": ("field", "reason", "sku"),
    "IMMUTABILITY_VIOLATION": ("entity_type", "entity_id", "reason"),
}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    return str(obj)


def _exception_payload(exc: BaseException) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is None:
        return payload
    payload["exc_code"] = code
    for name in _EXCEPTION_FIELDS.get(code, ()):
        value = getattr(exc, name, None)
        if value is not None:
            payload[f"exc_{name}"] = value
    return payload


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context.get())

        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_payload(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "stock_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``stock_kernel`` namespace (``stock_kernel.<name>``)."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``stock_kernel`` logger.

    Idempotent: only the first call in a process takes effect.  Records do
    not propagate to the root logger.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)
    root_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Undo ``configure_logging``; used by the test suite."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
