"""Pure domain layer: clock, balance arithmetic, workflows and DTOs."""

from stock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from stock_kernel.domain.quantities import AVAILABLE, RESERVED, StockBalance
from stock_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "AVAILABLE",
    "Clock",
    "DeterministicClock",
    "Guard",
    "RESERVED",
    "StockBalance",
    "SystemClock",
    "Transition",
    "Workflow",
]
