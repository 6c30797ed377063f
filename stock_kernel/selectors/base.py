"""
Module: stock_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors.  Selectors
    are the read side of the kernel: stock levels, alerts, valuation,
    movement history and order lookups.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/dtos.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors never call session.add(), session.delete(),
      session.flush() or session.commit().
    - DTO return convention: selectors return frozen dataclasses, never ORM
      instances.
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from stock_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Accepts a Session from the caller, performs read-only queries and
        returns DTOs.
    """

    def __init__(self, session: Session):
        self.session = session
