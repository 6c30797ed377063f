"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write-side service in the kernel layer.  Kernel services receive
    a SQLAlchemy ``Session`` and use ``session.flush()`` -- never
    ``session.commit()``.

Invariants enforced:
    Transaction boundaries: kernel services flush within the caller's
    transaction and never commit or roll back themselves.  The lifecycle
    services in ``stock_modules`` own commit/rollback, which is what makes
    a multi-item transition all-or-nothing.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from stock_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        self.session = session
