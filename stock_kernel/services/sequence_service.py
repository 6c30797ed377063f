"""
SequenceService -- document numbers from locked counter rows.

Responsibility:
    Allocates the trailing counter of ``PO-YYYYMMDD-NNNN``,
    ``SO-YYYYMMDD-NNNN`` and ``TR-YYYYMMDD-NNNN`` document numbers.  One
    counter row exists per (prefix, day); the row is read with
    ``SELECT ... FOR UPDATE`` so two concurrent creators never receive the
    same number.

Architecture position:
    Kernel > Services.  Called by the order and transfer services when a
    header is created.

Invariants enforced:
    - Counters are strictly increasing per name.  The number is never
      derived from ``MAX(number) + 1`` over the header table.
    - Transactional: a rolled-back creation returns its number.

Failure modes:
    - IntegrityError on concurrent counter creation is handled by a
      savepoint rollback and a locked re-read.
"""

from datetime import date

from sqlalchemy import String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from stock_kernel.db.base import Base
from stock_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """One named counter, e.g. ``PO-20240101``."""

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    current_value: Mapped[int] = mapped_column(nullable=False, default=0)


class SequenceService:
    """
    Contract:
        ``next_value`` returns the next integer for a name; the increment is
        committed with the caller's transaction.  Never commits.
    """

    def __init__(self, session: Session):
        self._session = session

    def next_value(self, sequence_name: str) -> int:
        """
        Lock (or create) the counter row for ``sequence_name`` and increment it.

        Postconditions:
            - Returns an integer > 0 greater than any value previously
              committed for this name.
        """
        counter = self._lock(sequence_name)

        if counter is None:
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._lock(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def next_document_number(self, prefix: str, on_date: date, width: int = 4) -> str:
        """Return ``{prefix}-{YYYYMMDD}-{counter:0{width}d}``."""
        stem = f"{prefix}-{on_date:%Y%m%d}"
        value = self.next_value(stem)
        return f"{stem}-{value:0{width}d}"

    def current_value(self, sequence_name: str) -> int | None:
        """Current value without incrementing; None if never allocated."""
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None

    def _lock(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
