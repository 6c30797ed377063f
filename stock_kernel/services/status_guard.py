"""
StatusGuard -- locked header fetch and compare-and-swap status commits.

Responsibility:
    The shared skeleton of every lifecycle transition:

    1. ``acquire``  -- load the header with ``SELECT ... FOR UPDATE``.
    2. ``resolve``  -- find the workflow transition for (status, action).
    3. (caller applies ledger adjustments and log records)
    4. ``swap``     -- ``UPDATE ... SET status = :to
                       WHERE id = :id AND status = :observed``.

Architecture position:
    Kernel > Services.  Used by every service in ``stock_modules``.

Invariants enforced:
    - A transition is accepted only if the workflow declares it from the
      observed status.
    - The status write succeeds only if the row still holds the observed
      status; exactly one of two racing callers wins and the other gets
      ``InvalidTransitionError`` after its transaction is rolled back.
    - Every record logged here carries ``entity_type`` and ``action`` in
      its bound log context.

Failure modes:
    - NotFoundError: header row missing.
    - InvalidTransitionError: no transition for the current status, or the
      compare-and-swap affected zero rows.
"""

from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from stock_kernel.db.base import TrackedBase
from stock_kernel.domain.workflow import Transition, Workflow
from stock_kernel.exceptions import InvalidTransitionError, NotFoundError
from stock_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.status_guard")

HeaderType = TypeVar("HeaderType", bound=TrackedBase)


class StatusGuard:

    def __init__(self, session: Session):
        self.session = session

    def acquire(self, model: type[HeaderType], entity_id: UUID) -> HeaderType:
        """Load ``model`` by id under a row lock; NotFoundError if absent."""
        entity = self.session.execute(
            select(model)
            .where(model.id == entity_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if entity is None:
            raise NotFoundError(model.__name__, str(entity_id))
        return entity

    def resolve(
        self,
        entity: TrackedBase,
        workflow: Workflow,
        action: str,
        to_state: str | None = None,
    ) -> Transition:
        """Return the declared transition or raise InvalidTransitionError."""
        transition = workflow.find(entity.status, action, to_state)
        if transition is None:
            with LogContext.bind(entity_type=type(entity).__name__, action=action):
                logger.warning(
                    "transition_rejected",
                    extra={
                        "workflow": workflow.name,
                        "entity_id": str(entity.id),
                        "current_status": entity.status,
                        "to_state": to_state,
                    },
                )
            raise InvalidTransitionError(
                type(entity).__name__, str(entity.id), entity.status, action
            )
        return transition

    def swap(
        self,
        entity: TrackedBase,
        transition: Transition,
        actor_id: UUID,
        **values: Any,
    ) -> None:
        """
        Commit ``transition`` with a conditional UPDATE.

        ``values`` are extra header columns written in the same statement
        (``received_date``, ``fulfillment_date``, ...).

        Raises:
            InvalidTransitionError: the row no longer holds
                ``transition.from_state``.
        """
        model = type(entity)
        with LogContext.bind(entity_type=model.__name__, action=transition.action):
            result = self.session.execute(
                update(model)
                .where(model.id == entity.id, model.status == transition.from_state)
                .values(status=transition.to_state, updated_by_id=actor_id, **values)
                .execution_options(synchronize_session="fetch")
            )
            if result.rowcount != 1:
                current = self.session.execute(
                    select(model.status).where(model.id == entity.id)
                ).scalar_one_or_none()
                logger.warning(
                    "status_swap_lost",
                    extra={
                        "entity_id": str(entity.id),
                        "expected_status": transition.from_state,
                        "current_status": current,
                    },
                )
                raise InvalidTransitionError(
                    model.__name__,
                    str(entity.id),
                    current if current is not None else transition.from_state,
                    transition.action,
                )

            logger.info(
                "status_transitioned",
                extra={
                    "entity_id": str(entity.id),
                    "from_state": transition.from_state,
                    "to_state": transition.to_state,
                },
            )

    def transition(
        self,
        entity: TrackedBase,
        workflow: Workflow,
        action: str,
        actor_id: UUID,
        **values: Any,
    ) -> Transition:
        """``resolve`` then ``swap``, for transitions with no ledger effect."""
        transition = self.resolve(entity, workflow, action)
        self.swap(entity, transition, actor_id, **values)
        return transition
