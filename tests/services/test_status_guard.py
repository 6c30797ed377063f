"""Tests for StatusGuard (stock_kernel/services/status_guard.py)."""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import update

from stock_kernel.exceptions import InvalidTransitionError, NotFoundError
from stock_kernel.models.purchase_order import PurchaseOrder
from stock_kernel.services.status_guard import StatusGuard
from stock_modules.purchasing import PURCHASE_ORDER_WORKFLOW, PurchaseLineRequest


@pytest.fixture
def guard(session):
    return StatusGuard(session)


@pytest.fixture
def draft_po(purchasing, catalog, actor_id):
    return purchasing.create_order(
        catalog.supplier.id,
        catalog.main.id,
        [PurchaseLineRequest(catalog.widget.id, 10, Decimal("4.00"))],
        actor_id=actor_id,
    )


class TestAcquire:

    def test_returns_locked_header(self, guard, draft_po):
        po = guard.acquire(PurchaseOrder, draft_po.id)
        assert po.id == draft_po.id
        assert po.status == "draft"

    def test_missing_header_raises_not_found(self, guard, catalog):
        with pytest.raises(NotFoundError) as exc_info:
            guard.acquire(PurchaseOrder, uuid4())
        assert exc_info.value.entity_type == "PurchaseOrder"


class TestResolve:

    def test_declared_transition_found(self, guard, draft_po):
        po = guard.acquire(PurchaseOrder, draft_po.id)
        transition = guard.resolve(po, PURCHASE_ORDER_WORKFLOW, "send")
        assert (transition.from_state, transition.to_state) == ("draft", "sent")

    def test_undeclared_transition_rejected(self, guard, draft_po, captured_logs):
        po = guard.acquire(PurchaseOrder, draft_po.id)
        with pytest.raises(InvalidTransitionError) as exc_info:
            guard.resolve(po, PURCHASE_ORDER_WORKFLOW, "receive")

        err = exc_info.value
        assert err.current_status == "draft"
        assert err.action == "receive"
        assert any(r["message"] == "transition_rejected" for r in captured_logs())

    def test_target_state_narrows_match(self, guard, draft_po):
        po = guard.acquire(PurchaseOrder, draft_po.id)
        with pytest.raises(InvalidTransitionError):
            guard.resolve(po, PURCHASE_ORDER_WORKFLOW, "send", to_state="received")


class TestSwap:
    """Compare-and-swap status writes."""

    def test_swap_updates_status_and_actor(self, guard, draft_po, actor_id):
        po = guard.acquire(PurchaseOrder, draft_po.id)
        transition = guard.resolve(po, PURCHASE_ORDER_WORKFLOW, "send")
        guard.swap(po, transition, actor_id)

        assert po.status == "sent"
        assert po.updated_by_id == actor_id

    def test_swap_fails_when_status_changed_underneath(self, guard, session, draft_po, actor_id):
        po = guard.acquire(PurchaseOrder, draft_po.id)
        transition = guard.resolve(po, PURCHASE_ORDER_WORKFLOW, "send")

        # Another writer cancels the order between resolve and swap
        session.execute(
            update(PurchaseOrder)
            .where(PurchaseOrder.id == draft_po.id)
            .values(status="cancelled")
            .execution_options(synchronize_session=False)
        )

        with pytest.raises(InvalidTransitionError) as exc_info:
            guard.swap(po, transition, actor_id)
        assert exc_info.value.current_status == "cancelled"

    def test_transition_logged(self, guard, draft_po, actor_id, captured_logs):
        po = guard.acquire(PurchaseOrder, draft_po.id)
        guard.transition(po, PURCHASE_ORDER_WORKFLOW, "cancel", actor_id)

        records = [r for r in captured_logs() if r["message"] == "status_transitioned"]
        assert records[-1]["from_state"] == "draft"
        assert records[-1]["to_state"] == "cancelled"
