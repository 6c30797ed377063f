"""Tests for the workflow value objects and the three lifecycle definitions."""

import pytest

from stock_kernel.domain.workflow import Transition, Workflow
from stock_modules.purchasing import PURCHASE_ORDER_WORKFLOW
from stock_modules.sales import SALES_ORDER_WORKFLOW
from stock_modules.transfers import TRANSFER_WORKFLOW


class TestWorkflowValidation:

    def test_unknown_initial_state_rejected(self):
        with pytest.raises(ValueError):
            Workflow("w", "", initial_state="x", states=("a",), transitions=())

    def test_transition_to_unknown_state_rejected(self):
        with pytest.raises(ValueError):
            Workflow(
                "w", "", initial_state="a", states=("a",),
                transitions=(Transition("a", "b", action="go"),),
            )


class TestPurchaseOrderWorkflow:

    def test_initial_state(self):
        assert PURCHASE_ORDER_WORKFLOW.initial_state == "draft"

    @pytest.mark.parametrize(
        "state,actions",
        [
            ("draft", ("send", "cancel")),
            ("sent", ("receive", "cancel")),
            ("partial", ("receive",)),
            ("received", ()),
            ("cancelled", ()),
        ],
    )
    def test_actions_per_state(self, state, actions):
        assert set(PURCHASE_ORDER_WORKFLOW.actions_from(state)) == set(actions)

    def test_no_cancel_after_partial_receipt(self):
        assert PURCHASE_ORDER_WORKFLOW.find("partial", "cancel") is None

    def test_receive_targets(self):
        assert PURCHASE_ORDER_WORKFLOW.find("sent", "receive", "partial") is not None
        assert PURCHASE_ORDER_WORKFLOW.find("partial", "receive", "received") is not None

    def test_only_receipts_move_stock(self):
        moving = {t.action for t in PURCHASE_ORDER_WORKFLOW.transitions if t.moves_stock}
        assert moving == {"receive"}


class TestSalesOrderWorkflow:

    @pytest.mark.parametrize("state", ["delivered", "cancelled"])
    def test_terminal_states(self, state):
        assert SALES_ORDER_WORKFLOW.is_terminal(state)

    def test_cannot_cancel_after_shipping(self):
        assert SALES_ORDER_WORKFLOW.find("shipped", "cancel") is None

    def test_linear_happy_path(self):
        state = SALES_ORDER_WORKFLOW.initial_state
        for action in ("process", "ship", "deliver"):
            state = SALES_ORDER_WORKFLOW.find(state, action).to_state
        assert state == "delivered"


class TestTransferWorkflow:

    def test_complete_requires_in_transit(self):
        assert TRANSFER_WORKFLOW.find("pending", "complete") is None
        assert TRANSFER_WORKFLOW.find("in_transit", "complete").to_state == "completed"

    def test_cancel_from_pending_and_in_transit(self):
        assert TRANSFER_WORKFLOW.find("pending", "cancel") is not None
        assert TRANSFER_WORKFLOW.find("in_transit", "cancel") is not None
        assert TRANSFER_WORKFLOW.find("completed", "cancel") is None
