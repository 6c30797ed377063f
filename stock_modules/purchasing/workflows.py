"""
Purchase Order Workflow.

draft -> sent -> (partial ->)* received, cancelled from draft or sent.
Receiving is the only transition that touches the ledger.
"""

from stock_kernel.domain.workflow import Guard, Transition, Workflow
from stock_kernel.logging_config import get_logger
from stock_kernel.models.purchase_order import PurchaseOrderStatus

logger = get_logger("modules.purchasing.workflows")

_DRAFT = PurchaseOrderStatus.DRAFT.value
_SENT = PurchaseOrderStatus.SENT.value
_PARTIAL = PurchaseOrderStatus.PARTIAL.value
_RECEIVED = PurchaseOrderStatus.RECEIVED.value
_CANCELLED = PurchaseOrderStatus.CANCELLED.value

ALL_LINES_RECEIVED = Guard(
    name="all_lines_received",
    description="Every line has received_quantity >= quantity",
)

LINES_OUTSTANDING = Guard(
    name="lines_outstanding",
    description="At least one line is still short after the receipt",
)

PURCHASE_ORDER_WORKFLOW = Workflow(
    name="purchase_order",
    description="Supplier purchase order from draft to full receipt",
    initial_state=_DRAFT,
    states=(_DRAFT, _SENT, _PARTIAL, _RECEIVED, _CANCELLED),
    transitions=(
        Transition(_DRAFT, _SENT, action="send"),
        Transition(_SENT, _PARTIAL, action="receive", guard=LINES_OUTSTANDING, moves_stock=True),
        Transition(_SENT, _RECEIVED, action="receive", guard=ALL_LINES_RECEIVED, moves_stock=True),
        Transition(_PARTIAL, _PARTIAL, action="receive", guard=LINES_OUTSTANDING, moves_stock=True),
        Transition(_PARTIAL, _RECEIVED, action="receive", guard=ALL_LINES_RECEIVED, moves_stock=True),
        # No cancel after a receipt: received stock is already on the ledger
        Transition(_DRAFT, _CANCELLED, action="cancel"),
        Transition(_SENT, _CANCELLED, action="cancel"),
    ),
)

logger.info(
    "purchase_order_workflow_registered",
    extra={
        "workflow_name": PURCHASE_ORDER_WORKFLOW.name,
        "state_count": len(PURCHASE_ORDER_WORKFLOW.states),
        "transition_count": len(PURCHASE_ORDER_WORKFLOW.transitions),
        "initial_state": PURCHASE_ORDER_WORKFLOW.initial_state,
    },
)
