"""
Sales Order Workflow.

pending -> processing -> shipped -> delivered, cancelled from pending or
processing.  Stock is reserved when the order is created; shipping
consumes the reservation and cancelling releases it.
"""

from stock_kernel.domain.workflow import Guard, Transition, Workflow
from stock_kernel.logging_config import get_logger
from stock_kernel.models.sales_order import SalesOrderStatus

logger = get_logger("modules.sales.workflows")

_PENDING = SalesOrderStatus.PENDING.value
_PROCESSING = SalesOrderStatus.PROCESSING.value
_SHIPPED = SalesOrderStatus.SHIPPED.value
_DELIVERED = SalesOrderStatus.DELIVERED.value
_CANCELLED = SalesOrderStatus.CANCELLED.value

RESERVATION_HELD = Guard(
    name="reservation_held",
    description="The order's reserved quantities are still on the ledger",
)

SALES_ORDER_WORKFLOW = Workflow(
    name="sales_order",
    description="Customer order from reservation to delivery",
    initial_state=_PENDING,
    states=(_PENDING, _PROCESSING, _SHIPPED, _DELIVERED, _CANCELLED),
    transitions=(
        Transition(_PENDING, _PROCESSING, action="process"),
        Transition(_PROCESSING, _SHIPPED, action="ship", guard=RESERVATION_HELD, moves_stock=True),
        Transition(_SHIPPED, _DELIVERED, action="deliver"),
        Transition(_PENDING, _CANCELLED, action="cancel", guard=RESERVATION_HELD, moves_stock=True),
        Transition(_PROCESSING, _CANCELLED, action="cancel", guard=RESERVATION_HELD, moves_stock=True),
    ),
)

logger.info(
    "sales_order_workflow_registered",
    extra={
        "workflow_name": SALES_ORDER_WORKFLOW.name,
        "state_count": len(SALES_ORDER_WORKFLOW.states),
        "transition_count": len(SALES_ORDER_WORKFLOW.transitions),
        "initial_state": SALES_ORDER_WORKFLOW.initial_state,
    },
)
