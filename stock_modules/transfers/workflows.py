"""
Stock Transfer Workflow.

pending -> in_transit -> completed, cancelled from pending or in_transit.
Only completion moves stock: out of the source, into the destination.
"""

from stock_kernel.domain.workflow import Guard, Transition, Workflow
from stock_kernel.logging_config import get_logger
from stock_kernel.models.stock_transfer import TransferStatus

logger = get_logger("modules.transfers.workflows")

_PENDING = TransferStatus.PENDING.value
_IN_TRANSIT = TransferStatus.IN_TRANSIT.value
_COMPLETED = TransferStatus.COMPLETED.value
_CANCELLED = TransferStatus.CANCELLED.value

SOURCE_STOCK_AVAILABLE = Guard(
    name="source_stock_available",
    description="The source warehouse holds every line's quantity",
)

TRANSFER_WORKFLOW = Workflow(
    name="stock_transfer",
    description="Movement of stock between two warehouses",
    initial_state=_PENDING,
    states=(_PENDING, _IN_TRANSIT, _COMPLETED, _CANCELLED),
    transitions=(
        Transition(_PENDING, _IN_TRANSIT, action="dispatch"),
        Transition(
            _IN_TRANSIT, _COMPLETED, action="complete",
            guard=SOURCE_STOCK_AVAILABLE, moves_stock=True,
        ),
        Transition(_PENDING, _CANCELLED, action="cancel"),
        Transition(_IN_TRANSIT, _CANCELLED, action="cancel"),
    ),
)

logger.info(
    "transfer_workflow_registered",
    extra={
        "workflow_name": TRANSFER_WORKFLOW.name,
        "state_count": len(TRANSFER_WORKFLOW.states),
        "transition_count": len(TRANSFER_WORKFLOW.transitions),
        "initial_state": TRANSFER_WORKFLOW.initial_state,
    },
)
