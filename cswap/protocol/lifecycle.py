"""
Confidential Swap Order Lifecycle

    Open --full take--> Filled
    Open --partial take--> PartialFill --partial take--> PartialFill
    PartialFill --full take--> Filled
    Open / PartialFill --cancel--> Cancelled
    Open / PartialFill --expire--> Expired

Filled, Cancelled and Expired are final.
"""

from __future__ import annotations
from enum import Enum, IntEnum
from typing import Dict, Tuple

from cswap.errors import InvalidTransitionError


class OrderStatus(IntEnum):
    OPEN = 0
    PARTIAL_FILL = 1
    FILLED = 2
    CANCELLED = 3
    EXPIRED = 4

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        return not self.is_terminal


class OrderEvent(Enum):
    FULL_TAKE = "full_take"
    PARTIAL_TAKE = "partial_take"
    CANCEL = "cancel"
    EXPIRE = "expire"


TERMINAL_STATUSES = frozenset({
    OrderStatus.FILLED,
    OrderStatus.CANCELLED,
    OrderStatus.EXPIRED,
})

TRANSITIONS: Dict[Tuple[OrderStatus, OrderEvent], OrderStatus] = {
    (OrderStatus.OPEN, OrderEvent.FULL_TAKE): OrderStatus.FILLED,
    (OrderStatus.OPEN, OrderEvent.PARTIAL_TAKE): OrderStatus.PARTIAL_FILL,
    (OrderStatus.OPEN, OrderEvent.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.OPEN, OrderEvent.EXPIRE): OrderStatus.EXPIRED,
    (OrderStatus.PARTIAL_FILL, OrderEvent.FULL_TAKE): OrderStatus.FILLED,
    (OrderStatus.PARTIAL_FILL, OrderEvent.PARTIAL_TAKE): OrderStatus.PARTIAL_FILL,
    (OrderStatus.PARTIAL_FILL, OrderEvent.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.PARTIAL_FILL, OrderEvent.EXPIRE): OrderStatus.EXPIRED,
}

# What must hold before the ledger may apply each event
TRANSITION_PRECONDITIONS: Dict[OrderEvent, str] = {
    OrderEvent.FULL_TAKE: "taker bundle verifies and fill proof shows remaining - fill = 0",
    OrderEvent.PARTIAL_TAKE: "taker bundle verifies, remaining - fill >= 1 and min-fill floor met",
    OrderEvent.CANCEL: "caller is the maker",
    OrderEvent.EXPIRE: "now >= expires_at",
}


def can_transition(status: OrderStatus, event: OrderEvent) -> bool:
    return (status, event) in TRANSITIONS


def transition(status: OrderStatus, event: OrderEvent) -> OrderStatus:
    """
    Apply an event to a status.

    Raises:
        InvalidTransitionError: If the event is not allowed from status
    """
    try:
        return TRANSITIONS[(status, event)]
    except KeyError:
        raise InvalidTransitionError(status.name, event.value)
