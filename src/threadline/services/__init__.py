"""Business logic services for the Threadline application."""

from .broadcaster import DeliveryBroadcaster
from .ledger import MessageLedger
from .read_state import ReadStateMachine

__all__ = [
    "DeliveryBroadcaster",
    "MessageLedger",
    "ReadStateMachine",
]
