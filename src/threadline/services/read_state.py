"""Read-state transitions for direct messages.

Messages move through two states, ``sent`` then ``read``. The transition is
terminal and only the receiver can trigger it, either implicitly by opening
the thread (see ``MessageLedger.fetch_thread``) or explicitly through
``ReadStateMachine.mark_read`` which also sends read receipts.
"""
from __future__ import annotations

from threadline.services.broadcaster import DeliveryBroadcaster
from threadline.services.errors import SelfActionError
from threadline.services.ledger import MessageLedger


class ReadStateMachine:
    """Explicit mark-as-read with one receipt per transitioned message."""

    def __init__(self, ledger: MessageLedger, broadcaster: DeliveryBroadcaster | None = None) -> None:
        self.ledger = ledger
        self.broadcaster = broadcaster or ledger.broadcaster

    def mark_read(self, me: int, partner_id: int) -> int:
        """Mark everything ``partner_id`` sent to ``me`` as read.

        Idempotent: a repeated call finds nothing unread, transitions nothing
        and publishes nothing.

        Returns:
            Number of messages transitioned by this call.
        """
        if me == partner_id:
            raise SelfActionError("Cannot chat with yourself")
        self.ledger.require_user(partner_id)

        transitioned = self.ledger.mark_thread_read(me, partner_id)
        self.broadcaster.messages_read(transitioned, original_sender_id=partner_id)
        return len(transitioned)
