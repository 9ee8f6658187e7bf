# src/threadline/models/message.py
"""Models describing direct messages between users."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from threadline.db.session import Base
from threadline.db.time import utcnow
from threadline.models.user import User


class MessageStatus(str, enum.Enum):
    """Receiver-side state of a message.

    Only ``SENT`` and ``READ`` are ever written. ``DELIVERED`` is kept so the
    column accepts rows written by older clients, but nothing produces it.
    """

    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"


class Message(Base):
    """One entry of the message ledger, directed from sender to receiver.

    Rows are append-only: the status column is the only field that changes
    after insert, and only from unread to ``read``.
    """

    __tablename__ = "message"
    __table_args__ = (
        CheckConstraint("sender_id <> receiver_id", name="ck_message_not_self"),
        Index("ix_message_pair", "sender_id", "receiver_id"),
        Index("ix_message_receiver_status", "receiver_id", "status"),
    )

    # Monotonic with creation order; used as the ordering tie-break.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    sender_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    receiver_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )

    body: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    images: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    videos: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    # The reference may vanish with the post; the snapshot below must not.
    shared_post_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="SET NULL"),
        nullable=True,
    )
    shared_post: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    status: Mapped[MessageStatus] = mapped_column(
        Enum(
            MessageStatus,
            name="message_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        default=MessageStatus.SENT,
        server_default=MessageStatus.SENT.value,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    sender: Mapped[User] = relationship("User", foreign_keys=[sender_id])
    receiver: Mapped[User] = relationship("User", foreign_keys=[receiver_id])

    @property
    def is_shared_post(self) -> bool:
        """Return True when the message carries a shared-post snapshot."""
        return self.shared_post is not None or self.shared_post_id is not None

    def partner_of(self, user_id: int) -> int:
        """Return the other participant of this message from ``user_id``'s view."""
        return self.receiver_id if self.sender_id == user_id else self.sender_id
