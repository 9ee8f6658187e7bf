"""Message ledger: the system of record for direct messages.

The ledger owns every write to the ``message`` table. Messages are only
ever inserted, flipped from unread to ``read`` by the receiver, or hard
deleted by their sender. Events are handed to the broadcaster strictly
after the corresponding commit.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from threadline.core.settings import Settings, settings
from threadline.models import Message, MessageStatus, User
from threadline.schemas.post import PostSnapshot
from threadline.services.broadcaster import DeliveryBroadcaster
from threadline.services.errors import (
    NotFoundError,
    SelfActionError,
    UnauthorizedError,
    UnknownRecipientError,
    ValidationError,
)
from threadline.services.posts import snapshot_post

logger = logging.getLogger(__name__)


def thread_filter(user_a: int, user_b: int) -> ColumnElement[bool]:
    """Return the criteria selecting every message between two users, both directions."""
    return or_(
        and_(Message.sender_id == user_a, Message.receiver_id == user_b),
        and_(Message.sender_id == user_b, Message.receiver_id == user_a),
    )


def unread_filter(reader_id: int, partner_id: int) -> ColumnElement[bool]:
    """Return the criteria for messages from ``partner_id`` that ``reader_id`` has not read."""
    return and_(
        Message.sender_id == partner_id,
        Message.receiver_id == reader_id,
        Message.status != MessageStatus.READ,
    )


class MessageLedger:
    """Append-only store of messages exchanged between two users."""

    def __init__(
        self,
        db: Session,
        broadcaster: DeliveryBroadcaster | None = None,
        *,
        config: Settings | None = None,
    ) -> None:
        self.db = db
        self.broadcaster = broadcaster or DeliveryBroadcaster()
        self.config = config or settings

    def require_user(self, user_id: int) -> User:
        """Return the user with ``user_id`` or raise ``UnknownRecipientError``."""
        user = self.db.get(User, user_id)
        if user is None:
            raise UnknownRecipientError()
        return user

    def get_message(self, message_id: int) -> Message:
        """Return a message by id.

        Raises:
            NotFoundError: If the message does not exist.
        """
        message = self.db.get(Message, message_id)
        if message is None:
            raise NotFoundError("Message not found")
        return message

    def _validate_content(
        self,
        body: str,
        images: Sequence[str],
        videos: Sequence[str],
        shared_post_id: int | None,
    ) -> None:
        if len(body) > self.config.message_max_length:
            raise ValidationError(
                f"Message body exceeds {self.config.message_max_length} characters",
            )

        media = [*images, *videos]
        if len(media) > self.config.message_max_attachments:
            raise ValidationError(
                f"At most {self.config.message_max_attachments} attachments are allowed",
            )
        if any(not isinstance(ref, str) or not ref.strip() for ref in media):
            raise ValidationError("Attachment references must be non-empty URLs")

        if not body.strip() and not media and shared_post_id is None:
            raise ValidationError("Message body is required when nothing is attached")

    def send(
        self,
        sender_id: int,
        receiver_id: int,
        body: str = "",
        *,
        images: Sequence[str] | None = None,
        videos: Sequence[str] | None = None,
        shared_post_id: int | None = None,
    ) -> Message:
        """Write a new message from ``sender_id`` to ``receiver_id``.

        When ``shared_post_id`` is given the post is snapshotted now and the
        snapshot travels with the message from then on.

        Returns:
            The committed message with ``status == sent``.

        Raises:
            SelfActionError: If sender and receiver are the same user.
            UnknownRecipientError: If the receiver does not exist.
            ValidationError: If the content is empty or oversized.
            NotFoundError: If the shared post does not exist.
        """
        if sender_id == receiver_id:
            raise SelfActionError("Cannot send message to yourself")
        self.require_user(receiver_id)

        images = list(images or [])
        videos = list(videos or [])
        self._validate_content(body, images, videos, shared_post_id)

        snapshot: PostSnapshot | None = None
        if shared_post_id is not None:
            snapshot = snapshot_post(self.db, shared_post_id)

        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            body=body,
            images=images or None,
            videos=videos or None,
            shared_post_id=shared_post_id,
            shared_post=snapshot.model_dump(mode="json") if snapshot else None,
            status=MessageStatus.SENT,
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)

        self.broadcaster.message_created(message)
        return message

    def read_thread(self, user_a: int, user_b: int) -> list[Message]:
        """Return the thread between two users, oldest first, without side effects."""
        stmt = (
            select(Message)
            .where(thread_filter(user_a, user_b))
            .order_by(Message.created_at, Message.id)
        )
        return list(self.db.scalars(stmt).all())

    def mark_thread_read(self, reader_id: int, partner_id: int) -> list[int]:
        """Flip every unread message from ``partner_id`` to ``reader_id`` to ``read``.

        The transition is a single conditional ``UPDATE ... WHERE status !=
        'read'``; only rows this call actually changed are reported, so
        concurrent callers never both claim the same message.

        Returns:
            Ids of the transitioned messages in thread order.
        """
        candidates = list(
            self.db.scalars(
                select(Message.id)
                .where(unread_filter(reader_id, partner_id))
                .order_by(Message.created_at, Message.id)
            ).all()
        )
        if not candidates:
            return []

        result = self.db.execute(
            update(Message)
            .where(Message.id.in_(candidates), Message.status != MessageStatus.READ)
            .values(status=MessageStatus.READ)
            .returning(Message.id)
        )
        transitioned = set(result.scalars().all())
        self.db.commit()

        logger.debug(
            "Marked %d message(s) from %s to %s as read", len(transitioned), partner_id, reader_id
        )
        return [message_id for message_id in candidates if message_id in transitioned]

    def fetch_thread(self, user_a: int, user_b: int) -> list[Message]:
        """Open the thread between ``user_a`` and ``user_b`` as ``user_a``.

        Opening a thread marks the partner's unread messages as read. No read
        receipts are published for this implicit transition.

        Raises:
            SelfActionError: If both ids name the same user.
            UnknownRecipientError: If ``user_b`` does not exist.
        """
        if user_a == user_b:
            raise SelfActionError("Cannot chat with yourself")
        self.require_user(user_b)

        messages = self.read_thread(user_a, user_b)
        self.mark_thread_read(user_a, user_b)
        return messages

    def delete_message(self, message_id: int, requester_id: int) -> bool:
        """Hard-delete a message on behalf of its sender.

        Raises:
            NotFoundError: If the message does not exist.
            UnauthorizedError: If ``requester_id`` did not send the message.
        """
        message = self.get_message(message_id)
        if message.sender_id != requester_id:
            raise UnauthorizedError()

        self.db.delete(message)
        self.db.commit()
        logger.info("Message %s deleted by sender %s", message_id, requester_id)
        return True
