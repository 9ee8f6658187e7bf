"""Conversation index derived from the message ledger.

Nothing here is cached or materialized: every call rescans the ledger for
the requesting user, so unread counts are never stale across requests.
"""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from threadline.models import Message, MessageStatus, User
from threadline.schemas.message import ConversationPartner, ConversationSummary
from threadline.services.ledger import thread_filter, unread_filter

SHARED_POST_PLACEHOLDER = "Shared a post"


def conversation_partner_ids(db: Session, me: int) -> set[int]:
    """Return everyone ``me`` has exchanged at least one message with."""
    rows = db.execute(
        select(Message.sender_id, Message.receiver_id)
        .where(or_(Message.sender_id == me, Message.receiver_id == me))
        .distinct()
    ).all()
    # Self-referential rows cannot be written, but never list ``me`` as a partner.
    return {user_id for row in rows for user_id in row if user_id != me}


def last_message_between(db: Session, me: int, partner_id: int) -> Message | None:
    """Return the most recent message of the thread; highest id wins ties."""
    return db.scalars(
        select(Message)
        .where(thread_filter(me, partner_id))
        .order_by(Message.id.desc())
        .limit(1)
    ).first()


def unread_count(db: Session, me: int, partner_id: int) -> int:
    """Count messages from ``partner_id`` that ``me`` has not read yet."""
    count = db.scalar(select(func.count(Message.id)).where(unread_filter(me, partner_id)))
    return int(count or 0)


def summary_text(message: Message) -> str:
    """Return the preview text shown for ``message`` in the conversation list."""
    if message.is_shared_post:
        return SHARED_POST_PLACEHOLDER
    return message.body


def list_conversations(db: Session, me: int) -> list[ConversationSummary]:
    """Summarize every conversation of ``me``, most recently active first.

    Args:
        db: Database session
        me: Identifier of the requesting user

    Returns:
        One summary per partner whose account still exists, ordered by the
        last message's ``created_at`` descending (id breaks ties).
    """
    partner_ids = conversation_partner_ids(db, me)
    if not partner_ids:
        return []

    partners = db.scalars(select(User).where(User.id.in_(partner_ids))).all()

    rows: list[tuple[Message, ConversationSummary]] = []
    for partner in partners:
        last = last_message_between(db, me, partner.id)
        if last is None:
            continue

        rows.append(
            (
                last,
                ConversationSummary(
                    user=ConversationPartner.model_validate(partner),
                    last_message_id=last.id,
                    last_message=summary_text(last),
                    last_message_at=last.created_at,
                    is_read=last.sender_id == me and last.status == MessageStatus.READ,
                    unread_count=unread_count(db, me, partner.id),
                ),
            )
        )

    rows.sort(key=lambda row: (row[0].created_at, row[0].id), reverse=True)
    return [summary for _, summary in rows]


def list_contacts(db: Session, me: int) -> Sequence[User]:
    """Return every other user, by name, as candidates for a new conversation."""
    return db.scalars(select(User).where(User.id != me).order_by(User.name)).all()
