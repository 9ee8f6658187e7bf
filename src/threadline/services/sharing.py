"""Sharing a post with several users as direct messages."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from threadline.models import Message
from threadline.services.errors import MessagingError, ValidationError
from threadline.services.ledger import MessageLedger
from threadline.services.posts import get_post

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShareFailure:
    """A target that could not receive the shared post."""

    user_id: int
    error: str


@dataclass
class ShareResult:
    """Aggregate outcome of one share request."""

    shared_count: int = 0
    messages: list[Message] = field(default_factory=list)
    failures: list[ShareFailure] = field(default_factory=list)

    @property
    def summary(self) -> str:
        """Human readable outcome shown to the sharer."""
        if self.shared_count == 0:
            return "No posts were shared."
        plural = "s" if self.shared_count > 1 else ""
        return f"Post shared successfully with {self.shared_count} user{plural}!"


def share_post(
    ledger: MessageLedger,
    post_id: int,
    sender_id: int,
    target_ids: Iterable[int],
    note: str | None = None,
) -> ShareResult:
    """Send ``post_id`` to each target as its own message.

    The sender is silently skipped when listed as a target. Every send is
    committed on its own: a target that fails is recorded in
    ``ShareResult.failures`` and does not undo the others. Request-wide
    problems (oversized note, too many targets) fail before anything is sent.

    Raises:
        NotFoundError: If the post does not exist.
        ValidationError: If the note is too long or too many targets are requested.
    """
    get_post(ledger.db, post_id)

    note = note or ""
    if len(note) > ledger.config.message_max_length:
        raise ValidationError(
            f"Message body exceeds {ledger.config.message_max_length} characters",
        )

    targets = [target_id for target_id in dict.fromkeys(target_ids) if target_id != sender_id]
    if len(targets) > ledger.config.share_max_targets:
        raise ValidationError(
            f"A post can be shared with at most {ledger.config.share_max_targets} users at once",
        )

    result = ShareResult()
    for target_id in targets:
        try:
            message = ledger.send(sender_id, target_id, note, shared_post_id=post_id)
        except MessagingError as exc:
            logger.warning("Sharing post %s with user %s failed: %s", post_id, target_id, exc)
            result.failures.append(ShareFailure(user_id=target_id, error=exc.detail))
            continue
        result.messages.append(message)
        result.shared_count += 1

    logger.info(
        "User %s shared post %s with %d user(s), %d failure(s)",
        sender_id,
        post_id,
        result.shared_count,
        len(result.failures),
    )
    return result
