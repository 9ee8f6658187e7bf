# src/threadline/models/post.py
"""SQLAlchemy model for posts that can be shared into a conversation."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from threadline.db.session import Base
from threadline.db.time import utcnow
from threadline.models.user import User


class Post(Base):
    """Feed post authored by a user.

    Engagement counters are maintained by the feed service; they are read
    here only when a post is shared into a chat.
    """

    __tablename__ = "post"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    images: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    videos: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    likes_count: Mapped[int] = mapped_column(default=0, server_default="0", nullable=False)
    replies_count: Mapped[int] = mapped_column(default=0, server_default="0", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    user: Mapped[User] = relationship("User")
