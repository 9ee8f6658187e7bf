# src/threadline/schemas/post.py
"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PostSnapshot(BaseModel):
    """Denormalized copy of a post captured when it is shared into a chat.

    The snapshot is stored with the message and never refreshed, so a shared
    post stays displayable after the original is edited or deleted.
    """

    id: int
    user_name: str
    user_avatar: str | None = None
    content: str
    images: list[str] = Field(default_factory=list)
    videos: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    likes_count: int = 0
    comments_count: int = 0

    model_config = ConfigDict(frozen=True)
