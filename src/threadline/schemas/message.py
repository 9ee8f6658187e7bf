# src/threadline/schemas/message.py
"""Direct message-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from threadline.models.message import MessageStatus
from threadline.schemas.post import PostSnapshot


class MessageCreate(BaseModel):
    """Schema for sending a new direct message."""

    receiver_id: int = Field(..., description="Identifier of the receiving user")
    message: str = Field("", description="Text body; may be empty when media or a post is attached")
    images: list[str] = Field(default_factory=list, description="Uploaded image URLs")
    videos: list[str] = Field(default_factory=list, description="Uploaded video URLs")
    shared_post_id: int | None = Field(None, description="Post to embed as a snapshot")


class MessageResponse(BaseModel):
    """Schema for direct message information returned by the API."""

    id: int
    sender_id: int
    receiver_id: int
    message: str = Field(validation_alias="body")
    images: list[str] | None = None
    videos: list[str] | None = None
    shared_post_id: int | None = None
    shared_post: PostSnapshot | None = None
    status: MessageStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ConversationPartner(BaseModel):
    """Public profile fields of the other side of a conversation."""

    id: int
    name: str
    email: str
    avatar: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ConversationSummary(BaseModel):
    """One row of the conversation list, seen from the requesting user."""

    user: ConversationPartner
    last_message_id: int
    last_message: str
    last_message_at: datetime | None
    is_read: bool = Field(..., description="True when my last outgoing message was read")
    unread_count: int = Field(..., description="Messages from this partner I have not read")


class MarkReadResponse(BaseModel):
    """Result of an explicit mark-as-read call."""

    updated: int


class DeleteResponse(BaseModel):
    """Result of deleting a message."""

    deleted: bool


class SharePostRequest(BaseModel):
    """Schema for sharing a post with several users at once."""

    post_id: int
    user_ids: list[int] = Field(..., min_length=1)
    message: str | None = Field(None, description="Optional note sent with the post")


class ShareFailureResponse(BaseModel):
    """A share target that could not receive the post."""

    user_id: int
    error: str


class SharePostResponse(BaseModel):
    """Aggregate outcome of a share request."""

    success: bool
    message: str
    shared_count: int
    messages: list[MessageResponse]
    failures: list[ShareFailureResponse] = Field(default_factory=list)
