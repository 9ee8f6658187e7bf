# src/threadline/schemas/events.py
"""Real-time events published to chat channels.

Events form a tagged union discriminated by ``event``; consumers switch on
the tag instead of inspecting payload shapes.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

from threadline.schemas.message import MessageResponse


class MessageCreated(BaseModel):
    """A new message was written to the ledger."""

    event: Literal["message.created"] = "message.created"
    receiver_id: int
    message: MessageResponse

    @property
    def recipient_id(self) -> int:
        return self.receiver_id


class MessageRead(BaseModel):
    """A message was read by its receiver; addressed to the original sender."""

    event: Literal["message.read"] = "message.read"
    message_id: int
    original_sender_id: int
    status: Literal["read"] = "read"

    @property
    def recipient_id(self) -> int:
        return self.original_sender_id


ChatEvent = Annotated[MessageCreated | MessageRead, Field(discriminator="event")]

chat_event_adapter: TypeAdapter[MessageCreated | MessageRead] = TypeAdapter(ChatEvent)
