# src/threadline/models/__init__.py
"""SQLAlchemy models for the Threadline application."""

from .message import Message, MessageStatus
from .post import Post
from .user import User

__all__ = [
    "Message", "MessageStatus",
    "Post",
    "User",
]
