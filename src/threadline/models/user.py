# src/threadline/models/user.py
"""SQLAlchemy model for the user directory the messaging core resolves against."""

from __future__ import annotations

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from threadline.db.session import Base


class User(Base):
    """Registered account that can send and receive direct messages.

    Accounts are owned by the authentication service; this service reads them
    to validate recipients and to render conversation partners.
    """

    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)
