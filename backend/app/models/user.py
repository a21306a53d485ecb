"""
Inkwell Backend - User SQLAlchemy Model
========================================

What:  ORM model representing the `users` table.
Who:   Used by UserService for accounts and by PostService for the post counter.

Table Design:
    - email: stored lowercased; the unique index enforces one account per address
    - password: bcrypt hash only; response schemas never include it
    - avatar: filename inside the upload directory, NULL until one is uploaded
    - posts: denormalized count of the user's posts, adjusted in the same
      transaction as post create/delete
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A registered author.

    Lifecycle:
        1. Created by registration (posts = 0, avatar = NULL)
        2. Avatar, name, email and password change through the profile endpoints
        3. `posts` moves up and down with post create/delete
        4. Never deleted
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)

    email: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        index=True,
        comment="Lowercased address, unique across users",
    )

    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Salted bcrypt hash",
    )

    avatar: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    posts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', posts={self.posts})>"
