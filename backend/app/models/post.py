"""
Inkwell Backend - Post SQLAlchemy Model
========================================

What:  ORM model representing the `posts` table.
Who:   Used by PostService for CRUD and by Alembic for schema management.

Columns holding client text (title, category, thumbnail name) are
unbounded TEXT.

Query Patterns:
    - All posts:          ORDER BY updated_at DESC
    - By category:        WHERE category = :c ORDER BY created_at DESC
    - By author:          WHERE creator = :id ORDER BY created_at DESC
    Each column used above carries an index.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.user import utcnow


class Post(Base):
    """
    A blog post with a thumbnail image.

    `creator` is set once at creation and is the only user allowed to edit
    or delete the post.
    """

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    # Open set of labels; no enumeration is enforced here
    category: Mapped[str] = mapped_column(Text, nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    thumbnail: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Generated filename inside the upload directory",
    )

    creator: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
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

    __table_args__ = (
        Index("idx_posts_category", "category"),
        Index("idx_posts_creator", "creator"),
        Index("idx_posts_created_at", created_at.desc()),
        Index("idx_posts_updated_at", updated_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title='{self.title}', creator={self.creator})>"
