"""
Inkwell Backend - Post Service
===============================

What:  Business rules for blog posts: create, list, fetch, edit, delete.
How:   Operates on an AsyncSession passed in per call and a FileService
       for thumbnails. Returns response schemas; raises app.exceptions.
Who:   Called by the /api/posts route handlers.

Create Flow (POST /api/posts):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────────┐
    │ Validate │───▶│ Size limit  │───▶│ Store file   │───▶│ Insert post  │
    │  fields  │    │  (2MB)      │    │ (FileServ)   │    │ + posts += 1 │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────────┘

    The insert and the counter update run in the request's session and
    commit together. If the insert fails the stored file is discarded.

Ownership:
    Only the post's creator may edit or delete it (403 otherwise).
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import case, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from app.models.post import Post
from app.models.user import User, utcnow
from app.schemas.common import MessageResponse
from app.schemas.post import PostResponse
from app.services.file_service import FileService, UploadedFile
from app.services.identifiers import parse_identifier

logger = logging.getLogger(__name__)

# Edits must carry a description of at least this many characters
MIN_EDIT_DESCRIPTION_LENGTH = 12


class PostService:
    """
    Business logic layer for post operations.

    Responsibilities:
        - create_post() / edit_post() / delete_post(): owner-bound mutations
        - list_posts(), list_by_category(), list_by_user(), get_post(): reads
    """

    def __init__(self, file_service: FileService, thumbnail_max_size: int = 2_000_000):
        self.file_service = file_service
        self.thumbnail_max_size = thumbnail_max_size

    def _check_thumbnail_size(self, thumbnail: UploadedFile) -> None:
        self.file_service.ensure_within_limit(
            thumbnail,
            self.thumbnail_max_size,
            "Thumbnail too big. File should be less than 2MB.",
            field="thumbnail",
        )

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create_post(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        title: Optional[str],
        category: Optional[str],
        description: Optional[str],
        thumbnail: Optional[UploadedFile],
    ) -> PostResponse:
        """
        Create a post owned by the caller.

        Raises:
            ValidationError: missing field/thumbnail, or thumbnail over the limit
            NotFoundError: the caller's account no longer exists
            DatabaseError: insert failed
        """
        if not title or not category or not description or thumbnail is None:
            raise ValidationError(message="Fill in all the fields and choose thumbnail.")

        self._check_thumbnail_size(thumbnail)

        author_id = await db.scalar(select(User.id).where(User.id == caller_id))
        if author_id is None:
            raise NotFoundError(message="User not found.", resource="user", resource_id=str(caller_id))

        filename = await self.file_service.store(thumbnail)

        try:
            post = Post(
                title=title,
                category=category,
                description=description,
                thumbnail=filename,
                creator=caller_id,
            )
            db.add(post)
            await db.flush()
            await self._adjust_post_count(db, caller_id, 1)
        except SQLAlchemyError as e:
            await self.file_service.discard(filename)
            logger.error("Failed to create post for user %s: %s", caller_id, str(e))
            raise DatabaseError(
                message="Post couldn't be created.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Post %s created by user %s", post.id, caller_id)
        return PostResponse.model_validate(post)

    async def edit_post(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        post_id: str,
        title: Optional[str],
        category: Optional[str],
        description: Optional[str],
        thumbnail: Optional[UploadedFile] = None,
    ) -> PostResponse:
        """
        Update a post's text fields and, optionally, its thumbnail.

        When a new thumbnail is supplied the old file is discarded first,
        then the size limit is enforced, then the new file is stored.

        Raises:
            ValidationError: missing field, short description, oversized thumbnail
            BadRequestError: malformed post id
            NotFoundError: no such post
            ForbiddenError: caller is not the creator
            DatabaseError: update failed (a newly stored thumbnail is discarded)
        """
        if (
            not title
            or not category
            or not description
            or len(description) < MIN_EDIT_DESCRIPTION_LENGTH
        ):
            raise ValidationError(message="Fill in all fields.")

        post = await self._get_post_or_404(db, post_id)

        if post.creator != caller_id:
            raise ForbiddenError(
                message="Post couldn't be edited.",
                context={"post_id": str(post.id), "caller_id": str(caller_id)},
            )

        new_filename = None
        if thumbnail is not None:
            await self.file_service.discard(post.thumbnail)
            self._check_thumbnail_size(thumbnail)
            new_filename = await self.file_service.store(thumbnail)
            post.thumbnail = new_filename

        post.title = title
        post.category = category
        post.description = description
        post.updated_at = utcnow()
        try:
            await db.flush()
        except SQLAlchemyError as e:
            await self.file_service.discard(new_filename)
            logger.error("Failed to update post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Post couldn't be updated.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Post %s edited by user %s", post.id, caller_id)
        return PostResponse.model_validate(post)

    async def delete_post(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        post_id: str,
    ) -> MessageResponse:
        """
        Delete a post, its thumbnail, and one unit of the author's post counter.

        Raises:
            BadRequestError: empty or malformed post id
            NotFoundError: no such post
            ForbiddenError: caller is not the creator
        """
        post = await self._get_post_or_404(db, post_id)

        if post.creator != caller_id:
            raise ForbiddenError(
                message="Post couldn't be deleted.",
                context={"post_id": str(post.id), "caller_id": str(caller_id)},
            )

        await self.file_service.discard(post.thumbnail)

        deleted_id = post.id
        await db.delete(post)
        await db.flush()
        await self._adjust_post_count(db, caller_id, -1)

        logger.info("Post %s deleted by user %s", deleted_id, caller_id)
        return MessageResponse(message=f"Post {deleted_id} deleted successfully.")

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_post(self, db: AsyncSession, post_id: str) -> PostResponse:
        post = await self._get_post_or_404(db, post_id)
        return PostResponse.model_validate(post)

    async def list_posts(self, db: AsyncSession) -> List[PostResponse]:
        """All posts, most recently updated first."""
        return await self._list(db, select(Post).order_by(Post.updated_at.desc()))

    async def list_by_category(self, db: AsyncSession, category: str) -> List[PostResponse]:
        """Posts whose category matches exactly, newest first."""
        query = (
            select(Post)
            .where(Post.category == category)
            .order_by(Post.created_at.desc())
        )
        return await self._list(db, query)

    async def list_by_user(self, db: AsyncSession, user_id: str) -> List[PostResponse]:
        """Posts authored by one user, newest first."""
        creator = parse_identifier(user_id, "Invalid user id.")
        query = (
            select(Post)
            .where(Post.creator == creator)
            .order_by(Post.created_at.desc())
        )
        return await self._list(db, query)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _list(self, db: AsyncSession, query) -> List[PostResponse]:
        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve posts. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return [PostResponse.model_validate(post) for post in result.scalars().all()]

    async def _get_post_or_404(self, db: AsyncSession, post_id: str) -> Post:
        identifier = parse_identifier(post_id, "Post unavailable.")
        post = await db.get(Post, identifier)
        if post is None:
            raise NotFoundError(message="Post not found.", resource="post", resource_id=str(identifier))
        return post

    @staticmethod
    async def _adjust_post_count(db: AsyncSession, user_id: uuid.UUID, delta: int) -> None:
        """Atomically move a user's post counter by `delta`, never below zero."""
        if delta >= 0:
            new_value = User.posts + delta
        else:
            new_value = case((User.posts + delta > 0, User.posts + delta), else_=0)
        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(posts=new_value)
            .execution_options(synchronize_session=False)
        )
