"""
Inkwell Backend - User Service
===============================

What:  Account rules: registration, login, profile reads, avatar change,
       profile edit, author listing.
How:   Uses PasswordHasher for bcrypt, TokenService for login tokens and
       FileService for avatars. Emails are lowercased before every lookup
       and write.
Who:   Called by the /api/users route handlers.

Credential errors:
    Login answers "Invalid credentials." for both an unknown email and a
    wrong password, with the same status.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    DatabaseError,
    FileStorageError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from app.models.user import User, utcnow
from app.schemas.common import MessageResponse
from app.schemas.user import LoginResponse, UserResponse
from app.services.file_service import FileService, UploadedFile
from app.services.identifiers import parse_identifier
from app.services.security import PasswordHasher, TokenService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Business logic layer for user accounts."""

    def __init__(
        self,
        file_service: FileService,
        hasher: PasswordHasher,
        tokens: TokenService,
        avatar_max_size: int = 500_000,
    ):
        self.file_service = file_service
        self.hasher = hasher
        self.tokens = tokens
        self.avatar_max_size = avatar_max_size

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def register(
        self,
        db: AsyncSession,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        password2: Optional[str],
    ) -> MessageResponse:
        """
        Create an account. Does not log the user in.

        Raises:
            ValidationError: missing field, duplicate email, short password,
                             confirmation mismatch
            DatabaseError: insert failed for another reason
        """
        if not name or not email or not password or not password2:
            raise ValidationError(message="Fill in all fields.")

        new_email = normalize_email(email)
        if await self._find_by_email(db, new_email) is not None:
            raise ValidationError(message="Email already exists.", field="email")

        if len(password.strip()) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                message="Password should be at least 6 characters.",
                field="password",
            )

        if password != password2:
            raise ValidationError(message="Passwords do not match.", field="password2")

        user = User(
            name=name,
            email=new_email,
            password=await self.hasher.hash(password),
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same address
            raise ValidationError(message="Email already exists.", field="email")
        except SQLAlchemyError as e:
            logger.error("Failed to register %s: %s", new_email, str(e))
            raise DatabaseError(
                message="User couldn't be registered.",
                context={"error_type": type(e).__name__},
            )

        logger.info("User registered: %s", user.id)
        return MessageResponse(message=f"New user {new_email} registered.")

    async def login(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
    ) -> LoginResponse:
        """
        Check credentials and issue a one-day token.

        Raises:
            ValidationError: missing field or invalid credentials
        """
        if not email or not password:
            raise ValidationError(message="Fill in all fields.")

        user = await self._find_by_email(db, normalize_email(email))
        if user is None or not await self.hasher.verify(password, user.password):
            raise ValidationError(message="Invalid credentials.")

        token = self.tokens.issue(user.id, user.name)
        logger.info("User logged in: %s", user.id)
        return LoginResponse(token=token, id=user.id, name=user.name)

    async def get_user(self, db: AsyncSession, user_id: str) -> UserResponse:
        identifier = parse_identifier(user_id, "Invalid user id.")
        user = await db.get(User, identifier)
        if user is None:
            raise NotFoundError(message="User not found.", resource="user", resource_id=str(identifier))
        return UserResponse.model_validate(user)

    async def list_authors(self, db: AsyncSession) -> List[UserResponse]:
        result = await db.execute(select(User).order_by(User.created_at))
        return [UserResponse.model_validate(user) for user in result.scalars().all()]

    async def change_avatar(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        avatar: Optional[UploadedFile],
    ) -> UserResponse:
        """
        Replace the caller's avatar.

        The previous avatar file is removed before the size check; a file
        that is already gone is ignored, any other removal failure aborts
        with a storage error.

        Raises:
            ValidationError: no file, or file over the avatar limit
            NotFoundError: caller's account no longer exists
            FileStorageError: old avatar could not be removed, or write failed
        """
        if avatar is None:
            raise ValidationError(message="Please choose an image.", field="avatar")

        user = await db.get(User, caller_id)
        if user is None:
            raise NotFoundError(message="User not found.", resource="user", resource_id=str(caller_id))

        if user.avatar:
            try:
                await self.file_service.remove(user.avatar)
            except FileStorageError as e:
                raise FileStorageError(message="Failed to delete old avatar.", context=e.context)

        self.file_service.ensure_within_limit(
            avatar,
            self.avatar_max_size,
            "Profile picture too big. Should be less than 500KB.",
            field="avatar",
        )

        user.avatar = await self.file_service.store(avatar)
        user.updated_at = utcnow()
        await db.flush()

        logger.info("Avatar changed for user %s", user.id)
        return UserResponse.model_validate(user)

    async def edit_user(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        name: Optional[str],
        email: Optional[str],
        current_password: Optional[str],
        new_password: Optional[str],
        confirm_new_password: Optional[str],
    ) -> UserResponse:
        """
        Update name, email and password after re-checking the current password.

        Raises:
            ValidationError: missing field, email taken by another user
                             (checked up front and again on flush),
                             wrong current password, confirmation mismatch
            ForbiddenError: caller's account cannot be found
        """
        if not name or not email or not current_password or not new_password:
            raise ValidationError(message="Fill in all fields.")

        user = await db.get(User, caller_id)
        if user is None:
            raise ForbiddenError(message="User not found.", context={"caller_id": str(caller_id)})

        new_email = normalize_email(email)
        owner = await self._find_by_email(db, new_email)
        if owner is not None and owner.id != user.id:
            raise ValidationError(message="Email already exists.", field="email")

        if not await self.hasher.verify(current_password, user.password):
            raise ValidationError(message="Invalid current password.", field="currentPassword")

        if new_password != confirm_new_password:
            raise ValidationError(message="New passwords do not match.", field="confirmNewPassword")

        user.name = name
        user.email = new_email
        user.password = await self.hasher.hash(new_password)
        user.updated_at = utcnow()
        try:
            await db.flush()
        except IntegrityError:
            # Another account claimed the address after the check above
            raise ValidationError(message="Email already exists.", field="email")

        logger.info("Profile updated for user %s", user.id)
        return UserResponse.model_validate(user)
