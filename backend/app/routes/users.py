"""
Inkwell Backend - User Route Handlers
======================================

What:  /api/users endpoints: register, login, profile, avatar, authors.
Who:   Called by the frontend auth pages, profile page and authors list.

Auth:
    change-avatar and edit-user require a bearer token; the rest are public.
    GET /api/users/{id} is public and never includes the password.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user, get_user_service
from app.routes import read_upload
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import (
    EditUserRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserResponse,
)
from app.services.security import CallerIdentity
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post(
    "/register",
    status_code=201,
    response_model=MessageResponse,
    responses={422: {"description": "Invalid registration", "model": ErrorResponse}},
    summary="Register a new user",
)
async def register_user(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> MessageResponse:
    return await users.register(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        password2=body.password2,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={422: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Log in and receive a bearer token",
)
async def login_user(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> LoginResponse:
    return await users.login(db, email=body.email, password=body.password)


@router.get(
    "/authors",
    response_model=List[UserResponse],
    summary="List all authors",
)
async def get_authors(
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> List[UserResponse]:
    return await users.list_authors(db)


@router.post(
    "/change-avatar",
    response_model=UserResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        422: {"description": "Missing or oversized image", "model": ErrorResponse},
    },
    summary="Upload a new profile picture",
)
async def change_avatar(
    avatar: Optional[UploadFile] = File(default=None, description="Image, max 500KB"),
    caller: CallerIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    upload = await read_upload(avatar, limit=users.avatar_max_size)
    return await users.change_avatar(db, caller_id=caller.id, avatar=upload)


@router.post(
    "/edit-user",
    response_model=UserResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Account not found", "model": ErrorResponse},
        422: {"description": "Invalid profile update", "model": ErrorResponse},
    },
    summary="Edit name, email and password",
)
async def edit_user(
    body: EditUserRequest,
    caller: CallerIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    return await users.edit_user(
        db,
        caller_id=caller.id,
        name=body.name,
        email=body.email,
        current_password=body.current_password,
        new_password=body.new_password,
        confirm_new_password=body.confirm_new_password,
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        400: {"description": "Malformed user id", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Get a user profile",
)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    return await users.get_user(db, user_id)
