"""
Inkwell Backend - User Request/Response Schemas
================================================

Request bodies declare every field optional: presence checks belong to
UserService so that a missing field produces the same 422 "Fill in all
fields." error as an empty one, instead of FastAPI's generic validation body.

Response models never declare `password`, so the hash cannot leak through
serialization.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    password2: Optional[str] = Field(default=None, description="Password confirmation")


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class EditUserRequest(BaseModel):
    """Profile edit body; accepts the camelCase names the frontend sends."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: Optional[str] = None
    current_password: Optional[str] = Field(default=None, alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")
    confirm_new_password: Optional[str] = Field(default=None, alias="confirmNewPassword")


class UserResponse(BaseModel):
    """Public view of a user (profile page, author list, profile updates)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID = Field(description="Unique user identifier")
    name: str
    email: str
    avatar: Optional[str] = Field(default=None, description="Avatar filename under /uploads")
    posts: int = Field(description="Number of posts authored")
    created_at: datetime
    updated_at: datetime


class LoginResponse(BaseModel):
    token: str = Field(description="Bearer token, valid for one day")
    id: uuid.UUID
    name: str
