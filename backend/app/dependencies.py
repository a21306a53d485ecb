"""
Inkwell Backend - FastAPI Dependencies
=======================================

What:  Accessors for the services built by the application factory, and the
       bearer-token dependency that guards protected routes.
Why:   Services are built once per app from explicit Settings, so tests can
       construct an app with their own upload dir and secret and routes
       still reach the right instances through request.app.state.

Protected routes declare `caller: CallerIdentity = Depends(get_current_user)`.
The dependency is stateless: it trusts the signed token and does not re-read
the user row.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.exceptions import AuthenticationError
from app.services.file_service import FileService
from app.services.post_service import PostService
from app.services.security import CallerIdentity, TokenService
from app.services.user_service import UserService

# auto_error=False: a missing header is reported through AuthenticationError
# so it renders in the same error envelope as every other failure
bearer_scheme = HTTPBearer(auto_error=False)


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> CallerIdentity:
    """
    Resolve the caller from `Authorization: Bearer <token>`.

    Raises:
        AuthenticationError: header missing, or token invalid/expired
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="Unauthorized. No token.")
    return tokens.verify(credentials.credentials)
