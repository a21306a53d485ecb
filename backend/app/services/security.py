"""
Inkwell Backend - Password Hashing and Login Tokens
====================================================

What:  PasswordHasher (bcrypt via passlib) and TokenService (HS256 JWT via PyJWT).
Who:   UserService hashes/verifies passwords and issues tokens at login;
       the auth dependency in app.dependencies verifies them.

Token claims:
    {"id": "<user uuid>", "name": "<display name>", "iat": ..., "exp": ...}
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from app.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallerIdentity:
    """The authenticated user attached to a protected request."""

    id: uuid.UUID
    name: str


class PasswordHasher:
    """
    Salted one-way password hashing.

    bcrypt is CPU-bound, so both operations run in Starlette's threadpool
    to keep the event loop free.
    """

    def __init__(self, rounds: int = 10):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self._context.hash, password)

    async def verify(self, password: str, hashed: str) -> bool:
        try:
            return await run_in_threadpool(self._context.verify, password, hashed)
        except ValueError:
            # Stored value is not a recognizable hash
            logger.warning("Password verification against malformed hash")
            return False


class TokenService:
    """Issues and verifies the bearer tokens handed out at login."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        lifetime: timedelta = timedelta(days=1),
    ):
        self._secret = secret
        self._algorithm = algorithm
        self.lifetime = lifetime

    def issue(self, user_id: uuid.UUID, name: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "id": str(user_id),
            "name": name,
            "iat": now,
            "exp": now + self.lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> CallerIdentity:
        """
        Decode a token back into the caller identity.

        Raises:
            AuthenticationError if the token is expired, tampered with,
            or missing the identity claims.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "id"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError(context={"reason": "expired"})
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(context={"reason": type(e).__name__})

        try:
            user_id = uuid.UUID(str(payload["id"]))
        except ValueError:
            raise AuthenticationError(context={"reason": "malformed id claim"})

        return CallerIdentity(id=user_id, name=str(payload.get("name", "")))
