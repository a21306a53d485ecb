"""
Inkwell Backend - FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the services from configuration, registers
       middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn app.main:app`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware: RequestID → AccessLog → GZip → CORS    │
    │                                                     │
    │  Routes:                                            │
    │   /api/users/*   /api/posts/*   /uploads/*  /health │
    │                                                     │
    │  app.state: file_service, post_service,             │
    │             user_service, token_service             │
    │                                                     │
    │  Exception Handlers: ErrorKind → HTTP status        │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import Settings, settings
from app.database import dispose_engine
from app.exceptions import BlogError, ErrorKind
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import health, posts, uploads, users
from app.services.file_service import FileService
from app.services.post_service import PostService
from app.services.security import PasswordHasher, TokenService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(config: Settings) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once from the lifespan, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNPROCESSABLE: 422,
    ErrorKind.INTERNAL: 500,
}


def error_response(
    status_code: int,
    error: str,
    message: str,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "request_id": request_id_var.get(""),
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler table:
        BlogError                → status from STATUS_BY_KIND
        RequestValidationError   → 422 validation_error (body could not be parsed)
        HTTPException            → its own status (unknown route, bad method)
        Exception (fallback)     → 500, traceback logged server-side only
    """

    @app.exception_handler(BlogError)
    async def handle_blog_error(request: Request, exc: BlogError):
        status_code = STATUS_BY_KIND.get(exc.kind, 500)
        rid = request_id_var.get("")
        if status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        headers = {"WWW-Authenticate": "Bearer"} if exc.kind is ErrorKind.UNAUTHORIZED else None
        return error_response(status_code, exc.kind.value, exc.message, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Invalid request."
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            message = f"Invalid request: {location} {first.get('msg', '')}".strip()
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return error_response(422, "validation_error", message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(404, ErrorKind.NOT_FOUND.value, f"Not Found - {request.url.path}")
        return error_response(exc.status_code, "http_error", str(exc.detail), headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def build_services(app: FastAPI, config: Settings) -> None:
    """Construct the services from explicit configuration and park them on app.state."""
    file_service = FileService(config.upload_dir)
    token_service = TokenService(
        secret=config.jwt_secret,
        algorithm=config.jwt_algorithm,
        lifetime=timedelta(seconds=config.jwt_expires_seconds),
    )
    hasher = PasswordHasher(rounds=config.bcrypt_rounds)

    app.state.file_service = file_service
    app.state.token_service = token_service
    app.state.post_service = PostService(
        file_service,
        thumbnail_max_size=config.thumbnail_max_size,
    )
    app.state.user_service = UserService(
        file_service,
        hasher,
        token_service,
        avatar_max_size=config.avatar_max_size,
    )


def create_app(config: Settings = settings) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Settings to build from; tests pass their own instance.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging(config)
        logger.info("Inkwell Backend starting up...")

        try:
            config.validate_required_for_production()
        except ValueError as e:
            logger.warning("Configuration warning: %s", str(e))

        logger.info("Upload directory: %s", Path(config.upload_dir).resolve())
        logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)

        yield

        logger.info("Inkwell Backend shutting down...")
        await dispose_engine()
        logger.info("Shutdown complete.")

    app = FastAPI(
        title="Inkwell API",
        description="Blog backend: accounts, avatars, and posts with thumbnails.",
        version=__version__,
        lifespan=lifespan,
    )

    build_services(app, config)

    # Middleware executes in reverse order of addition
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(users.router)
    app.include_router(posts.router)
    app.include_router(uploads.router)
    app.include_router(health.router)

    return app


app = create_app()
