"""
Inkwell Backend - Post Route Handlers
======================================

What:  /api/posts endpoints: create, list, filter, fetch, edit, delete.
How:   Create takes a multipart form so the thumbnail travels with the text
       fields. Edit accepts the same form, or a JSON body when the thumbnail
       is unchanged. Listings and single-post reads are public.
"""

import json
import logging
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import FormData
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.database import get_db_session
from app.dependencies import get_current_user, get_post_service
from app.routes import read_upload
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.post import EditPostRequest, PostResponse
from app.services.file_service import UploadedFile
from app.services.post_service import PostService
from app.services.security import CallerIdentity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["Posts"])

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

EDIT_BODY_DOC = {
    "requestBody": {
        "content": {
            "application/json": {
                "schema": EditPostRequest.model_json_schema(),
            },
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {
                        "title": {"type": "string"},
                        "category": {"type": "string"},
                        "description": {"type": "string"},
                        "thumbnail": {"type": "string", "format": "binary"},
                    },
                },
            },
        },
    },
}


def _form_text(form: FormData, key: str) -> Optional[str]:
    value = form.get(key)
    return value if isinstance(value, str) else None


async def read_edit_body(
    request: Request,
    limit: Optional[int] = None,
) -> Tuple[EditPostRequest, Optional[UploadedFile]]:
    """
    Read a post edit from either a form or a JSON body.

    Forms (multipart or urlencoded) may carry a replacement `thumbnail`;
    JSON bodies only carry the text fields. An empty body yields empty
    fields so PostService reports them as missing.

    Raises:
        RequestValidationError: body is not valid JSON or not a JSON object
    """
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        fields = EditPostRequest(
            title=_form_text(form, "title"),
            category=_form_text(form, "category"),
            description=_form_text(form, "description"),
        )
        thumbnail = form.get("thumbnail")
        if isinstance(thumbnail, StarletteUploadFile):
            return fields, await read_upload(thumbnail, limit=limit)
        return fields, None

    raw = await request.body()
    if not raw.strip():
        return EditPostRequest(), None

    try:
        payload = json.loads(raw)
    except ValueError as e:
        raise RequestValidationError(
            [{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error", "ctx": {"error": str(e)}}]
        )

    try:
        return EditPostRequest.model_validate(payload), None
    except PydanticValidationError as e:
        raise RequestValidationError(
            [{**err, "loc": ("body",) + tuple(err["loc"])} for err in e.errors(include_context=False)]
        )


@router.post(
    "",
    status_code=201,
    response_model=PostResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        422: {"description": "Missing field or oversized thumbnail", "model": ErrorResponse},
    },
    summary="Create a post",
)
async def create_post(
    title: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    thumbnail: Optional[UploadFile] = File(default=None, description="Image, max 2MB"),
    caller: CallerIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> PostResponse:
    upload = await read_upload(thumbnail, limit=posts.thumbnail_max_size)
    return await posts.create_post(
        db,
        caller_id=caller.id,
        title=title,
        category=category,
        description=description,
        thumbnail=upload,
    )


@router.get("", response_model=List[PostResponse], summary="List all posts")
async def get_posts(
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> List[PostResponse]:
    return await posts.list_posts(db)


@router.get(
    "/categories/{category}",
    response_model=List[PostResponse],
    summary="List posts in a category",
)
async def get_category_posts(
    category: str,
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> List[PostResponse]:
    return await posts.list_by_category(db, category)


@router.get(
    "/users/{user_id}",
    response_model=List[PostResponse],
    responses={400: {"description": "Malformed user id", "model": ErrorResponse}},
    summary="List posts by an author",
)
async def get_user_posts(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> List[PostResponse]:
    return await posts.list_by_user(db, user_id)


@router.get(
    "/{post_id}",
    response_model=PostResponse,
    responses={
        400: {"description": "Malformed post id", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
    summary="Get a single post",
)
async def get_post(
    post_id: str,
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> PostResponse:
    return await posts.get_post(db, post_id)


@router.patch(
    "/{post_id}",
    response_model=PostResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Caller is not the author", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
        422: {"description": "Invalid fields or oversized thumbnail", "model": ErrorResponse},
    },
    summary="Edit a post",
    openapi_extra=EDIT_BODY_DOC,
)
async def edit_post(
    post_id: str,
    request: Request,
    caller: CallerIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> PostResponse:
    fields, upload = await read_edit_body(request, limit=posts.thumbnail_max_size)
    return await posts.edit_post(
        db,
        caller_id=caller.id,
        post_id=post_id,
        title=fields.title,
        category=fields.category,
        description=fields.description,
        thumbnail=upload,
    )


@router.delete(
    "/{post_id}",
    response_model=MessageResponse,
    responses={
        400: {"description": "Malformed post id", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Caller is not the author", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
    summary="Delete a post",
)
async def delete_post(
    post_id: str,
    caller: CallerIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> MessageResponse:
    return await posts.delete_post(db, caller_id=caller.id, post_id=post_id)
