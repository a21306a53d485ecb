"""
Inkwell Backend - Uploaded File Serving
========================================

What:  GET /uploads/{filename} returns a stored thumbnail or avatar.
Who:   <img> tags in the frontend, built from `thumbnail` / `avatar` fields.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from app.dependencies import get_file_service
from app.exceptions import NotFoundError
from app.services.file_service import FileService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])


@router.get(
    "/uploads/{filename}",
    summary="Serve an uploaded image",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Invalid file path"},
        404: {"description": "File not found"},
    },
)
async def serve_upload(
    filename: str,
    files: FileService = Depends(get_file_service),
) -> FileResponse:
    # path_for rejects names resolving outside the upload directory
    path = files.path_for(filename)

    if not path.is_file():
        raise NotFoundError(message="File not found.", resource="file", resource_id=filename)

    return FileResponse(
        path=str(path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
