# Routes package init
"""
Inkwell Backend - API Routes Package
=====================================

Route Inventory:
    - users.py:    /api/users/...   (register, login, profile, avatar, authors)
    - posts.py:    /api/posts/...   (post CRUD and listings)
    - uploads.py:  GET /uploads/{filename}  (stored thumbnails and avatars)
    - health.py:   GET /health

Routes stay thin: pull input out of the request, call a service, return its
schema. Errors raised by services are rendered by the handlers in main.py.
"""

import logging
from typing import Optional

from starlette.datastructures import UploadFile

from app.services.file_service import UploadedFile

logger = logging.getLogger(__name__)


async def read_upload(
    upload: Optional[UploadFile],
    limit: Optional[int] = None,
) -> Optional[UploadedFile]:
    """
    Read a multipart file field into memory; an empty field counts as absent.

    With a `limit`, at most `limit + 1` bytes are read: enough for the
    service's size check to reject the file without holding all of it.
    Uploads whose declared size is already over the limit are logged.
    """
    if upload is None or not upload.filename:
        return None
    try:
        if limit is None:
            content = await upload.read()
        else:
            if upload.size is not None and upload.size > limit:
                logger.info(
                    "Upload %s is %d bytes, over the %d byte limit",
                    upload.filename,
                    upload.size,
                    limit,
                )
            content = await upload.read(limit + 1)
    finally:
        await upload.close()
    return UploadedFile(filename=upload.filename, content=content)
