"""
Inkwell Backend - File Storage Service
=======================================

What:  Stores uploaded thumbnails and avatars, enforces size limits,
       and removes files that are replaced or orphaned.
How:   Files live flat inside one upload directory under generated names
       and are served back at /uploads/<filename>.
Who:   Used by PostService (thumbnails) and UserService (avatars).

Filename scheme:
    "<prefix><uuid4><.ext>" where prefix is the client basename up to its first
    dot and ext is the part after its last dot:

        "summer.trip.jpg" → "summer3f2b...-9c1e.jpg"
        "avatar"          → "avatar3f2b...-9c1e"

    Directory components of the client name are dropped, so a generated name
    never contains a path separator.

Deletion modes:
    discard(): best-effort, failures are logged and swallowed
    remove():  a missing file is fine, any other failure raises FileStorageError
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Optional

import aiofiles
import aiofiles.os

from app.exceptions import BadRequestError, FileStorageError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedFile:
    """An upload read into memory by the route layer."""

    filename: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class FileService:
    """
    Manages the upload directory.

    Directory Structure:
        uploads/
        ├── beach1b4e0c6a-...-7d21.jpg     (post thumbnail)
        └── me9a77f0d2-...-41c3.png        (user avatar)
    """

    def __init__(self, upload_dir: str):
        self.upload_dir = Path(upload_dir).resolve()
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with upload_dir=%s", self.upload_dir)

    @staticmethod
    def generate_filename(original: str) -> str:
        """Build a unique storage name that keeps the client's prefix and extension."""
        # Browsers on Windows may send "C:\\fakepath\\photo.jpg"
        basename = PureWindowsPath(PurePosixPath(original or "").name).name
        parts = basename.split(".")
        extension = f".{parts[-1]}" if len(parts) > 1 else ""
        return f"{parts[0]}{uuid.uuid4()}{extension}"

    @staticmethod
    def ensure_within_limit(
        upload: UploadedFile,
        limit: int,
        message: str,
        field: str = "file",
    ) -> None:
        """
        Reject uploads larger than `limit` bytes.

        A file of exactly `limit` bytes is accepted.

        Raises:
            ValidationError with the caller's message
        """
        if upload.size > limit:
            raise ValidationError(
                message=message,
                field=field,
                context={"limit": limit, "actual_size": upload.size},
            )

    def path_for(self, filename: str) -> Path:
        """
        Resolve a stored filename to its absolute path.

        Raises:
            BadRequestError if the name would resolve outside the upload directory
        """
        candidate = (self.upload_dir / filename).resolve()
        if not filename or candidate.parent != self.upload_dir:
            raise BadRequestError(
                message="Invalid file path",
                context={"filename": filename},
            )
        return candidate

    async def store(self, upload: UploadedFile) -> str:
        """
        Write an upload to disk under a generated name.

        Returns:
            The generated filename (what the database stores).

        Raises:
            FileStorageError if the write fails.
        """
        filename = self.generate_filename(upload.filename)
        path = self.upload_dir / filename

        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(upload.content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to upload file. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", filename, upload.size)
        return filename

    async def discard(self, filename: Optional[str]) -> None:
        """
        Best-effort removal of a replaced or orphaned file.

        Never raises; failures are logged so the governing operation can
        continue.
        """
        if not filename:
            return
        try:
            await aiofiles.os.remove(self.path_for(filename))
            logger.info("Removed file: %s", filename)
        except FileNotFoundError:
            logger.debug("Removal skipped, file already gone: %s", filename)
        except (OSError, BadRequestError) as e:
            logger.warning("Failed to remove file %s: %s", filename, str(e))

    async def remove(self, filename: str) -> None:
        """
        Remove a file, treating "already missing" as success.

        Raises:
            FileStorageError for any other failure.
        """
        path = self.path_for(filename)
        try:
            await aiofiles.os.remove(path)
            logger.info("Removed file: %s", filename)
        except FileNotFoundError:
            logger.debug("Removal skipped, file already gone: %s", filename)
        except OSError as e:
            logger.error("Failed to remove file %s: %s", filename, str(e))
            raise FileStorageError(
                message="Failed to delete file.",
                context={"path": str(path), "os_error": str(e)},
            )
