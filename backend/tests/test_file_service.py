"""
Inkwell Backend - File Service Unit Tests
==========================================

What:  Tests for FileService naming, size limits, storage and removal.
How:   Each test gets its own temporary upload directory.

Test Strategy:
    ✅ Generated names keep prefix and extension, never collide
    ✅ Size limit boundary (exactly at limit passes, one byte over fails)
    ✅ Files outside the upload directory are refused
    ✅ discard() never raises, remove() raises on real failures
"""

import io
from unittest.mock import AsyncMock, patch

import pytest
from starlette.datastructures import UploadFile

from app.exceptions import BadRequestError, FileStorageError, ValidationError
from app.routes import read_upload
from app.services.file_service import FileService, UploadedFile

LIMIT = 2_000_000


class TestGenerateFilename:
    """Tests for FileService.generate_filename()."""

    def test_keeps_prefix_and_last_extension(self):
        name = FileService.generate_filename("summer.trip.jpg")
        assert name.startswith("summer")
        assert name.endswith(".jpg")
        assert "trip" not in name

    def test_no_extension(self):
        name = FileService.generate_filename("avatar")
        assert name.startswith("avatar")
        assert "." not in name

    def test_names_are_unique(self):
        names = {FileService.generate_filename("photo.png") for _ in range(50)}
        assert len(names) == 50

    def test_directory_components_dropped(self):
        """Client paths (POSIX or Windows style) never leak into the name."""
        for original in ("../../etc/passwd.txt", "C:\\fakepath\\photo.jpg"):
            name = FileService.generate_filename(original)
            assert "/" not in name
            assert "\\" not in name

        assert FileService.generate_filename("C:\\fakepath\\photo.jpg").startswith("photo")


class TestSizeLimit:
    """Tests for FileService.ensure_within_limit()."""

    def test_exactly_at_limit_passes(self):
        upload = UploadedFile(filename="big.jpg", content=b"x" * LIMIT)
        FileService.ensure_within_limit(upload, LIMIT, "too big")

    def test_one_byte_over_limit_fails(self):
        upload = UploadedFile(filename="big.jpg", content=b"x" * (LIMIT + 1))
        with pytest.raises(ValidationError, match="Thumbnail too big") as exc_info:
            FileService.ensure_within_limit(
                upload,
                LIMIT,
                "Thumbnail too big. File should be less than 2MB.",
                field="thumbnail",
            )
        assert exc_info.value.field == "thumbnail"
        assert exc_info.value.context["actual_size"] == LIMIT + 1


class TestStorage:
    """Tests for writing, resolving and removing stored files."""

    @pytest.mark.asyncio
    async def test_store_writes_content(self, file_service, upload_dir):
        filename = await file_service.store(UploadedFile(filename="cover.png", content=b"pixels"))

        stored = upload_dir / filename
        assert stored.exists()
        assert stored.read_bytes() == b"pixels"

    @pytest.mark.asyncio
    async def test_store_failure_raises_storage_error(self, file_service):
        with patch("aiofiles.open", side_effect=PermissionError("read-only")):
            with pytest.raises(FileStorageError):
                await file_service.store(UploadedFile(filename="cover.png", content=b"x"))

    def test_path_for_rejects_traversal(self, file_service):
        with pytest.raises(BadRequestError):
            file_service.path_for("../secrets.txt")

    def test_path_for_rejects_empty_name(self, file_service):
        with pytest.raises(BadRequestError):
            file_service.path_for("")

    def test_path_for_resolves_inside_upload_dir(self, file_service, upload_dir):
        assert file_service.path_for("cover.png") == (upload_dir / "cover.png").resolve()

    # ── discard() ─────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_discard_removes_file(self, file_service, upload_dir):
        target = upload_dir / "old.png"
        target.write_bytes(b"old")

        await file_service.discard("old.png")
        assert not target.exists()

    @pytest.mark.asyncio
    async def test_discard_missing_file_is_silent(self, file_service):
        await file_service.discard("nonexistent.png")
        await file_service.discard(None)

    @pytest.mark.asyncio
    async def test_discard_swallows_os_errors(self, file_service, upload_dir):
        (upload_dir / "locked.png").write_bytes(b"x")
        with patch("aiofiles.os.remove", new=AsyncMock(side_effect=PermissionError("denied"))):
            await file_service.discard("locked.png")

    # ── remove() ──────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_remove_missing_file_is_success(self, file_service):
        await file_service.remove("nonexistent.png")

    @pytest.mark.asyncio
    async def test_remove_raises_on_other_failures(self, file_service, upload_dir):
        (upload_dir / "locked.png").write_bytes(b"x")
        with patch("aiofiles.os.remove", new=AsyncMock(side_effect=PermissionError("denied"))):
            with pytest.raises(FileStorageError, match="Failed to delete file."):
                await file_service.remove("locked.png")


class TestReadUpload:
    """Tests for reading multipart uploads into memory."""

    @pytest.mark.asyncio
    async def test_missing_or_unnamed_upload_is_absent(self):
        assert await read_upload(None) is None
        assert await read_upload(UploadFile(io.BytesIO(b"x"), filename="")) is None

    @pytest.mark.asyncio
    async def test_reads_whole_file_within_limit(self):
        upload = UploadFile(io.BytesIO(b"x" * 100), size=100, filename="cover.png")

        result = await read_upload(upload, limit=100)

        assert result.filename == "cover.png"
        assert result.size == 100

    @pytest.mark.asyncio
    async def test_oversized_upload_read_only_past_limit(self):
        """Only limit + 1 bytes are buffered; the size check still rejects it."""
        upload = UploadFile(io.BytesIO(b"x" * 10_000), size=10_000, filename="huge.png")

        result = await read_upload(upload, limit=100)

        assert result.size == 101
        with pytest.raises(ValidationError):
            FileService.ensure_within_limit(result, 100, "too big")

    @pytest.mark.asyncio
    async def test_upload_closed_after_read(self):
        upload = UploadFile(io.BytesIO(b"x" * 10), filename="cover.png")
        await read_upload(upload, limit=100)
        assert upload.file.closed
