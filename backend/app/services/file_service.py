"""
PlaceShare Backend — Image Upload Service
============================================

What:  Validates and stores the image uploaded with a new place.
How:   Checks extension, declared MIME type and size, then writes the bytes
       under a UUID filename in the upload directory.
Who:   Called by POST /api/places before the place is created.
When:  After multipart parsing, before PlaceService.create_place().

The returned path string is all the rest of the system sees of the upload:
it is stored verbatim on the place and later handed to
ImageLifecycleManager.release().

Checks:
    1. Extension: .png, .jpg, .jpeg
    2. Declared MIME type: image/png, image/jpg, image/jpeg
    3. Size: non-empty and at most settings.max_file_size
    4. UUID filename: no user input reaches the filesystem path
"""

import logging
import uuid
from pathlib import Path
from typing import Optional

import aiofiles

from app.config import settings
from app.exceptions import ValidationError, FileStorageError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
# MIME type → extension used for the stored file
ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpeg",
    "image/jpg": ".jpg",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg"}


class FileService:
    """
    Manages upload validation and storage.

    Directory Structure:
        uploads/
        └── images/
            ├── a1b2c3d4-....jpeg
            └── e5f6g7h8-....png
    """

    def __init__(self, upload_root: Optional[str] = None):
        """
        Args:
            upload_root: Override the upload directory (used in tests).
                         If None, uses settings.upload_root.
        """
        self.upload_root = Path(upload_root or settings.upload_root)

    def validate_extension(self, filename: str) -> str:
        """
        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_mime_type(self, content_type: Optional[str]) -> str:
        """
        Check the MIME type declared by the client for the file part.

        Returns: The extension to store the file under.
        Raises:  ValidationError for anything other than PNG/JPEG.
        """
        mime_type = (content_type or "").split(";")[0].strip().lower()
        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message="Invalid mime type! The image must be a PNG or JPEG file.",
                field="image",
                context={"content_type": content_type, "allowed": list(ALLOWED_MIME_TYPES)},
            )
        return ALLOWED_MIME_TYPES[mime_type]

    def validate_size(self, actual_size: int) -> None:
        """Reject empty uploads and uploads above settings.max_file_size."""
        if actual_size == 0:
            raise ValidationError(message="The uploaded image is empty.", field="image")

        if actual_size > settings.max_file_size:
            max_kb = settings.max_file_size / 1000
            raise ValidationError(
                message=f"The uploaded image is too large (max {max_kb:.0f}KB).",
                field="image",
                context={"max_size": settings.max_file_size, "actual_size": actual_size},
            )

    async def store_file(self, content: bytes, extension: str) -> str:
        """
        Write validated file content to disk.

        Returns: The stored path, "<upload_root>/<uuid><ext>".
        Raises:  FileStorageError if directory creation or file write fails.
        """
        path = self.upload_root / f"{uuid.uuid4()}{extension}"

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise FileStorageError(
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Image stored: %s (%d bytes)", path, len(content))
        return path.as_posix()

    async def validate_and_store(
        self,
        filename: str,
        content_type: Optional[str],
        content: bytes,
    ) -> str:
        """
        Complete upload pipeline: extension → MIME type → size → write.

        Returns: The stored path to attach to the new place.
        """
        self.validate_extension(filename)
        extension = self.validate_mime_type(content_type)
        self.validate_size(len(content))
        return await self.store_file(content, extension)


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
