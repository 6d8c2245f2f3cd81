"""
PlaceShare Backend — Uploaded Image Files
===========================================

What:  Serves stored place images at /uploads/images/{filename}.
Who:   <img> tags in the frontend, built from a place's `image` path.

Security:
    - The resolved path must stay inside settings.upload_root
    - Only files that exist are served
"""

from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.config import settings
from app.exceptions import NotFoundError, ValidationError

router = APIRouter(tags=["Files"])


@router.get(
    "/uploads/images/{filename}",
    summary="Serve an uploaded place image",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found"},
    },
)
async def serve_image(filename: str) -> FileResponse:
    upload_root = Path(settings.upload_root).resolve()
    full_path = (upload_root / filename).resolve()

    # Prevents path traversal (e.g. ..%2F..%2Fetc%2Fpasswd)
    if not full_path.is_relative_to(upload_root):
        raise ValidationError(message="Invalid file path", field="filename")

    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=filename)

    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
