"""
PlaceShare Backend — Image Lifecycle Manager
==============================================

What:  Ties an uploaded image file to a place and removes it afterwards.
How:   attach() stores the upload path verbatim on the place; release()
       deletes the file from disk.
When:  attach() while a place is being created; release() after a place
       deletion has committed, or after a failed create left an upload
       behind.

release() is best effort: a missing file or any OS error is logged and
swallowed. It never changes the outcome of the request that scheduled it.
"""

import logging
from pathlib import Path

import aiofiles.os

from app.models.place import Place

logger = logging.getLogger(__name__)


class ImageLifecycleManager:
    """Attach/release of place images. Stateless."""

    def attach(self, place: Place, uploaded_path: str) -> None:
        """Store the upload path on the place. No format or quota checks."""
        place.image = uploaded_path

    async def release(self, path: str) -> None:
        """
        Remove an image file from disk.

        Called as a FastAPI background task after DELETE /api/places/{pid}
        has responded, so failures are recorded here and nowhere else.
        """
        if not path:
            return
        try:
            await aiofiles.os.remove(path)
            logger.info("Removed image file: %s", path)
        except FileNotFoundError:
            logger.debug("Image file already gone: %s", Path(path).name)
        except Exception as e:
            logger.warning("Failed to remove image file %s: %s", path, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
image_lifecycle = ImageLifecycleManager()
