"""
Listings Backend — Image Storage Service
==========================================

What:  Content hashing, storage and lookup of item images.
How:   Image bytes are named by their SHA-256 digest plus the canonical
       extension and written into one flat directory. Lookups only accept
       bare file names ending in that extension; missing files fall back to
       the default image.
Who:   Called by ItemService (store) and the image route (resolve).

Naming scheme:
    name = hex(sha256(bytes)) + ".jpg"

    Identical uploads collapse to the same file, so a stored image may be
    referenced by several items and is never deleted.

Directory Structure:
    images/
    ├── default.jpg
    ├── 2c26b46b68ffc68ff99b453c1d30413413422d706483bfa0f98a5e886266e7ae.jpg
    └── ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad.jpg
"""

import hashlib
import logging
import os
import uuid
from pathlib import Path
from typing import Optional, Union

import aiofiles

from listings.config import settings
from listings.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def hash_image_bytes(content: bytes, extension: Optional[str] = None) -> str:
    """Return the content-derived file name for `content`."""
    return hashlib.sha256(content).hexdigest() + (extension or settings.image_extension)


def hash_image_file(path: Union[str, Path], extension: Optional[str] = None) -> str:
    """
    Hash the current content of a file on the server.

    Used when a client submits an image path instead of image bytes. An
    unreadable path hashes as the empty byte string, so the item is still
    stored with a (placeholder) image name.
    """
    try:
        content = Path(path).read_bytes()
    except OSError as e:
        logger.warning("Could not read image path %s: %s", path, str(e))
        content = b""
    return hash_image_bytes(content, extension)


class ImageService:
    """
    Manages the flat image directory.

    Lifecycle of an uploaded image:
        1. ItemService passes the uploaded bytes to store_image()
        2. The content hash becomes the file name
        3. If that file already exists the write is skipped (same bytes)
        4. Otherwise bytes go to a temp file which is renamed into place
        5. The file name is returned and stored on the item row
    """

    def __init__(
        self,
        image_dir: Optional[str] = None,
        default_image: Optional[str] = None,
        extension: Optional[str] = None,
    ):
        """
        Args:
            image_dir: Override the image directory (used in tests).
            default_image: Override the fallback image file name.
            extension: Override the canonical extension.
        """
        self.image_dir = Path(image_dir or settings.image_dir).resolve()
        self.default_image = default_image or settings.default_image
        self.extension = extension or settings.image_extension
        self.image_dir.mkdir(parents=True, exist_ok=True)
        logger.info("ImageService initialized with image_dir=%s", self.image_dir)

    def hash_name(self, content: bytes) -> str:
        return hash_image_bytes(content, self.extension)

    def hash_path(self, path: Union[str, Path]) -> str:
        return hash_image_file(path, self.extension)

    def validate_filename(self, filename: str) -> Path:
        """
        Check a requested image name and map it into the image directory.

        Rules:
            - must end with the canonical extension (".jpg")
            - must be a bare file name: no separators, no leading dot
            - the resolved path must stay inside the image directory

        Returns:
            Absolute path of the (possibly missing) image.

        Raises:
            ValidationError for any rule violation.
        """
        if not filename.endswith(self.extension):
            raise ValidationError(
                message=f"Image path does not end with {self.extension}",
                field="image_filename",
                context={"filename": filename},
            )

        if Path(filename).name != filename or filename.startswith(".") or "\\" in filename:
            raise ValidationError(
                message="Invalid image file name",
                field="image_filename",
                context={"filename": filename},
            )

        path = (self.image_dir / filename).resolve()
        if path.parent != self.image_dir:
            raise ValidationError(
                message="Invalid image file name",
                field="image_filename",
                context={"filename": filename},
            )
        return path

    def resolve_image(self, filename: str) -> Path:
        """
        Path of the image to serve for `filename`.

        Falls back to the default image when the named file is absent.

        Raises:
            ValidationError: bad extension or non-bare name (→ 400)
            NotFoundError: neither the image nor the default image exists (→ 404)
        """
        path = self.validate_filename(filename)
        if path.is_file():
            return path

        logger.debug("Image not found: %s", path)
        default_path = self.image_dir / self.default_image
        if not default_path.is_file():
            logger.error("Default image missing: %s", default_path)
            raise NotFoundError(resource="image", resource_id=filename)
        return default_path

    async def store_image(self, content: bytes) -> str:
        """
        Write image bytes under their content-hash name.

        Returns:
            The file name (not the path) stored on the item.

        Raises:
            FileStorageError if the directory is not writable.
        """
        filename = self.hash_name(content)
        target = self.image_dir / filename

        if target.exists():
            logger.debug("Image already stored: %s", filename)
            return filename

        # Concurrent identical uploads each write their own temp file;
        # os.replace makes whichever finishes last the visible copy.
        temp_path = self.image_dir / f".{filename}.{uuid.uuid4().hex}.tmp"
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(content)
            os.replace(temp_path, target)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", target, str(e))
            temp_path.unlink(missing_ok=True)
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(target), "os_error": str(e)},
            )

        logger.info("Image stored: %s (%d bytes)", filename, len(content))
        return filename


# ── Singleton Instance ────────────────────────────────────────────────────
image_service = ImageService()
