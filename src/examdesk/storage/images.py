"""
Module: storage.images

Purpose:
    Question image files under <data_root>/images. Saved images get a
    collision-resistant name and are referenced from Question records by a
    POSIX path relative to the data root ("images/qimg_...png").

Key Classes:
    - ImageStore: save / delete / resolve question images
    - ImageError: Payload is not a readable image

Dependencies:
    - Pillow: Verify uploaded bytes are an image before storing them
"""

from __future__ import annotations

import hashlib
import io
import logging
import time
from pathlib import Path, PurePosixPath
from typing import Optional

from PIL import Image, UnidentifiedImageError

from examdesk.config import StoreConfig

from .integrity import StoreIOError, ensure_directories

logger = logging.getLogger(__name__)


class ImageError(ValueError):
    """Image payload could not be identified."""


def image_file_name(original_name: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Build "qimg_<ms>_<8 hex>.<ext>" for an uploaded file.

    The hash is md5(original_name + timestamp), first 8 hex chars; the
    extension is the original one, lower-cased.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    digest = hashlib.md5(f"{original_name}{timestamp_ms}".encode("utf-8")).hexdigest()[:8]
    ext = PurePosixPath(original_name.replace("\\", "/")).suffix.lower()
    return f"qimg_{timestamp_ms}_{digest}{ext}"


def verify_image(data: bytes) -> str:
    """
    Check that bytes decode as an image.

    Returns:
        Pillow format name ("PNG", "JPEG", ...)

    Raises:
        ImageError: If Pillow cannot identify or verify the payload
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format or ""
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise ImageError(f"Not a readable image: {e}") from e
    return fmt


class ImageStore:
    """Filesystem storage for question images."""

    def __init__(self, config: StoreConfig) -> None:
        self.config = config

    def resolve(self, relative_path: str) -> Path:
        """
        Absolute path for a stored relative image path.

        Raises:
            ValueError: If the path escapes the data root
        """
        root = self.config.data_root.resolve()
        candidate = (root / relative_path.replace("\\", "/")).resolve()
        if candidate != root and root not in candidate.parents:
            raise ValueError(f"Image path escapes data root: {relative_path!r}")
        return candidate

    def save(self, data: bytes, original_name: str) -> Optional[str]:
        """
        Store an uploaded image.

        Returns:
            Path relative to the data root with '/' separators, or None on failure
        """
        try:
            verify_image(data)
            ensure_directories(self.config)
            target = self.config.images_dir / image_file_name(original_name)
            target.write_bytes(data)
        except (ImageError, StoreIOError, OSError) as e:
            logger.error(f"Failed to save image {original_name!r}: {e}")
            return None

        relative = target.relative_to(self.config.data_root).as_posix()
        logger.debug(f"Saved image {original_name!r} as {relative}")
        return relative

    def delete(self, relative_path: Optional[str]) -> bool:
        """
        Remove a stored image. Empty paths and already-missing files succeed.

        Returns:
            False only if the file exists and could not be removed
        """
        if not relative_path:
            return True
        try:
            path = self.resolve(relative_path)
            path.unlink(missing_ok=True)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to delete image {relative_path!r}: {e}")
            return False

        logger.debug(f"Deleted image {relative_path}")
        return True

    def exists(self, relative_path: Optional[str]) -> bool:
        if not relative_path:
            return False
        try:
            return self.resolve(relative_path).is_file()
        except ValueError:
            return False
