from __future__ import annotations
from enum import Enum
from pathlib import PurePath
import logging

logger = logging.getLogger(__name__)


class ImageFormat(Enum):
    """
    The two codecs the pipeline can read and write.
    The value is the Pillow format name.
    """
    PNG = "PNG"
    JPEG = "JPEG"

    @classmethod
    def from_name(cls, name: str | PurePath | None) -> "ImageFormat":
        """
        Derive the codec from a filename suffix (case-insensitive).

        Unknown or missing suffixes fall back to JPEG instead of failing.
        """
        suffix = PurePath(str(name)).suffix.lower() if name else ""
        fmt = _SUFFIXES.get(suffix)
        if fmt is None:
            logger.debug(f"No codec registered for suffix {suffix!r} ({name}); defaulting to JPEG")
            return cls.JPEG
        return fmt


_SUFFIXES = {
    ".png": ImageFormat.PNG,
    ".jpg": ImageFormat.JPEG,
    ".jpeg": ImageFormat.JPEG,
}
