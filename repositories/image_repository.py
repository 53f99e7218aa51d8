from io import BytesIO
from typing import Callable, Dict
import logging
import os

import numpy as np
from PIL import Image as PILImage, UnidentifiedImageError
from dotenv import load_dotenv

from models.errors import DecodeError, EncodeError
from models.image import RasterImage
from models.image_format import ImageFormat
from models.pixel import CHANNEL_MAX

# Load environment variables
load_dotenv()
JPEG_QUALITY = int(os.getenv("JPEG_QUALITY", "90"))

logger = logging.getLogger(__name__)

_WIDEN = 257  # 0xFF * 257 == 0xFFFF


def _to_rgba16(pil_img: PILImage.Image) -> np.ndarray:
    """
    Convert any decoded Pillow image into an (H, W, 4) uint16 RGBA array with
    alpha-premultiplied colour channels (rgb * a // 0xFFFF).
    16-bit grayscale keeps its full depth; everything else goes through 8-bit RGBA,
    so 16-bit RGB(A) PNGs keep only the high byte of each sample.
    """
    if pil_img.mode in ("I", "F") or pil_img.mode.startswith("I;16"):
        gray = np.clip(np.asarray(pil_img), 0, CHANNEL_MAX).astype(np.uint16)
        alpha = np.full_like(gray, CHANNEL_MAX)
        return np.stack([gray, gray, gray, alpha], axis=-1)

    rgba = np.asarray(pil_img.convert("RGBA"), dtype=np.uint8).astype(np.uint32) * _WIDEN
    rgba[..., :3] = rgba[..., :3] * rgba[..., 3:] // CHANNEL_MAX
    return rgba.astype(np.uint16)


def _to_rgba8(image: RasterImage) -> np.ndarray:
    return (image.pixels // _WIDEN).astype(np.uint8)


# ---------- codecs ----------
def _decode(data: bytes, pillow_format: str) -> np.ndarray:
    with PILImage.open(BytesIO(data), formats=[pillow_format]) as pil_img:
        pil_img.load()  # force a full decode so truncation surfaces here
        return _to_rgba16(pil_img)


def _encode_png(image: RasterImage) -> bytes:
    buffer = BytesIO()
    PILImage.fromarray(_to_rgba8(image)).save(buffer, format="PNG")
    return buffer.getvalue()


def _encode_jpeg(image: RasterImage) -> bytes:
    # JPEG has no alpha channel
    rgb = np.ascontiguousarray(_to_rgba8(image)[:, :, :3])
    buffer = BytesIO()
    PILImage.fromarray(rgb).save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return buffer.getvalue()


_DECODERS: Dict[ImageFormat, Callable[[bytes], np.ndarray]] = {
    ImageFormat.PNG: lambda data: _decode(data, "PNG"),
    ImageFormat.JPEG: lambda data: _decode(data, "JPEG"),
}

_ENCODERS: Dict[ImageFormat, Callable[[RasterImage], bytes]] = {
    ImageFormat.PNG: _encode_png,
    ImageFormat.JPEG: _encode_jpeg,
}


class ImageRepository:
    """
    Codec access for RasterImage entities: bytes in, bytes out.
    """

    @staticmethod
    def decode(data: bytes, image_format: ImageFormat) -> RasterImage:
        """
        Decode *data* with the codec selected by *image_format*.

        Raises:
            DecodeError: data is empty, truncated, corrupt or of another format.
        """
        if not data:
            raise DecodeError(f"error decoding image: no {image_format.value} data")
        try:
            pixels = _DECODERS[image_format](data)
        except (UnidentifiedImageError, OSError, EOFError, SyntaxError, ValueError) as err:
            raise DecodeError(f"error decoding image: {err}") from err

        height, width = pixels.shape[:2]
        if width == 0 or height == 0:
            raise DecodeError(f"error decoding image: empty {width}x{height} raster")
        return RasterImage(pixels=pixels)

    @staticmethod
    def encode(image: RasterImage, image_format: ImageFormat) -> bytes:
        """
        Serialize *image* with the codec selected by *image_format*.
        PNG is lossless; JPEG uses the process-wide JPEG_QUALITY.

        Raises:
            EncodeError: the codec rejected the pixel grid.
        """
        try:
            data = _ENCODERS[image_format](image)
        except (OSError, ValueError, TypeError, KeyError) as err:
            raise EncodeError(f"error encoding output image: {err}") from err

        logger.debug(f"Encoded {image.width}x{image.height} image as {image_format.value}: {len(data)} bytes")
        return data
