# services/segmentation_service.py
"""
Luma + threshold classification.

• luma(pixel)            → unweighted integer mean of R, G, B (alpha ignored)
• classify(luma, thr)    → WHITE if luma > thr, else BLACK (ties go BLACK)
• *_grid variants apply the same arithmetic to a whole (H, W, 4) array.
"""
import logging
import os

import numpy as np
from dotenv import load_dotenv

from models.image import RasterImage
from models.pixel import BLACK, CHANNEL_MAX, WHITE, Pixel

# Load environment variables
load_dotenv()
DEFAULT_THRESHOLD = int(os.getenv("SEGMENTATION_THRESHOLD", str((CHANNEL_MAX + 1) // 2)))  # 32768

logger = logging.getLogger(__name__)


def luma(pixel: Pixel) -> int:
    return (pixel.red + pixel.green + pixel.blue) // 3


def classify(brightness: int, threshold: int = DEFAULT_THRESHOLD) -> Pixel:
    return WHITE if brightness > threshold else BLACK


def luma_grid(pixels: np.ndarray) -> np.ndarray:
    """
    Args
    ----
    pixels : np.ndarray  (H, W, 4)  uint16  RGBA

    Returns
    -------
    brightness : np.ndarray  (H, W)  uint32
    """
    rgb = pixels[..., :3].astype(np.uint32)  # 3 * 0xFFFF overflows uint16
    return rgb.sum(axis=-1) // 3


def classify_grid(brightness: np.ndarray, threshold: int = DEFAULT_THRESHOLD) -> np.ndarray:
    """
    Map a (H, W) brightness array to an opaque black/white (H, W, 4) uint16 grid.
    """
    out = np.empty(brightness.shape + (4,), dtype=np.uint16)
    out[...] = BLACK.as_tuple()
    out[brightness > threshold] = WHITE.as_tuple()
    return out


class SegmentationService:
    """
    Binary segmentation of a RasterImage by per-pixel brightness.
    Holds no state besides the threshold.
    """

    def __init__(self, threshold: int | None = None) -> None:
        self.threshold = DEFAULT_THRESHOLD if threshold is None else int(threshold)

    def segment(self, img: RasterImage) -> RasterImage:
        """
        Return a *new* RasterImage of identical bounds; every pixel is WHITE or BLACK.
        """
        segmented = classify_grid(luma_grid(img.pixels), self.threshold)
        logger.debug(
            f"Segmented {img.width}x{img.height} image at threshold {self.threshold}: "
            f"{self.white_fraction(segmented):.1%} white"
        )
        return RasterImage(pixels=segmented)

    @staticmethod
    def white_fraction(pixels: np.ndarray) -> float:
        if pixels.size == 0:
            return 0.0
        return float((pixels[..., 0] == CHANNEL_MAX).mean())
