from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import numpy as np

from models.pixel import Pixel


@dataclass
class RasterImage:
    """
    Simple data object: RGBA pixels (+ optional source path for bookkeeping).
    No codec logic outside repositories/image_repository.py.
    """
    pixels: np.ndarray # Shape (H, W, 4), dtype uint16, RGBA order.
    path: Path | None = None # Source of the image.

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def at(self, x: int, y: int) -> Pixel:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"({x}, {y}) outside {self.width}x{self.height} image")
        r, g, b, a = (int(v) for v in self.pixels[y, x])
        return Pixel(r, g, b, a)
