from __future__ import annotations
from dataclasses import dataclass

CHANNEL_MAX = 0xFFFF  # 16-bit intermediate, same as 8-bit sample * 257


@dataclass(frozen=True)
class Pixel:
    """
    One RGBA sample, each channel in [0, CHANNEL_MAX].
    """
    red: int
    green: int
    blue: int
    alpha: int = CHANNEL_MAX

    def as_tuple(self) -> tuple[int, int, int, int]:
        return self.red, self.green, self.blue, self.alpha


WHITE = Pixel(CHANNEL_MAX, CHANNEL_MAX, CHANNEL_MAX, CHANNEL_MAX)
BLACK = Pixel(0, 0, 0, CHANNEL_MAX)
