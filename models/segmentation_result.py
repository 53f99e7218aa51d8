from __future__ import annotations
from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class SegmentationResult:
    """
    References to the stored original and segmented artifacts.
    Built once per successful upload and handed to the HTTP layer.
    """
    original_image: str   # URL path of the stored upload
    segmented_image: str  # URL path of the black/white output
    message: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)
