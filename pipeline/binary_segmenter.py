# pipeline/binary_segmenter.py
"""
Decode → luma/threshold classify → encode.

Every run reads its input once, writes its output once and keeps no state
between calls, so concurrent runs only share the filesystem namespace.
"""
import logging
from pathlib import Path
from typing import BinaryIO, Union

from models.errors import PipelineError, ResourceError
from models.image import RasterImage
from services.image_service import ImageService
from services.segmentation_service import SegmentationService

logger = logging.getLogger(__name__)


def segment_image(
    img: RasterImage,
    *,
    threshold: int | None = None,
) -> RasterImage:
    """
    In-memory step: classify every pixel of *img* into a new opaque black/white grid.
    """
    segmented = SegmentationService(threshold).segment(img)
    if segmented.size != img.size:
        raise PipelineError(
            f"segmented image is {segmented.width}x{segmented.height}, "
            f"expected {img.width}x{img.height}"
        )
    return segmented


def segment_stream(
    source: BinaryIO,
    source_name: Union[str, Path, None],
    sink: BinaryIO,
    sink_name: Union[str, Path, None],
    *,
    threshold: int | None = None,
    image_service: ImageService | None = None,
) -> None:
    """
    Segment an already-open *source* into an already-open *sink*.
    The names are used only to pick the codec. Closing both is the caller's job.

    Raises:
        DecodeError, EncodeError, ResourceError
    """
    image_service = image_service or ImageService()
    img = image_service.read(source, source_name)
    segmented = segment_image(img, threshold=threshold)
    image_service.write(segmented, sink, sink_name)


def segment(
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    *,
    threshold: int | None = None,
    image_service: ImageService | None = None,
) -> None:
    """
    Segment the image at *input_path* into *output_path*.

    The output is encoded completely in memory before the file is created,
    so an encode failure leaves no file behind. A file that cannot be opened
    is left untouched; a failed write removes the partial file. Both files
    are closed on every exit path.

    Raises:
        DecodeError: input is not valid data for the codec its suffix selects.
        EncodeError: the output codec rejected the segmented grid.
        ResourceError: a file could not be opened, read or written.
    """
    image_service = image_service or ImageService()
    input_path, output_path = Path(input_path), Path(output_path)

    img = image_service.load(input_path)
    segmented = segment_image(img, threshold=threshold)
    data = image_service.to_bytes(segmented, output_path)

    try:
        sink = output_path.open("wb")
    except OSError as err:
        raise ResourceError(f"error creating output file: {err}") from err

    # opened, so a failed write leaves a partial file of ours to remove
    try:
        with sink:
            sink.write(data)
    except OSError as err:
        output_path.unlink(missing_ok=True)
        raise ResourceError(f"error writing output image: {err}") from err

    logger.info(
        f"Segmented {input_path.name} ({img.width}x{img.height}) → {output_path.name}, "
        f"{SegmentationService.white_fraction(segmented.pixels):.1%} white"
    )
