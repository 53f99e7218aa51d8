from pathlib import Path
from typing import BinaryIO, Union
import logging

from models.errors import ResourceError
from models.image import RasterImage
from models.image_format import ImageFormat
from repositories.image_repository import ImageRepository

logger = logging.getLogger(__name__)


class ImageService:
    """I/O helpers.  Stream handling and format hints, no classification logic."""
    def __init__(self):
        self.image_repository = ImageRepository()

    def read(self, source: BinaryIO, name: Union[str, Path, None]) -> RasterImage:
        """
        Read *source* to completion and decode it with the codec implied by *name*.
        """
        try:
            data = source.read()
        except OSError as err:
            raise ResourceError(f"error reading image: {err}") from err

        image_format = ImageFormat.from_name(name)
        img = self.image_repository.decode(data, image_format)
        if name is not None:
            img.path = Path(name)
        logger.debug(f"Decoded {name} as {image_format.value}: {img.width}x{img.height}")
        return img

    def load(self, path: Union[str, Path]) -> RasterImage:
        """Load a single image from disk into a RasterImage object."""
        path = Path(path)
        try:
            with path.open("rb") as source:
                return self.read(source, path)
        except OSError as err:
            raise ResourceError(f"error opening image: {err}") from err

    def to_bytes(self, img: RasterImage, name: Union[str, Path, None]) -> bytes:
        """
        Encode *img* with the codec implied by *name*.
        """
        return self.image_repository.encode(img, ImageFormat.from_name(name))

    def write(self, img: RasterImage, sink: BinaryIO, name: Union[str, Path, None]) -> None:
        """
        Encode fully in memory, then write to *sink*, so a failed encode writes nothing.
        """
        data = self.to_bytes(img, name)
        try:
            sink.write(data)
            sink.flush()
        except OSError as err:
            raise ResourceError(f"error writing output image: {err}") from err
