# pipeline/upload_segmenter.py
import logging
import uuid
from pathlib import Path, PurePath
from typing import Union

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from models.errors import ResourceError
from models.segmentation_result import SegmentationResult
from pipeline.binary_segmenter import segment

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Image segmentation completed successfully"


def _stored_name(filename: str, token: str) -> str:
    """
    Build ``<token>_<safe stem><suffix>``, or ``<token><suffix>`` when nothing of
    the stem survives secure_filename (e.g. non-ASCII names). The suffix comes
    from the raw name so the codec hint is never lost.
    """
    raw = PurePath(filename)
    suffix = raw.suffix.lower()
    if not (suffix[1:].isascii() and suffix[1:].isalnum()):
        suffix = ""
    stem = secure_filename(raw.stem if suffix else raw.name)
    if not stem and not suffix:
        raise ResourceError("no file selected")
    return f"{token}_{stem}{suffix}" if stem else f"{token}{suffix}"


def segment_upload(
    upload: FileStorage,
    upload_dir: Union[str, Path],
    *,
    url_prefix: str = "/uploads",
    threshold: int | None = None,
) -> SegmentationResult:
    """
    Store an uploaded image, segment it next to the original and
    return the URL paths of both artifacts.

    Files are named ``original_<token>_<name>`` / ``segmented_<token>_<name>``
    (the name part is dropped when it has no safe characters);
    the random token keeps concurrent uploads of the same name apart.
    The segmented copy keeps the upload's suffix, so it is written with the same codec.

    Raises:
        ResourceError: no usable filename, or the upload could not be stored.
        DecodeError / EncodeError: propagated from segment().
    """
    stored_name = _stored_name(upload.filename or "", uuid.uuid4().hex[:12])
    upload_dir = Path(upload_dir)
    original_name = f"original_{stored_name}"
    segmented_name = f"segmented_{stored_name}"

    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
        upload.save(str(upload_dir / original_name))
    except OSError as err:
        raise ResourceError(f"error saving file: {err}") from err
    logger.info(f"Stored upload {upload.filename!r} as {original_name}")

    segment(upload_dir / original_name, upload_dir / segmented_name, threshold=threshold)

    prefix = url_prefix.rstrip("/")
    return SegmentationResult(
        original_image=f"{prefix}/{original_name}",
        segmented_image=f"{prefix}/{segmented_name}",
        message=SUCCESS_MESSAGE,
    )
