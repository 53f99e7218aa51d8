"""
Failure kinds reported by the segmentation pipeline.
Callers catch PipelineError and translate it for their transport.
"""


class PipelineError(RuntimeError):
    """Raised when segment() cannot produce an output image."""


class DecodeError(PipelineError):
    """Raised when input bytes are not valid data for the selected codec."""


class EncodeError(PipelineError):
    """Raised when the selected codec rejects the output pixel grid."""


class ResourceError(PipelineError):
    """Raised when an input or output resource cannot be opened, read or written."""
