"""
Error Types

Every failure raised by the conversion pipelines is an
ImageProcessingError carrying a machine-readable kind and a
message suitable for showing to the user.
"""

from enum import Enum


class ErrorKind(Enum):
    """Machine-readable failure kinds."""
    NO_FILE = "NO_FILE"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    LOAD_ERROR = "LOAD_ERROR"
    IMAGE_TOO_SMALL = "IMAGE_TOO_SMALL"
    IMAGE_TOO_LARGE = "IMAGE_TOO_LARGE"
    GRAYSCALE_ERROR = "GRAYSCALE_ERROR"
    THRESHOLD_ERROR = "THRESHOLD_ERROR"
    RESAMPLE_ERROR = "RESAMPLE_ERROR"
    EXPORT_ERROR = "EXPORT_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"


class ImageProcessingError(Exception):
    """A pipeline failure with a kind and a user-facing message."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.PROCESSING_ERROR):
        super().__init__(message)
        self.message = message
        self.kind = kind

    @property
    def code(self) -> str:
        return self.kind.value

    @classmethod
    def wrap(cls, error: Exception) -> 'ImageProcessingError':
        """
        Wrap an unexpected exception so callers only ever see
        structured failures.
        """
        if isinstance(error, ImageProcessingError):
            return error
        wrapped = cls(f"Processing error: {error}", ErrorKind.PROCESSING_ERROR)
        wrapped.__cause__ = error
        return wrapped

    def __repr__(self):
        return f"ImageProcessingError({self.kind.value}: {self.message!r})"


class ProcessingCancelled(Exception):
    """Raised when an in-flight job notices its cancel token was set."""


def get_error_message(error: Exception) -> str:
    """Return a message for display, whatever was raised."""
    if isinstance(error, ImageProcessingError):
        return error.message
    if isinstance(error, MemoryError):
        return "File too large for processing. Please try a smaller image."
    if isinstance(error, PermissionError):
        return "Security error: Cannot process this image."
    return f"Processing error: {error}"
