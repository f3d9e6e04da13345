"""
Source File Handling

An uploaded file is held as raw bytes plus its declared MIME type.
Validation happens here, before any decoding is attempted.
"""

import io
import mimetypes
import os
from dataclasses import dataclass
from typing import Optional, Sequence

from PIL import Image, UnidentifiedImageError

from .config import MB
from .errors import ErrorKind, ImageProcessingError


EXTENSION_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.webp': 'image/webp',
}


@dataclass(frozen=True)
class SourceFile:
    """An uploaded image: bytes plus declared MIME type."""
    data: bytes
    mime_type: str
    name: str = "upload"

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_animated_format(self) -> bool:
        return self.mime_type == 'image/gif'

    @classmethod
    def from_path(cls, path: str, mime_type: Optional[str] = None) -> 'SourceFile':
        """
        Read a file from disk, guessing its MIME type from the extension.
        """
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Image file not found: {path}")

        if mime_type is None:
            ext = os.path.splitext(path)[1].lower()
            mime_type = EXTENSION_TYPES.get(ext) or mimetypes.guess_type(path)[0] or ''

        with open(path, 'rb') as f:
            data = f.read()
        return cls(data=data, mime_type=mime_type, name=os.path.basename(path))

    def open(self) -> Image.Image:
        """
        Decode the bytes with Pillow.

        Raises:
            ImageProcessingError: LOAD_ERROR if the data is not a readable image
        """
        try:
            image = Image.open(io.BytesIO(self.data))
            image.load()
            return image
        except (UnidentifiedImageError, OSError, EOFError, SyntaxError, ValueError) as e:
            raise ImageProcessingError(
                f"Failed to load image: {e}", ErrorKind.LOAD_ERROR)


def validate_source(source: Optional[SourceFile],
                    supported_formats: Sequence[str],
                    max_file_size: int,
                    label: str = "File"):
    """
    Check presence, MIME type and byte size of an upload.

    Raises:
        ImageProcessingError: NO_FILE, UNSUPPORTED_FORMAT or FILE_TOO_LARGE
    """
    if source is None or not source.data:
        raise ImageProcessingError("No file provided", ErrorKind.NO_FILE)

    if source.mime_type not in supported_formats:
        raise ImageProcessingError(
            f"Unsupported file format: {source.mime_type or 'unknown'}. "
            f"Supported formats: {', '.join(supported_formats)}",
            ErrorKind.UNSUPPORTED_FORMAT)

    if source.size > max_file_size:
        raise ImageProcessingError(
            f"{label} too large: {source.size / MB:.2f}MB. "
            f"Maximum size: {max_file_size / MB:.2f}MB",
            ErrorKind.FILE_TOO_LARGE)


def validate_dimensions(width: int, height: int, min_dimension: int, max_dimension: int):
    """
    Check decoded image dimensions against the allowed range.

    Raises:
        ImageProcessingError: IMAGE_TOO_SMALL or IMAGE_TOO_LARGE
    """
    if width < min_dimension or height < min_dimension:
        raise ImageProcessingError(
            f"Image too small: {width}x{height}. "
            f"Minimum size: {min_dimension}x{min_dimension}",
            ErrorKind.IMAGE_TOO_SMALL)

    if width > max_dimension or height > max_dimension:
        raise ImageProcessingError(
            f"Image too large: {width}x{height}. "
            f"Maximum size: {max_dimension}x{max_dimension}",
            ErrorKind.IMAGE_TOO_LARGE)
