"""
Animated Image Decoding Module

Reads every frame of an animated GIF with its own pixel data, its own
display delay and its disposal method, straight from the container.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, List, Optional

import numpy as np
from PIL import Image, ImageSequence

from ..config import GifConfig
from ..conversion import GridConverter
from ..errors import ErrorKind, ImageProcessingError
from ..source import SourceFile


class Disposal(IntEnum):
    """GIF disposal methods, as stored in the graphic control extension."""
    UNSPECIFIED = 0
    NONE = 1
    BACKGROUND = 2
    PREVIOUS = 3

    @classmethod
    def from_value(cls, value) -> 'Disposal':
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNSPECIFIED


@dataclass
class DecodedFrame:
    """One decoded frame, composited onto the logical screen."""
    index: int
    raster: np.ndarray  # H x W x 4 uint8
    duration_ms: int
    disposal: Disposal

    @property
    def width(self) -> int:
        return self.raster.shape[1]

    @property
    def height(self) -> int:
        return self.raster.shape[0]


class GifDecoder:
    """
    Decode animated GIFs frame by frame.

    Pillow composites each frame over the previous canvas according to
    the disposal method, so every yielded raster is the full picture a
    viewer would show at that point of the timeline.
    """

    def __init__(self, config: Optional[GifConfig] = None):
        """
        Initialize the decoder.

        Args:
            config: GifConfig with frame cap and delay bounds
        """
        self.config = config or GifConfig()
        self.width = 0
        self.height = 0
        self.total_frames = 0

    def normalize_delay(self, duration) -> int:
        """
        Turn a container delay into a playable duration in ms.

        Missing or zero delays use the default; everything else is
        clamped to the configured bounds.
        """
        try:
            delay = int(round(float(duration)))
        except (TypeError, ValueError):
            delay = 0
        if delay <= 0:
            delay = self.config.default_delay
        return max(self.config.min_delay, min(self.config.max_delay, delay))

    def open(self, source: SourceFile) -> Image.Image:
        image = source.open()
        self.width, self.height = image.size
        self.total_frames = getattr(image, 'n_frames', 1)
        return image

    def iter_frames(self, source: SourceFile) -> Iterator[DecodedFrame]:
        """
        Yield decoded frames in source order, up to the frame cap.

        Frames beyond the cap are dropped without error.

        Raises:
            ImageProcessingError: LOAD_ERROR if a frame cannot be decoded
        """
        image = self.open(source)
        if self.total_frames > self.config.max_frames:
            print(f"[GifDecoder] {self.total_frames} frames in source, "
                  f"keeping the first {self.config.max_frames}")
        return self._frames(image)

    def _frames(self, image: Image.Image) -> Iterator[DecodedFrame]:
        try:
            for index, frame in enumerate(ImageSequence.Iterator(image)):
                if index >= self.config.max_frames:
                    break

                duration = frame.info.get('duration')
                disposal = Disposal.from_value(
                    getattr(frame, 'disposal_method', 0))
                raster = GridConverter.to_raster(frame)

                yield DecodedFrame(
                    index=index,
                    raster=raster,
                    duration_ms=self.normalize_delay(duration),
                    disposal=disposal,
                )
        except (OSError, EOFError, ValueError) as e:
            raise ImageProcessingError(
                f"GIF frame extraction failed: {e}", ErrorKind.LOAD_ERROR)

    def decode(self, source: SourceFile) -> List[DecodedFrame]:
        """Decode all frames (up to the cap) into a list."""
        return list(self.iter_frames(source))
