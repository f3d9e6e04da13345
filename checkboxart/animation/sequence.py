"""
Frame Sequence Processing Module

Turns an animated GIF into an ordered list of checkbox grids, one per
source frame, each carrying the frame's own display duration.

Processing is a generator so a caller running a UI loop can step it
one frame at a time, draw progress in between, and drop it on cancel.
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Generator, List, Optional

import numpy as np

from ..config import GifConfig
from ..conversion import GridConverter
from ..errors import ErrorKind, ImageProcessingError, ProcessingCancelled
from ..grid import Grid
from ..source import SourceFile, validate_source
from .decoder import Disposal, GifDecoder

ProgressCallback = Callable[[int], None]


class CancelToken:
    """Cooperative cancellation flag checked between processing steps."""

    def __init__(self):
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self):
        if self._cancelled:
            raise ProcessingCancelled("Processing was cancelled")


@dataclass
class Frame:
    """One processed frame of a sequence."""
    grid: Grid
    duration_ms: int
    disposal: Disposal = Disposal.UNSPECIFIED
    raster: Optional[np.ndarray] = field(default=None, repr=False)

    def with_grid(self, grid: Grid) -> 'Frame':
        return replace(self, grid=grid)


@dataclass
class FrameSequence:
    """Processed frames plus the source dimensions and settings used."""
    frames: List[Frame]
    width: int
    height: int
    grid_size: int
    threshold: int

    def __post_init__(self):
        if not self.frames:
            raise ValueError("A frame sequence needs at least one frame")

    def __len__(self) -> int:
        return len(self.frames)

    def __getitem__(self, index: int) -> Frame:
        return self.frames[index]

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def total_duration_ms(self) -> int:
        return sum(f.duration_ms for f in self.frames)

    @property
    def grids(self) -> List[Grid]:
        return [f.grid for f in self.frames]

    def replace_frames(self, frames: List[Frame]) -> 'FrameSequence':
        """Return a copy holding a new frame list."""
        return replace(self, frames=list(frames))

    def get_info(self) -> dict:
        return {
            'frame_count': self.frame_count,
            'width': self.width,
            'height': self.height,
            'grid_size': self.grid_size,
            'threshold': self.threshold,
            'duration_ms': self.total_duration_ms,
        }


class SequenceProcessor:
    """
    Convert an animated GIF into a FrameSequence.

    Progress runs 20 (validated), 40 (decoder open), then up to 90 as
    frames complete, and 100 at the end. It never decreases.
    """

    def __init__(self, config: Optional[GifConfig] = None):
        self.config = config or GifConfig()
        self.decoder = GifDecoder(self.config)

    def validate(self, source: Optional[SourceFile]):
        validate_source(source,
                        self.config.supported_formats,
                        self.config.max_file_size,
                        label="GIF")

    def iter_process(self,
                     source: Optional[SourceFile],
                     grid_size: int,
                     threshold: Optional[int] = None,
                     cancel_token: Optional[CancelToken] = None,
                     keep_rasters: bool = False
                     ) -> Generator[int, None, FrameSequence]:
        """
        Process the sequence one step at a time.

        Yields progress percentages; the finished FrameSequence is the
        generator's return value.

        Args:
            source: Uploaded GIF
            grid_size: Cells per side for every frame
            threshold: Cut point shared by all frames, or None to compute
                it once from the first frame with Otsu's method
            cancel_token: Checked before every step
            keep_rasters: Keep each frame's decoded raster on the Frame

        Raises:
            ImageProcessingError: on the first failing step; no partial
                sequence is returned
            ProcessingCancelled: when the token is cancelled
        """
        token = cancel_token or CancelToken()
        image_config = self.config.image

        try:
            token.raise_if_cancelled()
            self.validate(source)
            yield 20

            token.raise_if_cancelled()
            decoded = self.decoder.iter_frames(source)
            total = min(self.decoder.total_frames, self.config.max_frames)
            yield 40

            frames: List[Frame] = []
            used_threshold = threshold
            for decoded_frame in decoded:
                token.raise_if_cancelled()

                gray = GridConverter.to_grayscale(
                    decoded_frame.raster, image_config.grayscale_weights)
                if used_threshold is None:
                    used_threshold = GridConverter.compute_optimal_threshold(
                        gray, image_config.default_threshold)
                grid = GridConverter.apply_threshold(gray, used_threshold, grid_size)

                frames.append(Frame(
                    grid=grid,
                    duration_ms=decoded_frame.duration_ms,
                    disposal=decoded_frame.disposal,
                    raster=decoded_frame.raster if keep_rasters else None,
                ))

                total = max(total, len(frames))
                yield int(round(40 + len(frames) / total * 50))

            if not frames:
                raise ImageProcessingError("GIF contains no frames", ErrorKind.LOAD_ERROR)

            token.raise_if_cancelled()
            sequence = FrameSequence(
                frames=frames,
                width=self.decoder.width,
                height=self.decoder.height,
                grid_size=grid_size,
                threshold=used_threshold,
            )
            print(f"[Sequence] Processed {sequence.frame_count} frame(s), "
                  f"{grid_size}x{grid_size} grid, threshold {used_threshold}")
            yield 100
            return sequence
        except (ImageProcessingError, ProcessingCancelled):
            raise
        except Exception as e:
            raise ImageProcessingError.wrap(e)

    def process(self,
                source: Optional[SourceFile],
                grid_size: int,
                threshold: Optional[int] = None,
                progress: Optional[ProgressCallback] = None,
                cancel_token: Optional[CancelToken] = None,
                keep_rasters: bool = False) -> FrameSequence:
        """
        Process the whole sequence in one call.

        Args:
            progress: Called with each progress percentage

        Returns:
            FrameSequence
        """
        steps = self.iter_process(source, grid_size, threshold,
                                  cancel_token, keep_rasters)
        while True:
            try:
                percent = next(steps)
            except StopIteration as done:
                return done.value
            if progress:
                progress(percent)


def process_sequence(source: Optional[SourceFile],
                     grid_size: int,
                     threshold: Optional[int] = None,
                     progress: Optional[ProgressCallback] = None,
                     cancel_token: Optional[CancelToken] = None,
                     config: Optional[GifConfig] = None) -> FrameSequence:
    return SequenceProcessor(config).process(
        source, grid_size, threshold, progress, cancel_token)
