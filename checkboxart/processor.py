from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import ProcessingConfig
from .conversion import GridConverter
from .errors import ImageProcessingError
from .grid import Grid
from .source import SourceFile, validate_dimensions, validate_source


@dataclass
class ProcessResult:
    grid: Grid
    threshold: int
    grayscale: np.ndarray

    @property
    def grid_size(self) -> int:
        return self.grid.size


class ImageProcessor:
    def __init__(self, config: Optional[ProcessingConfig] = None):
        self.config = config or ProcessingConfig()

    def validate(self, source: Optional[SourceFile]):
        validate_source(source,
                        self.config.supported_formats,
                        self.config.max_file_size)

    def load_raster(self, source: SourceFile) -> np.ndarray:
        """
        Decode a validated source into an RGBA raster.

        Animated formats decode their first frame.

        Returns:
            H x W x 4 uint8 array
        """
        image = source.open()
        validate_dimensions(image.width, image.height,
                            self.config.min_dimension,
                            self.config.max_dimension)
        if getattr(image, 'is_animated', False):
            image.seek(0)
        return GridConverter.to_raster(image)

    def get_metadata(self, source: SourceFile) -> dict:
        image = source.open()
        return {
            "width": image.width,
            "height": image.height,
            "format": image.format,
            "mime_type": source.mime_type,
            "size_bytes": source.size,
            "frame_count": getattr(image, 'n_frames', 1),
        }

    def process(self,
                source: Optional[SourceFile],
                grid_size: int,
                threshold: Optional[int] = None) -> ProcessResult:
        """
        Convert a still image into a checkbox grid.

        Args:
            source (SourceFile): Uploaded image.
            grid_size (int): Cells per side.
            threshold (int): Cut point 0-255, or None to pick one with Otsu's
                method on the full-resolution grayscale image.

        Returns:
            ProcessResult: Grid, the threshold used and the grayscale raster.
        """
        try:
            self.validate(source)
            raster = self.load_raster(source)
            grid, used, gray = GridConverter.to_grid(
                raster, grid_size, threshold, self.config)
            return ProcessResult(grid=grid, threshold=used, grayscale=gray)
        except ImageProcessingError:
            raise
        except Exception as e:
            raise ImageProcessingError.wrap(e)


def process_image(source: Optional[SourceFile],
                  grid_size: int,
                  threshold: Optional[int] = None,
                  config: Optional[ProcessingConfig] = None) -> ProcessResult:
    return ImageProcessor(config).process(source, grid_size, threshold)
