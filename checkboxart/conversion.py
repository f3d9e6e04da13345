"""
Grid Conversion Module

Grayscale conversion, Otsu threshold selection, area resampling and
thresholding of RGBA rasters into checkbox grids. Rasters are
H x W x 4 uint8 numpy arrays; every step returns a new array.
"""

from typing import Optional, Tuple

import cv2
import numpy as np
from PIL import Image

from .config import ProcessingConfig
from .errors import ErrorKind, ImageProcessingError
from .grid import Grid

DEFAULT_CONFIG = ProcessingConfig()


class GridConverter:
    """Stateless raster-to-grid operations."""

    @staticmethod
    def to_raster(image: Image.Image) -> np.ndarray:
        """Convert a PIL Image into an RGBA raster."""
        if image.mode != 'RGBA':
            image = image.convert('RGBA')
        return np.array(image, dtype=np.uint8)

    @staticmethod
    def _check_raster(raster, kind: ErrorKind, action: str, allow_empty: bool = False):
        if not isinstance(raster, np.ndarray):
            raise ImageProcessingError(
                f"{action} failed: expected an image array, got {type(raster).__name__}", kind)
        if raster.ndim != 3 or raster.shape[2] != 4:
            raise ImageProcessingError(
                f"{action} failed: expected an RGBA raster, got shape {raster.shape}", kind)
        if not allow_empty and (raster.shape[0] == 0 or raster.shape[1] == 0):
            raise ImageProcessingError(f"{action} failed: raster is empty", kind)

    @staticmethod
    def to_grayscale(raster: np.ndarray,
                     weights: Tuple[float, float, float] = DEFAULT_CONFIG.grayscale_weights
                     ) -> np.ndarray:
        """
        Convert an RGBA raster to grayscale.

        Each pixel becomes round(0.299*R + 0.587*G + 0.114*B) on all
        three colour channels, rounding halves up. Alpha is kept.

        Args:
            raster: H x W x 4 uint8 array
            weights: (red, green, blue) luma weights

        Returns:
            New H x W x 4 uint8 array with R == G == B
        """
        GridConverter._check_raster(
            raster, ErrorKind.GRAYSCALE_ERROR, "Grayscale conversion")
        try:
            rgb = raster[..., :3].astype(np.float64)
            luma = (rgb[..., 0] * weights[0] +
                    rgb[..., 1] * weights[1] +
                    rgb[..., 2] * weights[2])
            gray = np.clip(np.floor(luma + 0.5), 0, 255).astype(np.uint8)

            out = np.empty_like(raster, dtype=np.uint8)
            out[..., 0] = gray
            out[..., 1] = gray
            out[..., 2] = gray
            out[..., 3] = raster[..., 3]
            return out
        except Exception as e:
            raise ImageProcessingError(
                f"Grayscale conversion failed: {e}", ErrorKind.GRAYSCALE_ERROR)

    @staticmethod
    def luminance(gray_raster: np.ndarray) -> np.ndarray:
        """
        Return the H x W luminance plane of a grayscale raster.

        Alpha is ignored: a transparent pixel classifies by its gray value.
        """
        return gray_raster[..., 0].copy()

    @staticmethod
    def compute_optimal_threshold(gray_raster: np.ndarray,
                                  default: int = DEFAULT_CONFIG.default_threshold) -> int:
        """
        Pick the threshold that maximizes between-class variance (Otsu).

        A candidate cut c splits the histogram into background (v < c)
        and foreground (v >= c), matching the strict `<` used when
        classifying cells. The first maximum wins on ties.

        Args:
            gray_raster: grayscale RGBA raster
            default: returned when no split exists (empty or single-valued)

        Returns:
            Threshold in [1, 255], or default
        """
        GridConverter._check_raster(
            gray_raster, ErrorKind.THRESHOLD_ERROR, "Otsu threshold calculation",
            allow_empty=True)
        try:
            lum = GridConverter.luminance(gray_raster).ravel()
            histogram = np.bincount(lum, minlength=256).astype(np.float64)

            total = histogram.sum()
            if total == 0:
                return default

            levels = np.arange(256, dtype=np.float64)
            # Index k holds the statistics for cut c = k + 1
            count_below = np.cumsum(histogram)[:-1]
            sum_below = np.cumsum(histogram * levels)[:-1]
            sum_all = (histogram * levels).sum()

            count_above = total - count_below
            valid = (count_below > 0) & (count_above > 0)
            if not valid.any():
                return default

            with np.errstate(divide='ignore', invalid='ignore'):
                mean_below = sum_below / count_below
                mean_above = (sum_all - sum_below) / count_above
                variance = ((count_below / total) * (count_above / total) *
                            (mean_below - mean_above) ** 2)
            variance = np.where(valid, variance, -1.0)

            return int(np.argmax(variance)) + 1
        except ImageProcessingError:
            raise
        except Exception as e:
            raise ImageProcessingError(
                f"Otsu threshold calculation failed: {e}", ErrorKind.THRESHOLD_ERROR)

    @staticmethod
    def resample(gray_raster: np.ndarray, grid_size: int) -> np.ndarray:
        """
        Area-resample a grayscale raster to grid_size x grid_size.

        Each output value approximates the mean luminance of the source
        region it covers. Upsampling and downsampling are both allowed.

        Returns:
            grid_size x grid_size uint8 array of luminance samples
        """
        GridConverter._check_raster(gray_raster, ErrorKind.RESAMPLE_ERROR, "Resampling")
        if not isinstance(grid_size, (int, np.integer)) or grid_size < 1:
            raise ImageProcessingError(
                f"Resampling failed: grid size must be a positive integer, got {grid_size}",
                ErrorKind.RESAMPLE_ERROR)
        try:
            lum = GridConverter.luminance(gray_raster)
            if lum.shape == (grid_size, grid_size):
                return lum
            return cv2.resize(lum, (int(grid_size), int(grid_size)),
                              interpolation=cv2.INTER_AREA)
        except Exception as e:
            raise ImageProcessingError(
                f"Resampling failed: {e}", ErrorKind.RESAMPLE_ERROR)

    @staticmethod
    def apply_threshold(gray_raster: np.ndarray,
                        threshold: int,
                        grid_size: int) -> Grid:
        """
        Resample to the grid and mark cells darker than the threshold.

        A cell whose luminance equals the threshold stays unchecked.

        Args:
            gray_raster: grayscale RGBA raster
            threshold: cut point in [0, 255]
            grid_size: cells per side

        Returns:
            Grid with grid_size * grid_size cells
        """
        if (isinstance(threshold, bool) or not isinstance(threshold, (int, np.integer))
                or not 0 <= threshold <= 255):
            raise ImageProcessingError(
                f"Threshold application failed: threshold must be an integer in 0-255, got {threshold}",
                ErrorKind.THRESHOLD_ERROR)
        samples = GridConverter.resample(gray_raster, grid_size)
        return Grid.from_array(samples < threshold)

    @staticmethod
    def to_grid(raster: np.ndarray,
                grid_size: int,
                threshold: Optional[int] = None,
                config: ProcessingConfig = DEFAULT_CONFIG) -> Tuple[Grid, int, np.ndarray]:
        """
        Run grayscale, optional Otsu and thresholding on one raster.

        Returns:
            Tuple of (grid, threshold used, grayscale raster)
        """
        gray = GridConverter.to_grayscale(raster, config.grayscale_weights)
        if threshold is None:
            threshold = GridConverter.compute_optimal_threshold(
                gray, config.default_threshold)
        grid = GridConverter.apply_threshold(gray, threshold, grid_size)
        return grid, threshold, gray
