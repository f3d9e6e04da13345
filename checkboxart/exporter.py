"""
Checkbox Art Export Module

Renders grids as PNG images, animated GIFs, per-frame image series
and plain-text checkbox patterns.
"""

import io
import os
from typing import List, Sequence, Tuple, Union

from PIL import Image, ImageDraw

from .config import GLYPH_OFF, GLYPH_ON, ExportSize
from .errors import ErrorKind, ImageProcessingError
from .grid import Grid, validate_cells

GridLike = Union[Grid, Sequence[bool]]

BACKGROUND = (255, 255, 255)
FOREGROUND = (0, 0, 0)


class GridExporter:
    """
    Render checkbox grids to images and text.
    """

    def __init__(self, size: Union[ExportSize, str] = ExportSize.MEDIUM):
        """
        Args:
            size: Default export size class (Small, Medium or Large)
        """
        self.size = self._resolve_size(size)

    @staticmethod
    def _resolve_size(size) -> ExportSize:
        try:
            return ExportSize.from_name(size)
        except ValueError as e:
            raise ImageProcessingError(f"Image export failed: {e}", ErrorKind.EXPORT_ERROR)

    @staticmethod
    def _cells(grid: GridLike, grid_size: int) -> Tuple[bool, ...]:
        cells = grid.cells if isinstance(grid, Grid) else tuple(bool(c) for c in grid)
        try:
            validate_cells(cells, grid_size)
        except ValueError as e:
            raise ImageProcessingError(f"Export failed: {e}", ErrorKind.EXPORT_ERROR)
        return cells

    @staticmethod
    def _grids(frames) -> List[GridLike]:
        """Accept a FrameSequence, a list of Frames or a list of grids."""
        grids = []
        for frame in frames:
            grids.append(frame.grid if hasattr(frame, 'grid') else frame)
        if not grids:
            raise ImageProcessingError("No frames to export", ErrorKind.EXPORT_ERROR)
        return grids

    # Images

    def render_image(self, grid: GridLike, grid_size: int, size=None) -> Image.Image:
        """
        Draw a grid as a PIL Image.

        White background, one filled black square per checked cell.

        Returns:
            RGB image of (grid_size * pixel_size) pixels per side
        """
        pixel_size = self._resolve_size(size or self.size).pixel_size
        cells = self._cells(grid, grid_size)

        side = grid_size * pixel_size
        image = Image.new('RGB', (side, side), BACKGROUND)
        draw = ImageDraw.Draw(image)

        for i, checked in enumerate(cells):
            if checked:
                row, col = divmod(i, grid_size)
                x, y = col * pixel_size, row * pixel_size
                draw.rectangle([x, y, x + pixel_size - 1, y + pixel_size - 1],
                               fill=FOREGROUND)
        return image

    def render_grid(self, grid: GridLike, grid_size: int, size=None) -> bytes:
        """Render a grid as PNG bytes."""
        image = self.render_image(grid, grid_size, size)
        try:
            buffer = io.BytesIO()
            image.save(buffer, format='PNG')
            return buffer.getvalue()
        except (OSError, ValueError) as e:
            raise ImageProcessingError(f"Image export failed: {e}", ErrorKind.EXPORT_ERROR)

    def render_sequence(self, frames, grid_size: int, size=None) -> List[bytes]:
        """Render every frame as its own PNG, in order."""
        return [self.render_grid(g, grid_size, size) for g in self._grids(frames)]

    def render_animation(self,
                         frames,
                         grid_size: int,
                         size=None,
                         durations: Sequence[int] = None,
                         loop: int = 0) -> bytes:
        """
        Encode a frame sequence as an animated GIF.

        Args:
            frames: FrameSequence, list of Frames or list of grids
            grid_size: Cells per side
            size: Export size class
            durations: Per-frame durations in ms; taken from the frames
                when they carry one, else 100 ms
            loop: Number of loops (0 = infinite)

        Returns:
            GIF bytes
        """
        frames = list(frames)
        grids = self._grids(frames)
        if durations is None:
            durations = [getattr(f, 'duration_ms', 100) for f in frames]
        durations = list(durations)
        if len(durations) != len(grids):
            raise ImageProcessingError(
                f"Animated GIF export failed: {len(durations)} durations for {len(grids)} frames",
                ErrorKind.EXPORT_ERROR)

        images = []
        for grid in grids:
            image = self.render_image(grid, grid_size, size)
            images.append(image.convert('P', palette=Image.Palette.ADAPTIVE, colors=2))

        try:
            buffer = io.BytesIO()
            images[0].save(
                buffer,
                format='GIF',
                save_all=True,
                append_images=images[1:],
                duration=durations,
                loop=loop,
                disposal=1,
            )
            return buffer.getvalue()
        except (OSError, ValueError) as e:
            raise ImageProcessingError(
                f"Animated GIF export failed: {e}", ErrorKind.EXPORT_ERROR)

    # Text

    @staticmethod
    def render_grid_as_text(grid: GridLike, grid_size: int) -> str:
        """
        One glyph per cell, a newline after each row.
        """
        cells = GridExporter._cells(grid, grid_size)
        lines = []
        for start in range(0, len(cells), grid_size):
            row = cells[start:start + grid_size]
            lines.append(''.join(GLYPH_ON if c else GLYPH_OFF for c in row))
        return '\n'.join(lines) + '\n'

    # Files

    def save_grid_image(self, grid: GridLike, grid_size: int,
                        output_dir: str, size=None) -> str:
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, f"checkbox-art-{grid_size}x{grid_size}.png")
        with open(path, 'wb') as f:
            f.write(self.render_grid(grid, grid_size, size))
        return path

    def save_grid_text(self, grid: GridLike, grid_size: int, output_dir: str) -> str:
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, f"checkbox-pattern-{grid_size}x{grid_size}.txt")
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.render_grid_as_text(grid, grid_size))
        return path

    def save_animation(self, frames, grid_size: int, output_path: str, size=None) -> str:
        with open(output_path, 'wb') as f:
            f.write(self.render_animation(frames, grid_size, size))
        return output_path

    def export_image_sequence(self,
                              frames,
                              grid_size: int,
                              output_dir: str,
                              prefix: str = "frame",
                              size=None,
                              start_number: int = 1) -> List[str]:
        """
        Write one PNG per frame.

        Args:
            frames: FrameSequence, list of Frames or list of grids
            grid_size: Cells per side
            output_dir: Directory for output images
            prefix: Filename prefix
            size: Export size class
            start_number: Starting frame number

        Returns:
            List of created file paths
        """
        rendered = self.render_sequence(frames, grid_size, size)
        os.makedirs(output_dir, exist_ok=True)

        paths = []
        num_digits = len(str(len(rendered) + start_number))

        for i, data in enumerate(rendered):
            frame_num = start_number + i
            filepath = os.path.join(output_dir, f"{prefix}_{frame_num:0{num_digits}d}.png")
            with open(filepath, 'wb') as f:
                f.write(data)
            paths.append(filepath)

        return paths


def render_grid(grid: GridLike, grid_size: int, size=ExportSize.MEDIUM) -> bytes:
    return GridExporter(size).render_grid(grid, grid_size)


def render_grid_as_text(grid: GridLike, grid_size: int) -> str:
    return GridExporter.render_grid_as_text(grid, grid_size)


def render_sequence(frames, grid_size: int, size=ExportSize.MEDIUM) -> List[bytes]:
    return GridExporter(size).render_sequence(frames, grid_size)
