"""
Checkbox Art

Converts still images and animated GIFs into square grids of
checkboxes, plays animated grids back, and exports the result as
images, animated GIFs or text.
"""

from .config import ExportSize, GifConfig, ProcessingConfig
from .conversion import GridConverter
from .errors import ErrorKind, ImageProcessingError, ProcessingCancelled, get_error_message
from .exporter import GridExporter, render_grid, render_grid_as_text, render_sequence
from .grid import Grid
from .processor import ImageProcessor, ProcessResult, process_image
from .source import SourceFile

__all__ = [
    'ExportSize',
    'GifConfig',
    'ProcessingConfig',
    'GridConverter',
    'ErrorKind',
    'ImageProcessingError',
    'ProcessingCancelled',
    'get_error_message',
    'GridExporter',
    'render_grid',
    'render_grid_as_text',
    'render_sequence',
    'Grid',
    'ImageProcessor',
    'ProcessResult',
    'process_image',
    'SourceFile',
]
