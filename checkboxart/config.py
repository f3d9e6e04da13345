"""
Processing Configuration

Limits and defaults shared by the still-image and animated
pipelines, the exporter and the viewer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple

MB = 1024 * 1024


@dataclass
class ProcessingConfig:
    """Settings for still-image processing."""
    supported_formats: Tuple[str, ...] = (
        'image/jpeg', 'image/png', 'image/gif', 'image/webp')
    max_file_size: int = 10 * MB
    min_dimension: int = 10
    max_dimension: int = 1000
    default_threshold: int = 128
    # ITU-R BT.601 luma weights (red, green, blue)
    grayscale_weights: Tuple[float, float, float] = (0.299, 0.587, 0.114)


@dataclass
class GifConfig:
    """Settings for animated GIF processing."""
    supported_formats: Tuple[str, ...] = ('image/gif',)
    max_file_size: int = 50 * MB
    max_frames: int = 100
    min_delay: int = 50       # ms
    max_delay: int = 5000     # ms
    default_delay: int = 100  # ms, used when the container has none
    image: ProcessingConfig = field(default_factory=ProcessingConfig)


class ExportSize(Enum):
    """Export size class, valued by pixels per cell."""
    SMALL = 4
    MEDIUM = 8
    LARGE = 12

    @property
    def pixel_size(self) -> int:
        return self.value

    @classmethod
    def from_name(cls, name) -> 'ExportSize':
        if isinstance(name, cls):
            return name
        try:
            return cls[str(name).upper()]
        except KeyError:
            raise ValueError(
                f"Unknown export size: {name}. Available: {[s.name.title() for s in cls]}")


GRID_PRESETS: Dict[str, int] = {
    "Low (30x30)": 30,
    "Medium (50x50)": 50,
    "High (80x80)": 80,
}

SPEED_PRESETS = (0.25, 0.5, 1.0, 2.0, 4.0)

# Checkbox glyphs used for text export
GLYPH_ON = "☒"
GLYPH_OFF = "☐"

# Playback tick cadence, roughly one display refresh
TICK_INTERVAL_MS = 16
