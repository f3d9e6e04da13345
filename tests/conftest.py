import io

import numpy as np
import pytest
from PIL import Image

from checkboxart.animation.sequence import Frame, FrameSequence
from checkboxart.grid import Grid
from checkboxart.source import SourceFile


def encode(image: Image.Image, fmt: str = 'PNG', **params) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def solid_source(color, size=(10, 10), fmt='PNG', mime='image/png') -> SourceFile:
    image = Image.new('RGB', size, color)
    return SourceFile(data=encode(image, fmt), mime_type=mime, name=f"solid.{fmt.lower()}")


def gif_source(images, durations, disposal=1, loop=0) -> SourceFile:
    data = encode(images[0], 'GIF', save_all=True, append_images=images[1:],
                  duration=durations, loop=loop, disposal=disposal, optimize=False)
    return SourceFile(data=data, mime_type='image/gif', name="anim.gif")


def rgba_raster(luma_rows) -> np.ndarray:
    """Build an opaque RGBA raster from a 2-D list of gray levels."""
    lum = np.array(luma_rows, dtype=np.uint8)
    raster = np.empty(lum.shape + (4,), dtype=np.uint8)
    raster[..., 0] = lum
    raster[..., 1] = lum
    raster[..., 2] = lum
    raster[..., 3] = 255
    return raster


def make_sequence(count=3, duration_ms=100, grid_size=2) -> FrameSequence:
    frames = [Frame(grid=Grid.empty(grid_size), duration_ms=duration_ms)
              for _ in range(count)]
    return FrameSequence(frames=frames, width=10, height=10,
                         grid_size=grid_size, threshold=128)


class FakeScheduler:
    """Records scheduled callbacks instead of running a timer."""

    def __init__(self):
        self.pending = {}
        self._next = 0

    def schedule(self, delay_ms, callback):
        self._next += 1
        self.pending[self._next] = (delay_ms, callback)
        return self._next

    def cancel(self, handle):
        self.pending.pop(handle, None)

    def fire(self):
        """Run every pending callback once."""
        for handle in list(self.pending):
            _, callback = self.pending.pop(handle)
            callback()


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def clock():
    return FakeClock()
