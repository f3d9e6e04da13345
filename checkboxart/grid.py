"""
Checkbox Grid Model

A square, row-major grid of checkbox states. Edits never modify a
grid in place; they return a new grid so a reader (renderer, exporter)
holding the old one never sees a half-applied change.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Grid:
    """Checkbox states for one frame."""
    size: int
    cells: Tuple[bool, ...]

    def __post_init__(self):
        if self.size < 1:
            raise ValueError(f"Grid size must be at least 1, got {self.size}")
        if len(self.cells) != self.size * self.size:
            raise ValueError(
                f"Grid of size {self.size} needs {self.size * self.size} cells, "
                f"got {len(self.cells)}")

    @classmethod
    def from_cells(cls, cells: Iterable[bool], size: int) -> 'Grid':
        return cls(size=size, cells=tuple(bool(c) for c in cells))

    @classmethod
    def from_array(cls, mask: np.ndarray) -> 'Grid':
        """Create from a square 2-D boolean mask."""
        if mask.ndim != 2 or mask.shape[0] != mask.shape[1]:
            raise ValueError(f"Expected a square 2-D mask, got shape {mask.shape}")
        return cls(size=mask.shape[0],
                   cells=tuple(bool(c) for c in mask.ravel()))

    @classmethod
    def empty(cls, size: int) -> 'Grid':
        return cls(size=size, cells=(False,) * (size * size))

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[bool]:
        return iter(self.cells)

    def __getitem__(self, index: int) -> bool:
        return self.cells[index]

    def cell(self, row: int, col: int) -> bool:
        """Get a specific cell by row and column."""
        return self.cells[row * self.size + col]

    def row(self, row: int) -> Tuple[bool, ...]:
        start = row * self.size
        return self.cells[start:start + self.size]

    def rows(self) -> List[Tuple[bool, ...]]:
        """Return rows top to bottom."""
        return [self.row(r) for r in range(self.size)]

    @property
    def checked_count(self) -> int:
        return sum(self.cells)

    def to_array(self) -> np.ndarray:
        return np.array(self.cells, dtype=bool).reshape(self.size, self.size)

    def to_list(self) -> List[bool]:
        return list(self.cells)

    # Edits

    def toggle(self, index: int) -> 'Grid':
        """Return a copy with one cell flipped."""
        if not 0 <= index < len(self.cells):
            raise IndexError(f"Cell index {index} out of range for {self.size}x{self.size} grid")
        cells = list(self.cells)
        cells[index] = not cells[index]
        return Grid(size=self.size, cells=tuple(cells))

    def inverted(self) -> 'Grid':
        return Grid(size=self.size, cells=tuple(not c for c in self.cells))

    def cleared(self) -> 'Grid':
        return Grid.empty(self.size)


def validate_cells(cells: Sequence[bool], grid_size: int):
    """
    Check that a flat cell list matches a grid size.

    Raises:
        ValueError: if the size is below 1 or the length is not grid_size squared
    """
    if grid_size < 1:
        raise ValueError(f"Grid size must be at least 1, got {grid_size}")
    expected = grid_size * grid_size
    if len(cells) != expected:
        raise ValueError(
            f"Grid length {len(cells)} does not match {grid_size}x{grid_size} ({expected} cells)")
