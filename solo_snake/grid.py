"""Square board addressed in pixel cells."""

import random
from dataclasses import dataclass

from .constants import CANVAS_SIZE, SCALE
from .models import Cell


@dataclass(frozen=True)
class Grid:
    canvas_size: int = CANVAS_SIZE
    scale: int = SCALE

    @property
    def cells(self) -> int:
        return self.canvas_size // self.scale

    @property
    def width(self) -> int:
        return self.cells * self.scale

    @property
    def height(self) -> int:
        return self.cells * self.scale

    def to_pixel(self, col: int, row: int) -> Cell:
        return (col * self.scale, row * self.scale)

    def contains(self, cell: Cell) -> bool:
        x, y = cell
        return 0 <= x < self.width and 0 <= y < self.height

    def random_cell(self, rng: random.Random) -> Cell:
        return self.to_pixel(rng.randrange(self.cells), rng.randrange(self.cells))
