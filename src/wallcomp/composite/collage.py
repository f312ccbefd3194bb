"""
Collage grid layout.

A collage element splits its bounding box into a near-square grid:
``cols = ceil(sqrt(n))`` and ``rows = ceil(n / cols)``. Sub-images fill the
cells row-major in the order they are listed; the last row may be partly
empty.
"""

import logging
import math
from typing import List, Tuple

from attrs import define, field

from wallcomp.validators import positive

logger = logging.getLogger(__name__)

Cell = Tuple[float, float, float, float]  # (left, top, right, bottom)


@define(frozen=True)
class CollageLayout(object):
    """
    Grid for ``count`` sub-images inside a ``width × height`` box.

    .. py:attribute:: cells

        ``count`` cells in fill order, relative to the box's top-left corner.
    """

    count: int = field(validator=positive)
    width: float = field(validator=positive)
    height: float = field(validator=positive)

    @property
    def cols(self) -> int:
        return int(math.ceil(math.sqrt(self.count)))

    @property
    def rows(self) -> int:
        return int(math.ceil(self.count / self.cols))

    @property
    def cell_width(self) -> float:
        return self.width / self.cols

    @property
    def cell_height(self) -> float:
        return self.height / self.rows

    def cell(self, index: int) -> Cell:
        if not 0 <= index < self.cols * self.rows:
            raise IndexError("cell index out of range: %d" % index)
        row, col = divmod(index, self.cols)
        left, top = col * self.cell_width, row * self.cell_height
        # The last column and row end exactly on the box edges.
        right = self.width if col == self.cols - 1 else (col + 1) * self.cell_width
        bottom = self.height if row == self.rows - 1 else (row + 1) * self.cell_height
        return (left, top, right, bottom)

    @property
    def cells(self) -> List[Cell]:
        return [self.cell(i) for i in range(self.count)]

    def slots(self) -> List[Cell]:
        """All ``cols × rows`` grid cells, including unused ones."""
        return [self.cell(i) for i in range(self.cols * self.rows)]


def layout(count: int, width: float, height: float) -> CollageLayout:
    """Grid layout of ``count`` sub-images in a ``width × height`` box."""
    grid = CollageLayout(count, width, height)
    logger.debug("Collage of %d: %d cols x %d rows" % (count, grid.cols, grid.rows))
    return grid
