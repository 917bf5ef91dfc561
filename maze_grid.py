"""
maze_grid.py

Turns the text the user types into a grid of typed cells.

Which character means what is not fixed: the wall, path, start and end
symbols come from a SymbolConfig, so the same text can produce a different
grid when a symbol changes. Grids are always rebuilt from scratch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)


class MazeError(Exception):
    """Base class for every maze problem reported back to the user."""

    pass


class InvalidSymbolError(MazeError, ValueError):
    """Raised when a maze symbol is not exactly one character."""

    pass


class RaggedMazeError(MazeError, ValueError):
    """Raised when rectangular input is required but rows differ in width."""

    pass


class CellKind(str, Enum):
    WALL = "wall"
    PATH = "path"
    START = "start"
    END = "end"


@dataclass(frozen=True)
class Cell:
    x: int
    y: int
    kind: CellKind

    @property
    def pos(self):
        return self.x, self.y


@dataclass(frozen=True)
class SymbolConfig:
    """Which character stands for a wall, path, start and end."""

    wall: str = "#"
    path: str = "."
    start: str = "P"
    end: str = "E"

    def __post_init__(self) -> None:
        for name in SYMBOL_NAMES:
            value = getattr(self, name)
            if not isinstance(value, str) or len(value) != 1:
                raise InvalidSymbolError(
                    f"The {name} symbol must be a single character, got {value!r}."
                )

    def classify(self, ch: str) -> CellKind:
        # wall beats start beats end; anything else is walkable
        if ch == self.wall:
            return CellKind.WALL
        if ch == self.start:
            return CellKind.START
        if ch == self.end:
            return CellKind.END
        return CellKind.PATH


SYMBOL_NAMES = ("wall", "path", "start", "end")
DEFAULT_SYMBOLS = SymbolConfig()


class Grid:
    """
    Rows of cells, indexed as grid.rows[y][x].

    Rows may have different lengths, so horizontal bounds are checked
    against the row being looked at rather than the first row.
    """

    def __init__(self, rows: List[List[Cell]]) -> None:
        self.rows = rows
        self.start: Optional[Cell] = self._find(CellKind.START)
        self.end: Optional[Cell] = self._find(CellKind.END)

    def _find(self, kind: CellKind) -> Optional[Cell]:
        for cell in self:
            if cell.kind is kind:
                return cell
        return None

    def __iter__(self) -> Iterator[Cell]:
        for row in self.rows:
            yield from row

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    @property
    def is_rectangular(self) -> bool:
        return len({len(row) for row in self.rows}) <= 1

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= y < len(self.rows) and 0 <= x < len(self.rows[y])

    def cell(self, x: int, y: int) -> Optional[Cell]:
        if not self.in_bounds(x, y):
            return None
        return self.rows[y][x]

    def is_wall(self, x: int, y: int) -> bool:
        if not self.in_bounds(x, y):
            return True
        return self.rows[y][x].kind is CellKind.WALL

    def to_lines(self, symbols: SymbolConfig = DEFAULT_SYMBOLS) -> List[str]:
        """Render the grid back to text using the given symbols."""
        chars = {
            CellKind.WALL: symbols.wall,
            CellKind.PATH: symbols.path,
            CellKind.START: symbols.start,
            CellKind.END: symbols.end,
        }
        return ["".join(chars[cell.kind] for cell in row) for row in self.rows]


# ---------------------------------------------------------------------- #
# Building
# ---------------------------------------------------------------------- #


def split_lines(text: str) -> List[str]:
    """Split raw text box contents into rows, keeping blank lines."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text.split("\n")


def build_grid(
    lines: Union[str, Sequence[str]],
    symbols: SymbolConfig = DEFAULT_SYMBOLS,
    require_rectangular: bool = False,
) -> Grid:
    if isinstance(lines, str):
        lines = split_lines(lines)

    if require_rectangular and len({len(line) for line in lines}) > 1:
        raise RaggedMazeError("All maze rows must be the same width.")

    rows = [
        [Cell(x, y, symbols.classify(ch)) for x, ch in enumerate(line)]
        for y, line in enumerate(lines)
    ]
    grid = Grid(rows)
    logger.debug(
        "built %dx%d grid, start=%s end=%s",
        grid.width,
        grid.height,
        grid.start and grid.start.pos,
        grid.end and grid.end.pos,
    )
    return grid
