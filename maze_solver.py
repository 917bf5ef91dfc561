"""
maze_solver.py

Breadth-first search from the start cell to the end cell.

The solver returns the cells visited along a shortest path together with
the keys a player would press to walk it, spelled with the current
MoveKeyConfig.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from maze_grid import Cell, Grid, MazeError

logger = logging.getLogger(__name__)


class MissingEndpointError(MazeError):
    """Raised when the maze has no start or no end to solve between."""

    pass


class NoPathFoundError(MazeError):
    """Raised when every reachable cell was searched without finding the end."""

    pass


class InvalidKeyBindingError(MazeError, ValueError):
    """Raised when a move key is empty, too long or bound to two directions."""

    pass


class Direction(Enum):
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def delta(self) -> Tuple[int, int]:
        return self.value

    @property
    def key_name(self) -> str:
        return self.name.lower()


# Neighbour exploration order; decides which shortest path wins a tie.
DIRECTION_ORDER = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)


@dataclass(frozen=True)
class MoveKeyConfig:
    """The key bound to each direction. Keys are stored lowercase."""

    up: str = "w"
    down: str = "s"
    left: str = "a"
    right: str = "d"

    def __post_init__(self) -> None:
        seen = {}
        for direction in DIRECTION_ORDER:
            name = direction.key_name
            key = getattr(self, name)
            if not isinstance(key, str) or len(key) != 1:
                raise InvalidKeyBindingError(
                    f"The {name} key must be a single character, got {key!r}."
                )
            key = key.lower()
            if key in seen:
                raise InvalidKeyBindingError(
                    f"'{key}' is already bound to {seen[key]}."
                )
            seen[key] = name
            object.__setattr__(self, name, key)

    def key_for(self, direction: Direction) -> str:
        return getattr(self, direction.key_name)

    def direction_for(self, key: str) -> Optional[Direction]:
        key = key.lower()
        for direction in DIRECTION_ORDER:
            if self.key_for(direction) == key:
                return direction
        return None

    def rebind(self, direction: Direction, key: str) -> "MoveKeyConfig":
        """Return a copy with one direction rebound (validated)."""
        keys = {d.key_name: self.key_for(d) for d in DIRECTION_ORDER}
        keys[direction.key_name] = key
        return MoveKeyConfig(**keys)


DEFAULT_MOVE_KEYS = MoveKeyConfig()


@dataclass(frozen=True)
class SolverResult:
    path: List[Cell]
    moves: str

    @property
    def steps(self) -> int:
        return len(self.moves)


def next_cell(grid: Grid, cell: Cell, direction: Direction) -> Optional[Cell]:
    """The neighbouring cell in `direction`, or None if off the grid."""
    dx, dy = direction.delta
    return grid.cell(cell.x + dx, cell.y + dy)


def solve(
    grid: Grid,
    start: Optional[Cell],
    end: Optional[Cell],
    move_keys: MoveKeyConfig = DEFAULT_MOVE_KEYS,
    order: Sequence[Direction] = DIRECTION_ORDER,
) -> SolverResult:
    """
    Find a shortest path from `start` to `end`.

    Every step costs the same, so the first time the end is dequeued its
    path is a shortest one. Ties between equally short paths are broken by
    `order`. Raises MissingEndpointError when an endpoint is None and
    NoPathFoundError when the end cannot be reached.
    """
    if start is None or end is None:
        raise MissingEndpointError("The maze needs both a start and an end.")

    visited = {start.pos}
    queue = deque([(start, [start], "")])

    while queue:
        cell, path, moves = queue.popleft()

        if cell.pos == end.pos:
            logger.debug("solved in %d steps: %s", len(moves), moves)
            return SolverResult(path, moves)

        for direction in order:
            neighbour = next_cell(grid, cell, direction)
            if neighbour is None or neighbour.pos in visited:
                continue
            if grid.is_wall(neighbour.x, neighbour.y):
                continue
            visited.add(neighbour.pos)
            queue.append(
                (neighbour, path + [neighbour], moves + move_keys.key_for(direction))
            )

    raise NoPathFoundError("No path found!")
