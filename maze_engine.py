from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Iterator, List, Optional

from maze_grid import (
    DEFAULT_SYMBOLS,
    SYMBOL_NAMES,
    Cell,
    Grid,
    InvalidSymbolError,
    SymbolConfig,
    build_grid,
    split_lines,
)
from maze_solver import (
    DEFAULT_MOVE_KEYS,
    Direction,
    InvalidKeyBindingError,
    MissingEndpointError,
    MoveKeyConfig,
    NoPathFoundError,
    SolverResult,
    next_cell,
    solve,
)

STEP_DELAY = 0.05  # seconds between replay steps
MIN_CELL_SIZE = 10  # pixels

logger = logging.getLogger(__name__)

LogFn = Callable[[str], None]
DrawMazeFn = Callable[[Optional[Grid]], None]
DrawCursorFn = Callable[[Optional[Cell]], None]
ResizeFn = Callable[[int, int], None]
SolutionFn = Callable[[str], None]


def fit_cell_size(
    view_w: int, view_h: int, rows: int, cols: int, minimum: int = MIN_CELL_SIZE
) -> int:
    """Largest square cell that fits rows x cols into the view, never below minimum."""
    if rows <= 0 or cols <= 0:
        return minimum
    return max(min(view_w // cols, view_h // rows), minimum)


class Replay:
    """
    One playback of a solved path.

    Built from a generator that yields after each step so the host can
    wait between steps. It stops early if the grid it was started on has
    been rebuilt, or if it is cancelled.
    """

    def __init__(self, runner: "MazeRunner", path: List[Cell]) -> None:
        self.runner = runner
        self.path = list(path)
        self.generation = runner.generation
        self.applied = 0
        self.cancelled = False
        self._steps = self._run()

    @property
    def stale(self) -> bool:
        return self.generation != self.runner.generation

    @property
    def done(self) -> bool:
        return self.cancelled or self.applied >= len(self.path)

    def _run(self) -> Iterator[Cell]:
        for cell in self.path:
            if self.cancelled:
                return
            if self.stale:
                logger.debug(
                    "replay from generation %d aborted at step %d",
                    self.generation,
                    self.applied,
                )
                return
            self.runner._set_cursor(cell)
            self.applied += 1
            yield cell

    def step(self) -> bool:
        """Apply the next step. Returns False once there is nothing left to apply."""
        try:
            next(self._steps)
        except StopIteration:
            self.runner._finish_replay(self)
            return False
        if self.done:
            self.runner._finish_replay(self)
        return True

    def cancel(self) -> None:
        self.cancelled = True
        self.runner._finish_replay(self)


class MazeRunner:
    """
    UI-agnostic maze session.

    Responsibilities:
    - Hold the maze text, symbols and move keys, and rebuild the grid
      whenever the text or a symbol changes.
    - Solve the maze and play the path back one cell at a time.
    - Move the cursor in response to key presses.
    - Report notices, redraws and the solution through callbacks.
    """

    def __init__(
        self,
        maze_str: str = "",
        symbols: SymbolConfig = DEFAULT_SYMBOLS,
        move_keys: MoveKeyConfig = DEFAULT_MOVE_KEYS,
        log_fn: Optional[LogFn] = None,
        draw_maze_fn: Optional[DrawMazeFn] = None,
        draw_cursor_fn: Optional[DrawCursorFn] = None,
        resize_fn: Optional[ResizeFn] = None,
        solution_fn: Optional[SolutionFn] = None,
    ) -> None:
        self.log_fn = log_fn or (lambda msg: None)
        self.draw_maze_fn = draw_maze_fn or (lambda grid: None)
        self.draw_cursor_fn = draw_cursor_fn or (lambda cell: None)
        self.resize_fn = resize_fn or (lambda rows, cols: None)
        self.solution_fn = solution_fn or (lambda moves: None)

        self.symbols = symbols
        self.move_keys = move_keys
        self.text = ""
        self.lines: List[str] = []
        self.grid: Optional[Grid] = None
        self.generation = 0
        self.cursor: Optional[Cell] = None
        self.solution = ""
        self.replay: Optional[Replay] = None

        self.set_text(maze_str)

    # ------------------------------------------------------------------ #
    # State queries
    # ------------------------------------------------------------------ #

    @property
    def has_grid(self) -> bool:
        return self.grid is not None

    @property
    def animating(self) -> bool:
        return self.replay is not None and not self.replay.done

    @property
    def start(self) -> Optional[Cell]:
        return self.grid.start if self.grid else None

    @property
    def end(self) -> Optional[Cell]:
        return self.grid.end if self.grid else None

    def log(self, msg: str) -> None:
        self.log_fn(str(msg))

    # ------------------------------------------------------------------ #
    # Text, symbols and key bindings
    # ------------------------------------------------------------------ #

    def set_text(self, text: str) -> None:
        self.text = text
        self.lines = split_lines(text) if text.strip() else []
        self.rebuild()

    def set_symbol(self, name: str, value: str) -> bool:
        """Change one symbol. A bad value is reported and the old one kept."""
        if name not in SYMBOL_NAMES:
            raise KeyError(f"Unknown symbol {name!r}.")
        try:
            symbols = replace(self.symbols, **{name: value})
        except InvalidSymbolError as e:
            self.log(f"⛔️ {e}")
            return False
        if symbols != self.symbols:
            self.symbols = symbols
            self.rebuild()
        return True

    def set_symbols(self, symbols: SymbolConfig) -> None:
        self.symbols = symbols
        self.rebuild()

    def set_move_key(self, direction: Direction, key: str) -> bool:
        """Rebind one direction. Empty or clashing keys keep the old binding."""
        try:
            self.move_keys = self.move_keys.rebind(direction, key)
        except InvalidKeyBindingError as e:
            self.log(f"⛔️ {e}")
            return False
        return True

    def rebuild(self) -> None:
        """Throw the old grid away and build a new one from the current text."""
        self.generation += 1
        self.cancel_replay()

        if not self.lines:
            self.grid = None
            self.cursor = None
            self.draw_maze_fn(None)
            self.draw_cursor_fn(None)
            return

        self.grid = build_grid(self.lines, self.symbols)
        self._rebind_cursor()
        logger.debug("grid generation %d rebuilt", self.generation)
        self.draw_maze_fn(self.grid)
        self.resize_fn(self.grid.height, self.grid.width)

    def _rebind_cursor(self) -> None:
        if self.cursor is None:
            return
        x, y = self.cursor.pos
        if self.grid.is_wall(x, y):
            self._set_cursor(None)
        else:
            self._set_cursor(self.grid.cell(x, y))

    # ------------------------------------------------------------------ #
    # Solving & replay
    # ------------------------------------------------------------------ #

    def solve(self) -> Optional[SolverResult]:
        """
        Solve the current maze and start replaying the path.

        Problems are reported through log_fn and None is returned, so a
        failed solve never disturbs the grid or the cursor.
        """
        if self.animating:
            self.log("Still animating the last solution.")
            return None
        if self.grid is None:
            self.log("⛔️ Enter a maze first.")
            return None

        try:
            result = solve(self.grid, self.grid.start, self.grid.end, self.move_keys)
        except MissingEndpointError as e:
            self.log(f"⛔️ {e}")
            return None
        except NoPathFoundError:
            self.log("No path found!")
            return None

        self.solution = result.moves
        self.solution_fn(result.moves)
        self.log(f"🎉 Solved in {result.steps} moves.")
        self.start_replay(result.path)
        return result

    def start_replay(self, path: List[Cell]) -> Replay:
        if self.replay is not None:
            self.cancel_replay()
        self.replay = Replay(self, path)
        return self.replay

    def step_replay(self) -> bool:
        """Advance the running replay by one cell. Returns True if more remain."""
        replay = self.replay
        if replay is None:
            return False
        return replay.step() and not replay.done

    def cancel_replay(self) -> None:
        if self.replay is not None:
            self.replay.cancel()

    async def run_replay(self, delay: float = STEP_DELAY) -> None:
        """Play the current replay to the end, pausing `delay` after every step."""
        replay = self.replay
        while replay is not None and replay.step():
            await asyncio.sleep(delay)

    def _finish_replay(self, replay: Replay) -> None:
        if replay.stale:
            replay.cancelled = True
        if self.replay is replay:
            self.replay = None

    # ------------------------------------------------------------------ #
    # Cursor
    # ------------------------------------------------------------------ #

    def _set_cursor(self, cell: Optional[Cell]) -> None:
        self.cursor = cell
        self.draw_cursor_fn(cell)

    def place_cursor(self, x: int, y: int) -> bool:
        if self.grid is None or self.animating or self.grid.is_wall(x, y):
            return False
        self._set_cursor(self.grid.cell(x, y))
        return True

    def reset_cursor(self) -> bool:
        if self.start is None:
            return False
        return self.place_cursor(*self.start.pos)

    def manual_move(self, key: str) -> bool:
        """Move the cursor one cell for a key press. Returns True if it moved."""
        if self.animating or self.grid is None or self.cursor is None:
            return False
        direction = self.move_keys.direction_for(key)
        if direction is None:
            return False
        target = next_cell(self.grid, self.cursor, direction)
        if target is None or self.grid.is_wall(target.x, target.y):
            return False
        self._set_cursor(target)
        return True
