import asyncio
import random
import unittest

from maze_engine import MazeRunner, fit_cell_size
from maze_grid import CellKind, SymbolConfig
from maze_solver import Direction

SMALL_MAZE = "###\n#P.\n#.E\n###"


class RecordingRunner(unittest.TestCase):
    """Builds a MazeRunner whose callbacks record what they were given."""

    def setUp(self):
        self.notices = []
        self.drawn = []
        self.cursors = []
        self.sizes = []
        self.solutions = []
        self.runner = MazeRunner(
            SMALL_MAZE,
            log_fn=self.notices.append,
            draw_maze_fn=self.drawn.append,
            draw_cursor_fn=self.cursors.append,
            resize_fn=lambda rows, cols: self.sizes.append((rows, cols)),
            solution_fn=self.solutions.append,
        )


class TestRebuild(RecordingRunner):

    def test_initial_build(self):
        self.assertTrue(self.runner.has_grid)
        self.assertEqual(self.runner.start.pos, (1, 1))
        self.assertEqual(self.runner.end.pos, (2, 2))
        self.assertEqual(self.sizes, [(4, 3)])
        self.assertIsNone(self.runner.cursor)

    def test_empty_text_means_no_grid(self):
        self.runner.set_text("  \n ")
        self.assertFalse(self.runner.has_grid)
        self.assertIsNone(self.drawn[-1])

    def test_every_rebuild_bumps_generation(self):
        generation = self.runner.generation
        self.runner.set_text(SMALL_MAZE)
        self.runner.set_symbol("wall", ".")
        self.assertEqual(self.runner.generation, generation + 2)

    def test_symbol_change_rebuilds_from_same_text(self):
        self.assertIs(self.runner.grid.cell(2, 1).kind, CellKind.PATH)
        self.assertTrue(self.runner.set_symbol("wall", "."))
        self.assertIs(self.runner.grid.cell(2, 1).kind, CellKind.WALL)
        self.assertIs(self.runner.grid.cell(0, 0).kind, CellKind.PATH)

    def test_unchanged_symbol_does_not_rebuild(self):
        generation = self.runner.generation
        self.assertTrue(self.runner.set_symbol("wall", "#"))
        self.assertEqual(self.runner.generation, generation)

    def test_bad_symbol_keeps_previous(self):
        self.assertFalse(self.runner.set_symbol("end", ""))
        self.assertEqual(self.runner.symbols.end, "E")
        self.assertEqual(len(self.notices), 1)

    def test_unknown_symbol_name(self):
        with self.assertRaises(KeyError):
            self.runner.set_symbol("door", "D")

    def test_cursor_survives_rebuild_on_open_cell(self):
        self.runner.place_cursor(2, 1)
        self.runner.set_symbol("end", "X")
        self.assertEqual(self.runner.cursor.pos, (2, 1))
        self.assertIs(self.runner.cursor, self.runner.grid.cell(2, 1))

    def test_cursor_cleared_when_cell_becomes_wall(self):
        self.runner.place_cursor(2, 1)
        self.runner.set_symbol("wall", ".")
        self.assertIsNone(self.runner.cursor)


class TestSolve(RecordingRunner):

    def test_solution_reported(self):
        result = self.runner.solve()
        self.assertEqual(result.moves, "sd")
        self.assertEqual(self.runner.solution, "sd")
        self.assertEqual(self.solutions, ["sd"])
        self.assertTrue(self.runner.animating)

    def test_missing_end_is_a_notice(self):
        self.runner.set_text("###\n#P.\n#..\n###")
        self.assertIsNone(self.runner.solve())
        self.assertEqual(len(self.notices), 1)
        self.assertFalse(self.runner.animating)
        self.assertEqual(self.solutions, [])

    def test_no_path_is_a_notice(self):
        self.runner.set_text("#####\n#P#E#\n#####")
        self.assertIsNone(self.runner.solve())
        self.assertEqual(self.notices, ["No path found!"])

    def test_no_grid_is_a_notice(self):
        self.runner.set_text("")
        self.assertIsNone(self.runner.solve())
        self.assertEqual(len(self.notices), 1)

    def test_solving_blocked_while_animating(self):
        self.runner.solve()
        self.assertIsNone(self.runner.solve())
        self.assertEqual(self.solutions, ["sd"])

    def test_solution_uses_current_bindings(self):
        self.runner.set_move_key(Direction.DOWN, "k")
        self.assertEqual(self.runner.solve().moves, "kd")


class TestReplay(RecordingRunner):

    def test_steps_applied_in_order(self):
        result = self.runner.solve()
        while self.runner.step_replay():
            pass
        self.assertEqual(self.cursors, result.path)
        self.assertEqual(self.runner.cursor.pos, self.runner.end.pos)
        self.assertFalse(self.runner.animating)

    def test_async_replay_ends_at_end(self):
        self.runner.solve()
        asyncio.run(self.runner.run_replay(delay=0))
        self.assertEqual(self.runner.cursor.pos, (2, 2))
        self.assertIsNone(self.runner.replay)

    def test_async_replay_waits_between_steps(self):
        self.runner.solve()
        seen = []

        async def watch():
            task = asyncio.ensure_future(self.runner.run_replay(delay=0.01))
            while not task.done():
                seen.append(self.runner.cursor)
                await asyncio.sleep(0.001)
            await task

        asyncio.run(watch())
        positions = [c.pos for c in seen if c is not None]
        self.assertEqual(positions[0], (1, 1))
        self.assertEqual(positions[-1], (2, 2))
        self.assertIn((1, 2), positions)

    def test_rebuild_aborts_replay(self):
        self.runner.solve()
        self.runner.step_replay()
        replay = self.runner.replay
        self.runner.set_text(SMALL_MAZE)
        self.assertFalse(self.runner.animating)
        self.assertTrue(replay.cancelled)
        self.assertFalse(replay.step())
        self.assertEqual(self.runner.cursor.pos, (1, 1))

    def test_stale_replay_stops_at_next_step(self):
        replay = self.runner.start_replay(
            [self.runner.grid.cell(1, 1), self.runner.grid.cell(1, 2)]
        )
        self.runner.generation += 1
        self.assertFalse(replay.step())
        self.assertIsNone(self.runner.cursor)
        self.assertTrue(replay.done)

    def test_new_grid_can_be_solved_after_abort(self):
        self.runner.solve()
        self.runner.set_text("P.E")
        self.assertEqual(self.runner.solve().moves, "dd")


class TestManualMove(RecordingRunner):

    def test_move_up_then_blocked_by_wall(self):
        self.runner.place_cursor(1, 2)
        self.assertTrue(self.runner.manual_move("w"))
        self.assertEqual(self.runner.cursor.pos, (1, 1))
        self.assertFalse(self.runner.manual_move("w"))
        self.assertEqual(self.runner.cursor.pos, (1, 1))

    def test_keys_are_case_insensitive(self):
        self.runner.place_cursor(1, 1)
        self.assertTrue(self.runner.manual_move("D"))
        self.assertEqual(self.runner.cursor.pos, (2, 1))

    def test_unbound_key_is_ignored(self):
        self.runner.place_cursor(1, 1)
        self.assertFalse(self.runner.manual_move("x"))
        self.assertEqual(self.runner.cursor.pos, (1, 1))

    def test_no_cursor_no_move(self):
        self.assertFalse(self.runner.manual_move("s"))
        self.assertIsNone(self.runner.cursor)

    def test_ignored_while_animating(self):
        self.runner.solve()
        self.runner.step_replay()
        self.assertFalse(self.runner.manual_move("d"))
        self.assertEqual(self.runner.cursor.pos, (1, 1))

    def test_cannot_leave_the_grid(self):
        self.runner.set_text("P.E")
        self.runner.reset_cursor()
        self.assertFalse(self.runner.manual_move("w"))
        self.assertFalse(self.runner.manual_move("a"))
        self.assertEqual(self.runner.cursor.pos, (0, 0))

    def test_random_presses_never_reach_a_wall(self):
        rng = random.Random(3)
        self.runner.set_text("#######\n#P..#.#\n#.#...#\n#...#E#\n#######")
        self.runner.reset_cursor()
        for _ in range(500):
            self.runner.manual_move(rng.choice("wasdWASDx"))
            x, y = self.runner.cursor.pos
            self.assertFalse(self.runner.grid.is_wall(x, y))

    def test_rebound_key_moves(self):
        self.runner.place_cursor(1, 1)
        self.assertTrue(self.runner.set_move_key(Direction.DOWN, "k"))
        self.assertFalse(self.runner.manual_move("s"))
        self.assertTrue(self.runner.manual_move("k"))
        self.assertEqual(self.runner.cursor.pos, (1, 2))

    def test_clashing_key_keeps_previous(self):
        self.assertFalse(self.runner.set_move_key(Direction.UP, "d"))
        self.assertEqual(self.runner.move_keys.up, "w")
        self.assertEqual(len(self.notices), 1)

    def test_cannot_place_cursor_on_wall(self):
        self.assertFalse(self.runner.place_cursor(0, 0))
        self.assertFalse(self.runner.place_cursor(9, 9))
        self.assertIsNone(self.runner.cursor)


class TestCellSize(unittest.TestCase):

    def test_fits_smaller_dimension(self):
        self.assertEqual(fit_cell_size(300, 400, 10, 10), 30)
        self.assertEqual(fit_cell_size(400, 300, 10, 20), 20)

    def test_never_below_minimum(self):
        self.assertEqual(fit_cell_size(300, 300, 100, 100), 10)
        self.assertEqual(fit_cell_size(300, 300, 100, 100, minimum=4), 4)

    def test_empty_grid(self):
        self.assertEqual(fit_cell_size(300, 300, 0, 0), 10)


if __name__ == "__main__":
    unittest.main()
