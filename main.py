import asyncio
import logging
import sys

import pygame

from maze_engine import STEP_DELAY, MazeRunner, fit_cell_size
from maze_grid import SYMBOL_NAMES, CellKind
from maze_solver import DIRECTION_ORDER

IS_WEB = sys.platform == "emscripten"

# ----- layout -----
LEFT_W = 460
MAZE_W, MAZE_H = 560, 480
WIN_W = LEFT_W + MAZE_W + 28
WIN_H = MAZE_H + 200
FPS = 60

# ----- colors -----
BG = (26, 28, 35)
PANEL = (34, 37, 46)
BORDER = (60, 64, 75)
TEXT = (232, 235, 243)
MUTED = (170, 173, 184)
ACCENT = (255, 208, 80)
CURSOR = (59, 130, 246)
BTN = (45, 50, 62)
BTN_PRI = (52, 120, 246)
KIND_COLORS = {
    CellKind.WALL: (31, 41, 55),
    CellKind.PATH: (255, 255, 255),
    CellKind.START: (34, 197, 94),
    CellKind.END: (239, 68, 68),
}

SAMPLE_MAZE = """##########
#P.....#.#
#.####.#.#
#.#....#.#
#.#.####.#
#.#......#
#.######.#
#......#E#
##########"""


# ----- helpers -----
def clamp(v, a, b):
    return a if v < a else b if v > b else v


def pick_font(cands, size):
    avail = set(pygame.font.get_fonts())
    for n in cands:
        if n and n.lower() in avail:
            return pygame.font.SysFont(n, size)
    return pygame.font.Font(None, size)


# ----- maze text editor -----
class Editor:
    def __init__(self, rect, font, on_change=None):
        self.rect = pygame.Rect(rect)
        self.font = font
        self.on_change = on_change or (lambda text: None)
        self.lines = [""]
        self.row = self.col = 0
        self.scroll = 0
        self.blink = 0
        self.focus = False

    def set_text(self, s):
        self.lines = s.splitlines() or [""]
        self.row = self.col = self.scroll = 0
        self.on_change(self.get_text())

    def get_text(self):
        return "\n".join(self.lines)

    def handle(self, e):
        if e.type != pygame.KEYDOWN or not self.focus:
            return
        before = self.get_text()
        if e.key == pygame.K_BACKSPACE:
            if self.col > 0:
                L = self.lines[self.row]
                self.lines[self.row] = L[: self.col - 1] + L[self.col :]
                self.col -= 1
            elif self.row > 0:
                prev = self.lines[self.row - 1]
                self.col = len(prev)
                self.lines[self.row - 1] = prev + self.lines[self.row]
                del self.lines[self.row]
                self.row -= 1
        elif e.key == pygame.K_RETURN:
            L = self.lines[self.row]
            left, right = L[: self.col], L[self.col :]
            self.lines[self.row] = left
            self.lines.insert(self.row + 1, right)
            self.row += 1
            self.col = 0
        elif e.key in (
            pygame.K_LEFT,
            pygame.K_RIGHT,
            pygame.K_UP,
            pygame.K_DOWN,
            pygame.K_HOME,
            pygame.K_END,
        ):
            self._nav(e.key)
        else:
            if e.unicode and e.unicode >= " ":
                self._ins(e.unicode)
        text = self.get_text()
        if text != before:
            self.on_change(text)

    def _ins(self, s):
        L = self.lines[self.row]
        self.lines[self.row] = L[: self.col] + s + L[self.col :]
        self.col += len(s)

    def _nav(self, k):
        if k == pygame.K_LEFT:
            if self.col > 0:
                self.col -= 1
            elif self.row > 0:
                self.row -= 1
                self.col = len(self.lines[self.row])
        elif k == pygame.K_RIGHT:
            if self.col < len(self.lines[self.row]):
                self.col += 1
            elif self.row < len(self.lines) - 1:
                self.row += 1
                self.col = 0
        elif k == pygame.K_UP:
            self.row = max(0, self.row - 1)
            self.col = min(self.col, len(self.lines[self.row]))
        elif k == pygame.K_DOWN:
            self.row = min(len(self.lines) - 1, self.row + 1)
            self.col = min(self.col, len(self.lines[self.row]))
        elif k == pygame.K_HOME:
            self.col = 0
        elif k == pygame.K_END:
            self.col = len(self.lines[self.row])

    def draw(self, surf):
        pygame.draw.rect(surf, PANEL, self.rect, border_radius=8)
        pygame.draw.rect(
            surf, ACCENT if self.focus else BORDER, self.rect, 1, border_radius=8
        )
        inner = self.rect.inflate(-14, -14)
        lh = self.font.get_linesize()
        max_vis = max(1, inner.h // lh)
        self.scroll = clamp(self.scroll, 0, max(0, len(self.lines) - max_vis))
        if self.row < self.scroll:
            self.scroll = self.row
        if self.row >= self.scroll + max_vis:
            self.scroll = self.row - max_vis + 1
        prev_clip = surf.get_clip()
        surf.set_clip(inner)
        for i in range(max_vis):
            li = self.scroll + i
            if li >= len(self.lines):
                break
            surf.blit(
                self.font.render(self.lines[li], True, TEXT),
                (inner.x, inner.y + i * lh),
            )
        self.blink = (self.blink + 1) % FPS
        if self.focus and self.blink < FPS // 2:
            cx = inner.x + self.font.size(self.lines[self.row][: self.col])[0]
            cy = inner.y + (self.row - self.scroll) * lh
            pygame.draw.line(surf, ACCENT, (cx, cy), (cx, cy + lh - 2), 2)
        surf.set_clip(prev_clip)


# ----- one-character fields for symbols and keys -----
class CharField:
    def __init__(self, rect, label, value, on_commit, lower=False):
        self.rect = pygame.Rect(rect)
        self.label = label
        self.value = value
        self.on_commit = on_commit  # returns False to reject the new value
        self.lower = lower
        self.focus = False

    def handle(self, e):
        if e.type != pygame.KEYDOWN or not self.focus:
            return
        value = e.unicode.lower() if self.lower else e.unicode
        if value and value > " " and value != self.value:
            if self.on_commit(value):
                self.value = value

    def draw(self, surf, font):
        surf.blit(font.render(self.label, True, MUTED), (self.rect.x, self.rect.y - 20))
        pygame.draw.rect(surf, PANEL, self.rect, border_radius=6)
        pygame.draw.rect(
            surf, ACCENT if self.focus else BORDER, self.rect, 1, border_radius=6
        )
        text = font.render(self.value, True, TEXT)
        surf.blit(text, text.get_rect(center=self.rect.center))

    def hit(self, pos):
        return self.rect.collidepoint(pos)


# ----- logger (no overflow; clipped) -----
class Logger:
    def __init__(self, rect, font):
        self.rect = pygame.Rect(rect)
        self.font = font
        self.lines = []
        self.history_cap = 300

    def log(self, msg):
        self.lines.append(str(msg))
        if len(self.lines) > self.history_cap:
            self.lines = self.lines[-self.history_cap :]

    def draw(self, surf):
        pygame.draw.rect(surf, PANEL, self.rect, border_radius=8)
        pygame.draw.rect(surf, BORDER, self.rect, 1, border_radius=8)
        inner = self.rect.inflate(-12, -12)
        lh = self.font.get_linesize()
        max_vis = max(1, inner.h // lh)
        view = self.lines[-max_vis:]
        prev_clip = surf.get_clip()
        surf.set_clip(inner)
        y = inner.y
        for line in view:
            surf.blit(self.font.render(line, True, MUTED), (inner.x, y))
            y += lh
        surf.set_clip(prev_clip)


# ----- buttons -----
class Button:
    def __init__(self, rect, label, primary=False):
        self.rect = pygame.Rect(rect)
        self.label = label
        self.primary = primary

    def draw(self, surf, font, enabled=True):
        fill = BTN_PRI if self.primary and enabled else BTN
        pygame.draw.rect(surf, fill, self.rect, border_radius=6)
        pygame.draw.rect(surf, BORDER, self.rect, 1, border_radius=6)
        text = font.render(self.label, True, TEXT if enabled else MUTED)
        surf.blit(text, text.get_rect(center=self.rect.center))

    def hit(self, pos):
        return self.rect.collidepoint(pos)


# ----- drawing -----
def draw_maze(surf, runner, area, cell):
    pygame.draw.rect(surf, PANEL, area, border_radius=8)
    pygame.draw.rect(surf, BORDER, area, 1, border_radius=8)
    if not runner.has_grid:
        return
    x0, y0 = area.x + 8, area.y + 8
    for c in runner.grid:
        r = pygame.Rect(x0 + c.x * cell, y0 + c.y * cell, cell, cell)
        pygame.draw.rect(surf, KIND_COLORS[c.kind], r)
    if runner.cursor is not None:
        cx = x0 + runner.cursor.x * cell + cell / 2
        cy = y0 + runner.cursor.y * cell + cell / 2
        pygame.draw.circle(surf, CURSOR, (cx, cy), cell * 0.4)


# ----- app -----
class App:
    def __init__(self):
        pygame.init()
        pygame.display.set_caption("Maze Runner")
        self.screen = pygame.display.set_mode((WIN_W, WIN_H))
        self.clock = pygame.time.Clock()
        mono = [
            "consolas",
            "menlo",
            "dejavusansmono",
            "couriernew",
            "liberationmono",
            "monospace",
        ]
        self.font = pick_font(mono, 18)
        self.small = pick_font(mono, 16)

        left_margin = 14
        inner_w = LEFT_W - 2 * left_margin

        self.log = Logger((left_margin, WIN_H - 150, inner_w, 136), self.small)
        self.runner = MazeRunner(
            log_fn=self.log.log,
            resize_fn=self.on_resize,
            solution_fn=self.on_solution,
        )
        self.cell = MAZE_W
        self.solution = ""

        # maze text
        self.editor = Editor(
            (left_margin, 14, inner_w, 250), self.small, on_change=self.runner.set_text
        )

        # symbol and key fields, two rows of four
        self.fields = []
        y = 300
        for i, name in enumerate(SYMBOL_NAMES):
            self.fields.append(
                CharField(
                    (left_margin + i * 110, y, 44, 30),
                    name.capitalize(),
                    getattr(self.runner.symbols, name),
                    lambda v, name=name: self.runner.set_symbol(name, v),
                )
            )
        y += 60
        for i, direction in enumerate(DIRECTION_ORDER):
            self.fields.append(
                CharField(
                    (left_margin + i * 110, y, 44, 30),
                    direction.key_name.capitalize(),
                    self.runner.move_keys.key_for(direction),
                    lambda v, d=direction: self.runner.set_move_key(d, v),
                    lower=True,
                )
            )

        y += 44
        self.btn_solve = Button((left_margin, y, 140, 34), "Solve", primary=True)
        self.btn_start = Button((left_margin + 150, y, 140, 34), "To start")
        self.btn_sample = Button((left_margin + 300, y, 132, 34), "Sample")

        # on-screen direction pad under the maze
        self.maze_area = pygame.Rect(LEFT_W, 14, MAZE_W, MAZE_H)
        px = LEFT_W + MAZE_W // 2
        py = self.maze_area.bottom + 12
        self.pad = [
            (Button((px - 40, py, 80, 30), "Up"), DIRECTION_ORDER[0]),
            (Button((px - 40, py + 36, 80, 30), "Down"), DIRECTION_ORDER[1]),
            (Button((px - 126, py + 36, 80, 30), "Left"), DIRECTION_ORDER[2]),
            (Button((px + 46, py + 36, 80, 30), "Right"), DIRECTION_ORDER[3]),
        ]
        self.maze_focus = False

        self.editor.set_text(SAMPLE_MAZE)
        self.log.log("Ready.")

    # ----- callbacks from the runner -----
    def on_resize(self, rows, cols):
        self.cell = fit_cell_size(MAZE_W - 16, MAZE_H - 16, rows, cols)

    def on_solution(self, moves):
        self.solution = moves

    # ----- input -----
    def set_focus(self, target):
        self.editor.focus = target is self.editor
        for f in self.fields:
            f.focus = target is f
        self.maze_focus = target == "maze"

    def click(self, pos):
        if self.btn_solve.hit(pos):
            self.runner.solve()
            return
        if self.btn_start.hit(pos):
            self.runner.reset_cursor()
            return
        if self.btn_sample.hit(pos):
            self.editor.set_text(SAMPLE_MAZE)
            return
        for btn, direction in self.pad:
            if btn.hit(pos):
                self.runner.manual_move(self.runner.move_keys.key_for(direction))
                return
        if self.editor.rect.collidepoint(pos):
            self.set_focus(self.editor)
            return
        for f in self.fields:
            if f.hit(pos):
                self.set_focus(f)
                return
        if self.maze_area.collidepoint(pos):
            self.set_focus("maze")
            x = (pos[0] - self.maze_area.x - 8) // self.cell
            y = (pos[1] - self.maze_area.y - 8) // self.cell
            self.runner.place_cursor(x, y)
            return
        self.set_focus(None)

    def key(self, e):
        if self.maze_focus and e.type == pygame.KEYDOWN and e.unicode:
            self.runner.manual_move(e.unicode)
            return
        self.editor.handle(e)
        for f in self.fields:
            f.handle(e)

    async def run(self):
        accum = 0.0
        while True:
            dt = self.clock.tick(FPS) / 1000.0
            accum += dt
            for e in pygame.event.get():
                if e.type == pygame.QUIT:
                    return
                if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
                    self.click(e.pos)
                elif e.type == pygame.KEYDOWN:
                    self.key(e)

            if self.runner.animating:
                if accum >= STEP_DELAY:
                    accum = 0.0
                    self.runner.step_replay()
            else:
                accum = 0.0

            # draw
            self.screen.fill(BG)
            self.editor.draw(self.screen)
            for f in self.fields:
                f.draw(self.screen, self.small)
            idle = not self.runner.animating
            self.btn_solve.draw(self.screen, self.small, enabled=idle)
            self.btn_start.draw(self.screen, self.small, enabled=idle)
            self.btn_sample.draw(self.screen, self.small)
            for btn, _ in self.pad:
                btn.draw(self.screen, self.small, enabled=idle)
            self.log.draw(self.screen)
            draw_maze(self.screen, self.runner, self.maze_area, self.cell)
            if self.solution:
                text = self.small.render(f"Solution: {self.solution}", True, ACCENT)
                self.screen.blit(text, (14, WIN_H - 176))
            pygame.display.flip()
            await asyncio.sleep(0)


# ----- entry -----
async def main():
    app = App()
    await app.run()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO if IS_WEB else logging.DEBUG,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    try:
        asyncio.run(main())
    finally:
        pygame.quit()
