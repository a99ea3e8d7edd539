"""
Snake - play in a pygame window.

Controls:
    Arrow keys or WASD to steer
    R to restart after game over
    Q or Escape to quit

Use --headless to run without a window (the snake goes straight ahead and
the final board is printed as text).
"""

import argparse
import logging
import random
import sys
from typing import List, Optional

from dotenv import load_dotenv

from snake_config import ConfigError, SnakeConfig, load_config
from snake_game import BODY, EMPTY, FOOD, HEAD, GameState

logger = logging.getLogger(__name__)

BOARD_CHARS = {EMPTY: ".", BODY: "o", HEAD: "@", FOOD: "*"}
TEXT_COLOR = (255, 255, 255)
QUIT_KEYS = ("q", "escape")


class PygameRenderer:
    def __init__(self, config: SnakeConfig):
        import pygame

        pygame.init()
        self._pygame = pygame
        self.config = config
        self.screen = pygame.display.set_mode(config.screen_size)
        pygame.display.set_caption("Snake!")
        self.font = pygame.font.SysFont("arial", max(12, config.cell_height))

    def _rect(self, pos):
        cfg = self.config
        return self._pygame.Rect(
            pos[0] * cfg.cell_width, pos[1] * cfg.cell_height, cfg.cell_width, cfg.cell_height
        )

    def clear(self, color) -> None:
        self.screen.fill(color)

    def fill_rect(self, pos, color) -> None:
        self._pygame.draw.rect(self.screen, color, self._rect(pos))

    def draw_text(self, pos, text: str) -> None:
        # Centered in a band one cell high starting at the given row.
        width, _ = self.config.screen_size
        surface = self.font.render(text, True, TEXT_COLOR)
        top = pos[1] * self.config.cell_height
        self.screen.blit(surface, surface.get_rect(midtop=(width // 2, top)))

    def present(self) -> None:
        self._pygame.display.flip()

    def close(self) -> None:
        self._pygame.quit()


class TextRenderer:
    """Renders the board to a list of lines; used for --headless runs."""

    def __init__(self, state: GameState):
        self.state = state
        self.lines: List[str] = []
        self._text: Optional[str] = None

    def clear(self, color) -> None:
        self._text = None

    def fill_rect(self, pos, color) -> None:
        pass

    def draw_text(self, pos, text: str) -> None:
        self._text = text

    def present(self) -> None:
        board = self.state.board()
        self.lines = ["".join(BOARD_CHARS[int(c)] for c in row) for row in board]
        if self._text:
            self.lines.append(self._text)


def run_window(config: SnakeConfig, fps: int, seed: Optional[int]) -> int:
    import pygame

    rng = random.Random(seed)
    renderer = PygameRenderer(config)
    clock = pygame.time.Clock()
    state = GameState(config, rng)
    reported = False
    games = 1

    try:
        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    key = pygame.key.name(event.key)
                    if key in QUIT_KEYS:
                        running = False
                    elif key == "r" and state.gameover:
                        state = GameState(config, rng)
                        reported = False
                        games += 1
                        logger.info("restarted, game %d", games)
                    else:
                        state.on_key(key)

            state.on_tick(clock.tick(fps) / 1000.0)
            if state.gameover and not reported:
                print(state.game_over_message)
                reported = True
            state.on_render_request(renderer)
    finally:
        renderer.close()
    return 0


def run_headless(config: SnakeConfig, max_ticks: int, seed: Optional[int]) -> int:
    state = GameState(config, random.Random(seed))
    renderer = TextRenderer(state)
    for _ in range(max_ticks):
        state.on_tick(config.tick_interval)
        if state.gameover:
            break
    state.on_render_request(renderer)
    print("\n".join(renderer.lines))
    print(f"Ticks: {state.ticks} | Score: {state.score} | Game over: {state.gameover}")
    return 0


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play Snake")
    parser.add_argument("--config", type=str, default=None, help="Path to a JSON config file")
    parser.add_argument("--grid-width", type=int, default=None)
    parser.add_argument("--grid-height", type=int, default=None)
    parser.add_argument("--cell-size", type=int, default=None)
    parser.add_argument("--ups", type=float, default=None, help="Snake updates per second")
    parser.add_argument("--fps", type=int, default=60)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--headless", action="store_true")
    parser.add_argument("--max-ticks", type=int, default=100)
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> SnakeConfig:
    return load_config(
        args.config,
        grid_width=args.grid_width,
        grid_height=args.grid_height,
        cell_width=args.cell_size,
        cell_height=args.cell_size,
        updates_per_second=args.ups,
    )


def main(argv=None) -> int:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        config = build_config(args)
    except ConfigError as exc:
        print(f"snake-play: error: {exc}", file=sys.stderr)
        return 2

    if args.headless:
        return run_headless(config, args.max_ticks, args.seed)
    return run_window(config, args.fps, args.seed)


if __name__ == "__main__":
    sys.exit(main())
