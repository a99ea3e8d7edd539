import logging
import random
from collections import deque
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Deque, List, NamedTuple, Optional, Tuple

import numpy as np

from snake_config import SnakeConfig

logger = logging.getLogger(__name__)

# `random` is shadowed by classmethods inside GridPosition and Food.
Rng = random.Random


class Direction(IntEnum):
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    def inverse(self) -> "Direction":
        return Direction((self + 2) % 4)

    @classmethod
    def from_input(cls, key: str) -> Optional["Direction"]:
        """Map a key name (as given by ``pygame.key.name``) to a direction."""
        if not isinstance(key, str):
            return None
        return KEY_TO_DIR.get(key.lower())


UP, RIGHT, DOWN, LEFT = Direction.UP, Direction.RIGHT, Direction.DOWN, Direction.LEFT

# y grows downward, matching screen coordinates.
DIR_VECS = {
    UP: (0, -1),
    RIGHT: (1, 0),
    DOWN: (0, 1),
    LEFT: (-1, 0),
}

KEY_TO_DIR = {
    "up": UP, "w": UP,
    "right": RIGHT, "d": RIGHT,
    "down": DOWN, "s": DOWN,
    "left": LEFT, "a": LEFT,
}

EMPTY, BODY, HEAD, FOOD = 0, 1, 2, 3


class GridPosition(NamedTuple):
    x: int
    y: int

    @classmethod
    def new(cls, x: int, y: int, width: int, height: int) -> "GridPosition":
        return cls(x % width, y % height)

    @classmethod
    def random(
        cls, width: int, height: int, rng: Optional[Rng] = None
    ) -> "GridPosition":
        rng = rng or random
        return cls(rng.randrange(width), rng.randrange(height))

    def move_in(self, direction: Direction, width: int, height: int) -> "GridPosition":
        dx, dy = DIR_VECS[direction]
        return GridPosition((self.x + dx) % width, (self.y + dy) % height)


@dataclass(frozen=True)
class Segment:
    pos: GridPosition


class Ate(Enum):
    FOOD = "food"
    ITSELF = "itself"


class Food:
    def __init__(self, pos: GridPosition):
        self.pos = GridPosition(*pos)

    @classmethod
    def random(cls, width: int, height: int, rng: Optional[Rng] = None) -> "Food":
        return cls(GridPosition.random(width, height, rng))

    def relocate(
        self, width: int, height: int, rng: Optional[Rng] = None
    ) -> GridPosition:
        # Snake cells are not excluded; food may land under the body.
        self.pos = GridPosition.random(width, height, rng)
        logger.debug("food relocated to %s", tuple(self.pos))
        return self.pos

    def eats(self, pos: Tuple[int, int]) -> bool:
        return self.pos == pos


class Snake:
    """
    Head, body and heading of the snake.

    ``body`` holds the cells behind the head, head-to-tail.  ``dir`` is the
    heading the next update will use; ``last_update_dir`` is the heading the
    previous update used.  At most one turn takes effect per update: a second
    turn pressed before the update fires waits in ``buffered_dir``.
    """

    def __init__(self, pos: Tuple[int, int], width: int, height: int):
        if width < 2 or height < 1:
            raise ValueError("grid must be at least 2 wide and 1 high")
        self.width = width
        self.height = height
        head = GridPosition.new(pos[0], pos[1], width, height)
        self.head = Segment(head)
        self.body: Deque[Segment] = deque(
            [Segment(GridPosition.new(head.x - 1, head.y, width, height))]
        )
        self.dir = RIGHT
        self.last_update_dir = RIGHT
        self.buffered_dir: Optional[Direction] = None
        self.ate: Optional[Ate] = None

    def __len__(self) -> int:
        return len(self.body) + 1

    def positions(self) -> List[GridPosition]:
        """All occupied cells, head first."""
        return [self.head.pos] + [seg.pos for seg in self.body]

    def eats(self, food: Food) -> bool:
        return food.eats(self.head.pos)

    def eats_self(self) -> bool:
        return any(seg.pos == self.head.pos for seg in self.body)

    def turn(self, direction: Direction) -> bool:
        """Apply or buffer a heading change.  Returns False if the press was dropped."""
        if self.dir != self.last_update_dir and direction.inverse() != self.dir:
            self.buffered_dir = direction
            return True
        if direction.inverse() != self.last_update_dir:
            self.dir = direction
            return True
        logger.debug(
            "dropped reversal %s while heading %s", direction.name, self.last_update_dir.name
        )
        return False

    def on_key(self, key: str) -> bool:
        direction = Direction.from_input(key)
        if direction is None:
            return False
        return self.turn(direction)

    def update(self, food: Food) -> Optional[Ate]:
        if self.last_update_dir == self.dir and self.buffered_dir is not None:
            # A pending turn replaced after buffering can leave a reversal queued.
            if self.buffered_dir.inverse() != self.last_update_dir:
                self.dir = self.buffered_dir
            else:
                logger.debug("dropped buffered reversal %s", self.buffered_dir.name)
            self.buffered_dir = None

        new_head = self.head.pos.move_in(self.dir, self.width, self.height)
        self.body.appendleft(self.head)
        self.head = Segment(new_head)

        if self.eats_self():
            self.ate = Ate.ITSELF
            return self.ate

        if self.eats(food):
            self.ate = Ate.FOOD
        else:
            self.ate = None
            self.body.pop()

        self.last_update_dir = self.dir
        return self.ate


class GameState:
    """
    Fixed-tick controller over one Snake and one Food.

    The frame loop calls ``on_tick`` with the elapsed seconds of every frame,
    ``on_key`` for every key press and ``on_render_request`` once per frame.
    A renderer provides ``clear(color)``, ``fill_rect(pos, color)``,
    ``draw_text(pos, text)`` and ``present()``.
    """

    def __init__(self, config: Optional[SnakeConfig] = None, rng: Optional[Rng] = None):
        self.config = config or SnakeConfig()
        self._rng = rng or random.Random()
        width, height = self.config.grid_width, self.config.grid_height
        self.snake = Snake((width // 4, height // 2), width, height)
        self.food = Food.random(width, height, self._rng)
        self.gameover = False
        self.ticks = 0
        self._elapsed = 0.0

    @property
    def score(self) -> int:
        return len(self.snake.body)

    @property
    def game_over_message(self) -> str:
        return f"Game Over. Snake Length Score {self.score}"

    def on_tick(self, dt: float) -> bool:
        if self.gameover:
            return False
        self._elapsed += dt
        if self._elapsed < self.config.tick_interval:
            return False
        self._elapsed = 0.0
        self.step()
        return True

    def step(self) -> Optional[Ate]:
        """Run one snake update and react to what it ate."""
        if self.gameover:
            return None
        ate = self.snake.update(self.food)
        self.ticks += 1
        if ate is Ate.FOOD:
            self.food.relocate(self.config.grid_width, self.config.grid_height, self._rng)
        elif ate is Ate.ITSELF:
            self.gameover = True
            logger.info("%s (tick %d)", self.game_over_message, self.ticks)
        return ate

    def on_key(self, key: str) -> bool:
        if self.gameover:
            return False
        return self.snake.on_key(key)

    def on_render_request(self, renderer) -> None:
        cfg = self.config
        renderer.clear(cfg.background)
        for seg in self.snake.body:
            renderer.fill_rect(seg.pos, cfg.snake_body)
        renderer.fill_rect(self.snake.head.pos, cfg.snake_head)
        renderer.fill_rect(self.food.pos, cfg.food)
        if self.gameover:
            renderer.draw_text(GridPosition(0, 0), self.game_over_message)
        renderer.present()

    def board(self) -> np.ndarray:
        grid = np.zeros((self.config.grid_height, self.config.grid_width), dtype=np.int8)
        grid[self.food.pos.y, self.food.pos.x] = FOOD
        for seg in self.snake.body:
            grid[seg.pos.y, seg.pos.x] = BODY
        grid[self.snake.head.pos.y, self.snake.head.pos.x] = HEAD
        return grid
