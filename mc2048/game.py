import random
import threading
from dataclasses import dataclass
from enum import Enum

from mc2048.grid import Direction, Grid
from mc2048.search import SearchEngine
from mc2048.tile import Position


class Command(Enum):
    """Everything a front end can ask the game to do."""

    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"
    RESTART = "restart"
    STEP_ADVISED_MOVE = "step"
    RUN_AUTO_PLAY = "run"
    PAUSE_AUTO_PLAY = "pause"

    @property
    def direction(self) -> Direction | None:
        try:
            return Direction[self.name]
        except KeyError:
            return None


@dataclass(frozen=True)
class MoveOutcome:
    moved: bool
    score_delta: int
    died: bool


@dataclass(frozen=True)
class TileView:
    row: int
    col: int
    value: int
    is_new: bool
    previous_position: Position | None = None


@dataclass(frozen=True)
class Snapshot:
    tiles: tuple[TileView, ...]
    score: int
    died: bool
    won: bool
    size: int = 4

    def to_rows(self) -> list[list[int]]:
        rows = [[0] * self.size for _ in range(self.size)]
        for tile in self.tiles:
            rows[tile.row][tile.col] = tile.value
        return rows


class GameEngine:
    """One game of 2048: the authoritative grid, the score and the end state."""

    grid: Grid
    score: int
    died: bool
    won: bool
    running: bool

    def __init__(
        self,
        search: SearchEngine | None = None,
        rng: random.Random | None = None,
        verbose: bool = False,
    ):
        self.rng = rng or random.Random()
        # the advisor draws from its own stream so advice doesn't shift tile placement
        self.search = search or SearchEngine(rng=random.Random(self.rng.getrandbits(64)))
        self.verbose = verbose
        self.restart()

    def restart(self):
        self.grid = Grid()
        self.score = 0
        self.died = False
        # reserved: nothing sets it yet
        self.won = False
        self.running = False
        self.grid.insert_random_tile(self.rng)
        self.grid.insert_random_tile(self.rng)

    @property
    def last_score(self) -> int:
        return self.grid.last_score

    def is_dead(self) -> bool:
        return self.grid.is_dead()

    def apply_move(self, direction) -> MoveOutcome:
        """
        Play a move. A move that shifts nothing leaves the game exactly as it
        was: no score, no new tile.
        """
        direction = Direction.parse(direction)
        if self.died:
            return MoveOutcome(moved=False, score_delta=0, died=True)

        result = self.grid.move(direction)
        if result is None or not result.moved:
            return MoveOutcome(moved=False, score_delta=0, died=self.died)

        self.score += result.score
        self.grid.insert_random_tile(self.rng)
        self.died = self.grid.is_dead()
        if self.died and self.verbose:
            print(f"No more move, die already! Final score: {self.score}")
        return MoveOutcome(moved=True, score_delta=result.score, died=self.died)

    def request_advised_move(self, cancel: threading.Event | None = None) -> Direction | None:
        if self.died:
            return None
        return self.search.choose_move(self.grid.clone(), cancel)

    def step_advised_move(self, cancel: threading.Event | None = None) -> MoveOutcome | None:
        direction = self.request_advised_move(cancel)
        if direction is None:
            return None
        return self.apply_move(direction)

    def snapshot(self) -> Snapshot:
        tiles = tuple(
            TileView(
                row=tile.row,
                col=tile.col,
                value=tile.value,
                is_new=tile.is_new,
                previous_position=tile.previous_position,
            )
            for tile in self.grid.tiles()
        )
        return Snapshot(
            tiles=tiles,
            score=self.score,
            died=self.died,
            won=self.won,
            size=self.grid.size,
        )

    def dispatch(self, command) -> MoveOutcome | None:
        command = Command(command)
        direction = command.direction
        if direction is not None:
            return self.apply_move(direction)
        if command is Command.RESTART:
            self.restart()
        elif command is Command.STEP_ADVISED_MOVE:
            return self.step_advised_move()
        elif command is Command.RUN_AUTO_PLAY:
            self.running = True
        elif command is Command.PAUSE_AUTO_PLAY:
            self.running = False
        return None
