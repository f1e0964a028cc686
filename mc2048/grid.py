import random
from dataclasses import dataclass
from enum import IntEnum

from mc2048.tile import Position, Tile


class Direction(IntEnum):
    """Move directions, in the order the advisor tries them."""

    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    @property
    def offset(self) -> Position:
        return _OFFSETS[self]

    @classmethod
    def parse(cls, value) -> "Direction":
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown direction: {value!r}") from None
        if isinstance(value, bool):
            raise ValueError(f"Unknown direction: {value!r}")
        try:
            return cls(value)
        except (ValueError, TypeError):
            raise ValueError(f"Unknown direction: {value!r}") from None


_OFFSETS = {
    Direction.UP: Position(-1, 0),
    Direction.RIGHT: Position(0, 1),
    Direction.DOWN: Position(1, 0),
    Direction.LEFT: Position(0, -1),
}


@dataclass(frozen=True)
class MoveResult:
    moved: bool
    score: int


class Grid:
    """4x4 board of optional tiles; owns the move and merge rules."""

    size: int
    last_score: int

    def __init__(self, size: int = 4):
        self.size = size
        self.last_score = 0
        self._cells: list[list[Tile | None]] = [[None] * size for _ in range(size)]

    @classmethod
    def from_rows(cls, rows) -> "Grid":
        """Build a grid from a square list of lists where 0 marks an empty cell."""
        size = len(rows)
        if size == 0 or any(len(row) != size for row in rows):
            raise ValueError("Board must be square")
        grid = cls(size)
        for i, row in enumerate(rows):
            for j, value in enumerate(row):
                value = int(value)
                if value == 0:
                    continue
                if value < 2 or value & (value - 1):
                    raise ValueError(f"Tile value must be a power of two, got {value}")
                grid.insert_tile(Tile(i, j, value))
        return grid

    def to_rows(self) -> list[list[int]]:
        return [[tile.value if tile else 0 for tile in row] for row in self._cells]

    def clone(self) -> "Grid":
        g = Grid(self.size)
        for tile in self.tiles():
            g.insert_tile(tile.clone())
        return g

    def within_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def cell(self, row: int, col: int) -> Tile | None:
        if not self.within_bounds(row, col):
            return None
        return self._cells[row][col]

    def cell_empty(self, row: int, col: int) -> bool:
        return self.cell(row, col) is None

    def tiles(self) -> list[Tile]:
        return [tile for row in self._cells for tile in row if tile is not None]

    def insert_tile(self, tile: Tile):
        if self._cells[tile.row][tile.col] is not None:
            raise ValueError(f"Cell ({tile.row}, {tile.col}) is already occupied")
        self._cells[tile.row][tile.col] = tile

    def remove_tile(self, tile: Tile):
        self._cells[tile.row][tile.col] = None

    def available_cells(self) -> list[Position]:
        return [
            Position(i, j)
            for i in range(self.size)
            for j in range(self.size)
            if self._cells[i][j] is None
        ]

    def cells_available(self) -> bool:
        return any(tile is None for row in self._cells for tile in row)

    def random_available_cell(self, rng: random.Random) -> Position | None:
        cells = self.available_cells()
        if not cells:
            return None
        return rng.choice(cells)

    def insert_random_tile(self, rng: random.Random) -> Tile | None:
        """Drop a 2 (90%) or a 4 (10%) on a uniformly chosen empty cell."""
        value = 2 if rng.random() < 0.9 else 4
        position = self.random_available_cell(rng)
        if position is None:
            return None
        tile = Tile(position.row, position.col, value)
        self.insert_tile(tile)
        return tile

    def build_traversals(self, direction: Direction) -> tuple[list[int], list[int]]:
        # cells farthest along the direction settle first
        rows = list(range(self.size))
        cols = list(range(self.size))
        offset = direction.offset
        if offset.row == 1:
            rows.reverse()
        if offset.col == 1:
            cols.reverse()
        return rows, cols

    def find_farthest(
        self, row: int, col: int, direction: Direction
    ) -> tuple[Position, Position]:
        """
        Walk from (row, col) one cell at a time until leaving the board or
        hitting a tile. Returns the last empty cell reached (possibly the start)
        and the first cell past it, which is either off the board or occupied.
        """
        offset = direction.offset
        previous = Position(row, col)
        current = Position(row + offset.row, col + offset.col)
        while self.within_bounds(*current) and self.cell_empty(*current):
            previous = current
            current = Position(current.row + offset.row, current.col + offset.col)
        return previous, current

    def _save_tiles(self):
        for i in range(self.size):
            for j in range(self.size):
                tile = self._cells[i][j]
                if tile is not None:
                    self._cells[i][j] = tile.saved()

    def move(self, direction) -> MoveResult | None:
        """
        Slide every tile towards `direction`, merging equal neighbours once.

        Returns None, leaving the grid untouched, when nothing can move or merge.
        """
        direction = Direction.parse(direction)
        if not self.move_available(direction):
            self.last_score = 0
            return None

        self._save_tiles()
        score = 0
        moved = False
        rows, cols = self.build_traversals(direction)
        for row in rows:
            for col in cols:
                tile = self._cells[row][col]
                if tile is None:
                    continue
                farthest, nxt = self.find_farthest(row, col, direction)
                other = self.cell(*nxt)
                if other is not None and other.value == tile.value and not other.merged:
                    # the sources are dropped; a merged tile can't merge again this move
                    merged = Tile(nxt.row, nxt.col, tile.value * 2, merged=True)
                    self.remove_tile(tile)
                    self._cells[nxt.row][nxt.col] = merged
                    score += merged.value
                    moved = True
                elif farthest != (row, col):
                    self.remove_tile(tile)
                    self._cells[farthest.row][farthest.col] = tile.moved_to(*farthest)
                    moved = True

        self.last_score = score
        return MoveResult(moved, score)

    def space_available(self, direction: Direction) -> bool:
        offset = direction.offset
        for tile in self.tiles():
            row, col = tile.row + offset.row, tile.col + offset.col
            if self.within_bounds(row, col) and self.cell_empty(row, col):
                return True
        return False

    def same_tile_available(self, direction: Direction) -> bool:
        for tile in self.tiles():
            _, nxt = self.find_farthest(tile.row, tile.col, direction)
            other = self.cell(*nxt)
            if other is not None and other.value == tile.value:
                return True
        return False

    def move_available(self, direction) -> bool:
        direction = Direction.parse(direction)
        return self.space_available(direction) or self.same_tile_available(direction)

    def is_dead(self) -> bool:
        return not any(self.move_available(d) for d in Direction)

    def max_value(self) -> int:
        return max((tile.value for tile in self.tiles()), default=0)

    def __eq__(self, other):
        if not isinstance(other, Grid):
            return NotImplemented
        return self.to_rows() == other.to_rows()

    def __str__(self):
        width = max(4, len(str(self.max_value())))
        return "\n".join(
            " ".join(f"{v if v else '.':>{width}}" for v in row) for row in self.to_rows()
        )
