from dataclasses import dataclass, replace
from typing import NamedTuple


class Position(NamedTuple):
    row: int
    col: int


@dataclass(frozen=True)
class Tile:
    """A single numbered tile sitting in one grid cell."""

    row: int
    col: int
    value: int
    previous_position: Position | None = None
    merged: bool = False

    @property
    def position(self) -> Position:
        return Position(self.row, self.col)

    @property
    def is_new(self) -> bool:
        # placed since the last move, neither slid nor produced by a merge
        return self.previous_position is None and not self.merged

    def saved(self) -> "Tile":
        """Start-of-move bookkeeping: remember where we were, forget merges."""
        return replace(self, previous_position=self.position, merged=False)

    def moved_to(self, row: int, col: int) -> "Tile":
        return replace(self, row=row, col=col)

    def clone(self) -> "Tile":
        return Tile(self.row, self.col, self.value)
