import random
import threading
from dataclasses import dataclass

from mc2048.grid import Direction, Grid


@dataclass
class SearchConfig:
    rollouts_per_direction: int = 100
    # cap on moves per rollout; None plays every rollout until the board is dead
    max_rollout_moves: int | None = None
    verbose: bool = False

    def __post_init__(self):
        if self.rollouts_per_direction < 1:
            raise ValueError("rollouts_per_direction must be at least 1")
        if self.max_rollout_moves is not None and self.max_rollout_moves < 1:
            raise ValueError("max_rollout_moves must be at least 1")


@dataclass(frozen=True)
class RolloutResult:
    score: int
    moves: int

    @property
    def failed(self) -> bool:
        return self.score < 0


# first move was a no-op, so the direction is not playable at all
FAILED_ROLLOUT = RolloutResult(score=-1, moves=0)


@dataclass(frozen=True)
class DirectionEstimate:
    direction: Direction
    score: float
    moves: float
    rollouts: int


def pick_best(estimates: list[DirectionEstimate]) -> DirectionEstimate | None:
    """Highest average score wins; ties keep the earlier direction."""
    best = None
    for estimate in estimates:
        if best is None or estimate.score > best.score:
            best = estimate
    return best


class SearchEngine:
    """
    Monte-Carlo move advisor.

    Every direction is scored by playing `rollouts_per_direction` games on
    private clones of the board: the candidate move first, then uniformly
    random moves until the board is dead. The direction with the best average
    merge score is advised.
    """

    def __init__(self, config: SearchConfig | None = None, rng: random.Random | None = None):
        self.config = config or SearchConfig()
        self.rng = rng or random.Random()

    def rollout(self, grid: Grid, direction: Direction) -> RolloutResult:
        g = grid.clone()
        result = g.move(direction)
        if result is None or not result.moved:
            return FAILED_ROLLOUT

        score = result.score
        moves = 1
        g.insert_random_tile(self.rng)

        limit = self.config.max_rollout_moves
        directions = list(Direction)
        while not g.is_dead():
            if limit is not None and moves >= limit:
                break
            result = g.move(self.rng.choice(directions))
            if result is not None and result.moved:
                score += result.score
                moves += 1
                g.insert_random_tile(self.rng)

        return RolloutResult(score, moves)

    def evaluate(
        self,
        grid: Grid,
        direction: Direction,
        cancel: threading.Event | None = None,
    ) -> DirectionEstimate | None:
        """Average rollout outcome for `direction`, or None if it can't be played."""
        direction = Direction.parse(direction)
        results: list[RolloutResult] = []
        for _ in range(self.config.rollouts_per_direction):
            if cancel is not None and cancel.is_set():
                break
            result = self.rollout(grid, direction)
            if result.failed:
                # first-move legality doesn't depend on chance
                return None
            results.append(result)

        if not results:
            return None
        total_score = sum(r.score for r in results)
        total_moves = sum(r.moves for r in results)
        return DirectionEstimate(
            direction=direction,
            score=total_score / len(results),
            moves=total_moves / len(results),
            rollouts=len(results),
        )

    def evaluate_all(
        self, grid: Grid, cancel: threading.Event | None = None
    ) -> list[DirectionEstimate]:
        estimates = []
        for direction in Direction:
            estimate = self.evaluate(grid, direction, cancel)
            if estimate is not None:
                estimates.append(estimate)
        return estimates

    def choose_move(
        self, grid: Grid, cancel: threading.Event | None = None
    ) -> Direction | None:
        estimates = self.evaluate_all(grid, cancel)
        if cancel is not None and cancel.is_set():
            return None
        best = pick_best(estimates)
        if self.config.verbose:
            report(best)
        return best.direction if best is not None else None


def report(best: DirectionEstimate | None):
    if best is None:
        print("MonteCarlo --> no move available")
    else:
        print(
            f"MonteCarlo --> Best Score : {best.score:.1f}, "
            f"Average Moves : {best.moves:.1f}, "
            f"Best Direction : {best.direction.name}"
        )
