import random

import pytest

from mc2048.grid import Direction, Grid
from mc2048.search import SearchConfig, SearchEngine


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def dead_grid():
    return Grid.from_rows(
        [
            [2, 4, 2, 4],
            [4, 2, 4, 2],
            [2, 4, 2, 4],
            [4, 2, 4, 2],
        ]
    )


@pytest.fixture
def down_only_grid():
    # full rows with no equal neighbours above an empty bottom row
    return Grid.from_rows(
        [
            [2, 4, 2, 4],
            [4, 2, 4, 2],
            [2, 4, 2, 4],
            [0, 0, 0, 0],
        ]
    )


@pytest.fixture
def fast_search():
    config = SearchConfig(rollouts_per_direction=5, max_rollout_moves=20)
    return SearchEngine(config, rng=random.Random(7))


@pytest.fixture(scope="session")
def reachable_grids():
    """Boards met while playing random games, from openings to dead ends."""
    play_rng = random.Random(42)
    grids = []
    for _ in range(5):
        grid = Grid()
        grid.insert_random_tile(play_rng)
        grid.insert_random_tile(play_rng)
        while not grid.is_dead():
            grids.append(grid.clone())
            if grid.move(play_rng.choice(list(Direction))) is not None:
                grid.insert_random_tile(play_rng)
        grids.append(grid.clone())
    return grids
