import random

import pytest

from game import handle_key
from mc2048.autoplay import AutoPlayer
from mc2048.game import GameEngine


@pytest.fixture
def engine(fast_search):
    return GameEngine(search=fast_search, rng=random.Random(11))


@pytest.fixture
def player(engine):
    player = AutoPlayer(engine, interval=0.01)
    yield player
    player.stop(timeout=30)


def test_move_keys_dispatch(engine, player, down_only_grid):
    engine.grid = down_only_grid
    assert handle_key("s", engine, player)
    assert engine.grid.to_rows()[3] == [2, 4, 2, 4]


def test_g_plays_in_background_and_p_pauses(engine, player):
    assert handle_key("g", engine, player)
    assert engine.running

    assert handle_key("p", engine, player)
    assert not player.alive
    assert not engine.running

    score = engine.score
    rows = engine.grid.to_rows()
    assert handle_key("p", engine, player)
    assert engine.score == score
    assert engine.grid.to_rows() == rows


def test_move_key_stops_auto_play_first(engine, player):
    handle_key("g", engine, player)
    assert handle_key("N", engine, player)
    assert not player.alive
    assert not engine.running


def test_other_keys_quit(engine, player):
    handle_key("g", engine, player)
    assert not handle_key("q", engine, player)
    assert not player.alive
