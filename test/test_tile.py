import dataclasses

import pytest

from mc2048.tile import Position, Tile


def test_new_tile_has_no_history():
    tile = Tile(1, 2, 2)
    assert tile.position == Position(1, 2)
    assert tile.previous_position is None
    assert not tile.merged
    assert tile.is_new


def test_saved_records_position_and_clears_merge():
    tile = Tile(0, 3, 8, merged=True).saved()
    assert tile.previous_position == Position(0, 3)
    assert not tile.merged
    assert not tile.is_new


def test_moved_to_keeps_bookkeeping():
    tile = Tile(0, 0, 4).saved().moved_to(0, 2)
    assert tile.position == Position(0, 2)
    assert tile.previous_position == Position(0, 0)
    assert tile.value == 4


def test_merged_tile_is_not_new():
    assert not Tile(0, 0, 4, merged=True).is_new


def test_clone_drops_bookkeeping():
    tile = Tile(2, 1, 16, previous_position=Position(2, 3), merged=True)
    copy = tile.clone()
    assert copy == Tile(2, 1, 16)


def test_tiles_are_values():
    tile = Tile(0, 0, 2)
    with pytest.raises(dataclasses.FrozenInstanceError):
        tile.value = 4
    assert Tile(0, 0, 2) == tile
