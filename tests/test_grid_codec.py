import pytest

from scenegrid.modules.grid.codec import (
    TileCoord,
    all_tile_ids,
    from_tile_id,
    in_bounds,
    is_valid_tile_id,
    parse_range,
    to_tile_id,
)
from scenegrid.modules.grid.errors import MalformedTileId


def test_known_tile_ids() -> None:
    assert to_tile_id(0, 0) == "A1"
    assert to_tile_id(10, 6) == "K7"
    assert to_tile_id(25, 0) == "Z1"
    assert to_tile_id(26, 0) == "AA1"
    assert to_tile_id(27, 11) == "AB12"
    assert to_tile_id(701, 999) == "ZZ1000"
    assert to_tile_id(702, 0) == "AAA1"


def test_round_trip_over_supported_range() -> None:
    for col in range(702):
        for row in range(1000):
            coord = from_tile_id(to_tile_id(col, row))
            assert (coord.col, coord.row) == (col, row)


def test_from_tile_id_returns_zero_based_coord() -> None:
    assert from_tile_id("K7") == TileCoord(col=10, row=6)
    assert from_tile_id("AA12") == TileCoord(col=26, row=11)


@pytest.mark.parametrize("bad", ["7A", "a1", "A0", "A00", "", "A", "12", "A-1", "A1 ", "K7:A1"])
def test_malformed_tile_ids_raise(bad: str) -> None:
    with pytest.raises(MalformedTileId) as exc:
        from_tile_id(bad)
    assert exc.value.tile_id == bad
    assert is_valid_tile_id(bad) is False


def test_non_string_tile_id_is_malformed() -> None:
    with pytest.raises(MalformedTileId):
        from_tile_id(None)  # type: ignore[arg-type]
    assert is_valid_tile_id(17) is False


def test_malformed_tile_id_is_a_value_error() -> None:
    assert issubclass(MalformedTileId, ValueError)


def test_negative_coordinates_are_rejected() -> None:
    with pytest.raises(ValueError):
        to_tile_id(-1, 0)
    with pytest.raises(ValueError):
        to_tile_id(0, -1)


def test_all_tile_ids_is_row_major() -> None:
    assert all_tile_ids(2, 3) == ["A1", "B1", "C1", "A2", "B2", "C2"]
    ids = all_tile_ids(7, 11)
    assert len(ids) == 77
    assert ids[0] == "A1"
    assert ids[-1] == "K7"


def test_in_bounds() -> None:
    assert in_bounds("K7", rows=7, cols=11) is True
    assert in_bounds("L7", rows=7, cols=11) is False
    assert in_bounds("K8", rows=7, cols=11) is False


def test_parse_range() -> None:
    grid = parse_range("A1:K7")
    assert (grid.rows, grid.cols) == (7, 11)
    assert (grid.start_col, grid.start_row, grid.end_col, grid.end_row) == (0, 0, 10, 6)

    assert parse_range("K7:A1") == grid
    assert parse_range(" a1:k7 ") == grid

    inner = parse_range("B2:D4")
    assert (inner.rows, inner.cols, inner.start_col, inner.start_row) == (3, 3, 1, 1)


@pytest.mark.parametrize("bad", ["A1-K7", "A1", "A1:", "1A:K7", ""])
def test_parse_range_rejects_bad_ranges(bad: str) -> None:
    with pytest.raises(MalformedTileId):
        parse_range(bad)
