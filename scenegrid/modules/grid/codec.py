"""Spreadsheet-style tile ids ("A1", "K7", "AA12") <-> zero-based (col, row) pairs.

Columns use bijective base-26 (A..Z, AA, AB, ...), rows are 1-based in the id.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from scenegrid.modules.grid.errors import MalformedTileId

TILE_ID_PATTERN = re.compile(r"^([A-Z]+)([0-9]+)$")
_RANGE_PATTERN = re.compile(r"^([A-Z]+[0-9]+):([A-Z]+[0-9]+)$")
_ALPHABET_SIZE = 26


@dataclass(frozen=True)
class TileCoord:
    col: int
    row: int


@dataclass(frozen=True)
class GridRange:
    rows: int
    cols: int
    start_col: int
    start_row: int
    end_col: int
    end_row: int


def column_letters(col: int) -> str:
    if col < 0:
        raise ValueError(f"column must be >= 0, got {col}")
    letters: list[str] = []
    n = col + 1
    while n > 0:
        n, remainder = divmod(n - 1, _ALPHABET_SIZE)
        letters.append(chr(ord("A") + remainder))
    return "".join(reversed(letters))


def column_index(letters: str) -> int:
    n = 0
    for ch in letters:
        n = n * _ALPHABET_SIZE + (ord(ch) - ord("A") + 1)
    return n - 1


def to_tile_id(col: int, row: int) -> str:
    if row < 0:
        raise ValueError(f"row must be >= 0, got {row}")
    return f"{column_letters(col)}{row + 1}"


def from_tile_id(tile_id: str) -> TileCoord:
    if not isinstance(tile_id, str):
        raise MalformedTileId(tile_id, "tile id must be a string")
    match = TILE_ID_PATTERN.match(tile_id)
    if match is None:
        raise MalformedTileId(tile_id)
    letters, digits = match.groups()
    row_number = int(digits)
    if row_number < 1:
        raise MalformedTileId(tile_id, "row number must be >= 1")
    return TileCoord(col=column_index(letters), row=row_number - 1)


def is_valid_tile_id(tile_id: object) -> bool:
    try:
        from_tile_id(tile_id)  # type: ignore[arg-type]
    except MalformedTileId:
        return False
    return True


def in_bounds(tile_id: str, *, rows: int, cols: int) -> bool:
    coord = from_tile_id(tile_id)
    return coord.col < cols and coord.row < rows


def all_tile_ids(rows: int, cols: int) -> list[str]:
    """Row-major ids for a rows x cols grid: A1, B1, ..., A2, ..."""
    return [to_tile_id(col, row) for row in range(rows) for col in range(cols)]


def parse_range(excel_range: str) -> GridRange:
    """Parse "A1:K7" into grid dimensions; corners may be given in either order."""
    match = _RANGE_PATTERN.match((excel_range or "").strip().upper())
    if match is None:
        raise MalformedTileId(excel_range, "range must look like A1:K7")
    first = from_tile_id(match.group(1))
    second = from_tile_id(match.group(2))
    start_col, end_col = sorted((first.col, second.col))
    start_row, end_row = sorted((first.row, second.row))
    return GridRange(
        rows=end_row - start_row + 1,
        cols=end_col - start_col + 1,
        start_col=start_col,
        start_row=start_row,
        end_col=end_col,
        end_row=end_row,
    )
