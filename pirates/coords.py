"""
Conversion between coordinate tokens and grid indices.

A token is a letter followed by a 1-based number, e.g. ``B10``.  The letter
selects the row (A → 0) and the number the column (1 → 0).
"""

from typing import NamedTuple

from .config import BOARD_SIZE
from .errors import CoordinateParseError


class Coordinate(NamedTuple):
    row: int
    col: int


def decode(token: str) -> Coordinate:
    """Turn ``"B10"`` into ``Coordinate(row=1, col=9)``."""
    if not isinstance(token, str):
        raise CoordinateParseError(f"coordinate must be text, got {token!r}")
    token = token.strip()
    if len(token) < 2:
        raise CoordinateParseError(f"coordinate {token!r} is too short")

    digits = token[1:]
    # str.isdigit() also accepts things like "²", int() does not
    if not (digits.isascii() and digits.isdigit()):
        raise CoordinateParseError(f"coordinate {token!r} has no valid number")

    letter = token[0].lower()
    # some capitals lower to more than one code point ("İ" → "i̇")
    if len(letter) != 1 or not ("a" <= letter <= "z"):
        raise CoordinateParseError(f"coordinate {token!r} does not start with a letter")

    row = ord(letter) - ord("a")
    col = int(digits) - 1
    if not (0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE):
        raise CoordinateParseError(f"coordinate {token!r} is off the board")
    return Coordinate(row, col)


def encode(coord: Coordinate) -> str:
    """Inverse of :func:`decode`: ``(1, 9)`` → ``"B10"``."""
    row, col = coord
    if not (0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE):
        raise CoordinateParseError(f"{coord!r} is off the board")
    return f"{chr(ord('A') + row)}{col + 1}"


def all_coordinates():
    """Every cell of the board in row-major order."""
    return [Coordinate(r, c) for r in range(BOARD_SIZE) for c in range(BOARD_SIZE)]
