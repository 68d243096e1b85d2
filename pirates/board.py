"""
Client-side knowledge of the two grids of a match.

The own board holds our ship layout plus every shot the opponent fired at
us; the opponent board only holds the outcome of our own shots.
"""

import enum
import logging

from .config import BOARD_SIZE
from .coords import Coordinate, decode
from .errors import CoordinateParseError

logger = logging.getLogger(__name__)

OWN = "own"
OPPONENT = "opponent"


class CellState(enum.Enum):
    EMPTY = "empty"
    SHIP = "ship"
    HIT = "hit"
    MISS = "miss"


def transition(old, observed, apply_hit_logic):
    """
    Return the state a cell ends up in once *observed* is applied to it.

    Without hit logic the observation simply wins: ship placement and the
    results of our own shots are already resolved by the server.

    With hit logic *observed* is the server's "the opponent fired here"
    marker (``HIT``) and the real effect depends on what we know is in the
    cell: a ship segment becomes ``HIT``, open water becomes ``MISS``.
    """
    if not apply_hit_logic:
        return observed
    if old == observed:
        return observed
    if observed is CellState.HIT:
        if old is CellState.SHIP:
            return CellState.HIT
        if old in (CellState.EMPTY, CellState.MISS):
            return CellState.MISS
    return old


class Board:
    """A fixed 10 × 10 grid of :class:`CellState` values."""

    def __init__(self, side=OWN, listener=None):
        self.side = side
        self._listener = listener
        self._grid = [[CellState.EMPTY] * BOARD_SIZE for _ in range(BOARD_SIZE)]

    # -----------------------------------------------------------------
    # Reading
    # -----------------------------------------------------------------
    def cell(self, coord):
        row, col = _as_coordinate(coord)
        return self._grid[row][col]

    def __getitem__(self, coord):
        return self.cell(coord)

    def snapshot(self):
        """Immutable copy of the grid, safe to hand to a renderer."""
        return tuple(tuple(row) for row in self._grid)

    def count(self, state):
        return sum(row.count(state) for row in self._grid)

    # -----------------------------------------------------------------
    # Mutation
    # -----------------------------------------------------------------
    def apply_one(self, coord, new_state, apply_hit_logic=False):
        """Apply one observation; a bad token raises CoordinateParseError."""
        self._apply(_as_coordinate(coord), new_state, apply_hit_logic)
        self._notify()

    def apply_many(self, coords, new_state, apply_hit_logic=False):
        """
        Apply *new_state* to every entry of *coords*.

        Entries may be :class:`Coordinate` values or text tokens.  Each entry
        is handled on its own: a token that does not decode is logged and
        skipped, cells already updated by this call stay updated and later
        entries are still applied.  Returns the rejected tokens.
        """
        rejected = []
        for entry in coords:
            try:
                coord = _as_coordinate(entry)
            except CoordinateParseError as exc:
                logger.warning("Skipping coordinate on %s board: %s", self.side, exc)
                rejected.append(entry)
                continue
            self._apply(coord, new_state, apply_hit_logic)
        self._notify()
        return rejected

    def _apply(self, coord, new_state, apply_hit_logic):
        old = self._grid[coord.row][coord.col]
        self._grid[coord.row][coord.col] = transition(old, new_state, apply_hit_logic)

    def _notify(self):
        if self._listener is None:
            return
        try:
            self._listener(self.side, self.snapshot())
        except Exception:
            logger.exception("Rendering the %s board failed", self.side)


def _as_coordinate(entry):
    if isinstance(entry, str):
        return decode(entry)
    try:
        row, col = entry
    except (TypeError, ValueError):
        raise CoordinateParseError(f"{entry!r} is not a coordinate") from None
    # bool is an int subclass but never a grid index
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in (row, col)):
        raise CoordinateParseError(f"{entry!r} is not a coordinate")
    if not (0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE):
        raise CoordinateParseError(f"{entry!r} is off the board")
    return Coordinate(row, col)
