"""
Presentation layer.

:class:`Display` is the contract the turn loop renders through;
:class:`TerminalDisplay` draws the two boards side by side with emoji.
"""

import sys
import threading

from .board import OPPONENT, OWN, CellState
from .config import BOARD_SIZE

# -----------------------------------------------------------------
# Emoji palette
# -----------------------------------------------------------------
EMOJI = {
    "unknown": "❓",   # unseen water on the opponent board
    "water":   "🌊",   # our own open water
    "miss":    "⚪",   # a shot that landed in water
    "hit":     "💥",   # our hit on the opponent board
    "ship":    "🚢",   # our own healthy ship segment
    "ship_hit":"🔥",   # our own ship segment that the opponent has hit
}

_OWN_CELLS = {
    CellState.EMPTY: EMOJI["water"],
    CellState.SHIP: EMOJI["ship"],
    CellState.HIT: EMOJI["ship_hit"],
    CellState.MISS: EMOJI["miss"],
}

_OPPONENT_CELLS = {
    CellState.EMPTY: EMOJI["unknown"],
    CellState.SHIP: EMOJI["unknown"],   # never known, render as unseen
    CellState.HIT: EMOJI["hit"],
    CellState.MISS: EMOJI["miss"],
}

_EMPTY_SNAPSHOT = tuple(tuple([CellState.EMPTY] * BOARD_SIZE) for _ in range(BOARD_SIZE))


class Display:
    """What the turn loop needs from the screen."""

    def render_board(self, which, snapshot):
        raise NotImplementedError

    def show_transient_message(self, text, duration_seconds):
        raise NotImplementedError

    def request_coordinate_input(self):
        raise NotImplementedError

    def show_message(self, text):
        raise NotImplementedError


class TerminalDisplay(Display):
    """
    Prints both boards every time one of them changes.

    A transient banner is printed under the boards until its timer runs
    out; the timer only clears the banner text and never touches a board.
    """

    def __init__(self, out=None, input_func=input):
        self.out = out or sys.stdout
        self._input = input_func
        self._snapshots = {OWN: _EMPTY_SNAPSHOT, OPPONENT: _EMPTY_SNAPSHOT}
        self._banner = None
        self._banner_timer = None
        self._lock = threading.Lock()

    def _print(self, text=""):
        print(text, file=self.out, flush=True)

    # -----------------------------------------------------------------
    # Boards
    # -----------------------------------------------------------------
    def render_board(self, which, snapshot):
        self._snapshots[which] = snapshot
        self._print(format_boards(self._snapshots[OWN], self._snapshots[OPPONENT]))
        with self._lock:
            banner = self._banner
        if banner:
            self._print(f"\n   >>> {banner} <<<")

    # -----------------------------------------------------------------
    # Messages
    # -----------------------------------------------------------------
    def show_message(self, text):
        self._print(text)

    def show_transient_message(self, text, duration_seconds):
        with self._lock:
            if self._banner_timer is not None:
                self._banner_timer.cancel()
            self._banner = text
            timer = threading.Timer(duration_seconds, self._clear_banner, args=(text,))
            timer.daemon = True
            self._banner_timer = timer
        self._print(f"\n   >>> {text} <<<")
        timer.start()

    def _clear_banner(self, text):
        with self._lock:
            # a newer banner may already have replaced this one
            if self._banner == text:
                self._banner = None
                self._banner_timer = None

    @property
    def banner(self):
        with self._lock:
            return self._banner

    # -----------------------------------------------------------------
    # Input
    # -----------------------------------------------------------------
    def request_coordinate_input(self):
        return self._input("Your shot (e.g. B5): ").strip()


def format_boards(own, opponent):
    """Both grids side by side: rows are letters, columns are 1‑based numbers."""
    numbers = "".join(f"{n:<3}" for n in range(1, BOARD_SIZE + 1)).rstrip()
    width = 3 * BOARD_SIZE + 2
    lines = [
        f"{'   Your fleet':<{width}}      Enemy waters",
        f"   {numbers:<{width - 1}}      {numbers}",
    ]
    for r in range(BOARD_SIZE):
        label = chr(ord("A") + r)
        left = " ".join(_OWN_CELLS[cell] for cell in own[r])
        right = " ".join(_OPPONENT_CELLS[cell] for cell in opponent[r])
        lines.append(f"{label}  {left}    {label}  {right}")
    return "\n".join(lines)


def format_legend():
    legend = [
        (EMOJI["ship"], "Your ship segment (still afloat)"),
        (EMOJI["ship_hit"], "Your ship segment that the opponent has hit"),
        (EMOJI["hit"], "A hit you scored on the opponent"),
        (EMOJI["miss"], "A shot that landed in the water"),
        (EMOJI["water"], "Your open water"),
        (EMOJI["unknown"], "Enemy water you have not fired at yet"),
    ]
    return "\n".join(f"  {emoji}  – {meaning}" for emoji, meaning in legend)
