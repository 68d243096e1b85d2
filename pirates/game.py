"""
Turn flow of a single match.

A :class:`TurnFlowController` walks one session through

    Preparing  →  InProgress  →  Ended

polling the server, reconciling both boards with what it reports and asking
the player for a coordinate whenever it is our turn.  Every server call is
made from this one thread and waits for its answer before the next one.
"""

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from . import config
from .board import OPPONENT, OWN, Board, CellState
from .coords import decode, encode
from .errors import CoordinateParseError, ProtocolError, TransportError

logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    PREPARING = "preparing"
    IN_PROGRESS = "in_progress"
    ENDED = "ended"


@dataclass
class MatchSession:
    phase: Phase = Phase.PREPARING
    player_board: Optional[Board] = None
    opponent_board: Optional[Board] = None
    shots: List[str] = field(default_factory=list)
    last_game_status: Optional[str] = None

    def release(self):
        self.player_board = None
        self.opponent_board = None


class TurnFlowController:
    def __init__(self, service, display, poll_interval=None,
                 banner_seconds=None, sleep=time.sleep):
        self.service = service
        self.display = display
        self.poll_interval = config.POLL_INTERVAL if poll_interval is None else poll_interval
        self.banner_seconds = config.BANNER_SECONDS if banner_seconds is None else banner_seconds
        self.sleep = sleep
        self.session = MatchSession()

    # -----------------------------------------------------------------
    # Whole match
    # -----------------------------------------------------------------
    def run(self, registration):
        """
        Register, play until the server says the match is over and return
        its ``last_game_status`` (``None`` if it could not be fetched).

        Registration failures are fatal and propagate to the caller.
        """
        try:
            self.service.start_game(registration)
        except (TransportError, ProtocolError) as exc:
            logger.error("Could not start a game: %s", exc)
            self.display.show_message(f"ERROR: could not start a game: {exc}")
            raise

        self.display.show_message("Waiting for an opponent…")
        self.prepare()
        while self.session.phase is Phase.IN_PROGRESS:
            self.play_turn()
        return self.finish()

    # -----------------------------------------------------------------
    # Preparing
    # -----------------------------------------------------------------
    def prepare(self):
        """Poll until the match starts, then seed our board with the fleet."""
        session = self.session
        while session.phase is Phase.PREPARING:
            status = self._poll()
            if status is None or not (status.in_progress or status.ended):
                self.sleep(self.poll_interval)
                continue
            if status.ended:
                session.phase = Phase.ENDED
                return

            try:
                ships = self.service.board()
            except (TransportError, ProtocolError) as exc:
                self._report("Could not fetch your board", exc)
                self.sleep(self.poll_interval)
                continue

            session.player_board = Board(OWN, listener=self.display.render_board)
            session.opponent_board = Board(OPPONENT, listener=self.display.render_board)
            session.player_board.apply_many(ships, CellState.SHIP, apply_hit_logic=False)
            session.phase = Phase.IN_PROGRESS
            if status.opponent:
                self.display.show_message(f"The battle against {status.opponent} begins!")

    # -----------------------------------------------------------------
    # In progress
    # -----------------------------------------------------------------
    def play_turn(self):
        """One iteration of the in-game loop."""
        session = self.session
        status = self._poll()
        if status is None:
            self.sleep(self.poll_interval)
            return
        if status.ended:
            session.phase = Phase.ENDED
            return

        # applying the same shots again is a no-op, so the full list is fine
        if status.opp_shots:
            session.player_board.apply_many(status.opp_shots, CellState.HIT, apply_hit_logic=True)

        if not status.should_fire:
            self.sleep(self.poll_interval)
            return

        token = self._ask_coordinate()
        self._fire(token)

    def _ask_coordinate(self):
        while True:
            raw = self.display.request_coordinate_input()
            try:
                return encode(decode(raw))
            except CoordinateParseError as exc:
                logger.info("Rejected player input %r: %s", raw, exc)
                self.display.show_message(f"{exc}. Try again, e.g. B5.")

    def _fire(self, token):
        session = self.session
        try:
            result = self.service.fire(token)
        except (TransportError, ProtocolError) as exc:
            self._report(f"Shot at {token} failed", exc)
            return

        if not result.accepted:
            logger.warning("Server refused the shot at %s (HTTP %s)", token, result.http_status)
            self.display.show_message(f"The server refused the shot at {token}.")
            return

        session.shots.append(token)
        state = CellState.HIT if result.struck else CellState.MISS
        session.opponent_board.apply_one(token, state, apply_hit_logic=False)

        if result.outcome == "sunk":
            banner = f"{token}: SUNK!"
        elif result.struck:
            banner = f"{token}: HIT!"
        else:
            banner = f"{token}: miss"
        self.display.show_transient_message(banner, self.banner_seconds)

    # -----------------------------------------------------------------
    # Ended
    # -----------------------------------------------------------------
    def finish(self):
        """Fetch the final verdict, show it and drop both boards."""
        session = self.session
        session.phase = Phase.ENDED
        try:
            final = self.service.status()
        except (TransportError, ProtocolError) as exc:
            self._report("Could not fetch the final result", exc)
            final = None

        if final is not None:
            session.last_game_status = final.last_game_status
        verdict = session.last_game_status or "unknown"
        self.display.show_message(f"Game over: {verdict} ({len(session.shots)} shots fired)")
        session.release()
        return session.last_game_status

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------
    def _poll(self):
        try:
            return self.service.status()
        except (TransportError, ProtocolError) as exc:
            self._report("Status poll failed", exc)
            return None

    def _report(self, what, exc):
        logger.warning("%s: %s", what, exc)
        self.display.show_message(f"ERROR: {what}: {exc}")
