"""
Boundary to the remote match server.

:class:`GameService` is the contract the turn loop talks to.  The HTTP
implementation decodes every JSON payload once, here, into the small typed
records below so the rest of the client never pokes at raw dictionaries.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urljoin

import requests

from . import config
from .errors import ProtocolError, TransportError

logger = logging.getLogger(__name__)

WAITING_PLAYERS = "waiting_players"
IN_PROGRESS = "game_in_progress"
ENDED = "ended"

TOKEN_HEADER = "X-Auth-Token"


# -----------------------------------------------------------------
# Payloads
# -----------------------------------------------------------------
@dataclass
class Registration:
    nick: str = config.PLAYER_NICK
    desc: str = config.PLAYER_DESC
    target_nick: str = ""
    wpbot: bool = False
    coords: List[str] = field(default_factory=list)

    def to_json(self):
        body = {
            "desc": self.desc,
            "nick": self.nick,
            "target_nick": self.target_nick,
            "wpbot": self.wpbot,
        }
        # without coords the server places the fleet itself
        if self.coords:
            body["coords"] = list(self.coords)
        return body


@dataclass
class StatusResponse:
    game_status: str
    should_fire: bool = False
    opp_shots: List[str] = field(default_factory=list)
    last_game_status: Optional[str] = None
    nick: Optional[str] = None
    opponent: Optional[str] = None

    @property
    def ended(self):
        return self.game_status == ENDED

    @property
    def in_progress(self):
        return self.game_status == IN_PROGRESS

    @classmethod
    def from_json(cls, data):
        if not isinstance(data, dict):
            raise ProtocolError(f"status payload is not an object: {data!r}")
        game_status = data.get("game_status")
        if not isinstance(game_status, str):
            raise ProtocolError("status payload has no 'game_status'")

        opp_shots = data.get("opp_shots") or []
        if not isinstance(opp_shots, list):
            raise ProtocolError(f"'opp_shots' is not a list: {opp_shots!r}")

        return cls(
            game_status=game_status,
            should_fire=bool(data.get("should_fire")),
            opp_shots=[str(s) for s in opp_shots],
            last_game_status=data.get("last_game_status"),
            nick=data.get("nick"),
            opponent=data.get("opponent"),
        )


@dataclass
class FireResult:
    outcome: Optional[str]
    http_status: int

    @property
    def accepted(self):
        return self.http_status == 200

    @property
    def struck(self):
        return self.outcome in ("hit", "sunk")


# -----------------------------------------------------------------
# Contract
# -----------------------------------------------------------------
class GameService:
    """What the turn loop needs from the server."""

    def start_game(self, registration):
        raise NotImplementedError

    def status(self):
        raise NotImplementedError

    def board(self):
        raise NotImplementedError

    def fire(self, coord):
        raise NotImplementedError


# -----------------------------------------------------------------
# HTTP implementation
# -----------------------------------------------------------------
class HttpGameService(GameService):
    """Talks to the game server's JSON API with ``requests``."""

    def __init__(self, server_url=None, timeout=None, session=None):
        self.server_url = (server_url or config.SERVER_URL).rstrip("/") + "/"
        self.timeout = config.HTTP_TIMEOUT if timeout is None else timeout
        self.http = session or requests.Session()
        self.token = None

    def _request(self, method, path, json_body=None):
        url = urljoin(self.server_url, path)
        headers = {TOKEN_HEADER: self.token} if self.token else {}
        logger.debug("%s %s body=%r", method, url, json_body)
        try:
            return self.http.request(
                method, url, json=json_body, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

    def _checked(self, resp):
        if not resp.ok:
            raise TransportError(f"Error {resp.status_code}: {resp.text}")
        return resp

    @staticmethod
    def _json(resp):
        try:
            return resp.json()
        except ValueError as exc:
            raise ProtocolError(f"server sent invalid JSON: {resp.text[:200]!r}") from exc

    def start_game(self, registration):
        resp = self._checked(self._request("POST", "api/game", registration.to_json()))
        token = resp.headers.get(TOKEN_HEADER)
        if not token:
            raise ProtocolError(f"no {TOKEN_HEADER} header in the registration response")
        self.token = token
        logger.info("Registered as %s", registration.nick)
        return token

    def status(self):
        resp = self._checked(self._request("GET", "api/game"))
        return StatusResponse.from_json(self._json(resp))

    def board(self):
        resp = self._checked(self._request("GET", "api/game/board"))
        data = self._json(resp)
        coords = data.get("board") if isinstance(data, dict) else None
        if not isinstance(coords, list):
            raise ProtocolError("board payload has no 'board' list")
        return [str(c) for c in coords]

    def fire(self, coord):
        """
        Fire at *coord*.  Refused shots (not our turn, bad coordinate, ...)
        come back as a :class:`FireResult` with the server's status code.
        """
        resp = self._request("POST", "api/game/fire", {"coord": coord})
        if resp.status_code != 200:
            logger.info("Shot at %s refused: %s %s", coord, resp.status_code, resp.text)
            return FireResult(outcome=None, http_status=resp.status_code)
        data = self._json(resp)
        outcome = data.get("result") if isinstance(data, dict) else None
        if not isinstance(outcome, str):
            raise ProtocolError("fire payload has no 'result'")
        return FireResult(outcome=outcome, http_status=resp.status_code)
