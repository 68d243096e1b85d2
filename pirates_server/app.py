#!/usr/bin/env python3
"""
Flask practice server speaking the same JSON API as the public game server.

    POST /api/game          register, answers with an X-Auth-Token header
    GET  /api/game          match status for the caller
    GET  /api/game/board    the caller's ship coordinates
    POST /api/game/fire     {"coord": "B5"} → {"result": "hit"|"miss"|"sunk"}

The first two waiting registrations are paired into a match (honouring
``target_nick`` when one is given).  The server never plays by itself.

Games are persisted as JSON files inside:
    $SNAP_COMMON/games/<game_id>.json

If $SNAP_COMMON is not defined, the server falls back to a local
"./games" directory (useful for development).
"""

import os, json, time, uuid, random, string, threading
from pathlib import Path
from flask import Flask, request, jsonify, abort

from pirates.coords import Coordinate, decode, encode
from pirates.errors import CoordinateParseError

app = Flask(__name__)

# ----------------------------------------------------------------------
# Determine where the JSON files will live
# ----------------------------------------------------------------------
SNAP_COMMON = os.getenv("SNAP_COMMON")
if SNAP_COMMON:
    GAMES_ROOT = Path(SNAP_COMMON) / "games"
else:
    GAMES_ROOT = Path(__file__).parent / "games"

BOARD_SIZE = 10

# Ship lengths of one fleet: 20 cells in total
FLEET = [4, 3, 3, 2, 2, 2, 1, 1, 1, 1]

TOKEN_HEADER = "X-Auth-Token"

WAITING_PLAYERS = "waiting_players"
IN_PROGRESS = "game_in_progress"
ENDED = "ended"

# The dev server is threaded; every access to a game file happens under
# this lock.
_lock = threading.Lock()


# ----------------------------------------------------------------------
# Helper utilities
# ----------------------------------------------------------------------
def _rand_id():
    """Human‑readable random word (6 lower‑case letters)."""
    return "".join(random.choice(string.ascii_lowercase) for _ in range(6))


def _game_path(game_id: str) -> Path:
    return GAMES_ROOT / f"{game_id}.json"


# Index directories next to the game files:
#   tokens/<token>      → id of the game that token plays in
#   waiting/<game_id>   → marker for a game still looking for a second player
def _token_path(token: str) -> Path:
    return GAMES_ROOT / "tokens" / token


def _waiting_path(game_id: str) -> Path:
    return GAMES_ROOT / "waiting" / game_id


def _save_game(game):
    GAMES_ROOT.mkdir(parents=True, exist_ok=True)
    _game_path(game["id"]).write_text(json.dumps(game))

    waiting = _waiting_path(game["id"])
    if game["status"] == WAITING_PLAYERS:
        waiting.parent.mkdir(parents=True, exist_ok=True)
        waiting.touch()
    elif waiting.exists():
        waiting.unlink()

    tokens_dir = GAMES_ROOT / "tokens"
    tokens_dir.mkdir(parents=True, exist_ok=True)
    for token in game["players"]:
        _token_path(token).write_text(game["id"])


def _load_game(game_id):
    p = _game_path(game_id)
    if not p.is_file():
        return None
    return json.loads(p.read_text())


def _waiting_games():
    """Games with one player, oldest first."""
    waiting_dir = GAMES_ROOT / "waiting"
    if not waiting_dir.is_dir():
        return []
    games = [_load_game(p.name) for p in waiting_dir.iterdir()]
    return sorted((g for g in games if g is not None), key=lambda g: g["created"])


def _game_for_token(token):
    """Return the game the caller plays in, aborting with 401 if unknown."""
    if not token:
        abort(401, description=f"Missing {TOKEN_HEADER} header")
    # tokens are uuid4 hex strings; anything else must not reach the filesystem
    if not token.isalnum():
        abort(401, description="Unknown token")
    index = _token_path(token)
    game = _load_game(index.read_text()) if index.is_file() else None
    if game is None or token not in game["players"]:
        abort(401, description="Unknown token")
    return game


def _opponent_token(game, token):
    return next((t for t in game["players"] if t != token), None)


def _neighbours(row, col):
    for dr in (-1, 0, 1):
        for dc in (-1, 0, 1):
            r, c = row + dr, col + dc
            if 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE:
                yield r, c


def _place_ships_randomly():
    """
    Randomly place the whole FLEET and return its cells as coordinate
    strings.  Ships never overlap and never touch, not even diagonally.
    """
    while True:
        taken = _try_place_fleet()
        if taken is not None:
            return [encode(Coordinate(r, c)) for r, c in sorted(taken)]


def _try_place_fleet(attempts_per_ship=200):
    """One placement pass; None when a ship found no room (start over)."""
    taken = set()
    for size in FLEET:
        for _ in range(attempts_per_ship):
            horiz = random.choice([True, False])
            if horiz:
                r = random.randint(0, BOARD_SIZE - 1)
                c = random.randint(0, BOARD_SIZE - size)
                cells = [(r, c + i) for i in range(size)]
            else:
                r = random.randint(0, BOARD_SIZE - size)
                c = random.randint(0, BOARD_SIZE - 1)
                cells = [(r + i, c) for i in range(size)]

            if not any(n in taken for x, y in cells for n in _neighbours(x, y)):
                taken.update(cells)
                break
        else:
            return None
    return taken


def _ship_cells(ships, coord):
    """All cells of the ship that occupies *coord* (orthogonal flood fill)."""
    ship_set = set(ships)
    seen = {coord}
    stack = [coord]
    while stack:
        row, col = decode(stack.pop())
        for r, c in ((row - 1, col), (row + 1, col), (row, col - 1), (row, col + 1)):
            if not (0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE):
                continue
            cell = encode(Coordinate(r, c))
            if cell in ship_set and cell not in seen:
                seen.add(cell)
                stack.append(cell)
    return seen


def _canonical_coords(coords):
    try:
        return sorted({encode(decode(c)) for c in coords})
    except CoordinateParseError as exc:
        abort(400, description=f"Invalid ship coordinate: {exc}")


def _can_pair(host, newcomer):
    if host.get("target_nick") and host["target_nick"] != newcomer["nick"]:
        return False
    if newcomer.get("target_nick") and newcomer["target_nick"] != host["nick"]:
        return False
    return True


def _find_partner_game(player):
    """
    Oldest waiting game whose host can play *player*; a host who asked for
    *player* by nick goes before everyone else.
    """
    candidates = []
    for game in _waiting_games():
        host = next(iter(game["players"].values()))
        if _can_pair(host, player):
            candidates.append((host.get("target_nick") != player["nick"], game))
    if not candidates:
        return None
    return min(candidates, key=lambda pair: pair[0])[1]


# ----------------------------------------------------------------------
# Routes
# ----------------------------------------------------------------------
@app.route("/api/game", methods=["POST"])
def start_game():
    payload = request.get_json(silent=True) or {}
    nick = payload.get("nick") or f"pirate-{_rand_id()}"

    coords = payload.get("coords")
    if coords:
        if not isinstance(coords, list):
            abort(400, description="'coords' must be a list")
        ships = _canonical_coords(coords)
        if len(ships) != sum(FLEET):
            abort(400, description=f"Exactly {sum(FLEET)} ship cells are required")
    else:
        ships = _place_ships_randomly()

    token = uuid.uuid4().hex
    player = {
        "nick": nick,
        "desc": payload.get("desc", ""),
        "target_nick": payload.get("target_nick") or "",
        "ships": ships,
        "shots_received": [],   # opponent's shots at this board, in order
    }

    with _lock:
        game = _find_partner_game(player)
        if game is None:
            game = {
                "id": _rand_id(),
                "players": {},
                "turn": token,               # the first player to register fires first
                "status": WAITING_PLAYERS,
                "winner": None,
                "created": time.time(),
            }
        else:
            game["status"] = IN_PROGRESS
            app.logger.info("Game %s: %s meets %s", game["id"],
                            next(iter(game["players"].values()))["nick"], nick)
        game["players"][token] = player
        _save_game(game)

    resp = jsonify({})
    resp.headers[TOKEN_HEADER] = token
    return resp, 200


@app.route("/api/game", methods=["GET"])
def get_status():
    token = request.headers.get(TOKEN_HEADER)
    with _lock:
        game = _game_for_token(token)
    me = game["players"][token]
    opponent_token = _opponent_token(game, token)

    response = {
        "game_status": game["status"],
        "should_fire": game["status"] == IN_PROGRESS and game["turn"] == token,
        "opp_shots":   me["shots_received"],
        "nick":        me["nick"],
        "opponent":    game["players"][opponent_token]["nick"] if opponent_token else "",
    }
    if game["status"] == ENDED:
        response["last_game_status"] = "win" if game["winner"] == token else "lose"
    return jsonify(response), 200


@app.route("/api/game/board", methods=["GET"])
def get_board():
    token = request.headers.get(TOKEN_HEADER)
    with _lock:
        game = _game_for_token(token)
    return jsonify({"board": game["players"][token]["ships"]}), 200


@app.route("/api/game/fire", methods=["POST"])
def fire():
    """
    Fire a shot at the opponent.
    Expected JSON body: {"coord":"B5"}
    """
    token = request.headers.get(TOKEN_HEADER)
    payload = request.get_json(silent=True) or {}
    coord = payload.get("coord")
    if not coord:
        abort(400, description="Missing coord")

    with _lock:
        game = _game_for_token(token)

        if game["status"] != IN_PROGRESS:
            abort(400, description="Game is not in progress")
        if game["turn"] != token:
            abort(400, description="Not your turn")

        try:
            coord = encode(decode(coord))
        except CoordinateParseError as exc:
            abort(400, description=f"Coordinate format invalid: {exc}")

        opponent_token = _opponent_token(game, token)
        opponent = game["players"][opponent_token]
        if coord not in opponent["shots_received"]:
            opponent["shots_received"].append(coord)
        shots = set(opponent["shots_received"])

        if coord not in opponent["ships"]:
            result = "miss"
            game["turn"] = opponent_token
        elif _ship_cells(opponent["ships"], coord) <= shots:
            result = "sunk"
        else:
            result = "hit"

        # ------------------------------------------------------------------
        # WIN DETECTION – every ship cell of the opponent has been hit
        # ------------------------------------------------------------------
        if set(opponent["ships"]) <= shots:
            game["status"] = ENDED
            game["winner"] = token
            app.logger.info("Game %s won by %s", game["id"], game["players"][token]["nick"])

        _save_game(game)

    return jsonify({"result": result}), 200


# ----------------------------------------------------------------------
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
