import shutil
import tempfile
from pathlib import Path

import pytest

from pirates_server import app as app_module
from pirates_server.app import app, FLEET, TOKEN_HEADER

# A full fleet: 4, 3, 3, 2, 2, 2, 1, 1, 1, 1 – no ship touches another.
FLEET_COORDS = [
    "A1", "A2", "A3", "A4",
    "C1", "C2", "C3",
    "E1", "E2", "E3",
    "G1", "G2",
    "I1", "I2",
    "A6", "A7",
    "C6", "E6", "G6", "I6",
]


@pytest.fixture
def client():
    # Create a temporary directory for games
    temp_dir = tempfile.mkdtemp()

    # GAMES_ROOT is computed at import time, point it at the temp dir.
    original_games_root = app_module.GAMES_ROOT
    app_module.GAMES_ROOT = Path(temp_dir)

    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client

    # Cleanup
    shutil.rmtree(temp_dir)
    app_module.GAMES_ROOT = original_games_root


def _register(client, nick, **extra):
    body = {"nick": nick, "desc": "test", **extra}
    resp = client.post('/api/game', json=body)
    assert resp.status_code == 200
    return resp.headers[TOKEN_HEADER]


def _status(client, token):
    resp = client.get('/api/game', headers={TOKEN_HEADER: token})
    assert resp.status_code == 200
    return resp.get_json()


def _fire(client, token, coord):
    return client.post('/api/game/fire', json={"coord": coord}, headers={TOKEN_HEADER: token})


@pytest.fixture
def match(client):
    """Two paired players with known fleets; the first one fires first."""
    first = _register(client, "anne", coords=FLEET_COORDS)
    second = _register(client, "jack", coords=FLEET_COORDS)
    return first, second


def test_fleet_sizes():
    assert sum(FLEET) == len(FLEET_COORDS) == 20


def test_register_returns_token(client):
    token = _register(client, "anne")
    assert len(token) == 32
    data = _status(client, token)
    assert data["game_status"] == "waiting_players"
    assert data["should_fire"] is False
    assert data["nick"] == "anne"


def test_random_fleet_is_complete_and_spread(client):
    token = _register(client, "anne")
    resp = client.get('/api/game/board', headers={TOKEN_HEADER: token})
    assert resp.status_code == 200
    board = resp.get_json()["board"]
    assert len(board) == sum(FLEET)
    assert len(set(board)) == sum(FLEET)

    cells = {(ord(c[0]) - ord("A"), int(c[1:]) - 1) for c in board}
    # ships are straight lines, so a diagonal neighbour means two ships touch
    for r, c in cells:
        assert (r + 1, c + 1) not in cells
        assert (r + 1, c - 1) not in cells


def test_custom_fleet_is_kept(client):
    token = _register(client, "anne", coords=[c.lower() for c in FLEET_COORDS])
    board = client.get('/api/game/board', headers={TOKEN_HEADER: token}).get_json()["board"]
    assert sorted(board) == sorted(FLEET_COORDS)


def test_register_rejects_bad_fleet(client):
    resp = client.post('/api/game', json={"nick": "anne", "coords": ["A1", "A2"]})
    assert resp.status_code == 400
    resp = client.post('/api/game', json={"nick": "anne", "coords": ["Z99"] * 20})
    assert resp.status_code == 400


def test_two_players_are_paired(client, match):
    first, second = match
    s1, s2 = _status(client, first), _status(client, second)
    assert s1["game_status"] == s2["game_status"] == "game_in_progress"
    assert s1["should_fire"] is True
    assert s2["should_fire"] is False
    assert s1["opponent"] == "jack"
    assert s2["opponent"] == "anne"


def test_target_nick_is_honoured(client):
    first = _register(client, "anne", target_nick="jack")
    stranger = _register(client, "bart")
    jack = _register(client, "jack")
    assert _status(client, first)["opponent"] == "jack"
    assert _status(client, stranger)["game_status"] == "waiting_players"
    assert _status(client, jack)["game_status"] == "game_in_progress"


def test_unknown_token(client):
    resp = client.get('/api/game', headers={TOKEN_HEADER: "nope"})
    assert resp.status_code == 401
    resp = client.get('/api/game')
    assert resp.status_code == 401


def test_fire_before_opponent_joins(client):
    token = _register(client, "anne")
    assert _fire(client, token, "A1").status_code == 400


def test_miss_switches_turn(client, match):
    first, second = match
    resp = _fire(client, first, "J10")
    assert resp.status_code == 200
    assert resp.get_json() == {"result": "miss"}

    assert _status(client, first)["should_fire"] is False
    s2 = _status(client, second)
    assert s2["should_fire"] is True
    assert s2["opp_shots"] == ["J10"]


def test_hit_keeps_turn_and_sunk_when_whole_ship_hit(client, match):
    first, second = match
    assert _fire(client, first, "C1").get_json()["result"] == "hit"
    assert _fire(client, first, "c2").get_json()["result"] == "hit"
    assert _fire(client, first, "C3").get_json()["result"] == "sunk"
    assert _fire(client, first, "I6").get_json()["result"] == "sunk"
    assert _status(client, first)["should_fire"] is True
    assert _status(client, second)["opp_shots"] == ["C1", "C2", "C3", "I6"]


def test_fire_validation(client, match):
    first, second = match
    # not your turn
    assert _fire(client, second, "A1").status_code == 400
    # invalid coordinates
    assert _fire(client, first, "Z99").status_code == 400
    assert _fire(client, first, "A").status_code == 400
    resp = client.post('/api/game/fire', json={}, headers={TOKEN_HEADER: first})
    assert resp.status_code == 400


def test_sinking_the_fleet_ends_the_game(client, match):
    first, second = match
    for coord in FLEET_COORDS:
        assert _fire(client, first, coord).status_code == 200

    s1, s2 = _status(client, first), _status(client, second)
    assert s1["game_status"] == s2["game_status"] == "ended"
    assert s1["last_game_status"] == "win"
    assert s2["last_game_status"] == "lose"
    assert _fire(client, first, "J10").status_code == 400


def test_game_persistence(client, match):
    # Verify the game is saved to disk
    files = list(app_module.GAMES_ROOT.glob("*.json"))
    assert len(files) == 1


def test_finished_games_are_not_offered_for_pairing(client, match):
    first, second = match
    for coord in FLEET_COORDS:
        _fire(client, first, coord)

    newcomer = _register(client, "bart")
    assert _status(client, newcomer)["game_status"] == "waiting_players"
    # the old players still reach their finished game through the token index
    assert _status(client, first)["last_game_status"] == "win"


def test_waiting_marker_removed_once_paired(client):
    _register(client, "anne")
    assert len(list((app_module.GAMES_ROOT / "waiting").iterdir())) == 1
    _register(client, "jack")
    assert list((app_module.GAMES_ROOT / "waiting").iterdir()) == []


def test_token_must_not_reach_the_filesystem(client, match):
    resp = client.get('/api/game', headers={TOKEN_HEADER: "../waiting"})
    assert resp.status_code == 401
