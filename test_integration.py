# test_integration.py
import os
import sys
import time
import socket
import shutil
import tempfile
import subprocess
import threading
from pathlib import Path

import requests

from pirates.coords import all_coordinates, encode
from pirates.display import Display
from pirates.game import Phase, TurnFlowController
from pirates.service import HttpGameService, Registration

# ----------------------------------------------------------------------
# Helper: find a free TCP port
# ----------------------------------------------------------------------
def _free_port() -> int:
    """Return an unused localhost port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]

# ----------------------------------------------------------------------
# Helper: launch the practice server in a subprocess
# ----------------------------------------------------------------------
def _launch_server(port: int):
    """
    Starts ``pirates_server.app`` on the given port.
    Returns (Popen object, temporary SNAP_COMMON directory).
    """
    env = os.environ.copy()
    env["PORT"] = str(port)
    snap_common = tempfile.mkdtemp(prefix="snap_common_")
    env["SNAP_COMMON"] = snap_common

    # Let the server inherit the parent's stdout/stderr – no pipe buffering.
    proc = subprocess.Popen(
        [sys.executable, "-m", "pirates_server.app"],
        cwd=str(Path(__file__).parent),
        env=env,
        stdout=None,
        stderr=None,
    )
    return proc, snap_common

# ----------------------------------------------------------------------
# Helper: wait until the server answers a simple request
# ----------------------------------------------------------------------
def _wait_for_server(port: int, timeout: float = 10.0) -> bool:
    """Poll ``/api/game`` until the server answers (401 without a token)."""
    deadline = time.time() + timeout
    url = f"http://127.0.0.1:{port}/api/game"
    while time.time() < deadline:
        try:
            r = requests.get(url, timeout=0.5)
            if r.status_code == 401:
                return True
        except requests.RequestException:
            pass
        time.sleep(0.2)
    return False

# ----------------------------------------------------------------------
# Helper: a display that fires at every cell in order
# ----------------------------------------------------------------------
class ScriptedDisplay(Display):
    def __init__(self):
        self._targets = iter([encode(c) for c in all_coordinates()])
        self.messages = []
        self.renders = 0

    def render_board(self, which, snapshot):
        self.renders += 1

    def show_transient_message(self, text, duration_seconds):
        self.messages.append(text)

    def show_message(self, text):
        self.messages.append(text)

    def request_coordinate_input(self):
        return next(self._targets)

# ----------------------------------------------------------------------
# Integration test
# ----------------------------------------------------------------------
def test_full_game_flow():
    """
    Spins up the practice server, pairs two controllers and lets them play
    until one fleet is gone.
    """
    port = _free_port()
    server_proc, snap_common_dir = _launch_server(port)
    try:
        assert _wait_for_server(port), "Server never became ready"
        server_url = f"http://127.0.0.1:{port}/"

        players = {}
        for nick in ("anne", "jack"):
            display = ScriptedDisplay()
            controller = TurnFlowController(
                HttpGameService(server_url, timeout=5),
                display,
                poll_interval=0.02,
                banner_seconds=0,
            )
            players[nick] = (controller, display)

        verdicts = {}
        errors = []

        def play(nick):
            controller, _ = players[nick]
            try:
                verdicts[nick] = controller.run(Registration(nick=nick))
            except Exception as exc:   # surfaced by the assertions below
                errors.append((nick, exc))

        threads = [threading.Thread(target=play, args=(nick,)) for nick in players]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=120)

        assert not any(t.is_alive() for t in threads), "Match did not finish in time"
        assert not errors, errors
        assert sorted(verdicts.values()) == ["lose", "win"]

        winner = next(n for n, v in verdicts.items() if v == "win")
        winner_controller, winner_display = players[winner]

        for controller, _ in players.values():
            assert controller.session.phase is Phase.ENDED
            assert controller.session.player_board is None
            # every shot goes to a fresh cell: no duplicates in the history
            assert len(controller.session.shots) == len(set(controller.session.shots))

        # the whole 20‑cell fleet had to be hit to win
        assert len(winner_controller.session.shots) >= 20
        assert any("SUNK!" in m for m in winner_display.messages)
        assert winner_display.renders > 0

    finally:
        # Clean up: terminate server and delete temporary dirs
        server_proc.terminate()
        server_proc.wait(timeout=5)
        shutil.rmtree(snap_common_dir, ignore_errors=True)

# ----------------------------------------------------------------------
# If the file is executed directly, run the test (useful for quick dev runs)
# ----------------------------------------------------------------------
if __name__ == "__main__":
    try:
        test_full_game_flow()
        print("\n✅  Integration test passed – a full game completed successfully.")
    except AssertionError as e:
        print(f"\n❌  Integration test failed: {e}")
        sys.exit(1)
