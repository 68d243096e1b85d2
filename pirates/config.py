"""
Runtime settings for the client.

Every value can be overridden through an environment variable so the same
code talks to the public server by default and to a local practice server
(or a fast-polling test setup) when needed.
"""

import os

# -----------------------------------------------------------------
# Server URL – read from the environment, ensure it ends with "/"
# -----------------------------------------------------------------
_raw_url = os.getenv(
    "SERVER_URL",
    "https://go-pjatk-server.fly.dev/"
)
SERVER_URL = _raw_url.rstrip("/") + "/"

# -----------------------------------------------------------------
# Timing
# -----------------------------------------------------------------
# POLL_INTERVAL: seconds to wait between two status polls.
POLL_INTERVAL = float(os.getenv("POLL_INTERVAL", "1.0"))

# HTTP_TIMEOUT: seconds before a single request is abandoned.
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))

# BANNER_SECONDS: how long a "HIT!" / "miss" banner stays on screen.
BANNER_SECONDS = float(os.getenv("BANNER_SECONDS", "2.0"))

# -----------------------------------------------------------------
# Registration defaults
# -----------------------------------------------------------------
PLAYER_NICK = os.getenv("PLAYER_NICK", "Pirate")
PLAYER_DESC = os.getenv("PLAYER_DESC", "Sea dog of the seven seas")

# -----------------------------------------------------------------
# Logging
# -----------------------------------------------------------------
DEBUG = os.getenv("PIRATES_DEBUG", "0") == "1"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# -----------------------------------------------------------------
# Board size – fixed 10 × 10, the server does not support anything else
# -----------------------------------------------------------------
BOARD_SIZE = 10
