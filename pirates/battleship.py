#!/usr/bin/env python3
"""
Command‑line Battleship client.

Commands
--------
battleship play [NICK] [--target OPPONENT] [--bot]
                                 → register and play one match
battleship help                  → show this help screen

Environment
-----------
SERVER_URL, POLL_INTERVAL, HTTP_TIMEOUT, PLAYER_NICK, PLAYER_DESC,
PIRATES_DEBUG – see ``pirates/config.py``.
"""

import logging
import sys

from . import config
from .display import TerminalDisplay, format_legend
from .errors import PiratesError
from .game import TurnFlowController
from .service import HttpGameService, Registration

logger = logging.getLogger(__name__)


def _setup_logging():
    logging.basicConfig(
        level=logging.DEBUG if config.DEBUG else logging.WARNING,
        format=config.LOG_FORMAT,
        stream=sys.stderr,
    )


def _parse_play_args(args):
    """``[NICK] [--target OPPONENT] [--bot]`` → Registration."""
    registration = Registration()
    it = iter(args)
    for arg in it:
        if arg == "--bot":
            registration.wpbot = True
        elif arg == "--target":
            try:
                registration.target_nick = next(it)
            except StopIteration:
                raise ValueError("--target needs an opponent nick") from None
        elif arg.startswith("-"):
            raise ValueError(f"unknown option '{arg}'")
        else:
            registration.nick = arg
    return registration


# -----------------------------------------------------------------
# Command implementations
# -----------------------------------------------------------------
def cmd_play(args):
    """Register with the server and play a single match."""
    try:
        registration = _parse_play_args(args)
    except ValueError as exc:
        print(f"{exc}\nUsage: battleship play [NICK] [--target OPPONENT] [--bot]")
        sys.exit(1)

    display = TerminalDisplay()
    controller = TurnFlowController(HttpGameService(), display)
    print(f"Connecting to {config.SERVER_URL} as {registration.nick}…")
    try:
        verdict = controller.run(registration)
    except PiratesError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except (KeyboardInterrupt, EOFError):
        print("\nYou abandoned the match. Fair winds!")
        return

    if verdict == "win":
        print("\n🏆  You have WON the game!")
    elif verdict == "lose":
        print("\n💀  You have LOST the game.")


def cmd_help(_):
    """Display a quick reference for all commands and the emoji legend."""
    commands_desc = [
        ("play [NICK]", "Register and play one match (type shots like B5)."),
        ("  --target N", "Ask the server to pair you with player N."),
        ("  --bot",      "Let the server pair you with its bot."),
        ("help",         "Show this help screen."),
    ]

    print("\n=== Battleship – command reference ===\n")
    for cmd, desc in commands_desc:
        print(f"  {cmd:<14} {desc}")

    print("\n=== Emoji legend ===\n")
    print(format_legend())

    print("\nTip: Run `battleship help` anytime to see this again.\n")


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    _setup_logging()

    if not argv:
        cmd_help(None)
        sys.exit(0)

    cmd = argv[0]
    args = argv[1:]

    commands = {
        "play": cmd_play,
        "help": cmd_help,
    }

    if cmd not in commands:
        print(f"Unknown command '{cmd}'. Available: {', '.join(commands)}")
        sys.exit(1)

    commands[cmd](args)


if __name__ == "__main__":
    main()
