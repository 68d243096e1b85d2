"""Terminal client for the Sea of Pirates battleship server."""

__version__ = "0.1.0"
