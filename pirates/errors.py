class PiratesError(Exception):
    pass


class TransportError(PiratesError):
    """The server could not be reached or answered with an HTTP error."""


class ProtocolError(PiratesError):
    """A server payload is missing an expected field or has the wrong shape."""


class CoordinateParseError(PiratesError, ValueError):
    """A coordinate token such as ``B10`` could not be decoded."""
