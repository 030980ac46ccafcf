"""
Exception types shared across the server.

Only faults that cross a module boundary get a class here. Network faults
inside a session never become exceptions: the connection reports them as a
ReadResult and the session turns them into a close reason.
"""


class LineServerError(Exception):
    """Base class for all lineserver errors."""


class ConfigError(LineServerError, ValueError):
    """
    Raised when ServerConfig.validate() rejects a value.

    Subclasses ValueError so callers that only know about the standard
    library still catch it.
    """


class ArgumentFormatError(LineServerError):
    """
    Raised by a ComputeService when raw request text cannot be parsed
    into the argument type it expects.

    The session answers with "Error format: <raw>" and keeps reading.
    """

    def __init__(self, raw: str, message: str = "not an integer"):
        super().__init__(f"{message}: {raw!r}")
        self.raw = raw


class DomainError(LineServerError):
    """
    Raised by a ComputeService when a well-formed argument is outside
    the range it can compute (e.g. a negative Fibonacci index).

    The session answers with "Error domain: <raw>" and keeps reading.
    """

    def __init__(self, argument, message: str = "argument out of domain"):
        super().__init__(f"{message}: {argument!r}")
        self.argument = argument
