"""
=============================================================================
RESPONSE LINES
=============================================================================

Every response is exactly one line:

    ┌──────────────────┬───────────────────────────────────────────────┐
    │ Kind             │ Wire text                                     │
    ├──────────────────┼───────────────────────────────────────────────┤
    │ RESULT           │ <computed value>\\n                            │
    │ FORMAT_ERROR     │ Error format: <raw input>\\n                   │
    │ DOMAIN_ERROR     │ Error domain: <raw input>\\n                   │
    │ FAREWELL         │ good bye!\\n                                   │
    └──────────────────┴───────────────────────────────────────────────┘

The raw input is echoed verbatim. It cannot contain a newline (it was cut
at one), so an echo never breaks framing.

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


FORMAT_ERROR_PREFIX = "Error format: "
DOMAIN_ERROR_PREFIX = "Error domain: "
DEFAULT_FAREWELL = "good bye!"
LINE_TERMINATOR = "\n"


class ResponseKind(Enum):
    RESULT = "result"
    FORMAT_ERROR = "format_error"
    DOMAIN_ERROR = "domain_error"
    FAREWELL = "farewell"


@dataclass(frozen=True)
class Response:
    """
    One response line, before framing.

    Attributes:
        kind: Which kind of response this is (used for logging and tests).
        text: The line content, without the terminator.
    """
    kind: ResponseKind
    text: str

    @property
    def is_error(self) -> bool:
        return self.kind in (ResponseKind.FORMAT_ERROR, ResponseKind.DOMAIN_ERROR)


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

def result(value: Any) -> Response:
    """Response carrying a computed value, converted with str()."""
    return Response(ResponseKind.RESULT, str(value))


def format_error(raw: str) -> Response:
    """Response for input that does not parse: 'Error format: <raw>'."""
    return Response(ResponseKind.FORMAT_ERROR, FORMAT_ERROR_PREFIX + raw)


def domain_error(raw: str) -> Response:
    """Response for a well-formed argument the service refuses."""
    return Response(ResponseKind.DOMAIN_ERROR, DOMAIN_ERROR_PREFIX + raw)


def farewell(text: str = DEFAULT_FAREWELL) -> Response:
    """Response sent right before closing on the termination token."""
    return Response(ResponseKind.FAREWELL, text)
