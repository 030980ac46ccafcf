"""
=============================================================================
LINE PROTOCOL
=============================================================================

The wire protocol is newline-delimited text, strictly request/response:

    Client                                   Server
      │  "10\\n"                               │
      ├──────────────────────────────────────►│  parse → compute
      │                              "55\\n"   │
      │◄──────────────────────────────────────┤
      │  "abc\\n"                              │
      ├──────────────────────────────────────►│  parse fails
      │                "Error format: abc\\n"  │
      │◄──────────────────────────────────────┤
      │  "exit\\n"                             │
      ├──────────────────────────────────────►│
      │                       "good bye!\\n"   │
      │◄──────────────────────────────────────┤  close()

No pipelining: the server reads the next line only after it has written
the answer to the previous one.

=============================================================================
"""

from .request import (
    ParsedRequest,
    RequestKind,
    RequestParser,
    parse_integer,
    parse_request,
    strip_line_ending,
)
from .response import (
    Response,
    ResponseKind,
    domain_error,
    farewell,
    format_error,
    result,
)

__all__ = [
    # Request
    "ParsedRequest",
    "RequestKind",
    "RequestParser",
    "parse_integer",
    "parse_request",
    "strip_line_ending",
    # Response
    "Response",
    "ResponseKind",
    "result",
    "format_error",
    "domain_error",
    "farewell",
]
