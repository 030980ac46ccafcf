"""
=============================================================================
REQUEST PARSING
=============================================================================

A request is ONE line of text. It is either the termination token or
something that should parse into the ComputeService's argument.

=============================================================================
FROM BYTES TO A TAGGED RESULT
=============================================================================

    b"10\\r\\n"   ──decode──►   "10"   ──classify──►   ParsedRequest
                 strip EOL              │
                                        ├── "exit"        → EXIT
                                        ├── service.parse → ARGUMENT(10)
                                        └── parse fails   → MALFORMED("10x")

Classification never raises. A session switches on `kind` instead of
catching exceptions to tell "client said goodbye" from "client typed
garbage". The ComputeService still raises ArgumentFormatError inside
parse(); this module is where that exception stops.

=============================================================================
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..errors import ArgumentFormatError


# Optional sign, ASCII digits only. int() alone would also accept
# " 10 ", "1_000" and non-ASCII digits such as "١٠".
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


def parse_integer(raw: str) -> int:
    """
    Strict integer parsing used by the shipped compute services.

    Raises:
        ArgumentFormatError: If `raw` is not an optionally signed run of
                             ASCII digits, or has more digits than int()
                             will convert.
    """
    if not INTEGER_PATTERN.fullmatch(raw):
        raise ArgumentFormatError(raw)
    try:
        return int(raw)
    except ValueError:
        # Past the interpreter's digit limit for str -> int conversion.
        raise ArgumentFormatError(raw, "too many digits") from None


def strip_line_ending(line: str) -> str:
    """Remove one trailing "\\n" or "\\r\\n", nothing else."""
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n"):
        return line[:-1]
    return line


class RequestKind(Enum):
    """What a request line turned out to be."""
    EXIT = "exit"            # Termination token
    ARGUMENT = "argument"    # Parsed, ready for the ComputeService
    MALFORMED = "malformed"  # Could not be parsed; echo it back


@dataclass(frozen=True)
class ParsedRequest:
    """
    Tagged result of classifying one request line.

    Attributes:
        kind: Which of the three outcomes this is.
        raw: The line exactly as received, minus its line terminator.
        argument: The parsed argument (only for ARGUMENT).
    """
    kind: RequestKind
    raw: str
    argument: Any = None

    @property
    def is_exit(self) -> bool:
        return self.kind is RequestKind.EXIT

    @property
    def is_malformed(self) -> bool:
        return self.kind is RequestKind.MALFORMED


class RequestParser:
    """
    Classifies request lines for one session.

    The parser knows the termination token; it borrows the argument
    syntax from the ComputeService so swapping the computation never
    touches this class.

    Example:
        parser = RequestParser(FibonacciService().parse)
        parser.classify("10")    # ParsedRequest(ARGUMENT, "10", 10)
        parser.classify("abc")   # ParsedRequest(MALFORMED, "abc")
        parser.classify("exit")  # ParsedRequest(EXIT, "exit")
    """

    def __init__(
        self,
        parse_argument: Optional[Callable[[str], Any]] = None,
        termination_token: str = "exit",
    ):
        self.parse_argument = parse_argument or parse_integer
        self.termination_token = termination_token

    def is_termination(self, line: str) -> bool:
        """True if `line` (terminator already stripped) is the exit token."""
        return line == self.termination_token

    def classify(self, line: str) -> ParsedRequest:
        """
        Turn one decoded line into a ParsedRequest.

        The token comparison is exact: "EXIT" or " exit" are ordinary
        input and will come back as MALFORMED.
        """
        raw = strip_line_ending(line)

        if self.is_termination(raw):
            return ParsedRequest(RequestKind.EXIT, raw)

        try:
            argument = self.parse_argument(raw)
        except ArgumentFormatError:
            return ParsedRequest(RequestKind.MALFORMED, raw)

        return ParsedRequest(RequestKind.ARGUMENT, raw, argument)


def parse_request(line: str, termination_token: str = "exit") -> ParsedRequest:
    """
    Convenience function: classify a line with integer argument syntax.

    Use RequestParser directly when the argument syntax comes from a
    specific ComputeService.
    """
    return RequestParser(termination_token=termination_token).classify(line)
