"""
=============================================================================
SESSION STATE MACHINE
=============================================================================

A Session owns one Connection from accept to close and runs the
conversation with that client:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Session Lifecycle                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                  ┌──────────────┐                                    │
    │        start ───►│   READING    │◄──────────────────┐                │
    │                  └──────┬───────┘                   │                │
    │                         │                           │                │
    │       ┌─────────────────┼──────────────────┐        │ response       │
    │       │                 │                  │        │ written        │
    │   timeout /         "exit"            any other     │                │
    │   I/O error /    (farewell sent)        line        │                │
    │   EOF / overflow        │                  │        │                │
    │       │                 │                  ▼        │                │
    │       │                 │         ┌──────────────┐  │                │
    │       │                 │         │  PROCESSING  │──┘                │
    │       │                 │         └──────┬───────┘                   │
    │       │                 │                │ write failed              │
    │       ▼                 ▼                ▼                           │
    │                  ┌──────────────┐                                    │
    │                  │   CLOSING    │  connection.close(), always        │
    │                  └──────┬───────┘                                    │
    │                         ▼                                            │
    │                  ┌──────────────┐                                    │
    │                  │    CLOSED    │  terminal, thread ends             │
    │                  └──────────────┘                                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TWO KINDS OF FAILURE
=============================================================================

READ failures (timeout, reset, EOF) mean the conversation is over. There
is nobody to answer, or the client has gone quiet. The session closes.

PROCESSING failures (the line isn't a number, the number is out of range)
are the client's typo. The session answers with an error line and waits
for the next request.

Keep that asymmetry when changing this file. Retrying a read after a
reset, or hanging up on a typo, are both wrong.

=============================================================================
"""

import logging
import time
from enum import Enum
from typing import Callable, Optional

from ..compute.base import ComputeService
from ..errors import DomainError
from ..protocol.request import RequestParser
from ..protocol.response import (
    DEFAULT_FAREWELL,
    Response,
    domain_error,
    farewell,
    format_error,
    result,
)
from .connection import Connection, ReadKind


logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Session lifecycle states."""
    READING = "reading"        # Blocked in read_line()
    PROCESSING = "processing"  # Parsing, computing, writing the response
    CLOSING = "closing"        # Terminal condition reached, releasing
    CLOSED = "closed"          # Connection released, thread may end


class CloseReason(Enum):
    """Why a session ended. The value is the text used in logs."""
    IDLE_TIMEOUT = "idle timeout"
    IO_ERROR = "I/O error"
    CLIENT_EXIT = "client requested exit"
    CLIENT_DISCONNECTED = "client disconnected"
    LINE_TOO_LONG = "line too long"
    INTERNAL_ERROR = "internal error"


class Session:
    """
    Runs the read → parse → compute → respond loop for one connection.

    A Session is single-use: run() drives it from READING to CLOSED and
    returns the close reason. Every exit path, including an unexpected
    exception, goes through _finish(), which closes the connection.

    Attributes:
        connection: The connection this session owns exclusively.
        service: The computation applied to each parsed argument.
        state: Current SessionState.
        close_reason: Set when the session enters CLOSING.
        requests_handled: Requests answered with a result or an error line.
        format_errors: Requests answered with "Error format: ...".
        domain_errors: Requests answered with "Error domain: ...".
    """

    def __init__(
        self,
        connection: Connection,
        service: ComputeService,
        termination_token: str = "exit",
        farewell_text: str = DEFAULT_FAREWELL,
        on_close: Optional[Callable[["Session"], None]] = None,
    ):
        self.connection = connection
        self.service = service
        self.parser = RequestParser(service.parse, termination_token)
        self.farewell_text = farewell_text
        self._on_close = on_close

        self.state = SessionState.READING
        self.close_reason: Optional[CloseReason] = None
        self.requests_handled = 0
        self.format_errors = 0
        self.domain_errors = 0

        self.started_at = time.monotonic()
        self.ended_at: Optional[float] = None

        self._pending_line: Optional[str] = None

    @property
    def id(self) -> str:
        return self.connection.id

    @property
    def duration(self) -> float:
        """Seconds from creation to close (or to now, while running)."""
        end = self.ended_at if self.ended_at is not None else time.monotonic()
        return end - self.started_at

    @property
    def is_closed(self) -> bool:
        return self.state is SessionState.CLOSED

    # =========================================================================
    # MAIN LOOP
    # =========================================================================

    def run(self) -> CloseReason:
        """
        Drive the session until it is CLOSED.

        Returns:
            The reason the session ended.
        """
        logger.debug(f"[{self.id}] Session started for {self.connection.peer}")

        try:
            while self.state is not SessionState.CLOSING:
                if self.state is SessionState.READING:
                    self._read()
                elif self.state is SessionState.PROCESSING:
                    self._process()
                else:
                    raise RuntimeError(f"Session cannot run from state {self.state}")
        except Exception as e:
            logger.exception(f"[{self.id}] Session error: {e}")
            self._begin_close(CloseReason.INTERNAL_ERROR)
        finally:
            self._finish()

        return self.close_reason

    # =========================================================================
    # STATES
    # =========================================================================

    def _read(self):
        """READING: one blocking line read, then decide where to go."""
        outcome = self.connection.read_line()

        if outcome.kind is ReadKind.TIMED_OUT:
            logger.info(
                f"[{self.id}] No request within {self.connection.idle_timeout}s, closing"
            )
            self._begin_close(CloseReason.IDLE_TIMEOUT)

        elif outcome.kind is ReadKind.IO_FAILED:
            logger.warning(f"[{self.id}] Read failed: {outcome.error}")
            self._begin_close(CloseReason.IO_ERROR)

        elif outcome.kind is ReadKind.CLOSED:
            logger.debug(f"[{self.id}] Client closed the connection")
            self._begin_close(CloseReason.CLIENT_DISCONNECTED)

        elif outcome.kind is ReadKind.OVERFLOW:
            logger.warning(
                f"[{self.id}] Request line longer than "
                f"{self.connection.max_line_length} bytes, closing"
            )
            self._begin_close(CloseReason.LINE_TOO_LONG)

        elif self.parser.is_termination(outcome.line):
            if self._respond(farewell(self.farewell_text)):
                self._begin_close(CloseReason.CLIENT_EXIT)
            else:
                self._begin_close(CloseReason.IO_ERROR)

        else:
            self._pending_line = outcome.line
            self.state = SessionState.PROCESSING

    def _process(self):
        """PROCESSING: parse, compute, answer, go back to READING."""
        line = self._pending_line
        self._pending_line = None

        request = self.parser.classify(line)

        if request.is_malformed:
            logger.debug(f"[{self.id}] Malformed request: {request.raw!r}")
            self.format_errors += 1
            response = format_error(request.raw)
        else:
            try:
                value = self.service.compute(request.argument)
            except DomainError as e:
                logger.debug(f"[{self.id}] {self.service.name} refused: {e}")
                self.domain_errors += 1
                response = domain_error(request.raw)
            else:
                response = result(value)

        self.requests_handled += 1

        if self._respond(response):
            self.state = SessionState.READING
        else:
            self._begin_close(CloseReason.IO_ERROR)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _respond(self, response: Response) -> bool:
        return self.connection.send_response(response)

    def _begin_close(self, reason: CloseReason):
        # The first reason wins; a later fault while closing doesn't
        # overwrite why the conversation actually ended.
        if self.close_reason is None:
            self.close_reason = reason
        self.state = SessionState.CLOSING

    def _finish(self):
        """CLOSING → CLOSED. Runs from `finally`, so it must not raise."""
        if self.close_reason is None:
            # Only reachable if something like KeyboardInterrupt unwound
            # the loop; record it as internal.
            self.close_reason = CloseReason.INTERNAL_ERROR
        self.state = SessionState.CLOSING

        self.connection.close()

        self.state = SessionState.CLOSED
        self.ended_at = time.monotonic()

        logger.debug(
            f"[{self.id}] Session closed ({self.close_reason.value}) after "
            f"{self.requests_handled} requests"
        )

        if self._on_close is not None:
            try:
                self._on_close(self)
            except Exception as e:
                logger.exception(f"[{self.id}] on_close callback failed: {e}")
