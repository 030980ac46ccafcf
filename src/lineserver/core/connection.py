"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps one accepted client socket with a line-oriented API:
read one request line, write one response line, close exactly once.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    Client sends:
        send("10\\n")
        send("abc\\n")

    Server might receive ANY of these:
        recv() → "10\\nabc\\n"     (both combined)
        recv() → "1"              (partial)
        recv() → "0\\nab"          (rest of first + part of second)

So we keep a receive buffer and cut lines at b"\\n". Bytes after the first
newline stay in the buffer for the next read_line() call.

=============================================================================
READ OUTCOMES ARE VALUES, NOT EXCEPTIONS
=============================================================================

socket.recv() can end in four ways besides "here are some bytes":

    ┌────────────────────────┬──────────────────────────────────────────┐
    │ What happened          │ ReadResult                               │
    ├────────────────────────┼──────────────────────────────────────────┤
    │ full line arrived      │ LINE(text)                               │
    │ idle timeout expired   │ TIMED_OUT                                │
    │ reset / broken pipe    │ IO_FAILED(error)                         │
    │ peer closed (EOF)      │ CLOSED                                   │
    │ no newline in budget   │ OVERFLOW                                 │
    └────────────────────────┴──────────────────────────────────────────┘

read_line() catches the socket exceptions right where they happen and
returns one of these. The session switches on the kind; it never has to
guess which exception class means "timeout" and which means "gone".

=============================================================================
CLOSING PROPERLY
=============================================================================

    1. shutdown(SHUT_WR)   Send FIN: "I'm done sending"
    2. drain (briefly)     Read what the client already sent, so the
                           kernel doesn't answer with RST and destroy
                           our last response in flight
    3. close()             Release the file descriptor

close() is idempotent and never raises, so it is safe in `finally`.

=============================================================================
"""

import socket
import time
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..protocol.request import strip_line_ending
from ..protocol.response import LINE_TERMINATOR, Response


logger = logging.getLogger(__name__)


class ReadKind(Enum):
    """Outcome of a single read_line() call."""
    LINE = "line"
    TIMED_OUT = "timed_out"
    IO_FAILED = "io_failed"
    CLOSED = "closed"
    OVERFLOW = "overflow"


@dataclass(frozen=True)
class ReadResult:
    """
    Tagged result of reading one line.

    Attributes:
        kind: What happened.
        line: Decoded line without its terminator (only for LINE).
        error: The socket error (only for IO_FAILED).
    """
    kind: ReadKind
    line: Optional[str] = None
    error: Optional[BaseException] = None

    @classmethod
    def of_line(cls, line: str) -> "ReadResult":
        return cls(ReadKind.LINE, line=line)

    @classmethod
    def timed_out(cls) -> "ReadResult":
        return cls(ReadKind.TIMED_OUT)

    @classmethod
    def io_failed(cls, error: BaseException) -> "ReadResult":
        return cls(ReadKind.IO_FAILED, error=error)

    @classmethod
    def closed(cls) -> "ReadResult":
        return cls(ReadKind.CLOSED)

    @classmethod
    def overflow(cls) -> "ReadResult":
        return cls(ReadKind.OVERFLOW)


@dataclass
class Connection:
    """
    Represents one client connection.

    Owned by exactly one Session for its whole life. Nothing else reads,
    writes or closes it.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier used as a log prefix.
        created_at: Timestamp when the connection was accepted.
        last_activity: Timestamp of the last successful recv/send.
        lines_read: Complete request lines read so far.
        lines_written: Response lines written so far.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    lines_read: int = 0
    lines_written: int = 0

    buffer_size: int = 4096
    idle_timeout: float = 30.0
    max_line_length: int = 64 * 1024
    encoding: str = "utf-8"
    drain_timeout: float = 0.2
    drain_limit: int = 64 * 1024

    _buffer: bytes = field(default=b"", repr=False)
    _closed: bool = field(default=False, repr=False)

    def __post_init__(self):
        """
        Configure the socket after initialization.

        The listening socket polls with a short timeout; accepted sockets
        may inherit that, so we set the idle timeout explicitly. With a
        timeout set, every recv() raises socket.timeout after
        `idle_timeout` seconds of silence.
        """
        self.socket.setblocking(True)
        self.socket.settimeout(self.idle_timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def peer(self) -> str:
        """Client address as "ip:port" for logs."""
        return f"{self.address[0]}:{self.address[1]}"

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    @property
    def idle_time(self) -> float:
        """Seconds since last activity."""
        return time.time() - self.last_activity

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> ReadResult:
        """
        Read exactly one request line.

        Blocks until a newline arrives, the idle timeout expires, the peer
        goes away, or the line grows past `max_line_length`. A partial
        line at EOF is discarded: the client never finished the request.

        Returns:
            ReadResult describing the outcome. Never raises for network
            conditions.
        """
        if self._closed:
            return ReadResult.closed()

        while b"\n" not in self._buffer:
            if len(self._buffer) > self.max_line_length:
                return ReadResult.overflow()

            try:
                chunk = self.socket.recv(self.buffer_size)
            except socket.timeout:
                # socket.timeout is an OSError subclass; it must be
                # caught before the generic branch below.
                return ReadResult.timed_out()
            except OSError as e:
                return ReadResult.io_failed(e)

            if not chunk:
                return ReadResult.closed()

            self._buffer += chunk
            self.last_activity = time.time()

        line_end = self._buffer.index(b"\n") + 1
        if line_end - 1 > self.max_line_length:
            return ReadResult.overflow()

        raw_line = self._buffer[:line_end]
        self._buffer = self._buffer[line_end:]
        self.lines_read += 1

        text = raw_line.decode(self.encoding, errors="replace")
        return ReadResult.of_line(strip_line_ending(text))

    # =========================================================================
    # WRITING
    # =========================================================================

    def write_line(self, text: str) -> bool:
        """
        Send one line, terminator added here.

        sendall() loops until every byte is handed to the kernel, so the
        line is never left half-written in a user-space buffer.

        Characters the encoding cannot represent are replaced rather than
        raising, so an odd echo can never kill the session.

        Returns:
            True if sent, False if the connection is gone.
        """
        data = (text + LINE_TERMINATOR).encode(self.encoding, errors="replace")
        return self._send(data)

    def send_response(self, response: Response) -> bool:
        """Send a protocol Response. Same contract as write_line()."""
        return self.write_line(response.text)

    def _send(self, data: bytes) -> bool:
        if self._closed:
            return False
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False
        self.lines_written += 1
        self.last_activity = time.time()
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully. Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.settimeout(self.drain_timeout)
            drained = 0
            while drained < self.drain_limit:
                chunk = self.socket.recv(self.buffer_size)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # Includes socket.timeout: nothing more to drain

        try:
            self.socket.close()
        except OSError:
            pass

        logger.debug(f"[{self.id}] Connection closed after {self.lines_read} requests")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allows `with conn:` so the socket is released on every exit path:

            with conn:
                result = conn.read_line()
                conn.write_line("55")
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
