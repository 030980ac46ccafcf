"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Everything the listener and the sessions need to know, in one dataclass.

The original scripts hard-coded the port and the read timeout at the top of
main(). Here they are explicit fields, passed into LineServer at
construction, so the same code runs in tests (port 0, short timeout) and in
production (fixed port, generous timeout).

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m lineserver --port 9000                          │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── LINESERVER_PORT=9000 python -m lineserver                 │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY IS THE IDLE TIMEOUT MANDATORY?
=============================================================================

A client that connects and then says nothing holds a thread and a file
descriptor forever. With thread-per-connection and no admission limit, the
idle timeout is the ONLY thing that reclaims abandoned connections. So
validate() refuses None, zero and negative values.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError


LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the line server.

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, accept_poll_interval

    SESSION SETTINGS
    - idle_timeout, max_line_length, encoding, termination_token, farewell

    COMPUTE
    - service

    LOGGING
    - log_level, log_format

    Example:
        config = ServerConfig(port=9000, idle_timeout=10.0)
        config.validate()
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """
    The port number to listen on. 0 asks the OS for a free port; the
    listener reports the real one once bound.
    """

    backlog: int = 128
    """Maximum number of completed handshakes waiting for accept()."""

    buffer_size: int = 4096
    """Bytes requested per recv() call."""

    accept_poll_interval: float = 1.0
    """
    How long accept() may block before the listener re-checks whether it
    has been asked to shut down.
    """

    # ─────────────────────────────────────────────────────────────────────
    # SESSION SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    idle_timeout: Optional[float] = 30.0
    """
    Seconds a session waits for the next request line before the
    connection is presumed abandoned and closed. Required.
    """

    max_line_length: int = 64 * 1024
    """
    Longest request line accepted, in bytes. A client that streams more
    than this without a newline has its connection closed.
    """

    encoding: str = "utf-8"
    """Character encoding used on both ends of the wire."""

    termination_token: str = "exit"
    """Request line that asks the server to say goodbye and hang up."""

    farewell: str = "good bye!"
    """Response line sent before closing on the termination token."""

    # ─────────────────────────────────────────────────────────────────────
    # COMPUTE
    # ─────────────────────────────────────────────────────────────────────

    service: str = "fibonacci"
    """Name of the ComputeService to answer requests with."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' for humans, 'json' for log aggregators."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        LINESERVER_HOST          Server host (default: 127.0.0.1)
        LINESERVER_PORT          Server port (default: 8080)
        LINESERVER_BACKLOG       Listen backlog (default: 128)
        LINESERVER_IDLE_TIMEOUT  Idle read timeout in seconds (default: 30)
        LINESERVER_EXIT_TOKEN    Termination token (default: exit)
        LINESERVER_SERVICE       Compute service name (default: fibonacci)
        LINESERVER_LOG_LEVEL     Logging level (default: INFO)
        LINESERVER_LOG_FORMAT    text or json (default: text)

        Raises:
            ConfigError: If a numeric variable does not parse.
        """
        try:
            return cls(
                host=os.getenv("LINESERVER_HOST", "127.0.0.1"),
                port=int(os.getenv("LINESERVER_PORT", "8080")),
                backlog=int(os.getenv("LINESERVER_BACKLOG", "128")),
                idle_timeout=float(os.getenv("LINESERVER_IDLE_TIMEOUT", "30")),
                termination_token=os.getenv("LINESERVER_EXIT_TOKEN", "exit"),
                service=os.getenv("LINESERVER_SERVICE", "fibonacci"),
                log_level=os.getenv("LINESERVER_LOG_LEVEL", "INFO"),
                log_format=os.getenv("LINESERVER_LOG_FORMAT", "text"),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid environment configuration: {e}") from e

    def validate(self) -> None:
        """
        Validate configuration values.

        Called by LineServer at construction so a bad value fails the
        process at startup, not on the first connection.

        Raises:
            ConfigError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ConfigError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ConfigError("buffer_size must be >= 1")

        if self.idle_timeout is None or self.idle_timeout <= 0:
            raise ConfigError("idle_timeout must be a positive number of seconds")

        if self.accept_poll_interval <= 0:
            raise ConfigError("accept_poll_interval must be > 0")

        if self.max_line_length < 1:
            raise ConfigError("max_line_length must be >= 1")

        if not self.termination_token or "\n" in self.termination_token:
            raise ConfigError("termination_token must be a non-empty single line")

        if "\n" in self.farewell:
            raise ConfigError("farewell must be a single line")

        try:
            "".encode(self.encoding)
        except LookupError as e:
            raise ConfigError(f"Unknown encoding: {self.encoding}") from e

        if self.log_format not in LOG_FORMATS:
            raise ConfigError(
                f"log_format must be one of {', '.join(LOG_FORMATS)}, got {self.log_format!r}"
            )
