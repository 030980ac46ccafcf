"""
=============================================================================
LINESERVER - A Concurrent Line-Protocol Server on Blocking Sockets
=============================================================================

A TCP request/response server built directly on Python sockets. Clients
send one line, the server answers with one line:

    $ nc 127.0.0.1 8080
    10
    55
    abc
    Error format: abc
    exit
    good bye!

=============================================================================
HOW IT GOT HERE
=============================================================================

    1. SINGLE SHOT       accept → read one line → answer → close
    2. SESSION LOOP      keep reading on the same connection until the
                         client says "exit" or goes quiet (idle timeout)
    3. THREAD PER CLIENT the accept loop hands every connection to its
                         own thread, so one slow client blocks nobody

This package is step 3.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    lineserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m lineserver)
    ├── server.py            # LineServer application object
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # Exception types
    ├── access_log.py        # Per-session access records
    ├── core/                # Networking and concurrency
    │   ├── listener.py      # Bind + accept loop
    │   ├── connection.py    # Line-oriented socket wrapper
    │   ├── session.py       # Per-connection state machine
    │   └── worker.py        # One thread per session
    ├── protocol/            # Wire format
    │   ├── request.py       # Request line classification
    │   └── response.py      # Response lines
    └── compute/             # What gets computed
        ├── base.py          # ComputeService interface
        ├── fibonacci.py     # Default service
        └── factorial.py     # Alternative service

=============================================================================
QUICK START
=============================================================================

    from lineserver import LineServer, ServerConfig

    server = LineServer(ServerConfig(port=8080, idle_timeout=30))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import LineServer, create_app
from .config import ServerConfig
from .compute import ComputeService
from .errors import ArgumentFormatError, ConfigError, DomainError, LineServerError

__all__ = [
    "LineServer",
    "create_app",
    "ServerConfig",
    "ComputeService",
    "LineServerError",
    "ConfigError",
    "ArgumentFormatError",
    "DomainError",
    "__version__",
]
