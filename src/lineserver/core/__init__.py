"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                           LISTENER                                   │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Creates, binds and listens on the TCP socket                     │
    │  • Runs the accept() loop                                           │
    │  • Wraps each client socket in a Connection                         │
    │  • Shuts down on SIGINT / SIGTERM                                   │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ one new thread per connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                        SESSION WORKER                                │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • A daemon thread running exactly one Session                      │
    │  • No pool, no queue, no limit                                      │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                           SESSION                                    │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • READING → PROCESSING → READING … → CLOSING → CLOSED              │
    │  • Idle timeout, termination token, error lines                     │
    │  • Always closes its Connection                                     │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Buffered line reads with an idle timeout                         │
    │  • Read outcomes as values (LINE, TIMED_OUT, IO_FAILED, ...)        │
    │  • Graceful, idempotent close                                       │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .connection import Connection, ReadKind, ReadResult
from .listener import Listener
from .session import CloseReason, Session, SessionState
from .worker import SessionWorker, WorkerState, spawn_session

__all__ = [
    "Listener",        # Accepts connections
    "Connection",      # Wrapper for one client socket
    "ReadKind",        # Outcome kinds of Connection.read_line()
    "ReadResult",      # Tagged read outcome
    "Session",         # Per-connection state machine
    "SessionState",    # Enum of session states
    "CloseReason",     # Why a session ended
    "SessionWorker",   # Thread running one session
    "WorkerState",     # Enum of worker states
    "spawn_session",   # Start a worker for a session
]
