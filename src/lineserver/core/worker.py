"""
=============================================================================
SESSION WORKER THREADS
=============================================================================

One accepted connection → one Session → one SessionWorker thread.

    ┌──────────────┐  accept()   ┌───────────────────┐
    │   Listener   │────────────►│ SessionWorker #1  │──► Session.run()
    │ (main thread)│             └───────────────────┘
    │              │  accept()   ┌───────────────────┐
    │              │────────────►│ SessionWorker #2  │──► Session.run()
    │              │             └───────────────────┘
    │              │     ...
    └──────────────┘

The listener starts the thread and goes straight back to accept(). It
never joins, never waits, and never talks to the session again.

=============================================================================
WHY NOT A THREAD POOL?
=============================================================================

A pool caps how many clients are served at once; the rest queue. That is
admission control, and this server deliberately has none: every client
gets its own thread immediately. The cost is unbounded thread growth
under load. The idle timeout is what keeps abandoned connections from
accumulating.

=============================================================================
"""

import logging
import threading
from enum import Enum

from .session import Session


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    """Worker thread states, for monitoring."""
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"


class SessionWorker(threading.Thread):
    """
    Thread that runs exactly one Session to completion.

    daemon=True: a client stuck in a long read never keeps the process
    alive after the listener has shut down. The OS reclaims the sockets
    when the process exits.
    """

    def __init__(self, session: Session):
        super().__init__(name=f"Session-{session.id}", daemon=True)
        self.session = session
        self.state = WorkerState.STARTING

    def run(self):
        self.state = WorkerState.RUNNING
        try:
            self.session.run()
        except Exception as e:
            # Session.run() already releases the connection in `finally`;
            # this only keeps an escaped error from dying silently.
            logger.exception(f"[{self.session.id}] Worker error: {e}")
        finally:
            self.state = WorkerState.STOPPED


def spawn_session(session: Session) -> SessionWorker:
    """Start a SessionWorker for `session` and return it without waiting."""
    worker = SessionWorker(session)
    worker.start()
    return worker
