"""
Unit tests for SessionWorker threads.
"""

from unittest import mock

from lineserver.compute import FibonacciService
from lineserver.core.connection import ReadResult
from lineserver.core.session import CloseReason, Session, SessionState
from lineserver.core.worker import SessionWorker, WorkerState, spawn_session


def idle_session() -> Session:
    conn = mock.Mock()
    conn.id = "w0rker01"
    conn.peer = "127.0.0.1:50000"
    conn.read_line.side_effect = [ReadResult.timed_out()]
    return Session(conn, FibonacciService())


class TestSessionWorker:

    def test_runs_session_to_completion(self):
        session = idle_session()

        worker = spawn_session(session)
        worker.join(2.0)

        assert not worker.is_alive()
        assert worker.state is WorkerState.STOPPED
        assert session.state is SessionState.CLOSED
        assert session.close_reason is CloseReason.IDLE_TIMEOUT

    def test_thread_identity(self):
        worker = SessionWorker(idle_session())

        assert worker.daemon
        assert worker.name == "Session-w0rker01"
        assert worker.state is WorkerState.STARTING

    def test_escaped_error_is_contained(self):
        session = mock.Mock()
        session.id = "broken01"
        session.run.side_effect = RuntimeError("boom")

        worker = SessionWorker(session)
        worker.start()
        worker.join(2.0)

        assert worker.state is WorkerState.STOPPED
