"""
Unit tests for Connection, over a real socket pair.
"""

import socket
from unittest import mock

import pytest

from lineserver.core.connection import Connection, ReadKind, ReadResult
from lineserver.protocol.response import format_error, result


@pytest.fixture
def pair():
    """(server-side socket, client-side socket)."""
    server_sock, client_sock = socket.socketpair()
    client_sock.settimeout(2.0)
    yield server_sock, client_sock
    server_sock.close()
    client_sock.close()


def make_connection(sock, **kwargs) -> Connection:
    kwargs.setdefault("idle_timeout", 2.0)
    return Connection(socket=sock, address=("127.0.0.1", 50000), **kwargs)


class TestReadLine:

    def test_reads_one_line(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock)

        client_sock.sendall(b"10\n")

        assert conn.read_line() == ReadResult.of_line("10")
        assert conn.lines_read == 1

    def test_splits_lines_from_one_chunk(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock)

        client_sock.sendall(b"10\nabc\n")

        assert conn.read_line().line == "10"
        assert conn.read_line().line == "abc"

    def test_joins_partial_chunks(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock, buffer_size=2)

        client_sock.sendall(b"12345")
        client_sock.sendall(b"678\n")

        assert conn.read_line().line == "12345678"

    def test_strips_crlf(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock)

        client_sock.sendall(b"exit\r\n")

        assert conn.read_line().line == "exit"

    def test_empty_line(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock)

        client_sock.sendall(b"\n")

        assert conn.read_line() == ReadResult.of_line("")

    def test_invalid_utf8_is_replaced(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock)

        client_sock.sendall(b"\xff1\n")

        assert conn.read_line().line == "�1"

    def test_timeout(self, pair):
        server_sock, _ = pair
        conn = make_connection(server_sock, idle_timeout=0.2)

        assert conn.read_line().kind is ReadKind.TIMED_OUT

    def test_eof(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock)

        client_sock.shutdown(socket.SHUT_WR)

        assert conn.read_line().kind is ReadKind.CLOSED

    def test_partial_line_then_eof(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock)

        client_sock.sendall(b"12")
        client_sock.shutdown(socket.SHUT_WR)

        assert conn.read_line().kind is ReadKind.CLOSED

    def test_overflow_without_newline(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock, max_line_length=8)

        client_sock.sendall(b"x" * 20)

        assert conn.read_line().kind is ReadKind.OVERFLOW

    def test_overflow_with_newline(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock, max_line_length=8)

        client_sock.sendall(b"123456789012\n")

        assert conn.read_line().kind is ReadKind.OVERFLOW

    def test_line_at_limit_is_accepted(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock, max_line_length=8)

        client_sock.sendall(b"12345678\n")

        assert conn.read_line().line == "12345678"

    def test_io_failure(self):
        sock = mock.Mock()
        error = ConnectionResetError("reset by peer")
        sock.recv.side_effect = error

        conn = make_connection(sock)
        outcome = conn.read_line()

        assert outcome.kind is ReadKind.IO_FAILED
        assert outcome.error is error

    def test_read_after_close(self, pair):
        server_sock, _ = pair
        conn = make_connection(server_sock)
        conn.close()

        assert conn.read_line().kind is ReadKind.CLOSED


class TestWrite:

    def test_write_line(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock)

        assert conn.write_line("55") is True
        assert client_sock.recv(64) == b"55\n"
        assert conn.lines_written == 1

    def test_send_response(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock)

        assert conn.send_response(result(55)) is True
        assert client_sock.recv(64) == b"55\n"
        assert conn.lines_written == 1

    def test_echo_is_encoded_as_utf8(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock)

        assert conn.send_response(format_error("héllo")) is True
        assert client_sock.recv(64) == "Error format: héllo\n".encode("utf-8")

    def test_unencodable_characters_are_replaced(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock, encoding="ascii")

        assert conn.write_line("é") is True
        assert client_sock.recv(64) == b"?\n"

    def test_write_to_closed_peer(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock)

        client_sock.close()

        assert conn.write_line("55") is False

    def test_write_after_close(self, pair):
        server_sock, _ = pair
        conn = make_connection(server_sock)
        conn.close()

        assert conn.write_line("55") is False


class TestClose:

    def test_peer_sees_eof(self, pair):
        server_sock, client_sock = pair
        conn = make_connection(server_sock)

        conn.close()

        assert conn.closed
        assert client_sock.recv(64) == b""

    def test_close_is_idempotent(self, pair):
        server_sock, _ = pair
        conn = make_connection(server_sock)

        conn.close()
        conn.close()

        assert conn.closed

    def test_context_manager_closes(self, pair):
        server_sock, client_sock = pair

        with make_connection(server_sock) as conn:
            conn.write_line("hello")

        assert conn.closed
        assert client_sock.recv(64) == b"hello\n"
        assert client_sock.recv(64) == b""

    def test_context_manager_closes_on_error(self, pair):
        server_sock, _ = pair

        with pytest.raises(RuntimeError):
            with make_connection(server_sock) as conn:
                raise RuntimeError("boom")

        assert conn.closed

    def test_peer(self, pair):
        server_sock, _ = pair
        conn = make_connection(server_sock)

        assert conn.peer == "127.0.0.1:50000"
        assert conn.client_ip == "127.0.0.1"
        assert conn.client_port == 50000
