"""
=============================================================================
LISTENER: THE ACCEPT LOOP
=============================================================================

The listener owns the bound server socket and is the only place new
Connections come from. It never reads from or writes to a client.

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. socket()    Create a TCP socket
    2. bind()      Reserve IP:PORT               ← fails fast if taken
    3. listen()    Start queueing handshakes (backlog)
    4. accept()    Block until a client connects
                   └─ Returns a NEW socket for that client
                   └─ The listening socket keeps listening
    5. close()     On shutdown only

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    └───────────┬───────────┘     Never sends/receives data
                                │ accept()
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │ Session 1 │         │ Session 2 │         │ Session 3 │
    │ (thread)  │         │ (thread)  │         │ (thread)  │
    └───────────┘         └───────────┘         └───────────┘

=============================================================================
ACCEPT AS A STREAM
=============================================================================

accept_loop() is a generator: an endless, lazy sequence of Connections.
Iterating it blocks in accept(); each element is handed to the connection
callback, which starts a session thread and returns at once. The listener
is back in accept() before the new session has read a byte.

accept() runs with a short timeout (accept_poll_interval) so the loop can
notice shutdown(). The timeout is routine, not an error. A real accept
failure (e.g. EMFILE, out of file descriptors) is logged and the loop goes
on; only a closed listening socket ends it.

=============================================================================
SIGNALS
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (kill, docker stop) call shutdown(). Python
only lets the main thread install signal handlers, so a listener started
from any other thread (tests, embedding) skips this step.

Shutdown stops accepting. It does not drain or cancel running sessions:
they end on their own timeout, or with the process.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Callable, Iterator, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


# Pause after a failed accept() so a persistent error (out of file
# descriptors) doesn't spin the CPU.
ACCEPT_ERROR_BACKOFF = 0.1


class Listener:
    """
    Binds the server endpoint and produces Connections.

    Usage:
        def handle(conn: Connection):
            spawn_session(Session(conn, service))

        listener = Listener(config)
        listener.start(handle)  # Blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, timeouts).

        The socket is not created here; bind() or start() does that.
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None

        self._running = False
        self._shutdown_event = threading.Event()

        # Set once listen() has been called. Tests and embedding code wait
        # on this instead of polling connect().
        self.ready = threading.Event()

        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port). With port 0 in the config this is the
        port the OS actually picked; before binding it is the config value.
        """
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    # =========================================================================
    # SOCKET SETUP
    # =========================================================================

    def _create_socket(self) -> socket.socket:
        """Create the TCP socket and set its options."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Rebind immediately after a restart instead of waiting out
        # TIME_WAIT.
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # One short line per response: send it now, don't let Nagle hold
        # it back waiting for more.
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        sock.settimeout(self.config.accept_poll_interval)
        return sock

    def bind(self) -> Tuple[str, int]:
        """
        Create, bind and listen. Idempotent.

        Returns:
            The bound (host, port).

        Raises:
            OSError: If the address is in use or not permitted. The
                     listener cannot proceed; the caller should abort.
        """
        if self._socket is not None:
            return self.address

        sock = self._create_socket()
        try:
            # Common errors:
            # - Address already in use: another process has this port
            # - Permission denied: ports < 1024 require root
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            sock.close()
            raise

        self._socket = sock
        host, port = sock.getsockname()[:2]
        self._bound_address = (host, port)
        return self._bound_address

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers that call shutdown()."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    # =========================================================================
    # RUNNING
    # =========================================================================

    def start(self, on_connection: Callable[[Connection], None]):
        """
        Bind (if needed) and hand every accepted Connection to
        `on_connection`. Blocks until shutdown() is called.

        `on_connection` must return quickly; it runs on the accepting
        thread. If it raises, the error is logged, that one connection is
        closed, and accepting continues.

        Raises:
            OSError: If binding fails.
        """
        self.bind()

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()

        host, port = self.address
        logger.info(f"Listening on {host}:{port}")
        self.ready.set()

        try:
            for conn in self.accept_loop():
                try:
                    on_connection(conn)
                except Exception as e:
                    logger.exception(f"[{conn.id}] Failed to start session: {e}")
                    conn.close()
        finally:
            self._cleanup()

    def accept_loop(self) -> Iterator[Connection]:
        """
        Yield accepted Connections until shutdown.

        Not restartable: once the listening socket is closed the generator
        is exhausted.
        """
        while self._running:
            sock = self._socket
            if sock is None:
                break

            try:
                client_socket, client_address = sock.accept()
            except socket.timeout:
                # Poll tick: loop to re-check self._running.
                continue
            except OSError as e:
                if not self._running or sock.fileno() == -1:
                    break  # Listening socket closed: we're shutting down
                logger.error(f"Accept error: {e}")
                self._shutdown_event.wait(ACCEPT_ERROR_BACKOFF)
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")
            yield self._wrap(client_socket, client_address)

    def _wrap(self, client_socket: socket.socket, client_address) -> Connection:
        return Connection(
            socket=client_socket,
            address=client_address,
            buffer_size=self.config.buffer_size,
            idle_timeout=self.config.idle_timeout,
            max_line_length=self.config.max_line_length,
            encoding=self.config.encoding,
        )

    # =========================================================================
    # STOPPING
    # =========================================================================

    def shutdown(self):
        """
        Stop accepting. Safe from a signal handler or another thread, and
        safe to call more than once.
        """
        if self._running:
            logger.info("Shutting down listener...")
        self._running = False
        self._shutdown_event.set()

    def _cleanup(self):
        self._running = False
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None

        self.ready.clear()
        self._shutdown_event.set()
        logger.info("Listener stopped")

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until shutdown() has been called.

        Returns:
            True if shutdown happened, False on timeout.
        """
        return self._shutdown_event.wait(timeout)
