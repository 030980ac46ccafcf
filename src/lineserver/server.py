"""
=============================================================================
LINE SERVER
=============================================================================

The application object. It validates the config, picks the compute
service, and connects the listener to the session machinery:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         LineServer.run()                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Listener.start(_handle_connection)        (blocks, main thread)   │
    │        │                                                             │
    │        └──► for each accepted Connection:                           │
    │                 Session(conn, service, on_close=access_log)         │
    │                 spawn_session(session)      (new thread, no wait)   │
    │                                                                      │
    │   Session threads run independently until CLOSED.                   │
    │   Nothing is shared between them except the (stateless) service.   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SHUTDOWN
=============================================================================

Ctrl+C or SIGTERM stops the accept loop and run() returns. Sessions that
are still open are daemon threads: they keep serving until they hit their
own idle timeout or exit token, or until the process exits. There is no
drain protocol.

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .access_log import AccessLogger
from .compute import ComputeService, get_service
from .config import ServerConfig
from .core import Connection, Listener, Session, SessionWorker, spawn_session


logger = logging.getLogger(__name__)


class LineServer:
    """
    Concurrent, blocking, line-oriented request/response server.

    Usage:
        server = LineServer(ServerConfig(port=9000, idle_timeout=10))
        server.run()   # Blocks until Ctrl+C

    With a custom computation:
        class Square(ComputeService):
            def compute(self, n):
                return n * n

        LineServer(service=Square()).run()
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        service: Optional[ComputeService] = None,
    ):
        """
        Args:
            config: Server configuration. Defaults are used if omitted.
            service: Computation to answer with. Defaults to the service
                     named by config.service.

        Raises:
            ConfigError: If the configuration is invalid or names an
                         unknown service.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self.service = service or get_service(self.config.service)

        self._listener = Listener(self.config)
        self._access_log = AccessLogger(self.config.log_format)

        # Only touched from the accepting thread.
        self._workers: list[SessionWorker] = []

        self._running = False

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def listener(self) -> Listener:
        return self._listener

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); see Listener.address."""
        return self._listener.address

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def active_sessions(self) -> int:
        """Number of session threads still alive."""
        return sum(1 for w in list(self._workers) if w.is_alive())

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def bind(self) -> Tuple[str, int]:
        """
        Bind the listening socket now instead of inside run().

        Lets a caller surface "address in use" before doing anything else.

        Raises:
            OSError: If the bind fails.
        """
        return self._listener.bind()

    def run(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        configure_logging: bool = True,
        banner: bool = False,
    ):
        """
        Start the server (blocking).

        Args:
            host: Override config host.
            port: Override config port.
            configure_logging: Call logging.basicConfig from the config.
                               Pass False when embedding in an app that
                               configures logging itself.
            banner: Print a startup banner to stdout.

        Raises:
            OSError: If binding fails.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        if configure_logging:
            self._setup_logging()

        self._running = True
        logger.info(
            f"Starting line server on {self.config.host}:{self.config.port} "
            f"(service={self.service.name}, idle_timeout={self.config.idle_timeout}s)"
        )

        try:
            self._listener.bind()
            if banner:
                self._print_startup_banner()
            self._listener.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Stop accepting new connections. run() returns shortly after."""
        self._listener.shutdown()

    def _print_startup_banner(self):
        host, port = self.address
        print()
        print("╔══════════════════════════════════════════════════════════════╗")
        print(f"  lineserver listening on {host}:{port}")
        print(f"  service: {self.service.name}")
        print(f"  idle timeout: {self.config.idle_timeout}s")
        print(f"  send '{self.config.termination_token}' to end a session")
        print("  Press Ctrl+C to stop")
        print("╚══════════════════════════════════════════════════════════════╝")
        print()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("lineserver").setLevel(level)

    def _shutdown(self):
        self._running = False
        still_open = self.active_sessions
        if still_open:
            logger.info(f"Server stopped, {still_open} session(s) still open")
        else:
            logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Called by the listener, on the accepting thread, for every new
        connection. Starts the session thread and returns immediately.
        """
        session = Session(
            conn,
            self.service,
            termination_token=self.config.termination_token,
            farewell_text=self.config.farewell,
            on_close=self._access_log,
        )

        self._workers = [w for w in self._workers if w.is_alive()]
        self._workers.append(spawn_session(session))

        logger.debug(f"[{conn.id}] Session thread started for {conn.peer}")


def create_app(
    config: Optional[ServerConfig] = None,
    service: Optional[ComputeService] = None,
) -> LineServer:
    """
    Factory for LineServer instances.

    Example:
        app = create_app(ServerConfig(port=9000))
        app.run()
    """
    return LineServer(config, service)
