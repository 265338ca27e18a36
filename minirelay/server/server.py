import platform
import selectors
import signal
import socket
import threading
from typing import Optional

from minirelay.logger import get_logger, configure_logger, Logger
from minirelay.protocol import extract_lines
from minirelay.server.errors import (
    ClientDisconnected,
    RelayError,
    ServerShutdown,
    TransportFault,
    UsageError,
    )
from minirelay.server.registry import ClientRegistry
from minirelay.server.router import BroadcastRouter
from minirelay.server.session import Session
from minirelay.settings import RELAY_HOST
from minirelay.utils import format_addr, load_config, ServerConfig

# Raised by a ready socket that turned out not to be ready after all.
NOT_READY = (BlockingIOError, InterruptedError)


def is_valid_port(port) -> bool:
    return isinstance(port, int) and not isinstance(port, bool) and 0 < port < 65536


def make_listen_socket(host: str, port: int, backlog: int = socket.SOMAXCONN) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except (OSError, OverflowError) as e:
        sock.close()
        raise TransportFault(f"cannot listen on {host}:{port}: {e}") from e
    return sock


class RelayServer:
    """
    Single-threaded line relay built on a readiness loop.

    Each pass recomputes the interest sets from the registry, waits once in
    `select`, then services the ready handles in ascending order: the
    listener accepts, a readable client is read (and its complete lines
    fanned out), a writable client has its outbox drained. A handle that is
    both readable and writable is only read during that pass.
    """

    __slots__: tuple[str, ...] = (
        "name",
        "logger",
        "config",
        "registry",
        "router",
        "selector",
        "listener",
        "_running",
        "_closed",
    )

    def __init__(self, name: Optional[str] = None, config: Optional[ServerConfig] = None):
        # Give a name to the server
        self.name = name if isinstance(name, str) else "<relay:no-name>"
        self.logger: Logger = get_logger(self.name)

        self.config = config if config is not None else ServerConfig()
        self.registry = ClientRegistry()
        self.router = BroadcastRouter(self.registry, self.logger)
        self.selector = selectors.DefaultSelector()
        self.listener: Optional[socket.socket] = None
        self._running = False
        self._closed = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def closed(self) -> bool:
        return self._closed

    # ---- loop ----

    def attach(self, listener: socket.socket) -> None:
        """Adopt an already-bound, already-listening socket."""
        if self.listener is not None:
            raise RuntimeError("a listening socket is already attached")
        listener.setblocking(False)
        self.listener = listener
        self.registry.bind_listener(listener.fileno())
        self.selector.register(listener, selectors.EVENT_READ, data=None)

    def _refresh_interest(self) -> None:
        for session in self.registry.sessions():
            events = selectors.EVENT_READ
            if session.wants_write:
                events |= selectors.EVENT_WRITE
            if self.selector.get_key(session.conn).events != events:
                self.selector.modify(session.conn, events, data=session)

    def run_once(self, timeout: Optional[float] = None) -> int:
        """Run one readiness pass. Returns the number of handles serviced."""
        self._refresh_interest()
        try:
            events = self.selector.select(timeout)
        except OSError as e:
            raise TransportFault(f"readiness wait failed: {e}") from e

        serviced = 0
        for key, mask in sorted(events, key=lambda event: event[0].fd):
            if key.data is None:
                if mask & selectors.EVENT_READ:
                    self._accept()
                    serviced += 1
                continue

            session: Session = key.data
            # Removed earlier in this pass, or its handle was reused by an accept.
            if self.registry.get(key.fd) is not session:
                continue

            if mask & selectors.EVENT_READ:
                self._receive(session)
            elif mask & selectors.EVENT_WRITE:
                self._send(session)
            serviced += 1
        return serviced

    def serve_forever(self) -> None:
        if self.listener is None:
            raise RuntimeError("no listening socket attached")
        self._running = True
        while self._running:
            self.run_once()

    def serve(self, listener: socket.socket) -> None:
        self.attach(listener)
        self.serve_forever()

    # ---- event handlers ----

    def _accept(self) -> Optional[Session]:
        try:
            conn, addr = self.listener.accept()
        except NOT_READY:
            return None
        except OSError as e:
            raise TransportFault(f"accept failed: {e}", self.registry.listening_handle) from e

        session = None
        try:
            conn.setblocking(False)
            session = self.registry.register(conn.fileno(), conn=conn, addr=addr)
            self.selector.register(conn, selectors.EVENT_READ, data=session)
        except RelayError:
            self._abandon(conn, session)
            raise
        except (OSError, ValueError, KeyError) as e:
            # The registry and the selector must agree on every live handle.
            handle = session.handle if session is not None else None
            self._abandon(conn, session)
            raise TransportFault(f"cannot register client from {format_addr(addr)}: {e}", handle) from e

        self.router.announce_arrival(session)
        self.logger.info(
            f"client {session.id} arrived from {format_addr(addr)} "
            f"(handle {session.handle}, {len(self.registry)} connected)."
            )
        return session

    def _abandon(self, conn: socket.socket, session: Optional[Session]) -> None:
        if session is not None:
            self.registry.unregister(session.handle)
        conn.close()

    def _receive(self, session: Session) -> None:
        try:
            data = session.conn.recv(self.config.recv_chunk_size)
            if not data:
                raise ClientDisconnected("Client closed the connection.")
        except NOT_READY:
            return
        except ClientDisconnected:
            self.logger.info(f"client {session.id} disconnected.")
            self._remove(session)
            return
        except OSError as e:
            self._client_fault(session, "recv", e)
            return

        session.receive(data)
        self.router.relay_lines(session, extract_lines(session.inbox))

    def _send(self, session: Session) -> None:
        try:
            nbytes = session.conn.send(session.outbox)
        except NOT_READY:
            return
        except OSError as e:
            self._client_fault(session, "send", e)
            return

        if nbytes == 0:
            self._client_fault(session, "send", None)
            return
        # Write interest is dropped at the next pass once the outbox is empty.
        session.consume(nbytes)

    def _client_fault(self, session: Session, operation: str, error: Optional[OSError]) -> None:
        reason = str(error) if error is not None else "no bytes transferred"
        if self.config.client_errors_are_fatal:
            raise TransportFault(
                f"{operation} failed for client {session.id}: {reason}", session.handle
                ) from error
        self.logger.warning(f"client {session.id} {operation} failed, dropping it: {reason}")
        self._remove(session)

    def _remove(self, session: Session) -> None:
        # Departure goes out while the session's id is still known.
        self.router.announce_departure(session)

        conn = session.conn
        self.selector.unregister(conn)
        self.registry.unregister(session.handle)
        try:
            conn.close()
        except OSError as e:
            if self.config.client_errors_are_fatal:
                raise TransportFault(f"close failed for client {session.id}: {e}", session.handle) from e
            self.logger.warning(f"client {session.id} close failed: {e}")

        self.logger.info(f"client {session.id} left ({len(self.registry)} connected).")

    # ---- lifecycle ----

    def shutdown(self):
        self.logger.info("Server is shutting down...")
        self._running = False

    def _on_signal(self, signum, frame):
        self.shutdown()
        raise ServerShutdown(signal.Signals(signum).name)

    def set_termination_signals(self):
        # SIGINT = interupt signal for Ctrl+C | value = 2
        # SIGTERM = system/process-based termination | value = 15
        # Handlers can only be installed from the main thread
        if platform.system() != "Windows" and threading.current_thread() is threading.main_thread():
            for sig in (signal.SIGINT, signal.SIGTERM):
                signal.signal(sig, self._on_signal)

    def close(self) -> None:
        """Close every client socket and the listener. No departures are announced."""
        if self._closed:
            return
        self._closed = True
        self._running = False
        # Closing the selector drops every key, registered or not.
        self.selector.close()
        for session in list(self.registry.sessions()):
            self.registry.unregister(session.handle)
            session.conn.close()
        if self.listener is not None:
            self.listener.close()
            self.listener = None

    def run(self, host: Optional[str] = None, port: Optional[int] = None, config_path: Optional[str] = None):
        server_config = load_config(config_path=config_path, debug=bool(config_path))

        logger_cfg = server_config.get("logger", {})
        configure_logger(self.logger, logger_cfg)

        for problem in self.config.merge_in(**server_config.get("hyper_parameters", {})):
            self.logger.warning(f"Ignoring config value: {problem}")

        listener = None
        try:
            host = host or server_config.get("host") or RELAY_HOST
            port = port or server_config.get("port")
            if not is_valid_port(port):
                raise UsageError(f"invalid port {port!r}, expected an integer in 1..65535")

            listener = make_listen_socket(host, port, self.config.backlog)
            self.logger.info(f"Relay listening on {host}:{port}.")
            self.set_termination_signals()
            self.serve(listener)
        except (ServerShutdown, KeyboardInterrupt):
            self.logger.info("Server exited cleanly.")
        except UsageError as e:
            self.logger.error(f"Usage error: {e}")
            raise
        except RelayError as e:
            self.logger.error(f"Fatal error: {e}")
            raise
        else:
            # Left through shutdown() without a signal
            self.logger.info("Server exited cleanly.")
        finally:
            if listener is not None and self.listener is None:
                listener.close()
            self.close()
