"""An in-memory listener that hands out connected socket pairs, and server options."""

from __future__ import annotations

import logging
import socket
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

MEMORY_NETWORK = "memory"
DEFAULT_ADDRESS = "1.2.3.4"
DEFAULT_CLEANUP_TIMEOUT = 5.0


class ListenerClosedError(OSError):
    """An accept or dial was attempted on a closed listener."""

    def __init__(self, op: str, addr: str) -> None:
        self.op = op
        self.network = MEMORY_NETWORK
        self.addr = addr
        super().__init__(f"{op} {MEMORY_NETWORK} {addr}: listener closed")


@dataclass
class _Handoff:
    conn: socket.socket
    taken: bool = False


class MemoryListener:
    """Listens on an in-memory network.

    :meth:`dial` creates a connected socket pair, waits until :meth:`accept`
    takes the server end, and returns the client end.
    """

    def __init__(self, addr: str = DEFAULT_ADDRESS) -> None:
        self.addr = addr
        self.network = MEMORY_NETWORK
        self._cond = threading.Condition()
        self._pending: deque[_Handoff] = deque()
        self._closed = False

    def accept(self, timeout: float | None = None) -> socket.socket:
        """Wait for a dialed connection and return its server end.

        Raises :class:`ListenerClosedError` once closed, ``TimeoutError`` if
        nothing arrives within ``timeout`` seconds.
        """
        with self._cond:
            ready = self._cond.wait_for(lambda: self._closed or self._pending, timeout)
            if self._closed:
                raise ListenerClosedError("accept", self.addr)
            if not ready:
                raise TimeoutError("accept timed out")
            handoff = self._pending.popleft()
            handoff.taken = True
            self._cond.notify_all()
            return handoff.conn

    def close(self) -> None:
        """Close the listener; repeated calls do nothing."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def dial(self, timeout: float | None = None) -> socket.socket:
        """Connect to the listener and return the client end of the connection.

        Raises :class:`ListenerClosedError` if the listener is or becomes
        closed, ``TimeoutError`` if no accept happens within ``timeout``.
        """
        server, client = socket.socketpair()
        handoff = _Handoff(server)
        with self._cond:
            if not self._closed:
                self._pending.append(handoff)
                self._cond.notify_all()
                self._cond.wait_for(lambda: handoff.taken or self._closed, timeout)
            if handoff.taken:
                return client
            if handoff in self._pending:
                self._pending.remove(handoff)
            closed = self._closed
        server.close()
        client.close()
        if closed:
            raise ListenerClosedError("dial", self.addr)
        raise TimeoutError("dial timed out")

    def __enter__(self) -> MemoryListener:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass
class ServerConfig:
    """Configuration for an in-memory server."""

    cleanup_timeout: float = DEFAULT_CLEANUP_TIMEOUT
    error_log: logging.Logger | None = field(default=None)


ServerOption = Callable[[ServerConfig], None]


def new_server_config(*options: ServerOption) -> ServerConfig:
    """Build a configuration with the defaults, then apply ``options`` in order."""
    config = ServerConfig()
    for option in options:
        option(config)
    return config


def with_cleanup_timeout(seconds: float) -> ServerOption:
    """Set how long a cleanup waits for the server to shut down."""

    def apply(config: ServerConfig) -> None:
        config.cleanup_timeout = seconds

    return apply


def with_error_log(logger: logging.Logger | None) -> ServerOption:
    """Set the logger that receives server errors."""

    def apply(config: ServerConfig) -> None:
        config.error_log = logger

    return apply


def with_server_options(*options: ServerOption) -> ServerOption:
    """Compose several server options into one."""

    def apply(config: ServerConfig) -> None:
        for option in options:
            option(config)

    return apply