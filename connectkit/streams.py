"""The handler's view of client, server and bidirectional streaming RPCs."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, Generic, Protocol, TypeVar

from connectkit.headers import Headers
from connectkit.options import MaybeInitializer, Spec

Req = TypeVar("Req")
Res = TypeVar("Res")


class StreamingHandlerConn(Protocol):
    """The connection a handler uses to exchange messages with a client.

    ``receive`` fills the message it is given and raises ``EOFError`` once the
    client has finished sending; ``send`` raises on failure.
    """

    def spec(self) -> Spec: ...

    def peer(self) -> Any: ...

    def request_header(self) -> Headers: ...

    def receive(self, msg: Any) -> None: ...

    def response_header(self) -> Headers: ...

    def response_trailer(self) -> Headers: ...

    def send(self, msg: Any) -> None: ...


class ClientStream(Generic[Req]):
    """Iterates over the messages a client streams to the handler.

    A fresh message is created for every receive.
    """

    def __init__(
        self,
        conn: StreamingHandlerConn,
        new_message: Callable[[], Req],
        initializer: MaybeInitializer | None = None,
    ) -> None:
        self._conn = conn
        self._new_message = new_message
        self._initializer = initializer or MaybeInitializer()
        self._msg: Req | None = None
        self._err: BaseException | None = None

    def spec(self) -> Spec:
        """Return the specification for the RPC."""
        return self._conn.spec()

    def peer(self) -> Any:
        """Describe the client for this RPC."""
        return self._conn.peer()

    def request_header(self) -> Headers:
        """Return the headers received from the client."""
        return self._conn.request_header()

    def receive(self) -> bool:
        """Advance to the next message; return False at the end or on error.

        After False, :meth:`err` reports any error other than end of stream.
        """
        if self._err is not None:
            return False
        self._msg = self._new_message()
        try:
            self._initializer.maybe(self.spec(), self._msg)
            self._conn.receive(self._msg)
        except Exception as exc:  # noqa: BLE001 - any failure ends the stream
            self._err = exc
            return False
        return True

    def msg(self) -> Req:
        """Return the most recently received message."""
        if self._msg is None:
            self._msg = self._new_message()
        return self._msg

    def err(self) -> BaseException | None:
        """Return the first error other than end of stream, if any."""
        if self._err is None or isinstance(self._err, EOFError):
            return None
        return self._err

    def conn(self) -> StreamingHandlerConn:
        """Expose the underlying connection."""
        return self._conn

    def __iter__(self) -> Iterator[Req]:
        while self.receive():
            yield self.msg()


class ServerStream(Generic[Res]):
    """Sends a stream of messages from the handler to the client."""

    def __init__(self, conn: StreamingHandlerConn) -> None:
        self._conn = conn

    def response_header(self) -> Headers:
        """Return the response headers, sent with the first message."""
        return self._conn.response_header()

    def response_trailer(self) -> Headers:
        """Return the response trailers, writable until the handler returns."""
        return self._conn.response_trailer()

    def send(self, msg: Res | None) -> None:
        """Send a message; the first call also sends the headers."""
        self._conn.send(msg)

    def conn(self) -> StreamingHandlerConn:
        """Expose the underlying connection."""
        return self._conn


class BidiStream(Generic[Req, Res]):
    """The handler's side of a bidirectional streaming RPC."""

    def __init__(
        self,
        conn: StreamingHandlerConn,
        new_message: Callable[[], Req],
        initializer: MaybeInitializer | None = None,
    ) -> None:
        self._conn = conn
        self._new_message = new_message
        self._initializer = initializer or MaybeInitializer()

    def spec(self) -> Spec:
        """Return the specification for the RPC."""
        return self._conn.spec()

    def peer(self) -> Any:
        """Describe the client for this RPC."""
        return self._conn.peer()

    def request_header(self) -> Headers:
        """Return the headers received from the client."""
        return self._conn.request_header()

    def receive(self) -> Req:
        """Receive a message; raises ``EOFError`` once the client is done."""
        msg = self._new_message()
        self._initializer.maybe(self.spec(), msg)
        self._conn.receive(msg)
        return msg

    def response_header(self) -> Headers:
        """Return the response headers, sent with the first message."""
        return self._conn.response_header()

    def response_trailer(self) -> Headers:
        """Return the response trailers, writable until the handler returns."""
        return self._conn.response_trailer()

    def send(self, msg: Res | None) -> None:
        """Send a message; the first call also sends the headers."""
        self._conn.send(msg)

    def conn(self) -> StreamingHandlerConn:
        """Expose the underlying connection."""
        return self._conn

    def __iter__(self) -> Iterator[Req]:
        while True:
            try:
                yield self.receive()
            except EOFError:
                return