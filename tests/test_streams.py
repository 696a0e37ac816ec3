from __future__ import annotations

from dataclasses import dataclass

import pytest

from connectkit.options import MaybeInitializer, Spec, StreamType
from connectkit.streams import BidiStream, ClientStream, ServerStream


@dataclass
class Message:
    number: int = 0


class FakeConn:
    def __init__(self, incoming=(), spec=None, fail_with=None):
        self._incoming = list(incoming)
        self._spec = spec or Spec()
        self._fail_with = fail_with
        self.sent = []
        self.receive_calls = 0
        self.headers = {"X-Req": ["1"]}
        self.res_headers = {}
        self.res_trailers = {}

    def spec(self):
        return self._spec

    def peer(self):
        return "peer-addr"

    def request_header(self):
        return self.headers

    def receive(self, msg):
        self.receive_calls += 1
        if self._fail_with is not None:
            raise self._fail_with
        if not self._incoming:
            raise EOFError
        msg.number = self._incoming.pop(0)

    def response_header(self):
        return self.res_headers

    def response_trailer(self):
        return self.res_trailers

    def send(self, msg):
        self.sent.append(msg)


class NopConn(FakeConn):
    def receive(self, msg):
        return None


def test_client_stream_allocates_new_message_each_iteration():
    created = []

    def factory():
        m = Message()
        created.append(m)
        return m

    stream = ClientStream(NopConn(), factory)
    assert stream.receive() is True
    first = stream.msg()
    assert stream.receive() is True
    second = stream.msg()
    assert len(created) == 2
    assert first is created[0]
    assert second is created[1]
    assert first is not second


def test_client_stream_reads_until_eof():
    stream = ClientStream(FakeConn([1, 2, 3]), Message)
    numbers = []
    while stream.receive():
        numbers.append(stream.msg().number)
    assert numbers == [1, 2, 3]
    assert stream.err() is None


def test_client_stream_iteration():
    stream = ClientStream(FakeConn([4, 5]), Message)
    assert [m.number for m in stream] == [4, 5]
    assert stream.err() is None


def test_client_stream_reports_non_eof_error_and_stops():
    failure = RuntimeError("boom")
    conn = FakeConn(fail_with=failure)
    stream = ClientStream(conn, Message)
    assert stream.receive() is False
    assert stream.err() is failure
    assert stream.receive() is False
    assert conn.receive_calls == 1


def test_client_stream_msg_before_receive_creates_message():
    stream = ClientStream(FakeConn(), Message)
    msg = stream.msg()
    assert msg == Message()
    assert stream.msg() is msg


def test_client_stream_initializer_gets_spec_and_message():
    spec = Spec(procedure="/svc/Sum", stream_type=StreamType.CLIENT)
    seen = []

    def init(got_spec, message):
        seen.append(got_spec)
        message.number = 100

    conn = NopConn(spec=spec)
    stream = ClientStream(conn, Message, MaybeInitializer(init))
    assert stream.receive() is True
    assert stream.msg().number == 100
    assert seen == [spec]


def test_client_stream_initializer_failure_ends_stream():
    failure = ValueError("bad schema")

    def init(spec, message):
        raise failure

    conn = FakeConn([1])
    stream = ClientStream(conn, Message, MaybeInitializer(init))
    assert stream.receive() is False
    assert stream.err() is failure
    assert conn.receive_calls == 0


def test_client_stream_delegates_to_conn():
    spec = Spec(procedure="/a/B")
    conn = FakeConn(spec=spec)
    stream = ClientStream(conn, Message)
    assert stream.spec() == spec
    assert stream.peer() == "peer-addr"
    assert stream.request_header() == {"X-Req": ["1"]}
    assert stream.conn() is conn


def test_server_stream_send_and_headers():
    conn = FakeConn()
    stream = ServerStream(conn)
    stream.send(Message(1))
    stream.send(None)
    stream.response_header()["X-Res"] = ["a"]
    stream.response_trailer()["X-Trl"] = ["b"]
    assert conn.sent == [Message(1), None]
    assert conn.res_headers == {"X-Res": ["a"]}
    assert conn.res_trailers == {"X-Trl": ["b"]}
    assert stream.conn() is conn


def test_bidi_stream_receive_and_eof():
    conn = FakeConn([7])
    stream = BidiStream(conn, Message)
    assert stream.receive() == Message(7)
    with pytest.raises(EOFError):
        stream.receive()


def test_bidi_stream_iteration_and_send():
    conn = FakeConn([1, 2, 3])
    stream = BidiStream(conn, Message)
    total = 0
    for msg in stream:
        total += msg.number
        stream.send(Message(total))
    assert conn.sent == [Message(1), Message(3), Message(6)]


def test_bidi_stream_error_propagates():
    conn = FakeConn(fail_with=ConnectionError("reset"))
    stream = BidiStream(conn, Message)
    with pytest.raises(ConnectionError, match="reset"):
        stream.receive()


def test_bidi_stream_initializer_and_delegation():
    spec = Spec(procedure="/svc/CumSum", stream_type=StreamType.BIDI)

    def init(got_spec, message):
        assert got_spec == spec
        message.number = -1

    conn = NopConn(spec=spec)
    stream = BidiStream(conn, Message, MaybeInitializer(init))
    assert stream.receive().number == -1
    assert stream.spec() == spec
    assert stream.peer() == "peer-addr"
    assert stream.request_header() == {"X-Req": ["1"]}
    assert stream.response_header() is conn.res_headers
    assert stream.response_trailer() is conn.res_trailers
    assert stream.conn() is conn