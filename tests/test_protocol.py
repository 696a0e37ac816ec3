import io
from dataclasses import dataclass, field

import pytest

from connectkit.protocol import (
    DISCARD_LIMIT,
    UnknownCompressionError,
    canonicalize_content_type,
    discard,
    http_to_code,
    mapped_method_handlers,
    negotiate_compression,
    sorted_accept_post_value,
    sorted_allow_method_value,
)


@pytest.mark.parametrize(
    ("arg", "want"),
    [
        ("APPLICATION/json", "application/json"),
        ("application/json; charset=UTF-8", "application/json; charset=utf-8"),
        ("multipart/form-data; boundary=fooBar", "multipart/form-data; boundary=fooBar"),
        ("APPLICATION/json;  ", "application/json"),
        ("application/json;Charset=Utf-8", "application/json; charset=utf-8"),
        ("application/json", "application/json"),
        ("application/grpc+proto", "application/grpc+proto"),
    ],
)
def test_canonicalize_content_type(arg, want):
    assert canonicalize_content_type(arg) == want


def test_canonicalize_quoted_value_kept_quoted():
    assert canonicalize_content_type('text/plain; title="a b"') == 'text/plain; title="a b"'


def test_canonicalize_sorts_parameters():
    assert canonicalize_content_type("text/plain; b=2; a=1") == "text/plain; a=1; b=2"


@pytest.mark.parametrize("bad", ["a/b/c", "text/", "text/plain; a=1; a=2", "text/plain; =x"])
def test_canonicalize_invalid_returns_input(bad):
    assert canonicalize_content_type(bad) == bad


def test_negotiate_defaults_to_identity():
    assert negotiate_compression(["gzip"], "", "") == ("identity", "identity")


def test_negotiate_uses_sent_compression_for_both():
    assert negotiate_compression(["gzip"], "gzip", "br") == ("gzip", "gzip")


def test_negotiate_picks_first_accepted():
    available = ["gzip", "br"]
    assert negotiate_compression(available, "identity", "zstd, br,gzip") == ("identity", "br")


def test_negotiate_no_mutual_accept():
    assert negotiate_compression(["gzip"], "", "br zstd") == ("identity", "identity")


def test_negotiate_unknown_compression():
    with pytest.raises(UnknownCompressionError) as info:
        negotiate_compression(["gzip"], "invalid", "")
    assert str(info.value) == 'unknown compression "invalid": supported encodings are gzip'
    assert info.value.code == "unimplemented"
    assert info.value.name == "invalid"


@pytest.mark.parametrize(
    ("status", "code"),
    [
        (400, "internal"),
        (401, "unauthenticated"),
        (403, "permission_denied"),
        (404, "unimplemented"),
        (429, "unavailable"),
        (502, "unavailable"),
        (503, "unavailable"),
        (504, "unavailable"),
        (500, "unknown"),
        (200, "unknown"),
    ],
)
def test_http_to_code(status, code):
    assert http_to_code(status) == code


@dataclass
class FakeHandler:
    name: str
    methods: set = field(default_factory=set)
    content_types: set = field(default_factory=set)


def _handlers():
    connect = FakeHandler(
        "connect",
        {"POST", "GET"},
        {"application/json", "application/json; charset=utf-8", "application/proto"},
    )
    grpc = FakeHandler(
        "grpc",
        {"POST"},
        {"application/grpc", "application/grpc+json", "application/grpc+proto"},
    )
    grpc_web = FakeHandler(
        "grpcweb",
        {"POST"},
        {"application/grpc-web", "application/grpc-web+proto", "application/grpc+json"},
    )
    return [connect, grpc, grpc_web]


def test_mapped_method_handlers():
    handlers = _handlers()
    mapped = mapped_method_handlers(handlers)
    assert [h.name for h in mapped["POST"]] == ["connect", "grpc", "grpcweb"]
    assert [h.name for h in mapped["GET"]] == ["connect"]
    assert set(mapped) == {"POST", "GET"}


def test_sorted_allow_method_value():
    assert sorted_allow_method_value(_handlers()) == "GET, POST"
    assert sorted_allow_method_value(_handlers()[1:]) == "POST"


def test_sorted_accept_post_value():
    assert sorted_accept_post_value(_handlers()) == ", ".join(
        [
            "application/grpc",
            "application/grpc+json",
            "application/grpc+proto",
            "application/grpc-web",
            "application/grpc-web+proto",
            "application/json",
            "application/json; charset=utf-8",
            "application/proto",
        ]
    )


def test_discard_small_reader():
    reader = io.BytesIO(b"x" * 1000)
    assert discard(reader) == 1000
    assert reader.read() == b""


def test_discard_stops_at_limit():
    reader = io.BytesIO(b"y" * (DISCARD_LIMIT + 10))
    assert discard(reader) == DISCARD_LIMIT
    assert reader.read() == b"y" * 10