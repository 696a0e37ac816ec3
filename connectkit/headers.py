"""Helpers for HTTP header maps and binary header values.

Header maps are plain dictionaries from canonical header names to lists of
values, mirroring how multi-valued HTTP headers are carried on the wire.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping, MutableMapping

Headers = MutableMapping[str, list[str]]

HEADER_CONTENT_TYPE = "Content-Type"
HEADER_CONTENT_ENCODING = "Content-Encoding"
HEADER_CONTENT_LENGTH = "Content-Length"
HEADER_HOST = "Host"
HEADER_USER_AGENT = "User-Agent"
HEADER_TRAILER = "Trailer"
HEADER_DATE = "Date"

CONNECT_UNARY_HEADER_ACCEPT_COMPRESSION = "Accept-Encoding"
CONNECT_UNARY_TRAILER_PREFIX = "Trailer-"
CONNECT_STREAMING_HEADER_COMPRESSION = "Connect-Content-Encoding"
CONNECT_STREAMING_HEADER_ACCEPT_COMPRESSION = "Connect-Accept-Encoding"
CONNECT_HEADER_TIMEOUT = "Connect-Timeout-Ms"
CONNECT_HEADER_PROTOCOL_VERSION = "Connect-Protocol-Version"

GRPC_HEADER_COMPRESSION = "Grpc-Encoding"
GRPC_HEADER_ACCEPT_COMPRESSION = "Grpc-Accept-Encoding"
GRPC_HEADER_TIMEOUT = "Grpc-Timeout"
GRPC_HEADER_STATUS = "Grpc-Status"
GRPC_HEADER_MESSAGE = "Grpc-Message"
GRPC_HEADER_DETAILS = "Grpc-Status-Details-Bin"

PROTOCOL_HEADERS: frozenset[str] = frozenset(
    {
        HEADER_CONTENT_TYPE,
        HEADER_CONTENT_LENGTH,
        HEADER_CONTENT_ENCODING,
        HEADER_HOST,
        HEADER_USER_AGENT,
        HEADER_TRAILER,
        HEADER_DATE,
        CONNECT_UNARY_HEADER_ACCEPT_COMPRESSION,
        CONNECT_UNARY_TRAILER_PREFIX,
        CONNECT_STREAMING_HEADER_COMPRESSION,
        CONNECT_STREAMING_HEADER_ACCEPT_COMPRESSION,
        CONNECT_HEADER_TIMEOUT,
        CONNECT_HEADER_PROTOCOL_VERSION,
        GRPC_HEADER_COMPRESSION,
        GRPC_HEADER_ACCEPT_COMPRESSION,
        GRPC_HEADER_TIMEOUT,
        GRPC_HEADER_STATUS,
        GRPC_HEADER_MESSAGE,
        GRPC_HEADER_DETAILS,
    }
)


def encode_binary_header(data: bytes) -> str:
    """Base64-encode ``data`` for a "-Bin" header, always without padding."""
    return base64.b64encode(bytes(data)).decode("ascii").rstrip("=")


def decode_binary_header(data: str) -> bytes:
    """Decode a padded or unpadded base64 header value.

    Raises ``ValueError`` when the value is not valid base64.
    """
    remainder = len(data) % 4
    if remainder:
        # Definitely unpadded: padding characters are not allowed here.
        if "=" in data or remainder == 1:
            raise ValueError(f"illegal base64 data in header value {data!r}")
        data = data + "=" * (4 - remainder)
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"illegal base64 data in header value {data!r}") from exc


def merge_headers(into: Headers, source: Mapping[str, list[str]]) -> None:
    """Append every non-empty value list of ``source`` to ``into``."""
    for key, values in source.items():
        if not values:
            # Trailer entries announced but never filled in are skipped.
            continue
        into[key] = [*into.get(key, []), *values]


def merge_non_protocol_headers(into: Headers, source: Mapping[str, list[str]]) -> None:
    """Like :func:`merge_headers`, but leave out headers reserved by the protocols."""
    for key, values in source.items():
        if not values or key in PROTOCOL_HEADERS:
            continue
        into[key] = [*into.get(key, []), *values]


def get_header(headers: Mapping[str, list[str]] | None, key: str) -> str:
    """Return the first value for an already-canonical ``key``, or ``""``."""
    if headers is None:
        return ""
    values = headers.get(key)
    if not values:
        return ""
    return values[0]


def set_header(headers: Headers, key: str, value: str) -> None:
    """Replace all values for an already-canonical ``key`` with ``value``."""
    headers[key] = [value]


def del_header(headers: Headers, key: str) -> None:
    """Remove an already-canonical ``key``; missing keys are ignored."""
    headers.pop(key, None)