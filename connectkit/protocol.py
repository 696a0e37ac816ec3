"""Protocol-agnostic helpers shared by the Connect, gRPC and gRPC-Web protocols."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Sequence
from typing import Any, BinaryIO

PROTOCOL_CONNECT = "connect"
PROTOCOL_GRPC = "grpc"
PROTOCOL_GRPC_WEB = "grpcweb"

COMPRESSION_IDENTITY = "identity"
DISCARD_LIMIT = 4 * 1024 * 1024  # 4 MiB

_TSPECIALS = frozenset('()<>@,;:\\"/[]?=')
_ACCEPT_SPLIT = re.compile(r"[, ]")
_DISCARD_CHUNK = 64 * 1024


class UnknownCompressionError(ValueError):
    """The peer used a compression algorithm that is not available."""

    code = "unimplemented"

    def __init__(self, name: str, supported: Sequence[str]) -> None:
        self.name = name
        self.supported = list(supported)
        super().__init__(
            f"unknown compression {json.dumps(name)}: "
            f"supported encodings are {','.join(self.supported)}"
        )


def negotiate_compression(
    available: Sequence[str], sent: str, accept: str
) -> tuple[str, str]:
    """Choose the request and response compression names.

    ``available`` lists the registered compression names, ``sent`` is the
    algorithm the peer used and ``accept`` the comma- or space-separated
    algorithms it accepts. Raises :class:`UnknownCompressionError` when the
    peer sent something other than identity that is not available.
    """
    request_compression = COMPRESSION_IDENTITY
    if sent and sent != COMPRESSION_IDENTITY:
        if sent not in available:
            raise UnknownCompressionError(sent, available)
        request_compression = sent
    response_compression = request_compression
    if response_compression == COMPRESSION_IDENTITY and accept:
        for name in filter(None, _ACCEPT_SPLIT.split(accept)):
            if name in available:
                response_compression = name
                break
    return request_compression, response_compression


def http_to_code(http_code: int) -> str:
    """Map an HTTP status to an RPC code name, following the gRPC mapping.

    This is not the inverse of the RPC-to-HTTP mapping.
    """
    return _HTTP_TO_CODE.get(http_code, "unknown")


_HTTP_TO_CODE = {
    400: "internal",
    401: "unauthenticated",
    403: "permission_denied",
    404: "unimplemented",
    429: "unavailable",
    502: "unavailable",
    503: "unavailable",
    504: "unavailable",
}


def mapped_method_handlers(handlers: Iterable[Any]) -> dict[str, list[Any]]:
    """Group protocol handlers by each HTTP method they accept.

    Each handler exposes ``methods``, a collection of HTTP method names.
    """
    by_method: dict[str, list[Any]] = {}
    for handler in handlers:
        for method in handler.methods:
            by_method.setdefault(method, []).append(handler)
    return by_method


def sorted_accept_post_value(handlers: Iterable[Any]) -> str:
    """Return the sorted, de-duplicated ``content_types`` of all handlers."""
    content_types = {ct for handler in handlers for ct in handler.content_types}
    return ", ".join(sorted(content_types))


def sorted_allow_method_value(handlers: Iterable[Any]) -> str:
    """Return the sorted, de-duplicated ``methods`` of all handlers."""
    methods = {method for handler in handlers for method in handler.methods}
    return ", ".join(sorted(methods))


def discard(reader: BinaryIO) -> int:
    """Read and throw away at most :data:`DISCARD_LIMIT` bytes; return the count."""
    total = 0
    while total < DISCARD_LIMIT:
        chunk = reader.read(min(_DISCARD_CHUNK, DISCARD_LIMIT - total))
        if not chunk:
            break
        total += len(chunk)
    return total


def canonicalize_content_type(content_type: str) -> str:
    """Return a canonical form of a Content-Type value.

    Simple lower-case values pass through untouched. Otherwise the type is
    parsed and re-formatted, with the charset parameter lower-cased; values
    that cannot be parsed are returned unchanged.
    """
    slashes = 0
    for char in content_type:
        if "a" <= char <= "z" or char in ".+-":
            continue
        if char == "/":
            slashes += 1
            continue
        return _canonicalize_slow(content_type)
    if slashes == 1:
        return content_type
    return _canonicalize_slow(content_type)


def _canonicalize_slow(content_type: str) -> str:
    try:
        base, params = _parse_media_type(content_type)
    except ValueError:
        return content_type
    if "charset" in params:
        params["charset"] = params["charset"].lower()
    return _format_media_type(base, params)


def _is_token_char(char: str) -> bool:
    return " " < char < "\x7f" and char not in _TSPECIALS


def _is_token(value: str) -> bool:
    return bool(value) and all(_is_token_char(char) for char in value)


def _consume_token(value: str) -> tuple[str, str]:
    end = 0
    while end < len(value) and _is_token_char(value[end]):
        end += 1
    return value[:end], value[end:]


def _consume_value(value: str) -> tuple[str, str]:
    if not value:
        return "", value
    if value[0] != '"':
        return _consume_token(value)
    out: list[str] = []
    index = 1
    while index < len(value):
        char = value[index]
        if char == '"':
            return "".join(out), value[index + 1 :]
        if char == "\\" and index + 1 < len(value) and value[index + 1] in _TSPECIALS:
            out.append(value[index + 1])
            index += 2
            continue
        if char in "\r\n":
            return "", value
        out.append(char)
        index += 1
    return "", value


def _consume_param(value: str) -> tuple[str, str, str]:
    rest = value.lstrip()
    if not rest.startswith(";"):
        return "", "", value
    rest = rest[1:].lstrip()
    key, rest = _consume_token(rest)
    key = key.lower()
    if not key:
        return "", "", value
    rest = rest.lstrip()
    if not rest.startswith("="):
        return "", "", value
    rest = rest[1:].lstrip()
    param_value, rest2 = _consume_value(rest)
    if not param_value and rest2 == rest:
        return "", "", value
    return key, param_value, rest2


def _check_media_type(media_type: str) -> None:
    major, rest = _consume_token(media_type)
    if not major:
        raise ValueError("no media type")
    if not rest:
        return
    if not rest.startswith("/"):
        raise ValueError("expected slash after first token")
    sub, rest = _consume_token(rest[1:])
    if not sub:
        raise ValueError("expected token after slash")
    if rest:
        raise ValueError("unexpected content after media subtype")


def _parse_media_type(value: str) -> tuple[str, dict[str, str]]:
    index = value.find(";")
    if index == -1:
        index = len(value)
    media_type = value[:index].lower().strip()
    _check_media_type(media_type)
    params: dict[str, str] = {}
    rest = value[index:]
    while rest:
        rest = rest.lstrip()
        if not rest:
            break
        key, param_value, remainder = _consume_param(rest)
        if not key:
            if remainder.strip() == ";":
                break
            raise ValueError("invalid media parameter")
        if key in params:
            raise ValueError("duplicate parameter name")
        params[key] = param_value
        rest = remainder
    return media_type, params


def _needs_encoding(value: str) -> bool:
    return any((char < " " or char > "~") and char != "\t" for char in value)


def _format_media_type(media_type: str, params: dict[str, str]) -> str:
    major, slash, sub = media_type.partition("/")
    if not slash:
        if not _is_token(media_type):
            return ""
        parts = [media_type.lower()]
    else:
        if not _is_token(major) or not _is_token(sub):
            return ""
        parts = [major.lower(), "/", sub.lower()]
    for attribute in sorted(params):
        value = params[attribute]
        if not _is_token(attribute):
            return ""
        parts.append("; ")
        parts.append(attribute.lower())
        if _needs_encoding(value):
            parts.append("*=utf-8''")
            for byte in value.encode("utf-8"):
                char = chr(byte)
                if byte <= 0x20 or byte >= 0x7F or char in "*'%" or char in _TSPECIALS:
                    parts.append(f"%{byte:02X}")
                else:
                    parts.append(char)
        elif _is_token(value):
            parts.append("=")
            parts.append(value)
        else:
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'="{escaped}"')
    return "".join(parts)