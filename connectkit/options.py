"""Configuration for clients and handlers, built up from composable options.

An option is applied to a :class:`ClientConfig`, a :class:`HandlerConfig`, or
both. Options that only make sense on one side raise ``TypeError`` when
applied to the other.
"""

from __future__ import annotations

import enum
import zlib
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from connectkit.idempotency import IdempotencyLevel
from connectkit.interceptors import Chain, Interceptor
from connectkit.procedure import extract_proto_path
from connectkit.protocol import PROTOCOL_CONNECT, PROTOCOL_GRPC, PROTOCOL_GRPC_WEB

COMPRESSION_GZIP = "gzip"
CODEC_NAME_PROTO = "proto"
CODEC_NAME_JSON = "json"
CODEC_NAME_JSON_CHARSET_UTF8 = "json; charset=utf-8"

Initializer = Callable[["Spec", Any], None]


class StreamType(enum.IntFlag):
    """The kind of RPC: a bit for client streaming and one for server streaming."""

    UNARY = 0
    CLIENT = 1
    SERVER = 2
    BIDI = CLIENT | SERVER


@dataclass(frozen=True)
class Spec:
    """Static description of an RPC."""

    procedure: str = ""
    schema: Any = None
    stream_type: StreamType = StreamType.UNARY
    idempotency_level: IdempotencyLevel = IdempotencyLevel.UNKNOWN
    is_client: bool = False


@dataclass(frozen=True)
class MaybeInitializer:
    """An optional message initializer; calling it without one does nothing."""

    initializer: Initializer | None = None

    def maybe(self, spec: Spec, message: Any) -> None:
        """Run the initializer on ``message`` if one is configured."""
        if self.initializer is not None:
            self.initializer(spec, message)


@dataclass(frozen=True)
class _BuiltinCodec:
    """Reference to one of the built-in codecs, identified by name."""

    name: str


@dataclass(frozen=True)
class _CompressionPool:
    new_decompressor: Callable[[], Any] | None
    new_compressor: Callable[[], Any] | None


def _new_compression_pool(
    new_decompressor: Callable[[], Any] | None,
    new_compressor: Callable[[], Any] | None,
) -> _CompressionPool | None:
    if new_decompressor is None and new_compressor is None:
        return None
    return _CompressionPool(new_decompressor, new_compressor)


@dataclass
class HandlerConfig:
    """Everything that configures a handler for one procedure."""

    procedure: str = ""
    stream_type: StreamType = StreamType.UNARY
    compression_pools: dict[str, _CompressionPool] = field(default_factory=dict)
    compression_names: list[str] = field(default_factory=list)
    codecs: dict[str, Any] = field(default_factory=dict)
    compress_min_bytes: int = 0
    interceptor: Interceptor | None = None
    schema: Any = None
    initializer: MaybeInitializer = field(default_factory=MaybeInitializer)
    require_connect_protocol_header: bool = False
    idempotency_level: IdempotencyLevel = IdempotencyLevel.UNKNOWN
    read_max_bytes: int = 0
    send_max_bytes: int = 0

    def new_spec(self) -> Spec:
        """Return the :class:`Spec` this configuration describes."""
        return Spec(
            procedure=self.procedure,
            schema=self.schema,
            stream_type=self.stream_type,
            idempotency_level=self.idempotency_level,
        )


@dataclass
class ClientConfig:
    """Everything that configures a client."""

    protocol: str = PROTOCOL_CONNECT
    codec: Any = None
    compression_pools: dict[str, _CompressionPool] = field(default_factory=dict)
    compression_names: list[str] = field(default_factory=list)
    request_compression_name: str = ""
    compress_min_bytes: int = 0
    interceptor: Interceptor | None = None
    schema: Any = None
    initializer: MaybeInitializer = field(default_factory=MaybeInitializer)
    idempotency_level: IdempotencyLevel = IdempotencyLevel.UNKNOWN
    read_max_bytes: int = 0
    send_max_bytes: int = 0
    enable_get: bool = False
    get_url_max_bytes: int = 0
    get_use_fallback: bool = False


@dataclass(frozen=True)
class _Option:
    """An option with a client side, a handler side, or both."""

    kind: str
    client: Callable[[ClientConfig], None] | None = None
    handler: Callable[[HandlerConfig], None] | None = None

    def apply_to_client(self, config: ClientConfig) -> None:
        if self.client is None:
            raise TypeError(f"{self.kind} cannot be applied to a client")
        self.client(config)

    def apply_to_handler(self, config: HandlerConfig) -> None:
        if self.handler is None:
            raise TypeError(f"{self.kind} cannot be applied to a handler")
        self.handler(config)


def _both(kind: str, apply: Callable[[Any], None]) -> _Option:
    return _Option(kind, client=apply, handler=apply)


def _compression_option(
    kind: str,
    name: str,
    new_decompressor: Callable[[], Any] | None,
    new_compressor: Callable[[], Any] | None,
) -> _Option:
    pool = _new_compression_pool(new_decompressor, new_compressor)

    def apply(config: Any) -> None:
        if not name:
            return
        if pool is None:
            config.compression_pools.pop(name, None)
            config.compression_names = [n for n in config.compression_names if n != name]
            return
        config.compression_pools[name] = pool
        config.compression_names = [*config.compression_names, name]

    return _both(kind, apply)


def _gzip_option() -> _Option:
    return _compression_option(
        "gzip",
        COMPRESSION_GZIP,
        lambda: zlib.decompressobj(16 + zlib.MAX_WBITS),
        lambda: zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, 16 + zlib.MAX_WBITS),
    )


def new_handler_config(
    procedure: str, stream_type: StreamType, options: Iterable[Any]
) -> HandlerConfig:
    """Build a handler configuration with the defaults, then apply ``options``."""
    config = HandlerConfig(procedure=extract_proto_path(procedure), stream_type=stream_type)
    with_codec(_BuiltinCodec(CODEC_NAME_PROTO)).apply_to_handler(config)
    with_codec(_BuiltinCodec(CODEC_NAME_JSON)).apply_to_handler(config)
    with_codec(_BuiltinCodec(CODEC_NAME_JSON_CHARSET_UTF8)).apply_to_handler(config)
    _gzip_option().apply_to_handler(config)
    for option in options:
        option.apply_to_handler(config)
    return config


def new_client_config(options: Iterable[Any]) -> ClientConfig:
    """Build a client configuration with the defaults, then apply ``options``."""
    config = ClientConfig()
    with_codec(_BuiltinCodec(CODEC_NAME_PROTO)).apply_to_client(config)
    _gzip_option().apply_to_client(config)
    for option in options:
        option.apply_to_client(config)
    return config


def with_accept_compression(
    name: str,
    new_decompressor: Callable[[], Any] | None,
    new_compressor: Callable[[], Any] | None,
) -> _Option:
    """Let a client accept responses compressed with ``name``.

    Passing ``None`` for both constructors removes the algorithm; an empty
    name does nothing.
    """
    option = _compression_option("accept compression", name, new_decompressor, new_compressor)
    return _Option(option.kind, client=option.client)


def with_client_options(*options: Any) -> _Option:
    """Compose several client options into one."""

    def apply(config: ClientConfig) -> None:
        for option in options:
            option.apply_to_client(config)

    return _Option("client options", client=apply)


def _grpc_option(protocol: str) -> _Option:
    def apply(config: ClientConfig) -> None:
        config.protocol = protocol

    return _Option("protocol", client=apply)


def with_grpc() -> _Option:
    """Make a client use the gRPC protocol."""
    return _grpc_option(PROTOCOL_GRPC)


def with_grpc_web() -> _Option:
    """Make a client use the gRPC-Web protocol."""
    return _grpc_option(PROTOCOL_GRPC_WEB)


def with_send_compression(name: str) -> _Option:
    """Make a client compress requests with ``name``."""

    def apply(config: ClientConfig) -> None:
        config.request_compression_name = name

    return _Option("send compression", client=apply)


def with_send_gzip() -> _Option:
    """Make a client gzip its requests."""
    return with_send_compression(COMPRESSION_GZIP)


def with_compression(
    name: str,
    new_decompressor: Callable[[], Any] | None,
    new_compressor: Callable[[], Any] | None,
) -> _Option:
    """Let a handler use the compression algorithm ``name``.

    Passing ``None`` for both constructors removes the algorithm; an empty
    name does nothing.
    """
    option = _compression_option("compression", name, new_decompressor, new_compressor)
    return _Option(option.kind, handler=option.handler)


def with_handler_options(*options: Any) -> _Option:
    """Compose several handler options into one."""

    def apply(config: HandlerConfig) -> None:
        for option in options:
            option.apply_to_handler(config)

    return _Option("handler options", handler=apply)


def with_require_connect_protocol_header() -> _Option:
    """Require the Connect protocol version header on unary Connect requests."""

    def apply(config: HandlerConfig) -> None:
        config.require_connect_protocol_header = True

    return _Option("require connect protocol header", handler=apply)


def with_conditional_handler_options(
    conditional: Callable[[Spec], Iterable[Any] | None],
) -> _Option:
    """Apply the handler options that ``conditional`` picks for the procedure's spec."""

    def apply(config: HandlerConfig) -> None:
        spec = config.new_spec()
        if not spec.procedure:
            return
        for option in conditional(spec) or ():
            option.apply_to_handler(config)

    return _Option("conditional handler options", handler=apply)


def with_schema(schema: Any) -> _Option:
    """Attach a schema, exposed as :attr:`Spec.schema`."""

    def apply(config: Any) -> None:
        config.schema = schema

    return _both("schema", apply)


def with_request_initializer(initializer: Initializer) -> _Option:
    """Initialize each request message a handler receives."""

    def apply(config: HandlerConfig) -> None:
        config.initializer = MaybeInitializer(initializer)

    return _Option("request initializer", handler=apply)


def with_response_initializer(initializer: Initializer) -> _Option:
    """Initialize each response message a client receives."""

    def apply(config: ClientConfig) -> None:
        config.initializer = MaybeInitializer(initializer)

    return _Option("response initializer", client=apply)


def with_codec(codec: Any) -> _Option:
    """Register a codec, an object with a ``name`` attribute.

    Handlers keep every codec by name; a client keeps only the last one.
    ``None`` or a codec with an empty name does nothing.
    """

    def usable() -> bool:
        return codec is not None and bool(getattr(codec, "name", ""))

    def apply_client(config: ClientConfig) -> None:
        if usable():
            config.codec = codec

    def apply_handler(config: HandlerConfig) -> None:
        if usable():
            config.codecs[codec.name] = codec

    return _Option("codec", client=apply_client, handler=apply_handler)


def with_compress_min_bytes(min_bytes: int) -> _Option:
    """Leave messages smaller than ``min_bytes`` uncompressed."""

    def apply(config: Any) -> None:
        config.compress_min_bytes = min_bytes

    return _both("compress min bytes", apply)


def with_read_max_bytes(max_bytes: int) -> _Option:
    """Limit the size of each received message; zero means no limit."""

    def apply(config: Any) -> None:
        config.read_max_bytes = max_bytes

    return _both("read max bytes", apply)


def with_send_max_bytes(max_bytes: int) -> _Option:
    """Limit the size of each sent message; zero means no limit."""

    def apply(config: Any) -> None:
        config.send_max_bytes = max_bytes

    return _both("send max bytes", apply)


def with_idempotency(level: IdempotencyLevel) -> _Option:
    """Declare how idempotent the procedure is."""

    def apply(config: Any) -> None:
        config.idempotency_level = level

    return _both("idempotency", apply)


def with_http_get() -> _Option:
    """Let a Connect client use HTTP GET for side-effect-free unary calls."""

    def apply(config: ClientConfig) -> None:
        config.enable_get = True

    return _Option("http get", client=apply)


def with_http_get_max_url_size(size: int, fallback: bool) -> _Option:
    """Cap GET URL length; fall back to POST beyond it if ``fallback`` is set."""

    def apply(config: ClientConfig) -> None:
        config.get_url_max_bytes = size
        config.get_use_fallback = fallback

    return _Option("http get max url size", client=apply)


def _chain_with(
    current: Interceptor | None, interceptors: tuple[Interceptor, ...]
) -> Interceptor | None:
    if not interceptors:
        return current
    if current is None and len(interceptors) == 1:
        return interceptors[0]
    if current is None:
        return Chain(interceptors)
    return Chain([current, *interceptors])


def with_interceptors(*interceptors: Interceptor) -> _Option:
    """Add interceptors; the first one given is the outermost layer.

    Repeated uses accumulate in order.
    """

    def apply(config: Any) -> None:
        config.interceptor = _chain_with(config.interceptor, interceptors)

    return _both("interceptors", apply)


def with_options(*options: Any) -> _Option:
    """Compose several options, each applicable to clients and handlers, into one."""

    def apply_client(config: ClientConfig) -> None:
        for option in options:
            option.apply_to_client(config)

    def apply_handler(config: HandlerConfig) -> None:
        for option in options:
            option.apply_to_handler(config)

    return _Option("options", client=apply_client, handler=apply_handler)