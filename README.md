# connectkit

Building blocks for servers and clients that speak the Connect, gRPC and
gRPC-Web RPC protocols over HTTP. The package uses only the standard library.

## Modules

- `connectkit.headers`: header maps are dictionaries from canonical names to
  lists of values. `encode_binary_header` base64-encodes bytes without
  padding. `decode_binary_header` accepts padded or unpadded values and raises
  `ValueError` on bad input. `merge_headers` appends non-empty value lists.
  `merge_non_protocol_headers` does the same but skips headers that the
  protocols reserve (`PROTOCOL_HEADERS`). `get_header`, `set_header` and
  `del_header` work on keys that are already canonical.
- `connectkit.idempotency`: the `IdempotencyLevel` enum (`UNKNOWN`,
  `NO_SIDE_EFFECTS`, `IDEMPOTENT`). `idempotency_level_name` returns a
  display name for any integer, for example `idempotency_7`.
- `connectkit.interceptors`: the `Interceptor` base class, whose wrap methods
  pass their function through unchanged. `UnaryInterceptor` wraps unary
  calls only. `Chain` and `chain_interceptors` compose interceptors so that the
  first one listed is the outermost; `None` entries are dropped.
- `connectkit.procedure`: `extract_proto_path` turns a URL or path into a
  `/package.Service/Method` procedure name.
- `connectkit.protocol`: `canonicalize_content_type`, which lower-cases the
  media type and the charset parameter. `negotiate_compression` returns the
  `(request, response)` compression names and raises
  `UnknownCompressionError` for an unavailable algorithm. `http_to_code` maps
  HTTP statuses to RPC code names. It also has `mapped_method_handlers`,
  `sorted_allow_method_value` and `sorted_accept_post_value`, which work on
  objects with `methods` and `content_types`, and `discard`, which reads
  and drops up to 4 MiB.
- `connectkit.options`: `StreamType`, `Spec`, `MaybeInitializer`,
  `HandlerConfig`, `ClientConfig`, `new_handler_config`, `new_client_config`
  and the `with_*` option constructors. Handler configurations start with the
  `proto`, `json` and `json; charset=utf-8` codecs and gzip. Client
  configurations start with the `proto` codec and gzip. If an option that
  belongs only to one side is applied to the other, it raises `TypeError`.
- `connectkit.streams`: the handler's views of streaming RPCs. These are
  `ClientStream`, which can be iterated and gives a fresh message on each
  receive, `ServerStream`, and `BidiStream`, which can also be iterated until
  `EOFError`. Each one wraps a connection object that you supply.
- `connectkit.memory`: `MemoryListener` hands out connected socket pairs
  through `dial` and `accept`. Once the listener is closed, both raise
  `ListenerClosedError`. The module also provides `ServerConfig`,
  `new_server_config`, `with_cleanup_timeout`, `with_error_log` and
  `with_server_options`.

## Examples

```python
from connectkit.headers import encode_binary_header, decode_binary_header
from connectkit.procedure import extract_proto_path
from connectkit.protocol import canonicalize_content_type

encoded = encode_binary_header(b"\x00\x01binary")
assert decode_binary_header(encoded) == b"\x00\x01binary"

assert extract_proto_path(
    "https://api.example.com/grpc/foo.user.v1.UserService/GetUser"
) == "/foo.user.v1.UserService/GetUser"

assert canonicalize_content_type("application/json; charset=UTF-8") == (
    "application/json; charset=utf-8"
)
```

This example configures a handler:

```python
from connectkit.idempotency import IdempotencyLevel
from connectkit.options import (
    StreamType,
    new_handler_config,
    with_idempotency,
    with_read_max_bytes,
)

config = new_handler_config(
    "/connect.ping.v1.PingService/Ping",
    StreamType.UNARY,
    [with_idempotency(IdempotencyLevel.NO_SIDE_EFFECTS), with_read_max_bytes(1 << 20)],
)
spec = config.new_spec()
assert spec.idempotency_level is IdempotencyLevel.NO_SIDE_EFFECTS
```

## What the package does not do

The package does not include an HTTP server or request handler that serves
RPCs. It has no RPC client, no error writer, and no message codecs or
envelope framing. The configurations only record the codecs and
compressors you register and do not use them. `MemoryListener` only pairs
sockets and does not run a server on them. There is no command-line tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```