"""Building blocks for Connect, gRPC and gRPC-Web style RPC services.

The package covers headers, idempotency levels, interceptors, procedure paths,
protocol helpers, options, handler-side streams and an in-memory listener.
"""

__version__ = "0.1.0"