"""Interceptors that wrap unary and streaming RPC functions."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

UnaryFunc = Callable[[Any, Any], Any]
StreamingClientFunc = Callable[[Any, Any], Any]
StreamingHandlerFunc = Callable[[Any, Any], Any]


class Interceptor:
    """Base interceptor: every wrapping method passes the function through.

    Subclasses override the methods for the kinds of RPC they care about.
    """

    def wrap_unary(self, next_func: UnaryFunc) -> UnaryFunc:
        return next_func

    def wrap_streaming_client(self, next_func: StreamingClientFunc) -> StreamingClientFunc:
        return next_func

    def wrap_streaming_handler(
        self, next_func: StreamingHandlerFunc
    ) -> StreamingHandlerFunc:
        return next_func


class UnaryInterceptor(Interceptor):
    """An interceptor built from a function that wraps unary RPCs only."""

    def __init__(self, func: Callable[[UnaryFunc], UnaryFunc]) -> None:
        self._func = func

    def wrap_unary(self, next_func: UnaryFunc) -> UnaryFunc:
        return self._func(next_func)

    def wrap_streaming_client(self, next_func: StreamingClientFunc) -> StreamingClientFunc:
        return next_func

    def wrap_streaming_handler(
        self, next_func: StreamingHandlerFunc
    ) -> StreamingHandlerFunc:
        return next_func


class Chain(Interceptor):
    """Several interceptors composed so that the first one listed acts first."""

    def __init__(self, interceptors: Iterable[Interceptor | None]) -> None:
        # Stored reversed so each wrap step can simply iterate in order.
        self.interceptors: list[Interceptor] = [
            interceptor for interceptor in reversed(list(interceptors)) if interceptor is not None
        ]

    def wrap_unary(self, next_func: UnaryFunc) -> UnaryFunc:
        for interceptor in self.interceptors:
            next_func = interceptor.wrap_unary(next_func)
        return next_func

    def wrap_streaming_client(self, next_func: StreamingClientFunc) -> StreamingClientFunc:
        for interceptor in self.interceptors:
            next_func = interceptor.wrap_streaming_client(next_func)
        return next_func

    def wrap_streaming_handler(
        self, next_func: StreamingHandlerFunc
    ) -> StreamingHandlerFunc:
        for interceptor in self.interceptors:
            next_func = interceptor.wrap_streaming_handler(next_func)
        return next_func


def chain_interceptors(interceptors: Iterable[Interceptor | None]) -> Chain:
    """Compose ``interceptors`` into one; ``None`` entries are dropped."""
    return Chain(interceptors)