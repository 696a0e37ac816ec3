"""Idempotency levels that an RPC procedure may declare."""

from __future__ import annotations

import enum


class IdempotencyLevel(enum.IntEnum):
    """How idempotent a procedure is; values match the protobuf enumeration."""

    UNKNOWN = 0
    NO_SIDE_EFFECTS = 1
    IDEMPOTENT = 2

    def __str__(self) -> str:
        return _NAMES[self]


_NAMES = {
    IdempotencyLevel.UNKNOWN: "idempotency_unknown",
    IdempotencyLevel.NO_SIDE_EFFECTS: "no_side_effects",
    IdempotencyLevel.IDEMPOTENT: "idempotent",
}


def idempotency_level_name(value: int) -> str:
    """Return the display name for any idempotency level, known or not."""
    try:
        return str(IdempotencyLevel(value))
    except ValueError:
        return f"idempotency_{int(value)}"