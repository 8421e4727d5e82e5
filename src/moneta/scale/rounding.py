"""Rounding modes and resolution of the effective rounding mode.

There is no implicit default rounding mode. The effective mode is resolved, highest priority
first, from:

1. the thread-scoped override set by `with_rounding` (fast path, `threading.local`),
2. the contextual override set by `bind_rounding` (`contextvars.ContextVar`, follows asyncio tasks
   and `contextvars.copy_context`),
3. nothing: `rounding_mode()` returns None (or the given default).

Operations which must discard precision and resolve no mode fail with `PrecisionLossError`.
"""

from __future__ import annotations

import decimal
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Any, Iterator

from moneta.errors import InvalidArgumentError


class RoundingMode(Enum):
    """Policy for discarding precision."""

    UP = "UP"
    DOWN = "DOWN"
    CEILING = "CEILING"
    FLOOR = "FLOOR"
    HALF_UP = "HALF_UP"
    HALF_DOWN = "HALF_DOWN"
    HALF_EVEN = "HALF_EVEN"
    UNNECESSARY = "UNNECESSARY"

    @property
    def decimal_rounding(self) -> str | None:
        """Matching `decimal` module rounding constant (None for UNNECESSARY)."""
        return _DECIMAL_ROUNDING[self]

    @property
    def allows_rounding(self) -> bool:
        return self is not RoundingMode.UNNECESSARY

    def __str__(self) -> str:
        return self.value


_DECIMAL_ROUNDING: dict[RoundingMode, str | None] = {
    RoundingMode.UP: decimal.ROUND_UP,
    RoundingMode.DOWN: decimal.ROUND_DOWN,
    RoundingMode.CEILING: decimal.ROUND_CEILING,
    RoundingMode.FLOOR: decimal.ROUND_FLOOR,
    RoundingMode.HALF_UP: decimal.ROUND_HALF_UP,
    RoundingMode.HALF_DOWN: decimal.ROUND_HALF_DOWN,
    RoundingMode.HALF_EVEN: decimal.ROUND_HALF_EVEN,
    RoundingMode.UNNECESSARY: None,
}

# Legacy spelling of mode names, as used by the `decimal` module constants
_LEGACY_PREFIX = "ROUND_"


def parse_rounding(token: Any) -> Any:
    """Normalize a rounding mode token.

    Strings are matched case-insensitively, with an optional `ROUND_` prefix and `-` accepted
    in place of `_`; `decimal` module constants (e.g. `decimal.ROUND_HALF_UP`) are therefore
    accepted as well. `RoundingMode` members and None are returned as they are.

    Unrecognized tokens are returned unchanged; they only fail when actually used for rounding
    (see `require_rounding`).
    """
    if token is None or isinstance(token, RoundingMode):
        return token

    if isinstance(token, str):
        name = token.strip().upper().replace("-", "_")
        if name.startswith(_LEGACY_PREFIX):
            name = name[len(_LEGACY_PREFIX):]
        try:
            return RoundingMode[name]
        except KeyError:
            return token

    return token


def require_rounding(token: Any, op: str) -> RoundingMode | None:
    """Parse $token and fail if it is neither None nor a known rounding mode."""
    mode = parse_rounding(token)
    if mode is not None and not isinstance(mode, RoundingMode):
        raise InvalidArgumentError(
            f"Cannot call `{op}` because $rounding_mode ({token!r}) is not a known rounding mode",
            op=op,
            argument="rounding_mode",
            value=token,
        )
    return mode


# region Resolution

_thread_scope = threading.local()
_context_mode: ContextVar[Any] = ContextVar("moneta_rounding_mode", default=None)


def rounding_mode(default: Any = None) -> Any:
    """Return the effective rounding mode, or $default when no override is active.

    The returned value is whatever the active override holds after `parse_rounding`, so an
    unknown token set by a caller is reported as it is.
    """
    mode = getattr(_thread_scope, "mode", None)
    if mode is not None:
        return mode

    mode = _context_mode.get()
    if mode is not None:
        return mode

    return default


def resolve_rounding(mode: Any, op: str) -> RoundingMode | None:
    """Return the explicit $mode if given, else the effective one, validated."""
    if mode is not None:
        return require_rounding(mode, op)
    return require_rounding(rounding_mode(), op)


@contextmanager
def with_rounding(mode: Any) -> Iterator[Any]:
    """Set the thread-scoped rounding mode for the duration of the `with` block.

    The previous mode (including "no mode") is restored on every exit path.

    Example:
        with with_rounding(RoundingMode.HALF_UP):
            price = rescale(Decimal("1.235"), 2)
    """
    parsed = parse_rounding(mode)
    previous = getattr(_thread_scope, "mode", None)
    _thread_scope.mode = parsed
    try:
        yield parsed
    finally:
        _thread_scope.mode = previous


@contextmanager
def bind_rounding(mode: Any) -> Iterator[Any]:
    """Set the contextual rounding mode for the duration of the `with` block.

    Unlike `with_rounding`, the binding is carried into asyncio tasks created inside the block.
    A thread-scoped mode set by `with_rounding` still takes precedence.
    """
    parsed = parse_rounding(mode)
    token = _context_mode.set(parsed)
    try:
        yield parsed
    finally:
        _context_mode.reset(token)


# endregion
