"""Process-wide current registry and scoped registry overrides.

Resolution of the registry used by read operations, highest priority first:

1. an explicit `Registry` argument,
2. the thread-scoped override set by `with_registry`,
3. the contextual override set by `bind_registry` (`contextvars.ContextVar`),
4. the process-wide current registry (`state()`), seeded lazily by `default_registry()`.

`None` and `True` both mean "use whichever default is active".

The current registry is replaced as a whole. Readers never lock and always see a complete
snapshot; writers going through the `*_global` functions are serialized by a lock, so read-update-
swap cycles made through them never lose updates.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterable, Iterator, Mapping

from moneta.domain.currency import Currency
from moneta.domain.currency_registry import default_registry
from moneta.domain.registry import Registry
from moneta.errors import InvalidArgumentError

logger: logging.Logger = logging.getLogger(__name__)

# Module-level state: current registry and the lock serializing its writers
_global_registry: Registry | None = None
_global_lock = threading.Lock()

_thread_scope = threading.local()
_context_registry: ContextVar[Registry | None] = ContextVar("moneta_registry", default=None)


# region Global state


def state() -> Registry:
    """Return the process-wide current registry, seeding it on first use."""
    global _global_registry
    registry = _global_registry
    if registry is not None:
        return registry

    with _global_lock:
        if _global_registry is None:
            _global_registry = default_registry()
            logger.debug(f"Seeded global registry, version '{_global_registry.version}' with {len(_global_registry)} currencies")
        return _global_registry


def set_state(registry: Registry) -> Registry:
    """Replace the process-wide current registry with $registry and return it."""
    # Raise: only Registry instances can become the current registry
    if not isinstance(registry, Registry):
        raise InvalidArgumentError(f"$registry must be a Registry instance, but provided value is: {registry!r}", op="set_state", argument="registry", value=registry)

    global _global_registry
    with _global_lock:
        _global_registry = registry
    logger.debug(f"Global registry replaced, version '{registry.version}'")
    return registry


def reset_state() -> None:
    """Drop the current registry; the next `state()` call seeds it again."""
    global _global_registry
    with _global_lock:
        _global_registry = None


def update_global(fn: Callable[..., Registry], *args, **kwargs) -> Registry:
    """Swap the current registry for `fn(current, *args, **kwargs)` and return the result.

    Writers are serialized, so two concurrent updates are both applied.

    Example:
        update_global(Registry.derive, "kind", "virtual/stable", "virtual")
    """
    global _global_registry
    current = state()

    with _global_lock:
        current = _global_registry if _global_registry is not None else current
        updated = fn(current, *args, **kwargs)
        # Raise: the update function must produce a registry
        if not isinstance(updated, Registry):
            raise InvalidArgumentError(f"Cannot call `update_global` because $fn returned {updated!r} instead of a Registry", op="update_global", argument="fn", value=fn)
        _global_registry = updated

    logger.debug(f"Global registry updated by {getattr(fn, '__name__', fn)}, version '{updated.version}'")
    return updated


def register_global(
    currency: Currency,
    countries: Iterable[str] | str | None = None,
    localized: Mapping[str, Mapping[str, str]] | None = None,
    overwrite: bool = False,
) -> Registry:
    return update_global(Registry.register, currency, countries, localized, overwrite)


def unregister_global(currency_id: str) -> Registry:
    return update_global(Registry.unregister, currency_id)


def set_traits_global(currency_id: str, traits: Iterable[str] | str | None) -> Registry:
    return update_global(Registry.set_traits, currency_id, traits)


def add_traits_global(currency_id: str, traits: Iterable[str] | str) -> Registry:
    return update_global(Registry.add_traits, currency_id, traits)


def remove_traits_global(currency_id: str, traits: Iterable[str] | str) -> Registry:
    return update_global(Registry.remove_traits, currency_id, traits)


def derive_global(axis: str, child: str, parent: str) -> Registry:
    return update_global(Registry.derive, axis, child, parent)


# endregion

# region Scoped overrides


@contextmanager
def with_registry(registry: Registry) -> Iterator[Registry]:
    """Use $registry as the default registry of this thread for the duration of the block."""
    # Raise: scoped registry must be a Registry instance
    if not isinstance(registry, Registry):
        raise InvalidArgumentError(f"$registry must be a Registry instance, but provided value is: {registry!r}", op="with_registry", argument="registry", value=registry)

    previous = getattr(_thread_scope, "registry", None)
    _thread_scope.registry = registry
    try:
        yield registry
    finally:
        _thread_scope.registry = previous


@contextmanager
def bind_registry(registry: Registry) -> Iterator[Registry]:
    """Use $registry as the contextual default registry for the duration of the block.

    The binding follows asyncio tasks created inside the block. A thread-scoped registry set by
    `with_registry` still takes precedence.
    """
    # Raise: bound registry must be a Registry instance
    if not isinstance(registry, Registry):
        raise InvalidArgumentError(f"$registry must be a Registry instance, but provided value is: {registry!r}", op="bind_registry", argument="registry", value=registry)

    token = _context_registry.set(registry)
    try:
        yield registry
    finally:
        _context_registry.reset(token)


def get(registry: Any = None) -> Registry:
    """Return the registry to use for a read operation.

    Args:
        registry: An explicit Registry, or None / True for the active default.

    Raises:
        InvalidArgumentError: If $registry is neither a Registry, None nor True.
    """
    if isinstance(registry, Registry):
        return registry

    # Raise: only None and True select the default registry
    if registry is not None and registry is not True:
        raise InvalidArgumentError(f"$registry must be a Registry, None or True, but provided value is: {registry!r}", op="get", argument="registry", value=registry)

    scoped = getattr(_thread_scope, "registry", None)
    if scoped is not None:
        return scoped

    bound = _context_registry.get()
    if bound is not None:
        return bound

    return state()


# endregion
