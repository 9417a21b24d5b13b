"""
Memoize: cache a callback's results by a key derived from its arguments.

Without a resolver the key is a canonical JSON serialization of the
arguments, with integral floats folded into ints so that ``1`` and ``1.0``
share an entry. That only works for JSON-representable values: functions,
arbitrary objects and cyclic structures raise CacheKeyError, and values
that serialize identically share an entry (``(1, 2)`` and ``[1, 2]``, or a
dict and a keyword mapping with the same items). Supply a resolver when
that matters.

A memoized method keys on its instance by identity plus the remaining
arguments, and keeps each instance alive for as long as it has entries.

The cache is unbounded. Entries leave it only through delete() or clear().
"""

import json
from types import MappingProxyType
from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Tuple

from pacer.base import BaseWrapper, BoundWrapper
from pacer.errors import CacheKeyError, require_callable
from pacer.metrics import MetricsCollector


_UNBOUND = object()


def _canonical(value: Any, active: Optional[set] = None) -> Any:
    """Fold integral floats into ints throughout lists, tuples and dicts."""
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if not isinstance(value, (list, tuple, dict)):
        return value

    if active is None:
        active = set()
    if id(value) in active:
        raise ValueError("Circular reference detected")
    active.add(id(value))
    try:
        if isinstance(value, dict):
            return {_canonical(k, active): _canonical(v, active) for k, v in value.items()}
        return [_canonical(item, active) for item in value]
    finally:
        active.discard(id(value))


def default_key(*args, **kwargs) -> str:
    """Serialize call arguments into a cache key."""
    payload: Any = list(args)
    if kwargs:
        payload = [payload, kwargs]
    try:
        return json.dumps(_canonical(payload), sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise CacheKeyError(
            "Arguments cannot be serialized into a cache key; pass a resolver",
            details={"error": str(e)}
        ) from e


class _Receiver:
    """Identity key for the instance a memoized method is bound to."""

    __slots__ = ("obj",)

    def __init__(self, obj: Any):
        self.obj = obj

    def __eq__(self, other) -> bool:
        return isinstance(other, _Receiver) and self.obj is other.obj

    def __hash__(self) -> int:
        return id(self.obj)

    def __repr__(self) -> str:
        return f"<receiver {type(self.obj).__name__} at {id(self.obj):#x}>"


class BoundMemoized(BoundWrapper):
    """A memoized method looked up through an instance."""

    def __call__(self, *args, **kwargs) -> Any:
        return self.wrapper._lookup(self.instance, args, kwargs)

    def key(self, *args, **kwargs) -> Hashable:
        return self.wrapper._derive(self.instance, args, kwargs)

    def has(self, *args, **kwargs) -> bool:
        return self.wrapper._has(self.instance, args, kwargs)

    def delete(self, *args, **kwargs) -> None:
        self.wrapper._delete(self.instance, args, kwargs)


class Memoized(BaseWrapper):
    """Callable returned by memoize(), with has(), delete() and clear()."""

    kind = "memoize"
    _bound_class = BoundMemoized

    def __init__(self, callback: Callable[..., Any],
                 resolver: Optional[Callable[..., Hashable]] = None, *,
                 name: Optional[str] = None,
                 metrics: Optional[MetricsCollector] = None):
        super().__init__(callback, name=name, metrics=metrics)
        if resolver is not None:
            require_callable(resolver, "resolver")
        self.resolver = resolver
        self._cache: Dict[Hashable, Any] = {}

    def key(self, *args, **kwargs) -> Hashable:
        """Derive the cache key for a set of call arguments."""
        return self._derive(_UNBOUND, args, kwargs)

    def _derive(self, receiver: Any, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Hashable:
        if receiver is not _UNBOUND and self.resolver is None:
            return (_Receiver(receiver), default_key(*args, **kwargs))
        if self.resolver is None:
            return default_key(*args, **kwargs)

        # A resolver sees the same arguments as the callback, instance included.
        if receiver is not _UNBOUND:
            args = (receiver,) + args
        key = self.resolver(*args, **kwargs)
        try:
            hash(key)
        except TypeError as e:
            raise CacheKeyError(
                "Resolver returned an unhashable key",
                details={"type": type(key).__name__}
            ) from e
        return key

    def __call__(self, *args, **kwargs) -> Any:
        return self._lookup(_UNBOUND, args, kwargs)

    def _lookup(self, receiver: Any, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        key = self._derive(receiver, args, kwargs)

        with self._lock:
            if key in self._cache:
                result = self._cache[key]
                hit = True
            else:
                hit = False

        if self.metrics:
            self.metrics.record_cache_lookup(self.name, hit)
        if hit:
            self.logger.debug("Cache hit", key=key)
            return result

        self.logger.debug("Cache miss", key=key)
        if receiver is not _UNBOUND:
            args = (receiver,) + args
        result = self.callback(*args, **kwargs)

        # A concurrent miss may have stored first; the first stored value wins.
        with self._lock:
            return self._cache.setdefault(key, result)

    def has(self, *args, **kwargs) -> bool:
        """Whether a result is cached for these arguments."""
        return self._has(_UNBOUND, args, kwargs)

    def _has(self, receiver: Any, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> bool:
        key = self._derive(receiver, args, kwargs)
        with self._lock:
            return key in self._cache

    def delete(self, *args, **kwargs) -> None:
        """Drop the cached result for these arguments, if any."""
        self._delete(_UNBOUND, args, kwargs)

    def _delete(self, receiver: Any, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> None:
        key = self._derive(receiver, args, kwargs)
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        """Drop every cached result, for every instance of a memoized method."""
        with self._lock:
            self._cache.clear()
        self.logger.debug("Cache cleared")

    @property
    def cache(self) -> Mapping[Hashable, Any]:
        """Read-only live view of the cache."""
        return MappingProxyType(self._cache)

    def __len__(self) -> int:
        return len(self._cache)

    def __bool__(self) -> bool:
        # An empty cache must not make the wrapper falsy.
        return True


def memoize(callback: Callable[..., Any],
            resolver: Optional[Callable[..., Hashable]] = None, *,
            name: Optional[str] = None,
            metrics: Optional[MetricsCollector] = None) -> Memoized:
    """Cache callback results keyed by resolver(*args, **kwargs), or by default_key()."""
    return Memoized(callback, resolver, name=name, metrics=metrics)


def memoized(resolver: Optional[Callable[..., Hashable]] = None, **options) -> Callable[[Callable[..., Any]], Memoized]:
    """Decorator form of memoize()."""

    def decorator(func: Callable[..., Any]) -> Memoized:
        return memoize(func, resolver, **options)

    return decorator
