"""
Curry: collect a callback's arguments across a chain of calls.

A call with no arguments closes the chain and fires the callback with
everything collected so far::

    >>> add = curry(lambda *xs: sum(xs))
    >>> add(1)(2, 3)()
    6
    >>> add()
    0

Given an ``arity``, the chain also fires as soon as that many positional
arguments have been collected::

    >>> curry(lambda a, b, c: a + b + c, 3)(1)(2)(3)
    6
"""

from typing import Any, Callable, Dict, Optional, Tuple

from pacer.errors import ValidationError, require_callable


class Curried:
    """One link of a curry chain. Immutable; every call returns a new link or the result."""

    __slots__ = ("callback", "args", "keywords", "arity")

    def __init__(self, callback: Callable[..., Any],
                 args: Tuple[Any, ...] = (),
                 keywords: Optional[Dict[str, Any]] = None,
                 arity: Optional[int] = None):
        self.callback = callback
        self.args = tuple(args)
        self.keywords = dict(keywords or {})
        self.arity = arity

    def __call__(self, *args, **kwargs) -> Any:
        if not args and not kwargs:
            return self.callback(*self.args, **self.keywords)

        link = Curried(self.callback, self.args + args, {**self.keywords, **kwargs}, self.arity)
        if self.arity is not None and len(link.args) >= self.arity:
            return link()
        return link

    def __repr__(self) -> str:
        name = getattr(self.callback, "__qualname__", repr(self.callback))
        return f"Curried({name}, args={self.args!r}, keywords={self.keywords!r})"


def curry(callback: Callable[..., Any], arity: Optional[int] = None) -> Curried:
    """Turn callback into a chain of partial applications."""
    require_callable(callback, "callback")
    if arity is not None and (isinstance(arity, bool) or not isinstance(arity, int) or arity < 0):
        raise ValidationError(
            "arity must be a non-negative integer",
            details={"arity": arity}
        )
    return Curried(callback, arity=arity)
