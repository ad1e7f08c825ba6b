"""
Call descriptors and the signals a computation hands back to the driver.

A computation never calls its recursive peers directly. It describes the
next call with a :class:`Call` and wraps it in a signal:

- :class:`Recurse` - evaluate the call, then resume me with its result.
- :class:`TailCall` - evaluate the call in my place, I contribute nothing further.
- :class:`Return` - I am finished, this is my result.

Example:
    @trampolined
    def factorial(n, acc=1):
        if n <= 1:
            return finish(acc)
        return tailcall(factorial(n - 1, acc * n))
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from frozendict import frozendict

T = TypeVar("T")


# ============================================================================
# Call Descriptor
# ============================================================================


@dataclass(frozen=True)
class Call:
    """Description of the next computation to run.

    Building a ``Call`` runs nothing; the driver decides when. Arguments are
    stored as already-evaluated values (a tuple and a ``frozendict``), so a
    frame replaced by a tail call never leaves deferred work behind.

    Attributes:
        callee: A Computation, an unstarted generator, a computation factory
            (any callable) or a ``str`` identifier resolved by the registry.
        args: Positional arguments for the factory.
        kwargs: Keyword arguments for the factory.
    """

    callee: Any
    args: tuple[Any, ...] = ()
    kwargs: frozendict[str, Any] = field(default_factory=frozendict)

    def __post_init__(self) -> None:
        from trampoline.computation import Computation

        callee = self.callee
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))
        if not isinstance(self.kwargs, frozendict):
            object.__setattr__(self, "kwargs", frozendict(self.kwargs))

        if isinstance(callee, str):
            if not callee:
                raise TypeError("Call identifier must be a non-empty string")
            return
        if isinstance(callee, Computation) or inspect.isgenerator(callee):
            if self.args or self.kwargs:
                raise TypeError(
                    f"Cannot pass arguments to an existing computation ({type(callee).__name__}); "
                    "pass the factory instead"
                )
            return
        if not callable(callee):
            raise TypeError(
                f"Call callee must be a computation, a callable or an identifier, "
                f"got {type(callee).__name__}"
            )

    @property
    def name(self) -> str:
        """Human-readable name of the callee, used in errors and logs."""
        return callee_name(self.callee)

    def __repr__(self) -> str:
        parts = [repr(arg) for arg in self.args]
        parts.extend(f"{key}={value!r}" for key, value in self.kwargs.items())
        return f"Call({self.name}({', '.join(parts)}))"


def callee_name(callee: Any) -> str:
    if isinstance(callee, str):
        return callee
    name = getattr(callee, "name", None)
    if isinstance(name, str):
        return name
    for attr in ("__qualname__", "__name__"):
        value = getattr(callee, attr, None)
        if isinstance(value, str):
            return value
    return type(callee).__name__


# ============================================================================
# Signals
# ============================================================================


class Signal:
    """Base class of everything a computation may hand to the driver."""

    __slots__ = ()


@dataclass(frozen=True)
class Recurse(Signal):
    """Evaluate ``call`` as a nested frame, then resume the caller with its result."""

    call: Call


@dataclass(frozen=True)
class TailCall(Signal):
    """Replace the current frame with ``call``; the stack does not grow."""

    call: Call


@dataclass(frozen=True)
class Return(Signal, Generic[T]):
    """The computation is finished and ``value`` is its result."""

    value: T = None  # type: ignore[assignment]


# ============================================================================
# Emission primitives
# ============================================================================


def call(callee: Any, /, *args: Any, **kwargs: Any) -> Call:
    """Describe a call to ``callee`` with the given, already evaluated, arguments.

    ``callee`` may be a ``str``, in which case it is looked up in the
    registry passed to the driver. This is how mutually recursive functions
    refer to each other without holding a direct reference:

        @trampolined
        def even(n):
            if n == 0:
                return True
            return (yield call("odd", n - 1))
    """
    return Call(callee, args, frozendict(kwargs))


def as_call(target: Any) -> Call:
    """Normalise a ``Call``, a computation or an unstarted generator to a ``Call``."""
    if isinstance(target, Call):
        return target
    from trampoline.computation import Computation

    if isinstance(target, Computation) or inspect.isgenerator(target):
        return Call(target)
    raise TypeError(
        f"Expected a Call, a computation or a generator, got {type(target).__name__}; "
        "call a @trampolined function or use call(...) to build one"
    )


def recurse(target: Any) -> Recurse:
    """Wrap a nested call; ``yield`` it to get the call's result back."""
    return Recurse(as_call(target))


def tailcall(target: Any) -> TailCall:
    """Wrap a call that replaces the current frame. ``yield`` or ``return`` it."""
    return TailCall(as_call(target))


def finish(value: Any = None) -> Return:
    """Wrap ``value`` as the final result of the current computation."""
    return Return(value)


__all__ = [
    "Call",
    "Recurse",
    "Return",
    "Signal",
    "TailCall",
    "as_call",
    "call",
    "callee_name",
    "finish",
    "recurse",
    "tailcall",
]
