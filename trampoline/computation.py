"""
Resumable computations: ordinary functions turned into pausable steps.

A :class:`Computation` wraps one invocation of a computation factory. The
factory is either a generator function, whose ``yield`` points are where the
computation pauses, or a plain function, whose return value is read as a
single signal. Each ``resume`` runs host code up to the next signal and hands
exactly one :class:`~trampoline.signals.Signal` back to the driver.

The adapter never recurses: nested calls are only described, and the driver
decides when (and on which stack) they run.
"""

from __future__ import annotations

import enum
import inspect
from collections.abc import Callable, Generator
from typing import Any, Generic, ParamSpec, TypeVar

from frozendict import frozendict

from trampoline.errors import AlreadyCompleted, ComputationInUse, MalformedSignal
from trampoline.signals import Call, Recurse, Return, Signal, TailCall, callee_name

P = ParamSpec("P")
T = TypeVar("T")


class ComputationStatus(enum.Enum):
    PENDING = "pending"
    SUSPENDED = "suspended"
    FORWARDING = "forwarding"
    COMPLETED = "completed"


class Computation:
    """One invocation of a computation factory, resumable by the driver.

    Lifecycle:
        PENDING -> the factory has not been called yet. The first ``resume``
            calls it exactly once with the stored arguments.
        SUSPENDED -> paused at a ``Recurse``; the next ``resume(value)``
            delivers ``value`` as the result of that ``yield``.
        FORWARDING -> the computation ended with a call as its result; the
            next ``resume(value)`` completes with ``Return(value)``.
        COMPLETED -> a ``Return`` or ``TailCall`` was produced, or the body
            raised. Resuming raises :class:`AlreadyCompleted`.
    """

    __slots__ = ("_factory", "_args", "_kwargs", "_generator", "_status", "name")

    def __init__(
        self,
        factory: Callable[..., Any] | None,
        args: tuple[Any, ...] = (),
        kwargs: frozendict[str, Any] | dict[str, Any] | None = None,
        *,
        name: str | None = None,
    ) -> None:
        if isinstance(factory, TrampolinedFunction):
            name = name if name is not None else factory.name
            factory = factory.func
        self._factory = factory
        self._args = tuple(args)
        self._kwargs = frozendict(kwargs or {})
        self._generator: Generator[Any, Any, Any] | None = None
        self._status = ComputationStatus.PENDING
        self.name = name if name is not None else callee_name(factory)

    @classmethod
    def from_generator(
        cls, generator: Generator[Any, Any, Any], *, name: str | None = None
    ) -> Computation:
        """Adopt an unstarted generator object as a computation."""
        if inspect.getgeneratorstate(generator) != inspect.GEN_CREATED:
            raise ComputationInUse(name or callee_name(generator))
        computation = cls(None, name=name or callee_name(generator))
        computation._generator = generator
        return computation

    @property
    def status(self) -> ComputationStatus:
        return self._status

    @property
    def started(self) -> bool:
        return self._status is not ComputationStatus.PENDING

    @property
    def completed(self) -> bool:
        return self._status is ComputationStatus.COMPLETED

    @property
    def generator(self) -> Generator[Any, Any, Any] | None:
        """The underlying generator, once the computation has started one."""
        return self._generator

    def resume(self, value: Any = None) -> Signal:
        """Run until the next signal and return it.

        ``value`` is ignored on the first resume and is the result of the
        pending nested call afterwards.
        """
        status = self._status
        if status is ComputationStatus.COMPLETED:
            raise AlreadyCompleted(self.name)

        if status is ComputationStatus.FORWARDING:
            self._status = ComputationStatus.COMPLETED
            return Return(value)

        try:
            if status is ComputationStatus.PENDING:
                self._status = ComputationStatus.SUSPENDED
                if self._generator is None:
                    produced = self._factory(*self._args, **self._kwargs)  # type: ignore[misc]
                    if not inspect.isgenerator(produced):
                        return self._on_return(produced)
                    self._generator = produced
                yielded = next(self._generator)
            else:
                yielded = self._generator.send(value)  # type: ignore[union-attr]
        except StopIteration as stop:
            return self._on_return(stop.value)
        except BaseException:
            self._status = ComputationStatus.COMPLETED
            raise
        return self._on_yield(yielded)

    def close(self) -> None:
        """Discard the computation, running the generator's cleanup if it is paused."""
        self._status = ComputationStatus.COMPLETED
        if self._generator is not None:
            self._generator.close()

    def _on_yield(self, yielded: Any) -> Signal:
        if isinstance(yielded, Recurse):
            return yielded
        if isinstance(yielded, Call):
            return Recurse(yielded)
        if inspect.isgenerator(yielded) or isinstance(yielded, Computation):
            return Recurse(Call(yielded))
        if isinstance(yielded, (TailCall, Return)):
            self.close()
            return yielded
        self.close()
        raise MalformedSignal(yielded, self.name)

    def _on_return(self, result: Any) -> Signal:
        if isinstance(result, (TailCall, Return)):
            self._status = ComputationStatus.COMPLETED
            return result
        if isinstance(result, Recurse):
            self._status = ComputationStatus.FORWARDING
            return result
        if isinstance(result, Call):
            self._status = ComputationStatus.FORWARDING
            return Recurse(result)
        self._status = ComputationStatus.COMPLETED
        return Return(result)

    def __repr__(self) -> str:
        return f"Computation({self.name}, {self._status.value})"


class TrampolinedFunction(Generic[P, T]):
    """Factory wrapper produced by :func:`trampolined`.

    Calling it returns a :class:`Call` descriptor; nothing runs until a
    driver resolves that descriptor.
    """

    def __init__(self, func: Callable[P, Any]) -> None:
        self.func = func
        self.name = getattr(func, "__name__", type(func).__name__)

        for attr in ("__doc__", "__module__", "__name__", "__qualname__", "__annotations__"):
            value = getattr(func, attr, None)
            if value is not None:
                setattr(self, attr, value)

        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError):
            signature = None
        if signature is not None:
            setattr(self, "__signature__", signature)
        self.__wrapped__ = func

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> Call:
        return Call(self, tuple(args), frozendict(kwargs))

    def computation(self, *args: P.args, **kwargs: P.kwargs) -> Computation:
        """Build the computation for one invocation without going through a Call."""
        return Computation(self.func, args, kwargs, name=self.name)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        bound = self.func.__get__(instance, owner)  # type: ignore[attr-defined]
        return TrampolinedFunction(bound)

    def __repr__(self) -> str:
        return f"<trampolined {self.__qualname__}>"


def trampolined(func: Callable[P, Any]) -> TrampolinedFunction[P, T]:
    """
    Decorator that makes a function callable under the trampoline driver.

    The decorated function may be a generator function or a plain function:

    - In a generator body, ``value = yield f(n - 1)`` (or
      ``yield recurse(f(n - 1))``) suspends until the nested call returns,
      ``yield tailcall(...)`` / ``return tailcall(...)`` replaces the frame,
      and ``return x`` or ``yield finish(x)`` completes with ``x``.
    - A plain function returns one signal: ``tailcall(...)``, ``finish(...)``
      or any other value, which becomes its result.

    Calling the decorated function builds a :class:`Call` and runs nothing:

        @trampolined
        def countdown(n):
            if n >= 1:
                yield countdown(n - 1)
                print(n)

        run(countdown(5))  # prints 1..5

    Arguments are evaluated by Python before the ``Call`` exists, so they are
    always strict. Do not pass lazy thunks that capture a frame's state and
    expect them to be evaluated before a tail call discards that frame.
    """
    return TrampolinedFunction(func)


__all__ = [
    "Computation",
    "ComputationStatus",
    "TrampolinedFunction",
    "trampolined",
]
