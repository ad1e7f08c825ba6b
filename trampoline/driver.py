"""
The trampoline driver: an explicit-stack interpreter for resumable computations.

The driver owns a heap-allocated stack of :class:`~trampoline.frames.Frame`
objects and repeatedly resumes the top one. The signal it gets back decides
the transition:

- ``Recurse(call)``: push a frame for ``call``; the caller waits beneath it.
- ``TailCall(call)``: pop the caller and push ``call`` in its place.
- ``Return(value)``: pop the frame and resume the one below with ``value``,
  or finish the run when the stack is empty.

No transition calls back into the driver, so the depth of the logical
recursion is bounded by memory rather than by the interpreter's recursion
limit.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from trampoline.computation import Computation
from trampoline.config import TrampolineConfig, default_config
from trampoline.errors import MalformedSignal
from trampoline.frames import Frame, Stack, format_stack
from trampoline.registry import Registry, build_registry
from trampoline.signals import Call, Recurse, Return, Signal, TailCall

T = TypeVar("T")

logger = logging.getLogger(__name__)


# ============================================================================
# Machine states
# ============================================================================


@dataclass
class Active:
    """A run in progress. ``stack[-1]`` is the only frame ever resumed."""

    stack: Stack
    pending: Any = None
    steps: int = 0
    max_depth: int = 0
    recursions: int = 0
    tail_calls: int = 0
    last_signal: Signal | None = None
    last_callee: str | None = None


@dataclass(frozen=True)
class RunStats:
    """Counters collected over one run.

    Attributes:
        steps: Number of resumes performed.
        max_depth: Largest number of live frames at any point.
        recursions: Number of ``Recurse`` signals (frames pushed).
        tail_calls: Number of ``TailCall`` signals (frames replaced).
    """

    steps: int = 0
    max_depth: int = 0
    recursions: int = 0
    tail_calls: int = 0

    @classmethod
    def from_state(cls, state: Active) -> RunStats:
        return cls(
            steps=state.steps,
            max_depth=state.max_depth,
            recursions=state.recursions,
            tail_calls=state.tail_calls,
        )

    def as_dict(self) -> dict[str, int]:
        return {
            "steps": self.steps,
            "max_depth": self.max_depth,
            "recursions": self.recursions,
            "tail_calls": self.tail_calls,
        }


@dataclass(frozen=True)
class Done:
    value: Any
    stats: RunStats = field(default_factory=RunStats)


@dataclass(frozen=True)
class RunResult(Generic[T]):
    value: T
    stats: RunStats


@dataclass(frozen=True)
class StepSnapshot:
    """What the driver just did, passed to ``on_step`` callbacks.

    Attributes:
        step: 1-based step counter.
        signal: The signal the resumed frame produced.
        depth: Number of live frames after the transition.
        callee: Name of the frame that was resumed.
    """

    step: int
    signal: Signal
    depth: int
    callee: str


OnStepCallback = Callable[[StepSnapshot], None]


# ============================================================================
# Transitions
# ============================================================================


def resolve_initial(initial: Any, registry: Registry) -> Computation:
    """Resolve the first call of a run the same way nested calls are resolved."""
    if isinstance(initial, Call):
        return registry.resolve(initial)
    if isinstance(initial, (Recurse, TailCall)):
        return registry.resolve(initial.call)
    if isinstance(initial, Computation) or inspect.isgenerator(initial):
        return registry.resolve(Call(initial))
    raise TypeError(
        f"Cannot start a run from {type(initial).__name__}; "
        "pass a Call (e.g. my_function(10)), a computation or a generator"
    )


def initial_state(initial: Any, registry: Registry) -> Active:
    return Active(stack=[Frame(resolve_initial(initial, registry))], max_depth=1)


def step(state: Active, registry: Registry) -> Active | Done:
    """Resume the top frame once and apply the resulting transition in place."""
    stack = state.stack
    frame = stack[-1]
    pending, state.pending = state.pending, None

    signal = frame.computation.resume(pending)
    state.steps += 1
    state.last_signal = signal
    state.last_callee = frame.name

    if isinstance(signal, Recurse):
        stack.append(Frame(registry.resolve(signal.call)))
        state.recursions += 1
        if len(stack) > state.max_depth:
            state.max_depth = len(stack)
        return state

    if isinstance(signal, TailCall):
        computation = registry.resolve(signal.call)
        stack.pop()
        stack.append(Frame(computation))
        state.tail_calls += 1
        return state

    if isinstance(signal, Return):
        stack.pop()
        if not stack:
            return Done(signal.value, RunStats.from_state(state))
        state.pending = signal.value
        return state

    raise MalformedSignal(signal, frame.name)


# ============================================================================
# Driver
# ============================================================================


class Trampoline:
    """
    Runs calls to completion on an explicit stack.

    Args:
        registry: Factories for identifier callees (see :class:`Registry`).
        on_step: Optional callback invoked with a :class:`StepSnapshot` after
            every transition. Exceptions it raises abort the run.
        config: Driver options; defaults to the environment-derived config.

    Example:
        >>> driver = Trampoline(Registry.of(odd))
        >>> driver.run(even(10_000))
        True
        >>> driver.execute(even(10_001)).stats.max_depth
        10002
    """

    def __init__(
        self,
        registry: Registry | Mapping[str, Callable[..., Any]] | None = None,
        *,
        on_step: OnStepCallback | None = None,
        config: TrampolineConfig | None = None,
    ) -> None:
        self.registry = build_registry(registry)
        self.on_step = on_step
        self.config = config if config is not None else default_config()

    def start(self, initial: Any) -> Active:
        state = initial_state(initial, self.registry)
        logger.debug("Trampoline run started: %s", state.stack[0].name)
        return state

    def execute(self, initial: Any) -> RunResult[Any]:
        """Drive ``initial`` to completion and return its value with run statistics."""
        state = self.start(initial)
        while True:
            result = step(state, self.registry)
            self._observe(state, result)
            if isinstance(result, Done):
                return self._finish(result)

    def run(self, initial: Any) -> Any:
        return self.execute(initial).value

    async def execute_async(self, initial: Any) -> RunResult[Any]:
        """Like :meth:`execute`, handing control to the event loop periodically."""
        state = self.start(initial)
        interval = self.config.async_yield_interval
        while True:
            result = step(state, self.registry)
            self._observe(state, result)
            if isinstance(result, Done):
                return self._finish(result)
            if state.steps % interval == 0:
                await asyncio.sleep(0)

    async def run_async(self, initial: Any) -> Any:
        return (await self.execute_async(initial)).value

    def _observe(self, state: Active, result: Active | Done) -> None:
        depth = 0 if isinstance(result, Done) else len(state.stack)
        if self.config.trace:
            logger.debug(
                "step %d: %s from %s, depth=%d, stack=%s",
                state.steps,
                format_signal(state.last_signal),
                state.last_callee,
                depth,
                format_stack(state.stack),
            )
        if self.on_step is not None:
            self.on_step(
                StepSnapshot(
                    step=state.steps,
                    signal=state.last_signal,  # type: ignore[arg-type]
                    depth=depth,
                    callee=state.last_callee or "<unknown>",
                )
            )

    def _finish(self, done: Done) -> RunResult[Any]:
        logger.debug(
            "Trampoline run finished after %d steps (max depth %d, %d tail calls)",
            done.stats.steps,
            done.stats.max_depth,
            done.stats.tail_calls,
        )
        return RunResult(value=done.value, stats=done.stats)


def format_signal(signal: Signal | None) -> str:
    if isinstance(signal, Recurse):
        return f"Recurse({signal.call!r})"
    if isinstance(signal, TailCall):
        return f"TailCall({signal.call!r})"
    if isinstance(signal, Return):
        return f"Return({signal.value!r:.60})"
    return type(signal).__name__


# ============================================================================
# Entry points
# ============================================================================


def execute(
    initial: Any,
    registry: Registry | Mapping[str, Callable[..., Any]] | None = None,
    *,
    on_step: OnStepCallback | None = None,
    config: TrampolineConfig | None = None,
    **named: Callable[..., Any],
) -> RunResult[Any]:
    """Run ``initial`` and return a :class:`RunResult` with value and statistics."""
    driver = Trampoline(build_registry(registry, named), on_step=on_step, config=config)
    return driver.execute(initial)


def run(
    initial: Any,
    registry: Registry | Mapping[str, Callable[..., Any]] | None = None,
    *,
    on_step: OnStepCallback | None = None,
    config: TrampolineConfig | None = None,
    **named: Callable[..., Any],
) -> Any:
    """
    Run a call to completion without growing the Python call stack.

    Args:
        initial: The first call, usually produced by calling a
            ``@trampolined`` function (``countdown(5)``). A ``Call``, a
            computation or an unstarted generator are accepted.
        registry: Factories for calls made by name (``call("odd", n)``).
        on_step: Optional per-step observer.
        config: Driver options.
        **named: Extra registry entries, layered over ``registry``.

    Returns:
        The value of the final ``Return``.

    Raises:
        UnresolvedCallee: A call named an identifier with no registered factory.
        MalformedSignal: A computation yielded something that is not a signal.
        AlreadyCompleted: A finished computation was resumed.

    Exceptions raised by the computations themselves propagate unchanged.

    Example:
        >>> @trampolined
        ... def even(n):
        ...     return True if n == 0 else (yield call("odd", n - 1))
        >>> run(even(10_000), odd=odd)
        True
    """
    return execute(initial, registry, on_step=on_step, config=config, **named).value


async def async_run(
    initial: Any,
    registry: Registry | Mapping[str, Callable[..., Any]] | None = None,
    *,
    on_step: OnStepCallback | None = None,
    config: TrampolineConfig | None = None,
    **named: Callable[..., Any],
) -> Any:
    """Coroutine version of :func:`run` that yields to the event loop between batches of steps."""
    driver = Trampoline(build_registry(registry, named), on_step=on_step, config=config)
    return await driver.run_async(initial)


__all__ = [
    "Active",
    "Done",
    "OnStepCallback",
    "RunResult",
    "RunStats",
    "StepSnapshot",
    "Trampoline",
    "async_run",
    "execute",
    "format_signal",
    "initial_state",
    "resolve_initial",
    "run",
    "step",
]
