"""Error types raised by the trampoline driver and its collaborators."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


class TrampolineError(Exception):
    """Base class for every error the trampoline itself raises."""


class AlreadyCompleted(TrampolineError, RuntimeError):
    """Raised when a computation that already produced its result is resumed."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Computation {name!r} has already completed and cannot be resumed")


class ComputationInUse(TrampolineError, RuntimeError):
    """Raised when a computation that is already running is used as a callee again."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Computation {name!r} has already started; "
            "a call descriptor needs a fresh computation or a factory"
        )


class UnresolvedCallee(TrampolineError, LookupError):
    """Raised when a call names an identifier that the registry does not know.

    Mutually recursive functions that refer to each other by name need both
    sides registered:

        >>> run(even(10), odd=odd)
        >>> run(even(10), Registry.of(odd))

    Attributes:
        name: The identifier that could not be resolved.
    """

    def __init__(self, name: str, known: Iterable[str] = ()) -> None:
        self.name = name
        known_names = sorted(known)
        hint = ", ".join(known_names) if known_names else "(empty registry)"
        super().__init__(
            f"Unresolved callee: {name!r}\n"
            f"Hint: register it via `run(..., {name}=<factory>)`; registered names: {hint}"
        )



class MalformedSignal(TrampolineError, TypeError):
    """Raised when a paused computation hands the driver something other than a signal.

    A computation may only yield ``recurse(...)``, ``tailcall(...)``,
    ``finish(...)``, a ``Call`` descriptor or an unstarted generator.
    Yielding anything else usually means a call site was left unwrapped.
    """

    def __init__(self, value: Any, name: str) -> None:
        self.value = value
        self.name = name
        super().__init__(
            f"Computation {name!r} yielded {type(value).__name__} ({value!r:.80}), "
            "expected recurse(...), tailcall(...), finish(...) or a Call"
        )


class RegistryError(TrampolineError, TypeError):
    """Raised for an invalid registry entry."""


class StepLimitExceeded(TrampolineError, RuntimeError):
    """Raised by the debug runner when a run exceeds its step budget."""

    def __init__(self, max_steps: int) -> None:
        self.max_steps = max_steps
        super().__init__(f"debug_run exceeded max_steps ({max_steps})")


__all__ = [
    "AlreadyCompleted",
    "ComputationInUse",
    "MalformedSignal",
    "RegistryError",
    "StepLimitExceeded",
    "TrampolineError",
    "UnresolvedCallee",
]
