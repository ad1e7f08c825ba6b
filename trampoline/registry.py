"""Name registry: resolves call descriptors to computations."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from frozendict import frozendict

from trampoline.computation import Computation
from trampoline.errors import AlreadyCompleted, ComputationInUse, RegistryError, UnresolvedCallee
from trampoline.signals import Call

logger = logging.getLogger(__name__)


class Registry(Mapping[str, Callable[..., Any]]):
    """Immutable mapping from identifier to computation factory.

    The registry is consulted only for calls whose callee is a ``str``.
    Computations and callables embedded in a ``Call`` are used directly.

    Example:
        >>> registry = Registry(odd=odd)
        >>> registry = Registry.of(even, odd)
        >>> run(call("even", 10), registry)
    """

    __slots__ = ("_factories",)

    def __init__(
        self,
        factories: Mapping[str, Callable[..., Any]] | None = None,
        /,
        **named: Callable[..., Any],
    ) -> None:
        entries = dict(factories or {})
        entries.update(named)
        for name, factory in entries.items():
            _validate_entry(name, factory)
        self._factories: frozendict[str, Callable[..., Any]] = frozendict(entries)

    @classmethod
    def of(cls, *functions: Callable[..., Any], **named: Callable[..., Any]) -> Registry:
        """Register each function under its ``__name__``, plus any named entries."""
        entries: dict[str, Callable[..., Any]] = {}
        for function in functions:
            name = getattr(function, "__name__", None)
            if not isinstance(name, str):
                raise RegistryError(
                    f"Cannot infer a registry name for {function!r}; pass it as a keyword argument"
                )
            entries[name] = function
        entries.update(named)
        return cls(entries)

    def merged(
        self,
        other: Mapping[str, Callable[..., Any]] | None = None,
        /,
        **named: Callable[..., Any],
    ) -> Registry:
        """Return a new registry with ``other`` and ``named`` layered over this one."""
        if not other and not named:
            return self
        entries = dict(self._factories)
        entries.update(other or {})
        entries.update(named)
        return Registry(entries)

    def resolve(self, call: Call) -> Computation:
        """Turn ``call`` into a fresh computation.

        Lookup order: an embedded computation or generator is used as is;
        an identifier is instantiated through its registered factory; an
        embedded callable is adapted directly. Unknown identifiers raise
        :class:`UnresolvedCallee`.
        """
        callee = call.callee

        if isinstance(callee, Computation):
            if callee.completed:
                raise AlreadyCompleted(callee.name)
            if callee.started:
                raise ComputationInUse(callee.name)
            return callee

        if inspect.isgenerator(callee):
            return Computation.from_generator(callee)

        if isinstance(callee, str):
            factory = self._factories.get(callee)
            if factory is None:
                logger.debug("Unresolved callee %r (registered: %s)", callee, sorted(self._factories))
                raise UnresolvedCallee(callee, self._factories)
            return Computation(factory, call.args, call.kwargs, name=callee)

        return Computation(callee, call.args, call.kwargs)

    def __getitem__(self, name: str) -> Callable[..., Any]:
        return self._factories[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._factories)

    def __len__(self) -> int:
        return len(self._factories)

    def __repr__(self) -> str:
        return f"Registry({', '.join(sorted(self._factories))})"


def _validate_entry(name: Any, factory: Any) -> None:
    if not isinstance(name, str) or not name:
        raise RegistryError(f"Registry names must be non-empty strings, got {name!r}")
    if not callable(factory):
        raise RegistryError(
            f"Registry entry {name!r} must be a callable computation factory, "
            f"got {type(factory).__name__}"
        )


EMPTY_REGISTRY = Registry()


def build_registry(
    registry: Mapping[str, Callable[..., Any]] | None = None,
    named: Mapping[str, Callable[..., Any]] | None = None,
) -> Registry:
    """Combine a registry argument and keyword entries the way ``run`` accepts them."""
    if isinstance(registry, Registry):
        base = registry
    elif registry:
        base = Registry(registry)
    else:
        base = EMPTY_REGISTRY
    return base.merged(named) if named else base


__all__ = [
    "EMPTY_REGISTRY",
    "Registry",
    "build_registry",
]
