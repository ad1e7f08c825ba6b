"""Runtime configuration for the trampoline driver.

Tracing and the async hand-off interval can be switched on from the
environment, which is convenient when a deep run misbehaves in a program
you do not want to edit:

    export TRAMPOLINE_TRACE=1
    export TRAMPOLINE_ASYNC_YIELD=250
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from collections.abc import Mapping

TRACE_ENV_VAR = "TRAMPOLINE_TRACE"
ASYNC_YIELD_ENV_VAR = "TRAMPOLINE_ASYNC_YIELD"

DEFAULT_ASYNC_YIELD_INTERVAL = 1000

_FALSE_VALUES = frozenset({"", "0", "false", "no", "off"})


def _parse_flag(raw: str | None) -> bool:
    if raw is None:
        return False
    return raw.strip().lower() not in _FALSE_VALUES


def _parse_interval(raw: str | None) -> int:
    if raw is None or not raw.strip():
        return DEFAULT_ASYNC_YIELD_INTERVAL
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{ASYNC_YIELD_ENV_VAR} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class TrampolineConfig:
    """
    Options for one :class:`~trampoline.driver.Trampoline`.

    Attributes:
        trace: Log every driver step at DEBUG level.
        async_yield_interval: Number of steps ``async_run`` performs before
            handing control back to the event loop.
    """

    trace: bool = False
    async_yield_interval: int = DEFAULT_ASYNC_YIELD_INTERVAL

    def __post_init__(self) -> None:
        if self.async_yield_interval < 1:
            raise ValueError(
                f"async_yield_interval must be positive, got {self.async_yield_interval}"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TrampolineConfig:
        """Build a config from ``TRAMPOLINE_*`` environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            trace=_parse_flag(env.get(TRACE_ENV_VAR)),
            async_yield_interval=_parse_interval(env.get(ASYNC_YIELD_ENV_VAR)),
        )

    def with_options(self, **changes: object) -> TrampolineConfig:
        return replace(self, **changes)  # type: ignore[arg-type]


_default_config: TrampolineConfig | None = None


def default_config() -> TrampolineConfig:
    """The environment-derived config, read once per process."""
    global _default_config
    if _default_config is None:
        _default_config = TrampolineConfig.from_env()
    return _default_config


__all__ = [
    "ASYNC_YIELD_ENV_VAR",
    "DEFAULT_ASYNC_YIELD_INTERVAL",
    "TRACE_ENV_VAR",
    "TrampolineConfig",
    "default_config",
]
