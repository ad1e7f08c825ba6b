"""Step-by-step debug runner.

``debug_run`` drives the same state machine as :func:`trampoline.run` but
reports every transition through loguru and stops after ``max_steps``, which
makes runaway recursion visible instead of silently eating memory.

    from loguru import logger
    logger.add(sys.stderr, level="DEBUG", filter="trampoline")
    debug_run(countdown(3))
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from loguru import logger as loguru_logger

from trampoline.driver import Done, RunResult, format_signal, initial_state, step
from trampoline.errors import StepLimitExceeded
from trampoline.frames import format_stack
from trampoline.registry import Registry, build_registry

loguru_logger = loguru_logger.bind(component="trampoline.debug")

DEFAULT_MAX_STEPS = 10_000


def debug_run(
    initial: Any,
    registry: Registry | Mapping[str, Callable[..., Any]] | None = None,
    *,
    max_steps: int = DEFAULT_MAX_STEPS,
    **named: Callable[..., Any],
) -> RunResult[Any]:
    resolved = build_registry(registry, named)
    state = initial_state(initial, resolved)
    loguru_logger.debug("Initial: stack={}", format_stack(state.stack))

    while state.steps < max_steps:
        result = step(state, resolved)

        if isinstance(result, Done):
            loguru_logger.debug(
                "Step {}: {} from {} -> Done({!r})",
                state.steps,
                format_signal(state.last_signal),
                state.last_callee,
                result.value,
            )
            return RunResult(value=result.value, stats=result.stats)

        loguru_logger.debug(
            "Step {}: {} from {}, stack={}",
            state.steps,
            format_signal(state.last_signal),
            state.last_callee,
            format_stack(state.stack),
        )

    loguru_logger.warning(
        "Stopping after {} steps with {} live frames", max_steps, len(state.stack)
    )
    raise StepLimitExceeded(max_steps)


__all__ = ["DEFAULT_MAX_STEPS", "debug_run"]
