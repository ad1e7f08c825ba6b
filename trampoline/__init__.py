"""
trampoline - stack-safe recursion for Python.

Recursive functions are written as generators that describe their nested
calls instead of making them. A driver resolves those calls on an explicit,
heap-allocated stack, so recursion depth is limited by memory rather than by
``sys.getrecursionlimit()``.

    from trampoline import finish, run, tailcall, trampolined

    @trampolined
    def factorial(n):
        if n <= 1:
            return finish(1)
        value = yield factorial(n - 1)
        return value * n

    @trampolined
    def factorial_acc(n, acc=1):
        if n <= 1:
            return finish(acc)
        return tailcall(factorial_acc(n - 1, acc * n))

    run(factorial(5000))      # grows the explicit stack
    run(factorial_acc(5000))  # runs in a single frame
"""

from trampoline.computation import Computation, ComputationStatus, TrampolinedFunction, trampolined
from trampoline.config import TrampolineConfig
from trampoline.debug import debug_run
from trampoline.driver import (
    RunResult,
    RunStats,
    StepSnapshot,
    Trampoline,
    async_run,
    execute,
    run,
)
from trampoline.errors import (
    AlreadyCompleted,
    ComputationInUse,
    MalformedSignal,
    RegistryError,
    StepLimitExceeded,
    TrampolineError,
    UnresolvedCallee,
)
from trampoline.frames import Frame
from trampoline.registry import Registry
from trampoline.signals import (
    Call,
    Recurse,
    Return,
    Signal,
    TailCall,
    call,
    finish,
    recurse,
    tailcall,
)

__all__ = [
    "AlreadyCompleted",
    "Call",
    "Computation",
    "ComputationInUse",
    "ComputationStatus",
    "Frame",
    "MalformedSignal",
    "Recurse",
    "Registry",
    "RegistryError",
    "Return",
    "RunResult",
    "RunStats",
    "Signal",
    "StepLimitExceeded",
    "StepSnapshot",
    "TailCall",
    "Trampoline",
    "TrampolineConfig",
    "TrampolineError",
    "TrampolinedFunction",
    "UnresolvedCallee",
    "async_run",
    "call",
    "debug_run",
    "execute",
    "finish",
    "recurse",
    "run",
    "tailcall",
    "trampolined",
]
