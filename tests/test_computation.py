"""Tests for the resumable-computation adapter."""

from __future__ import annotations

import inspect

import pytest

from trampoline import (
    AlreadyCompleted,
    Call,
    Computation,
    ComputationInUse,
    ComputationStatus,
    MalformedSignal,
    Recurse,
    Return,
    TailCall,
    finish,
    tailcall,
    trampolined,
)
from tests.programs import countdown, factorial_recurse, factorial_tail


class TestGeneratorComputation:
    """Tests for computations built from generator functions."""

    def test_factory_invoked_once_on_first_resume(self) -> None:
        """The underlying function starts exactly once, with the stored arguments."""
        calls: list[tuple[int, int]] = []

        def body(a, b):
            calls.append((a, b))
            total = yield countdown(0)
            return total

        computation = Computation(body, (1, 2))
        assert calls == []

        first = computation.resume()
        computation.resume("ignored-by-nobody")

        assert calls == [(1, 2)]
        assert isinstance(first, Recurse)

    def test_resume_injects_value_at_recurse_point(self) -> None:
        """The value passed to resume becomes the result of the paused yield."""
        computation = factorial_recurse.computation(4)

        signal = computation.resume()
        assert isinstance(signal, Recurse)
        assert signal.call == factorial_recurse(3)
        assert computation.status is ComputationStatus.SUSPENDED

        assert computation.resume(6) == Return(24)
        assert computation.completed

    def test_bare_call_yield_is_recurse(self) -> None:
        """Yielding a Call without wrapping it is shorthand for recurse."""
        computation = countdown.computation(2)

        signal = computation.resume()

        assert signal == Recurse(countdown(1, print))

    def test_bare_generator_yield_is_recurse(self) -> None:
        def leaf():
            return (yield finish(7))

        def body():
            value = yield leaf()
            return value

        computation = Computation(body)
        signal = computation.resume()

        assert isinstance(signal, Recurse)
        assert inspect.isgenerator(signal.call.callee)
        signal.call.callee.close()

    def test_implicit_completion_returns_none(self) -> None:
        """A void generator that falls off its end completes with None."""
        computation = countdown.computation(0)

        assert computation.resume() == Return(None)

    def test_plain_return_value_is_result(self) -> None:
        def body():
            if False:
                yield
            return "done"

        assert Computation(body).resume() == Return("done")

    def test_returned_tailcall_completes_computation(self) -> None:
        computation = factorial_tail.computation(3, 1)

        signal = computation.resume()

        assert signal == TailCall(factorial_tail(2, 3))
        assert computation.completed

    def test_yielded_tailcall_closes_generator(self) -> None:
        """Code after a yielded tail call never runs; cleanup does."""
        events: list[str] = []

        def body():
            try:
                yield tailcall(factorial_tail(2, 1))
                events.append("after")
            finally:
                events.append("cleanup")

        computation = Computation(body)
        signal = computation.resume()

        assert isinstance(signal, TailCall)
        assert events == ["cleanup"]
        assert computation.completed

    def test_yielded_finish_stops_generator(self) -> None:
        events: list[str] = []

        def body():
            yield finish(1)
            events.append("unreachable")

        computation = Computation(body)

        assert computation.resume() == Return(1)
        assert events == []

    def test_returned_call_forwards_result(self) -> None:
        """Returning a call makes the nested result this computation's result."""

        def body():
            if False:
                yield
            return factorial_recurse(3)

        computation = Computation(body)

        assert computation.resume() == Recurse(factorial_recurse(3))
        assert computation.status is ComputationStatus.FORWARDING
        assert computation.resume(6) == Return(6)

    def test_malformed_yield_raises(self) -> None:
        """Yielding a plain value is a protocol violation, not a result."""

        def body():
            yield 42

        computation = Computation(body, name="body")

        with pytest.raises(MalformedSignal) as exc_info:
            computation.resume()

        assert exc_info.value.value == 42
        assert exc_info.value.name == "body"
        assert computation.completed


class TestPlainFunctionComputation:
    """Tests for computations built from non-generator callables."""

    def test_value_is_result(self) -> None:
        assert Computation(lambda x: x * 2, (21,)).resume() == Return(42)

    def test_signal_is_passed_through(self) -> None:
        computation = Computation(lambda: tailcall(factorial_tail(2, 1)))

        assert computation.resume() == TailCall(factorial_tail(2, 1))

    def test_returned_call_forwards_result(self) -> None:
        computation = Computation(lambda: factorial_recurse(2))

        assert computation.resume() == Recurse(factorial_recurse(2))
        assert computation.resume(2) == Return(2)
        assert computation.completed

    def test_trampolined_plain_function(self) -> None:
        @trampolined
        def double(x):
            return x * 2

        assert double.computation(4).resume() == Return(8)


class TestLifecycle:
    """Tests for completion and reuse rules."""

    def test_resume_after_return_raises(self) -> None:
        computation = countdown.computation(0)
        computation.resume()

        with pytest.raises(AlreadyCompleted) as exc_info:
            computation.resume()

        assert exc_info.value.name == "countdown"

    def test_resume_after_tailcall_raises(self) -> None:
        computation = factorial_tail.computation(5)
        computation.resume()

        with pytest.raises(AlreadyCompleted):
            computation.resume()

    def test_body_exception_propagates_and_completes(self) -> None:
        error = ValueError("boom")

        def body():
            yield countdown(0)
            raise error

        computation = Computation(body)
        computation.resume()

        with pytest.raises(ValueError) as exc_info:
            computation.resume(None)

        assert exc_info.value is error
        with pytest.raises(AlreadyCompleted):
            computation.resume()

    def test_started_generator_cannot_be_adopted(self) -> None:
        def gen():
            yield countdown(0)

        generator = gen()
        next(generator)

        with pytest.raises(ComputationInUse):
            Computation.from_generator(generator)

    def test_names(self) -> None:
        """Computations carry a readable name for errors and logs."""
        assert factorial_tail.computation(1).name == "factorial_tail"
        assert Computation(factorial_tail, (1,)).name == "factorial_tail"
        assert Computation(len, ([],)).name == "len"
        assert Computation(lambda: 0, name="custom").name == "custom"

    def test_started_and_completed_flags(self) -> None:
        computation = factorial_recurse.computation(2)
        assert not computation.started

        computation.resume()
        assert computation.started
        assert not computation.completed

        computation.resume(1)
        assert computation.completed


class TestTrampolinedFunction:
    """Tests for metadata on the decorator's wrapper."""

    def test_metadata_is_preserved(self) -> None:
        @trampolined
        def documented(n: int):
            """Docstring."""
            yield finish(n)

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."
        assert list(inspect.signature(documented).parameters) == ["n"]
        assert documented.__wrapped__ is not None

    def test_method_binding(self) -> None:
        """Trampolined methods bind ``self`` into the descriptor's factory."""

        class Counter:
            def __init__(self, step: int) -> None:
                self.step = step

            @trampolined
            def total(self, n):
                if n == 0:
                    return 0
                return (yield self.total(n - 1)) + self.step

        descriptor = Counter(3).total(2)

        assert isinstance(descriptor, Call)
        assert descriptor.args == (2,)
