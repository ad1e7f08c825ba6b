"""
Stack safety: recursion depth is bounded by memory, not by the interpreter.

Every test here runs far past ``sys.getrecursionlimit()``.
"""

from __future__ import annotations

import sys

import pytest

from trampoline import execute, run
from tests.programs import (
    countdown,
    even,
    native_depth,
    odd,
    probe_depth,
    sum_to,
    sum_to_tail,
)


def test_native_recursion_overflows(deep_n: int) -> None:
    """Baseline: the plain recursive form cannot reach this depth."""

    def native_sum(n: int) -> int:
        return 0 if n == 0 else native_sum(n - 1) + n

    with pytest.raises(RecursionError):
        native_sum(deep_n)


def test_deep_recurse_completes(deep_n: int) -> None:
    """A Recurse chain far beyond the recursion limit still completes."""
    result = execute(sum_to(deep_n))

    assert result.value == deep_n * (deep_n + 1) // 2
    assert result.stats.max_depth == deep_n + 1
    assert deep_n > sys.getrecursionlimit() * 10


def test_native_depth_independent_of_recursion_depth(deep_n: int) -> None:
    """The Python stack at the bottom of the recursion is as deep for N=deep as for N=3."""
    shallow: list[int] = []
    deep: list[int] = []

    run(probe_depth(3, shallow))
    run(probe_depth(deep_n, deep))

    assert shallow == deep


def test_deep_countdown_side_effects(deep_n: int) -> None:
    seen: list[int] = []

    run(countdown(deep_n, seen.append))

    assert len(seen) == deep_n
    assert seen[:3] == [1, 2, 3]
    assert seen[-1] == deep_n
    assert seen == sorted(seen)


def test_tailcall_keeps_one_frame(deep_n: int) -> None:
    """A chain of N tail calls never holds more than one live frame."""
    depths: set[int] = set()

    result = execute(sum_to_tail(deep_n), on_step=lambda s: depths.add(s.depth))

    assert result.value == deep_n * (deep_n + 1) // 2
    assert result.stats.max_depth == 1
    assert result.stats.tail_calls == deep_n
    assert depths <= {0, 1}


def test_mutual_recursion_past_limit(deep_n: int) -> None:
    assert run(even(deep_n), odd=odd) is (deep_n % 2 == 0)
    assert run(even(deep_n + 1), odd=odd) is (deep_n % 2 == 1)


def test_probe_reports_constant_native_depth() -> None:
    """Sanity check for the probe itself: it measures the current Python stack."""

    def nested(levels: int) -> int:
        return native_depth() if levels == 0 else nested(levels - 1)

    assert nested(5) == nested(0) + 5
