"""Shared fixtures for the trampoline test suite."""

from __future__ import annotations

import sys

import pytest

from trampoline import TrampolineConfig


@pytest.fixture
def deep_n() -> int:
    """A depth two orders of magnitude past the interpreter's recursion limit."""
    return sys.getrecursionlimit() * 100


@pytest.fixture
def quiet_config() -> TrampolineConfig:
    """Config with tracing off regardless of the environment."""
    return TrampolineConfig(trace=False)


@pytest.fixture
def trace_config() -> TrampolineConfig:
    return TrampolineConfig(trace=True)
