"""Printing 1..n with plain recursion, then with the trampoline.

The naive version exhausts the Python stack for large n; the trampolined
version keeps every pending call on the driver's stack instead.
"""

import sys

from trampoline import run, trampolined


def print_numbers(n: int) -> None:
    if n >= 1:
        print_numbers(n - 1)
        print(n)


@trampolined
def countdown(n: int):
    if n >= 1:
        yield countdown(n - 1)
        print(n)


if __name__ == "__main__":
    print_numbers(5)
    run(countdown(5))

    try:
        print_numbers(sys.getrecursionlimit() * 10)
    except RecursionError as exc:
        print(f"plain recursion failed: {exc}", file=sys.stderr)

    run(countdown(sys.getrecursionlimit() * 10))
