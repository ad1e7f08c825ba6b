"""Factorial three ways: plain recursion, Recurse, and TailCall."""

from trampoline import execute, finish, run, tailcall, trampolined


def factorial(n: int) -> int:
    if n <= 1:
        return 1
    return factorial(n - 1) * n


@trampolined
def factorial_recurse(n: int):
    if n <= 1:
        return finish(1)
    value = yield factorial_recurse(n - 1)
    return value * n


@trampolined
def factorial_tail(n: int, acc: int = 1):
    if n <= 1:
        return finish(acc)
    return tailcall(factorial_tail(n - 1, acc * n))


if __name__ == "__main__":
    assert factorial(10) == run(factorial_recurse(10)) == run(factorial_tail(10)) == 3628800

    for n in (1000, 2000, 5000, 10000):
        deep = execute(factorial_recurse(n))
        flat = execute(factorial_tail(n))
        assert deep.value == flat.value
        print(
            f"n={n}: recurse max_depth={deep.stats.max_depth}, "
            f"tailcall max_depth={flat.stats.max_depth}"
        )
