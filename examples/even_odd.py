"""Mutual recursion where one side is only known by name.

``even`` refers to ``odd`` through an identifier, so the driver needs a
registry entry for it. ``odd`` holds a direct reference to ``even``.
"""

from trampoline import UnresolvedCallee, call, finish, run, trampolined


@trampolined
def even(n: int):
    if n == 0:
        return finish(True)
    return (yield call("odd", n - 1))


@trampolined
def odd(n: int):
    if n == 0:
        return finish(False)
    return (yield even(n - 1))


if __name__ == "__main__":
    print(run(even(10000), odd=odd))
    print(run(even(10001), odd=odd))
    print(run(odd(10000), odd=odd))
    print(run(odd(10001), odd=odd))

    try:
        run(even(10000))
    except UnresolvedCallee as exc:
        print(f"without a registry: {exc.name!r} is unresolved")
