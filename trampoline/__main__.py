from __future__ import annotations

import argparse
import importlib
import json
import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from trampoline.debug import DEFAULT_MAX_STEPS, debug_run
from trampoline.driver import RunResult, execute
from trampoline.registry import Registry
from trampoline.signals import Call


@dataclass
class RunContext:
    program_path: str
    arguments: list[Any] = field(default_factory=list)
    registry_specs: list[str] = field(default_factory=list)
    output_format: str = "text"
    show_stats: bool = False
    debug: bool = False
    max_steps: int = DEFAULT_MAX_STEPS


def _import_symbol(path: str) -> Any:
    if ":" in path:
        module_name, attr_path = path.split(":", 1)
        module = importlib.import_module(module_name)
        return _resolve_attr(module, attr_path)
    parts = path.split(".")
    if len(parts) < 2:
        raise ValueError(
            f"'{path}' is not a fully-qualified symbol. Use module.symbol format."
        )
    module_name = ".".join(parts[:-1])
    attr_name = parts[-1]
    module = importlib.import_module(module_name)
    return getattr(module, attr_name)


def _resolve_attr(obj: Any, attr_path: str) -> Any:
    current = obj
    for attr in attr_path.split("."):
        current = getattr(current, attr)
    return current


def _parse_argument(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _parse_registry(specs: Iterable[str]) -> Registry:
    entries: dict[str, Callable[..., Any]] = {}
    for spec in specs:
        name, sep, path = spec.partition("=")
        if not sep:
            symbol = _import_symbol(name)
            name = getattr(symbol, "__name__", name.rsplit(".", 1)[-1])
        else:
            symbol = _import_symbol(path)
        entries[name] = symbol
    return Registry(entries)


def _build_initial(program: Any, arguments: list[Any]) -> Any:
    if isinstance(program, Call):
        if arguments:
            raise TypeError("--arg cannot be combined with a --program that is already a Call")
        return program
    if callable(program):
        return Call(program, tuple(arguments))
    raise TypeError(f"--program must resolve to a Call or a callable, got {type(program).__name__}")


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
        return value
    except TypeError:
        return repr(value)


def execute_context(context: RunContext) -> RunResult[Any]:
    program = _import_symbol(context.program_path)
    initial = _build_initial(program, context.arguments)
    registry = _parse_registry(context.registry_specs)
    if context.debug:
        return debug_run(initial, registry, max_steps=context.max_steps)
    return execute(initial, registry)


def _render_run_output(context: RunContext, result: RunResult[Any]) -> None:
    if context.output_format == "json":
        payload: dict[str, Any] = {
            "status": "ok",
            "program": context.program_path,
            "value": _json_safe(result.value),
            "value_type": type(result.value).__name__,
        }
        if context.show_stats:
            payload["stats"] = result.stats.as_dict()
        print(json.dumps(payload))
        return

    print(result.value)
    if context.show_stats:
        stats = result.stats
        print(
            f"steps={stats.steps} max_depth={stats.max_depth} "
            f"recursions={stats.recursions} tail_calls={stats.tail_calls}",
            file=sys.stderr,
        )


def handle_run(args: argparse.Namespace) -> int:
    context = RunContext(
        program_path=args.program,
        arguments=[_parse_argument(raw) for raw in args.args or []],
        registry_specs=args.registry or [],
        output_format=args.format,
        show_stats=args.stats,
        debug=args.debug,
        max_steps=args.max_steps,
    )
    result = execute_context(context)
    _render_run_output(context, result)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trampoline", description="Run recursive computations on an explicit stack"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Run a trampolined function to completion",
        description=(
            "Run a trampolined function to completion and print its result.\n\n"
            "Examples:\n"
            "  trampoline run --program examples.countdown:countdown --arg 5\n"
            "  trampoline run --program examples.even_odd:even --arg 10001 \\\n"
            "      --registry odd=examples.even_odd:odd --format json"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    run_parser.add_argument(
        "--program",
        required=True,
        help="Fully-qualified path to a trampolined function, computation factory or Call",
    )
    run_parser.add_argument(
        "--arg",
        action="append",
        dest="args",
        help="Positional argument for the program, parsed as JSON when possible (repeatable)",
    )
    run_parser.add_argument(
        "--registry",
        action="append",
        help="Registry entry as NAME=module.symbol, or module.symbol to use its __name__ (repeatable)",
    )
    run_parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text)",
    )
    run_parser.add_argument(
        "--stats",
        action="store_true",
        help="Report step count, maximum stack depth, recursions and tail calls",
    )
    run_parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every step through loguru and stop after --max-steps",
    )
    run_parser.add_argument(
        "--max-steps",
        type=int,
        default=DEFAULT_MAX_STEPS,
        help=f"Step budget for --debug (default: {DEFAULT_MAX_STEPS})",
    )
    run_parser.set_defaults(func=handle_run)

    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        return args.func(args)
    except Exception as exc:
        if getattr(args, "format", "text") == "json":
            payload = {
                "status": "error",
                "error": exc.__class__.__name__,
                "message": str(exc),
            }
            print(json.dumps(payload))
        else:
            print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
