from __future__ import annotations

import itertools
from dataclasses import dataclass, field

from trampoline.computation import Computation

_frame_id_counter = itertools.count(1)


def _next_frame_id() -> int:
    return next(_frame_id_counter)


@dataclass(frozen=True)
class Frame:
    computation: Computation
    frame_id: int = field(default_factory=_next_frame_id, compare=False)

    @property
    def name(self) -> str:
        return self.computation.name


Stack = list[Frame]


def format_stack(stack: Stack, limit: int = 8) -> str:
    """Render the stack bottom-to-top, eliding the middle of deep stacks."""
    parts = [f"F#{frame.frame_id}({frame.name})" for frame in stack[:limit]]
    if len(stack) > 2 * limit:
        parts.append(f"... {len(stack) - 2 * limit} more ...")
        parts.extend(f"F#{frame.frame_id}({frame.name})" for frame in stack[-limit:])
    elif len(stack) > limit:
        parts.extend(f"F#{frame.frame_id}({frame.name})" for frame in stack[limit:])
    return "[" + ", ".join(parts) + "]"


__all__ = ["Frame", "Stack", "format_stack"]
