# sentinelpath/analysis/counter.py
from __future__ import annotations

from typing import AbstractSet, Iterable

from .statements import Statement, iter_child_statements


def as_targets(names: Iterable[str]) -> frozenset[str]:
    return frozenset(n for n in names if n)


def count_own_calls(node: Statement, targets: AbstractSet[str]) -> int:
    """Sentinel calls in the node's own expression parts, child statements excluded."""
    return sum(1 for name in node.calls if name in targets)


def count_sentinel_calls(node: Statement, targets: AbstractSet[str]) -> int:
    """
    Count calls to any of `targets` in `node` and every statement below it.

    Matching is by callee name only: no scope resolution, no tracking through
    aliases. Calls inside nested function literals are part of the enclosing
    statement's `calls` and therefore counted.
    """
    total = 0
    stack = [node]
    while stack:
        current = stack.pop()
        total += count_own_calls(current, targets)
        stack.extend(iter_child_statements(current))
    return total
