# sentinelpath/analysis/paths.py
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..logging_utils import get_logger
from .statements import (
    Anchor,
    Block,
    Break,
    ExpressionCall,
    FunctionEntry,
    If,
    Loop,
    Other,
    Return,
    Statement,
    Switch,
    Throw,
    Try,
    as_sequence,
)

logger = get_logger(__name__)

DEFAULT_MAX_PATHS = 256
DEFAULT_MAX_DEPTH = 64

# =============================================================================
# Data model
# =============================================================================


class Terminal(str, Enum):
    FALLS_THROUGH = "falls-through"
    RETURNS = "returns"
    THROWS = "throws"
    BREAKS = "breaks"


@dataclass(frozen=True)
class ExecutionPath:
    """
    One route through a function body from entry to an exit point.

    Fields:
        statements:      Statements visited in order. Branching constructs appear
                         once, as the header the path passed through.
        terminal:        How the path ends.
        anchor:          Node a diagnostic for this path attaches to.
        sentinel_count:  Filled in by the classifier; None straight out of the
                         enumerator.
    """
    statements: Tuple[Statement, ...]
    terminal: Terminal
    anchor: Anchor
    sentinel_count: Optional[int] = None

    @property
    def terminated(self) -> bool:
        return self.terminal is not Terminal.FALLS_THROUGH


class AnalysisAborted(RuntimeError):
    """Analysis of one function body was abandoned; the host should report it as unverified."""


class PathLimitExceeded(AnalysisAborted):
    def __init__(self, reason: str, limit: int):
        super().__init__(f"analysis aborted - {reason} exceeded (limit {limit})")
        self.reason = reason
        self.limit = limit


# =============================================================================
# Enumerator
# =============================================================================

class PathEnumerator:
    """
    Splits a statement sequence into the distinct execution paths induced by
    branching and early-exit constructs.

    Forks:
      - If:     consequent, alternate (or a synthetic empty path anchored at the If)
      - Try:    try body, handler body; finally is joined onto every sub-path
      - Switch: one path per case, plus a "no case matched" path without default
      - Loop:   body executed once, plus a synthetic zero-iteration path
    Sub-paths that fall through are continued with the statements following
    the construct; terminated sub-paths are kept as they are. A `break` path
    counts as terminated until it leaves the enclosing switch case or loop body.

    Path count is exponential in nesting depth, so both the number of paths
    and the nesting depth are capped; exceeding either raises PathLimitExceeded.
    """

    def __init__(self, max_paths: int = DEFAULT_MAX_PATHS, max_depth: int = DEFAULT_MAX_DEPTH):
        if max_paths < 1 or max_depth < 1:
            raise ValueError("max_paths and max_depth must be positive")
        self.max_paths = max_paths
        self.max_depth = max_depth

    # -------------------------
    # Public API
    # -------------------------

    def enumerate(self, body: Statement, entry: Optional[FunctionEntry] = None) -> List[ExecutionPath]:
        if entry is None:
            entry = FunctionEntry(span=getattr(body, "span", None))
        if isinstance(body, Block):
            paths = self._walk(body.statements, (), entry, 0)
        else:
            paths = self._walk((body,), (), entry, 0)
        # a break outside any switch or loop ends the body
        paths = _resume_breaks(paths)
        logger.debug(f"enumerated {len(paths)} path(s), limit {self.max_paths}")
        return paths

    # -------------------------
    # Sequence walk
    # -------------------------

    def _walk(
        self,
        statements: Sequence[Statement],
        prefix: Tuple[Statement, ...],
        entry: FunctionEntry,
        depth: int,
    ) -> List[ExecutionPath]:
        if depth > self.max_depth:
            raise PathLimitExceeded("nesting depth", self.max_depth)

        pending = list(statements)
        i = 0
        while i < len(pending):
            node = pending[i]

            if isinstance(node, Block):
                # nested block: splice its statements in place
                pending[i:i + 1] = list(node.statements)
                continue

            if isinstance(node, (ExpressionCall, Other)):
                prefix = prefix + (node,)
                i += 1
                continue

            if isinstance(node, Return):
                return [ExecutionPath(prefix + (node,), Terminal.RETURNS, node)]
            if isinstance(node, Throw):
                return [ExecutionPath(prefix + (node,), Terminal.THROWS, node)]
            if isinstance(node, Break):
                return [ExecutionPath(prefix + (node,), Terminal.BREAKS, node)]

            if isinstance(node, If):
                forks = self._fork_if(node, prefix, entry, depth)
            elif isinstance(node, Try):
                forks = self._fork_try(node, prefix, entry, depth)
            elif isinstance(node, Switch):
                forks = self._fork_switch(node, prefix, entry, depth)
            elif isinstance(node, Loop):
                forks = self._fork_loop(node, prefix, entry, depth)
            else:
                raise TypeError(f"unsupported statement node: {type(node).__name__}")

            return self._continue(forks, pending[i + 1:], entry, depth)

        anchor = prefix[-1] if prefix else entry
        return [ExecutionPath(prefix, Terminal.FALLS_THROUGH, anchor)]

    def _continue(
        self,
        forks: List[ExecutionPath],
        rest: List[Statement],
        entry: FunctionEntry,
        depth: int,
    ) -> List[ExecutionPath]:
        out: List[ExecutionPath] = []
        for sub in forks:
            if sub.terminated or not rest:
                out.append(sub)
            else:
                out.extend(self._walk(rest, sub.statements, entry, depth))
            self._check(out)
        return out

    # -------------------------
    # Forks
    # -------------------------

    def _fork_if(self, node: If, prefix, entry, depth) -> List[ExecutionPath]:
        seed = prefix + (node,)
        paths = self._walk(as_sequence(node.consequent), seed, entry, depth + 1)
        if node.alternate is not None:
            paths.extend(self._walk(as_sequence(node.alternate), seed, entry, depth + 1))
        else:
            paths.append(ExecutionPath(seed, Terminal.FALLS_THROUGH, node))
        self._check(paths)
        return paths

    def _fork_try(self, node: Try, prefix, entry, depth) -> List[ExecutionPath]:
        seed = prefix + (node,)
        branches = self._walk(as_sequence(node.try_body), seed, entry, depth + 1)
        if node.handler_body is not None:
            branches.extend(self._walk(as_sequence(node.handler_body), seed, entry, depth + 1))
        self._check(branches)
        if node.finally_body is None:
            return branches

        finally_stmts = as_sequence(node.finally_body)
        joined: List[ExecutionPath] = []
        for sub in branches:
            for fin in self._walk(finally_stmts, sub.statements, entry, depth + 1):
                # a finally block that falls through keeps the branch's own exit
                if fin.terminal is Terminal.FALLS_THROUGH and (
                    sub.terminated or len(fin.statements) == len(sub.statements)
                ):
                    fin = replace(fin, terminal=sub.terminal, anchor=sub.anchor)
                joined.append(fin)
            self._check(joined)
        return joined

    def _fork_switch(self, node: Switch, prefix, entry, depth) -> List[ExecutionPath]:
        seed = prefix + (node,)
        paths: List[ExecutionPath] = []
        for case in node.cases:
            if not case.body:
                paths.append(ExecutionPath(seed, Terminal.FALLS_THROUGH, case))
            else:
                paths.extend(_resume_breaks(self._walk(case.body, seed, entry, depth + 1)))
            self._check(paths)
        if not any(case.is_default for case in node.cases):
            paths.append(ExecutionPath(seed, Terminal.FALLS_THROUGH, node))
        self._check(paths)
        return paths

    def _fork_loop(self, node: Loop, prefix, entry, depth) -> List[ExecutionPath]:
        seed = prefix + (node,)
        paths = _resume_breaks(self._walk(as_sequence(node.body), seed, entry, depth + 1))
        paths.append(ExecutionPath(seed, Terminal.FALLS_THROUGH, node))
        self._check(paths)
        return paths

    def _check(self, paths: List[ExecutionPath]) -> None:
        if len(paths) > self.max_paths:
            raise PathLimitExceeded("path count", self.max_paths)


def _resume_breaks(paths: List[ExecutionPath]) -> List[ExecutionPath]:
    """Paths that left a switch case or loop body via `break` continue after it."""
    return [
        replace(p, terminal=Terminal.FALLS_THROUGH) if p.terminal is Terminal.BREAKS else p
        for p in paths
    ]


def enumerate_paths(
    body: Statement,
    *,
    max_paths: int = DEFAULT_MAX_PATHS,
    max_depth: int = DEFAULT_MAX_DEPTH,
    entry: Optional[FunctionEntry] = None,
) -> List[ExecutionPath]:
    return PathEnumerator(max_paths=max_paths, max_depth=max_depth).enumerate(body, entry=entry)
