# sentinelpath/analysis/statements.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

from ..models import Span

# =============================================================================
# Statement tree
#
# Closed hierarchy of immutable statement nodes. Nodes compare by identity so
# that an anchor always refers to one position in the caller's tree.
#
# Every node carries `calls`: callee names of direct identifier calls found in
# the node's own non-statement parts (condition, discriminant, loop header,
# return/throw argument, or the whole expression of a leaf). Child statements
# are not folded into a parent's `calls`.
# =============================================================================


class Statement:
    """Base of the statement-node hierarchy. Only the variants below are valid."""

    __slots__ = ()


@dataclass(frozen=True, eq=False)
class Block(Statement):
    statements: Tuple[Statement, ...] = ()
    calls: Tuple[str, ...] = ()
    span: Optional[Span] = None


@dataclass(frozen=True, eq=False)
class If(Statement):
    consequent: Statement
    alternate: Optional[Statement] = None
    condition: Optional[str] = None
    calls: Tuple[str, ...] = ()
    span: Optional[Span] = None


@dataclass(frozen=True, eq=False)
class Try(Statement):
    try_body: Statement
    handler_body: Optional[Statement] = None
    finally_body: Optional[Statement] = None
    calls: Tuple[str, ...] = ()
    span: Optional[Span] = None


@dataclass(frozen=True, eq=False)
class Case:
    """One arm of a Switch. A case without a test is the default arm."""

    body: Tuple[Statement, ...] = ()
    test: Optional[str] = None
    span: Optional[Span] = None

    @property
    def is_default(self) -> bool:
        return self.test is None


@dataclass(frozen=True, eq=False)
class Switch(Statement):
    cases: Tuple[Case, ...] = ()
    discriminant: Optional[str] = None
    calls: Tuple[str, ...] = ()
    span: Optional[Span] = None


@dataclass(frozen=True, eq=False)
class Loop(Statement):
    body: Statement
    kind: str = "for"
    calls: Tuple[str, ...] = ()
    span: Optional[Span] = None


@dataclass(frozen=True, eq=False)
class Return(Statement):
    calls: Tuple[str, ...] = ()
    span: Optional[Span] = None


@dataclass(frozen=True, eq=False)
class Throw(Statement):
    calls: Tuple[str, ...] = ()
    span: Optional[Span] = None


@dataclass(frozen=True, eq=False)
class ExpressionCall(Statement):
    """Expression statement whose expression is a call; `callee` is set for bare identifiers."""

    callee: Optional[str] = None
    calls: Tuple[str, ...] = ()
    span: Optional[Span] = None

    def __post_init__(self):
        # the callee is always one of the statement's own calls
        if self.callee and self.callee not in self.calls:
            object.__setattr__(self, "calls", (self.callee,) + tuple(self.calls))


@dataclass(frozen=True, eq=False)
class Break(Statement):
    """Unlabeled `break`: leaves the innermost enclosing switch case or loop body."""

    calls: Tuple[str, ...] = ()
    span: Optional[Span] = None


@dataclass(frozen=True, eq=False)
class Other(Statement):
    kind: str = ""
    calls: Tuple[str, ...] = ()
    span: Optional[Span] = None


@dataclass(frozen=True, eq=False)
class FunctionEntry:
    """Synthetic anchor for a path that visits no statement at all."""

    span: Optional[Span] = None


Anchor = Union[Statement, Case, FunctionEntry]

LEAF_TYPES = (Return, Throw, Break, ExpressionCall, Other)


# =============================================================================
# Helpers
# =============================================================================

def as_sequence(node: Optional[Statement]) -> Tuple[Statement, ...]:
    """View a branch body as a statement sequence (a Block is unwrapped)."""
    if node is None:
        return ()
    if isinstance(node, Block):
        return node.statements
    return (node,)


def iter_child_statements(node: Statement) -> Iterator[Statement]:
    """Yield the direct child statements of `node` in source order."""
    if isinstance(node, Block):
        yield from node.statements
    elif isinstance(node, If):
        yield node.consequent
        if node.alternate is not None:
            yield node.alternate
    elif isinstance(node, Try):
        yield node.try_body
        if node.handler_body is not None:
            yield node.handler_body
        if node.finally_body is not None:
            yield node.finally_body
    elif isinstance(node, Switch):
        for case in node.cases:
            yield from case.body
    elif isinstance(node, Loop):
        yield node.body
    elif isinstance(node, LEAF_TYPES):
        return
    else:
        raise TypeError(f"unsupported statement node: {type(node).__name__}")


def anchor_span(anchor: Anchor) -> Optional[Span]:
    return getattr(anchor, "span", None)
