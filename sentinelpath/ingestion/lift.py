# sentinelpath/ingestion/lift.py
from __future__ import annotations
# -----------------------------------------------------------------------------
# Lift tree-sitter JS/TS syntax trees into the statement tree used by the
# path analysis.
#
# - Statement kinds the analysis distinguishes map to their own node type
# - Everything else becomes Other, keeping its position in the sequence
# - Every node records identifier callees found in its own expression parts;
#   nested function literals are walked as part of the enclosing statement
# -----------------------------------------------------------------------------

from typing import List, Optional, Tuple

from tree_sitter import Node

from ..analysis.statements import (
    Block,
    Break,
    Case,
    ExpressionCall,
    If,
    Loop,
    Other,
    Return,
    Statement,
    Switch,
    Throw,
    Try,
)
from ..models import Span
from .parser_registry import ParsedFile

_SKIPPED = {"comment", "empty_statement", "html_comment"}

_LOOP_KINDS = {
    "for_statement": "for",
    "for_in_statement": "for_in",
    "while_statement": "while",
    "do_statement": "do",
}

FUNCTION_LITERALS = {"arrow_function", "function_expression", "function"}


class StatementLifter:
    """
    Converts tree-sitter nodes of one parsed file into Statement nodes.

    Switch case bodies stop at their first top-level `break`: anything after it
    in the same case is unreachable.
    """

    def __init__(self, parsed: ParsedFile):
        self.parsed = parsed

    # ---------------------------
    # Public API
    # ---------------------------

    def lift_function_body(self, fn_node: Node) -> Statement:
        """Lift the body of a function literal; expression bodies become one leaf."""
        body = fn_node.child_by_field_name("body")
        if body is None:
            return Block(span=self.span(fn_node))
        if body.type == "statement_block":
            return self.lift(body)
        return self._leaf_expression(body, body)

    def lift(self, node: Node) -> Statement:
        kind = node.type

        if kind == "statement_block":
            return Block(statements=self._lift_all(node.named_children), span=self.span(node))
        if kind == "empty_statement":
            return Block(span=self.span(node))
        if kind == "if_statement":
            return self._lift_if(node)
        if kind == "try_statement":
            return self._lift_try(node)
        if kind == "switch_statement":
            return self._lift_switch(node)
        if kind in _LOOP_KINDS:
            return self._lift_loop(node)
        if kind == "return_statement":
            return Return(calls=self.collect_calls(node), span=self.span(node))
        if kind == "throw_statement":
            return Throw(calls=self.collect_calls(node), span=self.span(node))
        if kind == "break_statement" and node.child_by_field_name("label") is None:
            return Break(span=self.span(node))
        if kind == "labeled_statement":
            inner = node.child_by_field_name("body")
            if inner is not None:
                return self.lift(inner)
        if kind == "expression_statement":
            expr = _first_named(node)
            if expr is not None:
                return self._leaf_expression(expr, node)

        return Other(kind=kind, calls=self.collect_calls(node), span=self.span(node))

    def collect_calls(self, node: Optional[Node]) -> Tuple[str, ...]:
        """Identifier callees of every call_expression under `node`, in source order."""
        if node is None:
            return ()
        out: List[str] = []
        stack = [node]
        while stack:
            current = stack.pop()
            if current.type == "call_expression":
                callee = current.child_by_field_name("function")
                if callee is not None and callee.type == "identifier":
                    out.append(self.parsed.text(callee))
            stack.extend(reversed(current.children))
        return tuple(out)

    def span(self, node: Node) -> Span:
        sl, sc = node.start_point
        el, ec = node.end_point
        return Span(
            path=self.parsed.rel_path,
            line_start=sl + 1,
            col_start=sc,
            line_end=el + 1,
            col_end=ec,
            byte_start=node.start_byte,
            byte_end=node.end_byte,
        )

    # ---------------------------
    # Statement kinds
    # ---------------------------

    def _lift_all(self, nodes: List[Node]) -> Tuple[Statement, ...]:
        return tuple(self.lift(n) for n in nodes if n.type not in _SKIPPED)

    def _lift_if(self, node: Node) -> If:
        cond = node.child_by_field_name("condition")
        consequence = node.child_by_field_name("consequence")
        alternative = node.child_by_field_name("alternative")

        alternate: Optional[Statement] = None
        if alternative is not None:
            # else_clause wraps the statement
            inner = _first_named(alternative) if alternative.type == "else_clause" else alternative
            alternate = self.lift(inner) if inner is not None else Block(span=self.span(alternative))

        return If(
            consequent=self.lift(consequence) if consequence is not None else Block(),
            alternate=alternate,
            condition=self.parsed.text(cond) if cond is not None else None,
            calls=self.collect_calls(cond),
            span=self.span(node),
        )

    def _lift_try(self, node: Node) -> Try:
        body = node.child_by_field_name("body")
        handler = node.child_by_field_name("handler")
        finalizer = node.child_by_field_name("finalizer")

        handler_body = handler.child_by_field_name("body") if handler is not None else None
        finally_body = finalizer.child_by_field_name("body") if finalizer is not None else None

        return Try(
            try_body=self.lift(body) if body is not None else Block(),
            handler_body=self.lift(handler_body) if handler_body is not None else None,
            finally_body=self.lift(finally_body) if finally_body is not None else None,
            span=self.span(node),
        )

    def _lift_switch(self, node: Node) -> Switch:
        value = node.child_by_field_name("value")
        body = node.child_by_field_name("body")
        cases: List[Case] = []
        if body is not None:
            for arm in body.named_children:
                if arm.type == "switch_case":
                    test = arm.child_by_field_name("value")
                    cases.append(Case(
                        body=self._case_body(arm),
                        test=self.parsed.text(test) if test is not None else "",
                        span=self.span(arm),
                    ))
                elif arm.type == "switch_default":
                    cases.append(Case(body=self._case_body(arm), test=None, span=self.span(arm)))

        return Switch(
            cases=tuple(cases),
            discriminant=self.parsed.text(value) if value is not None else None,
            calls=self.collect_calls(value),
            span=self.span(node),
        )

    def _case_body(self, arm: Node) -> Tuple[Statement, ...]:
        # statements follow the ':' token
        out: List[Statement] = []
        seen_colon = False
        for child in arm.children:
            if not seen_colon:
                seen_colon = child.type == ":"
                continue
            if not child.is_named or child.type in _SKIPPED:
                continue
            out.append(self.lift(child))
            if child.type == "break_statement":
                break
        return tuple(out)

    def _lift_loop(self, node: Node) -> Loop:
        body = node.child_by_field_name("body")
        header: List[str] = []
        for child in node.children:
            if body is not None and _same(child, body):
                continue
            header.extend(self.collect_calls(child))
        return Loop(
            body=self.lift(body) if body is not None else Block(),
            kind=_LOOP_KINDS[node.type],
            calls=tuple(header),
            span=self.span(node),
        )

    def _leaf_expression(self, expr: Node, stmt: Node) -> Statement:
        calls = self.collect_calls(expr)
        if expr.type == "call_expression":
            callee = expr.child_by_field_name("function")
            name = self.parsed.text(callee) if callee is not None and callee.type == "identifier" else None
            return ExpressionCall(callee=name, calls=calls, span=self.span(stmt))
        return Other(kind=stmt.type, calls=calls, span=self.span(stmt))


# ---------------------------
# Helpers
# ---------------------------

def _first_named(node: Node) -> Optional[Node]:
    for child in node.named_children:
        if child.type not in _SKIPPED:
            return child
    return None


def _same(a: Node, b: Node) -> bool:
    return a.start_byte == b.start_byte and a.end_byte == b.end_byte and a.type == b.type
