from __future__ import annotations

import pytest

from sentinelpath.analysis.counter import as_targets, count_own_calls, count_sentinel_calls
from sentinelpath.analysis.statements import (
    Block,
    Case,
    ExpressionCall,
    If,
    Loop,
    Other,
    Return,
    Switch,
    Try,
)

TARGETS = as_targets(("resolve", "reject"))


def call(name: str) -> ExpressionCall:
    return ExpressionCall(callee=name, calls=(name,))


def test_as_targets_drops_empty_names():
    assert as_targets(("resolve", "", "reject")) == frozenset({"resolve", "reject"})


def test_own_calls_ignore_child_statements():
    node = If(consequent=call("resolve"), calls=("reject",))
    assert count_own_calls(node, TARGETS) == 1
    assert count_sentinel_calls(node, TARGETS) == 2


def test_non_sentinel_calls_are_not_counted():
    assert count_sentinel_calls(Block((call("fetch"), call("log"))), TARGETS) == 0


def test_nested_callback_calls_count_toward_statement():
    # setTimeout(() => resolve(), 10) lifted with the inner call folded in
    timer = ExpressionCall(callee="setTimeout", calls=("setTimeout", "resolve"))
    assert count_sentinel_calls(timer, TARGETS) == 1


def test_every_compound_kind_is_descended():
    body = Block((
        Try(
            try_body=Block((call("resolve"),)),
            handler_body=Block((call("reject"),)),
            finally_body=Block((Other(kind="x", calls=("resolve",)),)),
        ),
        Switch(cases=(Case(body=(call("reject"),), test="1"),), calls=("resolve",)),
        Loop(body=Return(calls=("reject",)), calls=("resolve",)),
    ))
    assert count_sentinel_calls(body, TARGETS) == 7


def test_repeated_calls_in_one_statement():
    node = Other(kind="lexical_declaration", calls=("resolve", "resolve"))
    assert count_own_calls(node, TARGETS) == 2


def test_unknown_node_type_is_rejected():
    class Alien:
        calls = ()

    with pytest.raises(TypeError):
        count_sentinel_calls(Alien(), TARGETS)


def test_callee_is_part_of_own_calls():
    assert count_own_calls(ExpressionCall(callee="resolve"), TARGETS) == 1
    assert ExpressionCall(callee="resolve", calls=("resolve", "run")).calls == ("resolve", "run")
    assert count_own_calls(ExpressionCall(callee="resolve", calls=("resolve",)), TARGETS) == 1
