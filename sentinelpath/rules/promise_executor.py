# sentinelpath/rules/promise_executor.py
from __future__ import annotations

# -----------------------------------------------------------------------------
# Promise executor rule
#
# Inputs:
#   - A parsed JS/TS file
#   - Config (constructor names, rule mode, path limits, severity)
#
# Outputs:
#   - Findings for executors whose execution paths settle zero times or more
#     than once, and for executors that do not declare resolve/reject
#   - Anomalies for executors the analysis had to give up on
# -----------------------------------------------------------------------------
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from tree_sitter import Node

from ..analysis.classifier import VerdictKind, analyze
from ..analysis.counter import as_targets, count_sentinel_calls
from ..analysis.paths import AnalysisAborted
from ..analysis.statements import FunctionEntry, Statement, anchor_span
from ..config import MODE_AT_LEAST_ONE, Config
from ..ingestion.lift import FUNCTION_LITERALS, StatementLifter
from ..ingestion.parser_registry import ParsedFile
from ..logging_utils import get_logger
from ..models import Anomaly, AnomalyType, Severity, Span

logger = get_logger(__name__)

RULE_ID = "promise-executor-callbacks"


class FindingKind(str, Enum):
    MISSING_PARAMETERS = "missing-parameters"
    NO_CALLBACK = "no-callback"
    MULTIPLE_CALLBACKS = "multiple-callbacks"
    UNVERIFIED = "unverified"


MESSAGES: dict[FindingKind, str] = {
    FindingKind.MISSING_PARAMETERS: "Promise constructor must have both resolve and reject parameters",
    FindingKind.NO_CALLBACK: "Execution path must call exactly one callback (resolve or reject)",
    FindingKind.MULTIPLE_CALLBACKS: "Execution path calls multiple callbacks - each path should call exactly one",
    FindingKind.UNVERIFIED: "Unable to verify executor: path limit exceeded",
}

# wording used when only "at least one callback per path" is enforced
AT_LEAST_ONE_MESSAGES: dict[FindingKind, str] = {
    FindingKind.NO_CALLBACK: "Promise constructor must call resolve or reject in all execution paths",
}

_ROLES = ("resolve", "reject")

# ----------------------------- Public datatypes --------------------------------


@dataclass(frozen=True)
class Finding:
    rule_id: str
    kind: FindingKind
    message: str
    severity: Severity
    span: Span
    detail: dict[str, object] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class ExecutorSite:
    """A `new <Constructor>(fn, ...)` call whose first argument is a function literal."""

    constructor: str
    call_span: Span
    executor: Node
    executor_span: Span
    params: tuple[str | None, ...]


@dataclass
class RuleResult:
    findings: list[Finding] = field(default_factory=list)
    anomalies: list[Anomaly] = field(default_factory=list)
    metrics: dict[str, int] = field(default_factory=dict)


# ----------------------------- Rule -------------------------------------------


class PromiseExecutorRule:
    """
    Check that every execution path of a Promise executor calls exactly one of
    its resolve/reject parameters (or at least one, in "at-least-one" mode).

    Sentinels are matched by parameter name only: a callback stored in another
    variable, or a shadowing declaration in a nested closure, is not tracked.
    """

    rule_id = RULE_ID

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or Config()
        self.severity = Severity(self.config.severity)

    # ---------- Public API ----------

    def check(self, parsed: ParsedFile) -> RuleResult:
        result = RuleResult(metrics=dict(executors=0, paths=0, findings=0, unverified=0))
        if parsed.root is None:
            return result

        lifter = StatementLifter(parsed)
        for site in self.find_executors(parsed):
            result.metrics["executors"] += 1
            self._check_site(parsed, lifter, site, result)

        result.metrics["findings"] = len(result.findings)
        return result

    def find_executors(self, parsed: ParsedFile) -> Iterator[ExecutorSite]:
        if parsed.root is None:
            return
        lifter = StatementLifter(parsed)
        names = set(self.config.constructor_names or ())
        stack = [parsed.root]
        while stack:
            node = stack.pop()
            stack.extend(reversed(node.children))
            if node.type != "new_expression":
                continue
            ctor = node.child_by_field_name("constructor")
            if ctor is None or ctor.type != "identifier" or parsed.text(ctor) not in names:
                continue
            executor = _first_argument(node)
            if executor is None or executor.type not in FUNCTION_LITERALS:
                continue
            yield ExecutorSite(
                constructor=parsed.text(ctor),
                call_span=lifter.span(node),
                executor=executor,
                executor_span=lifter.span(executor),
                params=_parameter_names(parsed, executor),
            )

    # ---------- Internals ----------

    def _check_site(self, parsed: ParsedFile, lifter: StatementLifter, site: ExecutorSite, result: RuleResult) -> None:
        missing = self._missing_role(site.params)
        if missing is not None:
            message = MESSAGES[FindingKind.MISSING_PARAMETERS]
            if self.config.mode == MODE_AT_LEAST_ONE:
                message = f"Promise constructor must have a {missing} parameter"
            result.findings.append(self._finding(
                FindingKind.MISSING_PARAMETERS, site.executor_span, message, missing=missing,
            ))
            return

        resolve, reject = site.params[0], site.params[1]
        body = lifter.lift_function_body(site.executor)
        entry = FunctionEntry(span=site.executor_span)

        try:
            verdicts = analyze(
                body,
                resolve,
                reject,
                max_paths=self.config.max_paths,
                max_depth=self.config.max_depth,
                entry=entry,
            )
        except AnalysisAborted as e:
            self._report_aborted(parsed, site, body, resolve, reject, e, result)
            return

        result.metrics["paths"] += len(verdicts)
        seen: set[tuple[FindingKind, Span]] = set()
        for verdict in verdicts:
            if verdict.kind is VerdictKind.OK:
                continue
            if verdict.kind is VerdictKind.MULTIPLE_CALLBACKS and self.config.mode == MODE_AT_LEAST_ONE:
                continue
            kind = FindingKind(verdict.kind.value)
            span = anchor_span(verdict.anchor) or site.executor_span
            if (kind, span) in seen:
                continue
            seen.add((kind, span))
            result.findings.append(self._finding(
                kind, span, self._message(kind),
                callbacks=verdict.count, terminal=verdict.path.terminal.value,
            ))

    def _report_aborted(
        self,
        parsed: ParsedFile,
        site: ExecutorSite,
        body: Statement,
        resolve: str,
        reject: str,
        error: AnalysisAborted,
        result: RuleResult,
    ) -> None:
        logger.warning(f"{site.executor_span.short()}: {error}")
        result.anomalies.append(
            Anomaly(
                path=parsed.rel_path,
                content_hash=parsed.content_hash,
                typ=AnomalyType.PATH_LIMIT_EXCEEDED,
                severity=Severity.WARN,
                reason_detail=f"{site.executor_span.short()}: {error}",
            )
        )
        # no path can settle if the body never mentions either callback
        if count_sentinel_calls(body, as_targets((resolve, reject))) == 0:
            result.findings.append(self._finding(
                FindingKind.NO_CALLBACK, site.executor_span, self._message(FindingKind.NO_CALLBACK), callbacks=0,
            ))
            return
        result.metrics["unverified"] += 1
        result.findings.append(Finding(
            rule_id=self.rule_id,
            kind=FindingKind.UNVERIFIED,
            message=MESSAGES[FindingKind.UNVERIFIED],
            severity=Severity.WARN,
            span=site.executor_span,
            detail={"limit": getattr(error, "limit", None)},
        ))

    def _missing_role(self, params: tuple[str | None, ...]) -> str | None:
        for i, role in enumerate(_ROLES):
            if i >= len(params) or not params[i]:
                return role
        return None

    def _message(self, kind: FindingKind) -> str:
        if self.config.mode == MODE_AT_LEAST_ONE and kind in AT_LEAST_ONE_MESSAGES:
            return AT_LEAST_ONE_MESSAGES[kind]
        return MESSAGES[kind]

    def _finding(self, kind: FindingKind, span: Span, message: str, **detail: object) -> Finding:
        return Finding(
            rule_id=self.rule_id,
            kind=kind,
            message=message,
            severity=self.severity,
            span=span,
            detail=detail,
        )


# ----------------------------- Helpers ----------------------------------------


def _first_argument(new_node: Node) -> Node | None:
    args = new_node.child_by_field_name("arguments")
    if args is None:
        return None
    for child in args.named_children:
        if child.type != "comment":
            return child
    return None


def _parameter_names(parsed: ParsedFile, fn_node: Node) -> tuple[str | None, ...]:
    """Parameter names in order; None where a parameter is not a plain identifier."""
    single = fn_node.child_by_field_name("parameter")
    if single is not None:
        return (parsed.text(single) if single.type == "identifier" else None,)

    params = fn_node.child_by_field_name("parameters")
    if params is None:
        return ()
    out: list[str | None] = []
    for p in params.named_children:
        if p.type == "comment":
            continue
        if p.type in ("required_parameter", "optional_parameter"):
            # TypeScript wraps the binding pattern
            pattern = p.child_by_field_name("pattern")
            if pattern is not None:
                p = pattern
        out.append(parsed.text(p) if p.type == "identifier" else None)
    return tuple(out)
