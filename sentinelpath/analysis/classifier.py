# sentinelpath/analysis/classifier.py
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import AbstractSet, List, Optional

from ..logging_utils import get_logger
from .counter import as_targets, count_own_calls
from .paths import DEFAULT_MAX_DEPTH, DEFAULT_MAX_PATHS, ExecutionPath, PathEnumerator
from .statements import Anchor, FunctionEntry, Statement

logger = get_logger(__name__)


class VerdictKind(str, Enum):
    OK = "ok"
    NO_CALLBACK = "no-callback"
    MULTIPLE_CALLBACKS = "multiple-callbacks"


@dataclass(frozen=True)
class Verdict:
    path: ExecutionPath
    kind: VerdictKind

    @property
    def anchor(self) -> Anchor:
        return self.path.anchor

    @property
    def count(self) -> int:
        return self.path.sentinel_count or 0

    @property
    def ok(self) -> bool:
        return self.kind is VerdictKind.OK


def path_sentinel_count(path: ExecutionPath, targets: AbstractSet[str]) -> int:
    # Branch headers sit on the path next to the statements taken inside them,
    # so each entry contributes only its own calls.
    return sum(count_own_calls(stmt, targets) for stmt in path.statements)


def verdict_kind(count: int) -> VerdictKind:
    if count == 0:
        return VerdictKind.NO_CALLBACK
    if count == 1:
        return VerdictKind.OK
    return VerdictKind.MULTIPLE_CALLBACKS


def classify(path: ExecutionPath, targets: AbstractSet[str]) -> Verdict:
    count = path_sentinel_count(path, targets)
    return Verdict(path=replace(path, sentinel_count=count), kind=verdict_kind(count))


def analyze(
    body: Statement,
    target_a: str,
    target_b: str,
    *,
    max_paths: int = DEFAULT_MAX_PATHS,
    max_depth: int = DEFAULT_MAX_DEPTH,
    entry: Optional[FunctionEntry] = None,
) -> List[Verdict]:
    """
    Enumerate every path through `body` and classify each by how many times it
    calls `target_a` or `target_b`.

    Returns one Verdict per path, in enumeration order. Raises PathLimitExceeded
    when the body is too branchy to enumerate within the given limits.
    """
    if not target_a or not target_b:
        raise ValueError("two non-empty sentinel names are required")
    targets = as_targets((target_a, target_b))
    paths = PathEnumerator(max_paths=max_paths, max_depth=max_depth).enumerate(body, entry=entry)
    verdicts = [classify(p, targets) for p in paths]
    logger.debug(
        f"sentinels {sorted(targets)}: {len(verdicts)} path(s), "
        f"{sum(1 for v in verdicts if not v.ok)} flagged"
    )
    return verdicts
