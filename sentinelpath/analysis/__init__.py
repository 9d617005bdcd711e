"""
Path enumeration and sentinel-call analysis over statement trees.
"""

from .classifier import Verdict, VerdictKind, analyze, classify, path_sentinel_count
from .counter import count_own_calls, count_sentinel_calls
from .paths import (
    AnalysisAborted,
    ExecutionPath,
    PathEnumerator,
    PathLimitExceeded,
    Terminal,
    enumerate_paths,
)
from .statements import (
    Block,
    Break,
    Case,
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
)

__all__ = [
    "AnalysisAborted",
    "Block",
    "Break",
    "Case",
    "ExecutionPath",
    "ExpressionCall",
    "FunctionEntry",
    "If",
    "Loop",
    "Other",
    "PathEnumerator",
    "PathLimitExceeded",
    "Return",
    "Statement",
    "Switch",
    "Terminal",
    "Throw",
    "Try",
    "Verdict",
    "VerdictKind",
    "analyze",
    "classify",
    "count_own_calls",
    "count_sentinel_calls",
    "enumerate_paths",
    "path_sentinel_count",
]
