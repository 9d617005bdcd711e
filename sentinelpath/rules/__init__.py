from .promise_executor import (
    MESSAGES,
    RULE_ID,
    ExecutorSite,
    Finding,
    FindingKind,
    PromiseExecutorRule,
    RuleResult,
)

__all__ = [
    "MESSAGES",
    "RULE_ID",
    "ExecutorSite",
    "Finding",
    "FindingKind",
    "PromiseExecutorRule",
    "RuleResult",
]
