# sentinelpath/pipeline.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .config import Config
from .ingestion.parser_registry import ParsedFile, ParserRegistry
from .ingestion.repo_loader import load_repo
from .logging_utils import get_logger, log_pipeline_step
from .models import Anomaly, Language
from .rules.promise_executor import Finding, PromiseExecutorRule

logger = get_logger(__name__)


@dataclass
class CheckResult:
    findings: List[Finding] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)
    tallies: Dict[str, int] = field(default_factory=dict)

    @property
    def has_errors(self) -> bool:
        return any(f.severity.value == "ERROR" for f in self.findings)


def check_paths(paths: Sequence[str], config: Config | None = None) -> CheckResult:
    """
    Check every JavaScript/TypeScript file under `paths`.

    Pipeline:
      1. Repo loader → FileRecords (with skip anomalies)
      2. ParserRegistry → tree-sitter trees
      3. PromiseExecutorRule → findings per executor
    """
    config = config or Config()
    result = CheckResult()

    log_pipeline_step("load", "started", {"paths": list(paths)})
    snap = load_repo(
        paths,
        extensions=config.extensions,
        max_file_bytes=config.max_file_bytes,
        excludes=config.excludes,
    )
    result.anomalies.extend(snap.anomalies)
    log_pipeline_step("load", "completed", snap.stats)

    registry = ParserRegistry()
    rule = PromiseExecutorRule(config)
    tallies = dict(files=0, executors=0, paths=0, findings=0, unverified=0)
    tallies["skipped"] = snap.stats.get("skipped", 0)

    log_pipeline_step("check", "started", {"files": len(snap.files)})
    for fr in snap.files:
        parsed = registry.parse_file(fr)
        _merge(result, tallies, parsed, rule)
    log_pipeline_step("check", "completed", tallies)

    result.tallies = tallies
    return result


def check_source(
    source: str | bytes,
    language: Language = Language.JAVASCRIPT,
    rel_path: str = "<memory>",
    config: Config | None = None,
) -> CheckResult:
    """Check a single in-memory source text."""
    result = CheckResult()
    tallies = dict(files=0, executors=0, paths=0, findings=0, unverified=0)
    parsed = ParserRegistry().parse_source(source, language, rel_path)
    _merge(result, tallies, parsed, PromiseExecutorRule(config or Config()))
    result.tallies = tallies
    return result


def _merge(result: CheckResult, tallies: Dict[str, int], parsed: ParsedFile, rule: PromiseExecutorRule) -> None:
    tallies["files"] += 1
    result.anomalies.extend(parsed.anomalies)
    if parsed.tree is None:
        return
    checked = rule.check(parsed)
    result.findings.extend(checked.findings)
    result.anomalies.extend(checked.anomalies)
    for key in ("executors", "paths", "findings", "unverified"):
        tallies[key] += checked.metrics.get(key, 0)
    logger.debug(f"{parsed.rel_path}: {checked.metrics}")
