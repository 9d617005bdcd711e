# sentinelpath/report.py
from __future__ import annotations
# -----------------------------------------------------------------------------
# Run report (JSON), SARIF export and plain-text rendering of check results
# -----------------------------------------------------------------------------

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from . import __version__
from .models import Anomaly, Severity, Span
from .pipeline import CheckResult
from .rules.promise_executor import MESSAGES, RULE_ID, Finding, FindingKind

# ------------------------------ Run report ------------------------------------

def compute_run_report(result: CheckResult, *, roots: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    Summarize a check run: tallies, findings by kind, anomaly histogram.
    Returns a JSON-serializable dict.
    """
    by_kind: Dict[str, int] = {}
    for f in result.findings:
        by_kind[f.kind.value] = by_kind.get(f.kind.value, 0) + 1

    anom_hist: Dict[str, Dict[str, int]] = {}
    for a in result.anomalies:
        bucket = anom_hist.setdefault(a.typ.name, {})
        bucket[a.severity.value] = bucket.get(a.severity.value, 0) + 1

    return {
        "tool": "sentinelpath",
        "version": __version__,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "roots": roots or [],
        "tallies": dict(result.tallies),
        "findings_by_kind": by_kind,
        "findings": [_finding_dict(f) for f in _sorted(result.findings)],
        "anomalies": [_anomaly_dict(a) for a in result.anomalies],
        "anomaly_histogram": anom_hist,
    }

def save_run_report_json(report: Dict[str, Any], out_path: str) -> None:
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(report, f, ensure_ascii=False, indent=2)

# ------------------------------ SARIF export ----------------------------------

def build_sarif(result: CheckResult) -> Dict[str, Any]:
    """
    Minimal SARIF v2.1.0 document: one rule per finding kind, one result per finding.
    """
    results = []
    kinds_seen = set()
    for f in _sorted(result.findings):
        rule_id = f"{RULE_ID}/{f.kind.value}"
        kinds_seen.add(f.kind)
        results.append({
            "ruleId": rule_id,
            "level": _sarif_level(f.severity),
            "message": {"text": f.message},
            "locations": [{
                "physicalLocation": {
                    "artifactLocation": {"uri": f.span.path},
                    "region": _region(f.span),
                }
            }],
            "properties": {k: v for k, v in f.detail.items() if v is not None},
        })

    rules = [
        {
            "id": f"{RULE_ID}/{kind.value}",
            "shortDescription": {"text": MESSAGES[kind]},
        }
        for kind in FindingKind
        if kind in kinds_seen
    ]

    return {
        "version": "2.1.0",
        "$schema": "https://json.schemastore.org/sarif-2.1.0.json",
        "runs": [{
            "tool": {
                "driver": {
                    "name": "sentinelpath",
                    "version": __version__,
                    "rules": rules,
                }
            },
            "results": results,
        }],
    }

def export_sarif(result: CheckResult, out_path: str) -> None:
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(build_sarif(result), f, ensure_ascii=False, indent=2)

# ------------------------------ Text output -----------------------------------

def render_text(result: CheckResult) -> str:
    lines = []
    for f in _sorted(result.findings):
        lines.append(f"{f.span.short()}: {f.severity.value.lower()} [{f.kind.value}] {f.message}")
    for a in result.anomalies:
        if a.severity is not Severity.INFO:
            lines.append(f"{a.path}: {a.severity.value.lower()} [{a.typ.name}] {a.reason_detail}")
    t = result.tallies
    lines.append(
        f"{t.get('files', 0)} file(s), {t.get('executors', 0)} executor(s), "
        f"{len(result.findings)} finding(s)"
    )
    return "\n".join(lines)

# ------------------------------- Helpers --------------------------------------

def _sorted(findings: List[Finding]) -> List[Finding]:
    return sorted(findings, key=lambda f: (f.span.path, f.span.line_start, f.span.col_start, f.kind.value))

def _finding_dict(f: Finding) -> Dict[str, Any]:
    return {
        "rule_id": f.rule_id,
        "kind": f.kind.value,
        "message": f.message,
        "severity": f.severity.value,
        "path": f.span.path,
        "line": f.span.line_start,
        "column": f.span.col_start + 1,
        "end_line": f.span.line_end,
        "end_column": f.span.col_end + 1,
        "detail": f.detail,
    }

def _anomaly_dict(a: Anomaly) -> Dict[str, Any]:
    return {
        "path": a.path,
        "type": a.typ.name,
        "severity": a.severity.value,
        "detail": a.reason_detail,
        "content_hash": a.content_hash,
    }

def _region(span: Span) -> Dict[str, int]:
    return {
        "startLine": max(1, span.line_start),
        "startColumn": max(1, span.col_start + 1),
        "endLine": max(1, span.line_end),
        "endColumn": max(1, span.col_end + 1),
    }

def _sarif_level(sev: Severity) -> str:
    if sev is Severity.ERROR: return "error"
    if sev is Severity.WARN: return "warning"
    return "note"
