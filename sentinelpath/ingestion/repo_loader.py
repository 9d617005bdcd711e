# sentinelpath/ingestion/repo_loader.py
from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass, field
from hashlib import blake2b
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..models import Anomaly, AnomalyType, Language, Severity

# -----------------------------
# Data models
# -----------------------------

@dataclass(frozen=True)
class FileRecord:
    """
    Immutable description of a single source file selected for checking.

    Fields:
        rel_path:      Path relative to the root it was found under (POSIX style).
        abs_path:      Absolute filesystem path.
        language:      Grammar used to parse it.
        size_bytes:    File size in bytes.
        content_hash:  BLAKE2b (16-byte) hex digest of full file contents.
    """
    rel_path: str
    abs_path: str
    language: Language
    size_bytes: int
    content_hash: str


@dataclass
class RepoSnapshot:
    """
    Files accepted for checking plus everything skipped along the way.

    Attributes:
        files:      Accepted FileRecord entries, sorted by rel_path per root.
        anomalies:  Non-fatal issues encountered (size limits, binary, unreadable).
        stats:      Basic counters (scanned, accepted, skipped).
    """
    files: List[FileRecord] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)


# -----------------------------
# Configuration: language map & exclusions
# -----------------------------

_EXT_TO_LANG = {
    ".js": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".cjs": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
    ".ts": Language.TYPESCRIPT,
    ".mts": Language.TYPESCRIPT,
    ".cts": Language.TYPESCRIPT,
    ".tsx": Language.TSX,
}

_DEFAULT_EXCLUDES = [
    "**/.git/**",
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/coverage/**",
    "**/*.min.js",
    "**/*.d.ts",
]

# -----------------------------
# Helpers
# -----------------------------

def _posix_rel(base: str, path: str) -> str:
    rel = os.path.relpath(path, base)
    return rel.replace("\\", "/")

def _hash_file(path: str, chunk_size: int = 1 << 20) -> Tuple[str, int]:
    h = blake2b(digest_size=16)
    size = 0
    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            size += len(chunk)
            h.update(chunk)
    return h.hexdigest(), size

def _is_probably_binary(sample: bytes) -> bool:
    if b"\x00" in sample:
        return True
    textish = sum(1 for b in sample if 9 <= b <= 13 or 32 <= b <= 126 or b >= 128)
    return (len(sample) - textish) / max(1, len(sample)) > 0.30

def language_for_path(path: str) -> Optional[Language]:
    _, ext = os.path.splitext(path)
    return _EXT_TO_LANG.get(ext.lower())

def _matches_any(patterns: List[str], rel_path: str) -> bool:
    # "**/x/**" should also match a top-level "x/..."
    return any(
        fnmatch.fnmatch(rel_path, pat) or (pat.startswith("**/") and fnmatch.fnmatch(rel_path, pat[3:]))
        for pat in patterns
    )

# -----------------------------
# Main entrypoint
# -----------------------------

def load_repo(
    paths: Iterable[str],
    extensions: Optional[List[str]] = None,
    max_file_bytes: int = 1_000_000,
    include_hidden: bool = False,
    excludes: Optional[List[str]] = None,
) -> RepoSnapshot:
    """
    Collect JavaScript/TypeScript sources from files and directories.

    Explicitly named files are always considered (exclusions apply to directory
    walks only); their extension must still map to a supported language.
    """
    exclusions = list(_DEFAULT_EXCLUDES)
    if excludes:
        exclusions.extend(excludes)
    allowed = {e.lower() for e in extensions} if extensions else set(_EXT_TO_LANG)

    snap = RepoSnapshot()
    scanned = skipped = 0

    for raw in paths:
        abs_path = os.path.abspath(raw)
        if os.path.isdir(abs_path):
            candidates = _iter_dir(abs_path, exclusions, include_hidden)
        else:
            candidates = iter([(os.path.dirname(abs_path), abs_path)])

        for root, candidate in candidates:
            scanned += 1
            rec = _make_record(root, candidate, allowed, max_file_bytes, snap.anomalies)
            if rec is None:
                skipped += 1
                continue
            snap.files.append(rec)

    snap.stats = dict(scanned=scanned, accepted=len(snap.files), skipped=skipped)
    return snap

# -----------------------------
# Iterators
# -----------------------------

def _iter_dir(abs_root: str, excludes: List[str], include_hidden: bool) -> Iterator[Tuple[str, str]]:
    for dirpath, dirnames, filenames in os.walk(abs_root):
        dirnames.sort()
        if not include_hidden:
            dirnames[:] = [d for d in dirnames if not d.startswith(".")]

        for fname in sorted(filenames):
            if not include_hidden and fname.startswith("."):
                continue
            abspath = os.path.join(dirpath, fname)
            if _matches_any(excludes, _posix_rel(abs_root, abspath)):
                continue
            yield abs_root, abspath


def _make_record(
    root: str,
    abspath: str,
    allowed: set,
    max_file_bytes: int,
    anomalies: List[Anomaly],
) -> Optional[FileRecord]:
    rel = _posix_rel(root, abspath)
    _, ext = os.path.splitext(rel)
    language = language_for_path(rel)
    if language is None or ext.lower() not in allowed:
        return None

    try:
        size = os.path.getsize(abspath)
    except OSError as e:
        anomalies.append(_anomaly(rel, AnomalyType.READ_ERROR, Severity.ERROR, f"stat failed: {e}"))
        return None

    if size > max_file_bytes:
        anomalies.append(_anomaly(rel, AnomalyType.FILE_TOO_LARGE, Severity.WARN, f"{size} > {max_file_bytes} bytes"))
        return None

    try:
        with open(abspath, "rb") as f:
            prefix = f.read(4096)
        digest, real_size = _hash_file(abspath)
    except OSError as e:
        anomalies.append(_anomaly(rel, AnomalyType.READ_ERROR, Severity.ERROR, f"read failed: {e}"))
        return None

    if _is_probably_binary(prefix):
        anomalies.append(_anomaly(rel, AnomalyType.BINARY_FILE, Severity.INFO, "binary-like content"))
        return None

    return FileRecord(
        rel_path=rel,
        abs_path=abspath,
        language=language,
        size_bytes=real_size,
        content_hash=digest,
    )


def _anomaly(rel: str, typ: AnomalyType, severity: Severity, detail: str) -> Anomaly:
    return Anomaly(path=rel, content_hash=None, typ=typ, severity=severity, reason_detail=detail)
