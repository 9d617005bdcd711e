from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class Severity(Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class AnomalyType(Enum):
    READ_ERROR = auto()
    FILE_TOO_LARGE = auto()
    BINARY_FILE = auto()
    PARSE_ERROR = auto()
    PARTIAL_PARSE = auto()
    PATH_LIMIT_EXCEEDED = auto()


class Language(Enum):
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    TSX = "tsx"


@dataclass
class Anomaly:
    path: str
    content_hash: str | None
    typ: AnomalyType
    severity: Severity
    reason_detail: str


@dataclass(frozen=True)
class Span:
    """Source region. Lines are 1-based, columns 0-based, byte offsets -1 if unknown."""

    path: str
    line_start: int
    col_start: int
    line_end: int
    col_end: int
    byte_start: int = -1
    byte_end: int = -1

    def short(self) -> str:
        return f"{self.path}:{self.line_start}:{self.col_start + 1}"
