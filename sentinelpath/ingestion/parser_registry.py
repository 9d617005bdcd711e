# sentinelpath/ingestion/parser_registry.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import tree_sitter_javascript as ts_javascript
import tree_sitter_typescript as ts_typescript
from tree_sitter import Language as TSLanguage
from tree_sitter import Node, Parser, Tree

from ..logging_utils import get_logger
from ..models import Anomaly, AnomalyType, Language, Severity
from .repo_loader import FileRecord

logger = get_logger(__name__)

# =============================================================================
# Parsed file surface
# =============================================================================

@dataclass
class ParsedFile:
    """
    Container for a parsed file.

    `tree` is None when the file could not be read or parsed; the reason is
    recorded in `anomalies`.
    """
    language: Language
    rel_path: str
    source: bytes
    tree: Optional[Tree]
    content_hash: Optional[str] = None
    anomalies: List[Anomaly] = field(default_factory=list)

    @property
    def root(self) -> Optional[Node]:
        return self.tree.root_node if self.tree is not None else None

    def text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


# =============================================================================
# Grammar loading
# =============================================================================

def _load_language(language: Language) -> TSLanguage:
    if language is Language.JAVASCRIPT:
        return TSLanguage(ts_javascript.language())
    if language is Language.TYPESCRIPT:
        return TSLanguage(ts_typescript.language_typescript())
    if language is Language.TSX:
        return TSLanguage(ts_typescript.language_tsx())
    raise ValueError(f"Unsupported language: {language}")


def _count_errors(root: Node, max_nodes: int = 50_000) -> int:
    stack = [root]
    n = 0
    errs = 0
    while stack and n < max_nodes:
        node = stack.pop()
        n += 1
        if node.is_error or node.is_missing:
            errs += 1
        stack.extend(node.children)
    return errs


# =============================================================================
# Parser registry
# =============================================================================

class ParserRegistry:
    """
    Chooses a tree-sitter parser by language.
    Parsers are created on first use and reused for later files.
    """

    def __init__(self) -> None:
        self._parsers: Dict[Language, Parser] = {}

    def _for_language(self, language: Language) -> Parser:
        if language not in self._parsers:
            self._parsers[language] = Parser(_load_language(language))
        return self._parsers[language]

    def parse_source(
        self,
        source: bytes | str,
        language: Language = Language.JAVASCRIPT,
        rel_path: str = "<memory>",
        content_hash: Optional[str] = None,
    ) -> ParsedFile:
        if isinstance(source, str):
            source = source.encode("utf-8")
        anomalies: List[Anomaly] = []

        tree = self._for_language(language).parse(source)
        if tree.root_node.has_error:
            errors = _count_errors(tree.root_node)
            anomalies.append(
                Anomaly(
                    path=rel_path,
                    content_hash=content_hash,
                    typ=AnomalyType.PARTIAL_PARSE,
                    severity=Severity.WARN,
                    reason_detail=f"{errors} syntax error node(s); analysis continues on the recovered tree",
                )
            )
        return ParsedFile(
            language=language,
            rel_path=rel_path,
            source=source,
            tree=tree,
            content_hash=content_hash,
            anomalies=anomalies,
        )

    def parse_file(self, fr: FileRecord) -> ParsedFile:
        try:
            with open(fr.abs_path, "rb") as f:
                source = f.read()
        except OSError as e:
            return ParsedFile(
                language=fr.language,
                rel_path=fr.rel_path,
                source=b"",
                tree=None,
                content_hash=fr.content_hash,
                anomalies=[
                    Anomaly(
                        path=fr.rel_path,
                        content_hash=fr.content_hash,
                        typ=AnomalyType.READ_ERROR,
                        severity=Severity.ERROR,
                        reason_detail=str(e),
                    )
                ],
            )

        try:
            return self.parse_source(source, fr.language, fr.rel_path, fr.content_hash)
        except ValueError as e:
            # tree-sitter raises ValueError for unusable input / grammar mismatch
            logger.error(f"Parse failed for {fr.rel_path}: {e}")
            return ParsedFile(
                language=fr.language,
                rel_path=fr.rel_path,
                source=source,
                tree=None,
                content_hash=fr.content_hash,
                anomalies=[
                    Anomaly(
                        path=fr.rel_path,
                        content_hash=fr.content_hash,
                        typ=AnomalyType.PARSE_ERROR,
                        severity=Severity.ERROR,
                        reason_detail=str(e),
                    )
                ],
            )
