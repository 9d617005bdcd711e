"""
Source ingestion: file discovery, tree-sitter parsing, statement-tree lifting.
"""

from .lift import StatementLifter
from .parser_registry import ParsedFile, ParserRegistry
from .repo_loader import FileRecord, RepoSnapshot, language_for_path, load_repo

__all__ = [
    "FileRecord",
    "ParsedFile",
    "ParserRegistry",
    "RepoSnapshot",
    "StatementLifter",
    "language_for_path",
    "load_repo",
]
