"""Core data models shared across doccheck components."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, Optional, Tuple, Union
from urllib.parse import unquote


class LinkKind(str, Enum):
    """Classification of a link target."""

    EXTERNAL = "external"
    RELATIVE = "relative"
    ANCHOR = "anchor"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Heading:
    """ATX or setext heading with its GitHub-style anchor."""

    level: int
    title: str
    line: int
    anchor: str


@dataclass(frozen=True)
class Link:
    """Reference from a document to a URL, file, or anchor."""

    target: str
    text: str
    kind: LinkKind
    line: int
    column: int
    image: bool = False
    reference: Optional[str] = None

    @property
    def path_part(self) -> str:
        """Return the target path without fragment or query, percent-decoded."""
        path = self.target.split("#", 1)[0]
        path = path.split("?", 1)[0]
        return unquote(path)

    @property
    def fragment(self) -> Optional[str]:
        if "#" not in self.target:
            return None
        return unquote(self.target.split("#", 1)[1])


@dataclass(frozen=True)
class CodeBlock:
    """Fenced region of literal text."""

    language: Optional[str]
    info: str
    content: str
    line: int
    fence: str
    closed: bool = True


@dataclass(frozen=True)
class ParseWarning:
    """Malformed syntax the parser recovered from."""

    line: int
    kind: str
    detail: str


Block = Union[Heading, Link, CodeBlock]


@dataclass(frozen=True)
class Document:
    """A parsed markdown file; immutable once loaded."""

    path: Path
    rel_path: str
    text: str
    blocks: Tuple[Block, ...] = ()
    explicit_anchors: FrozenSet[str] = frozenset()
    warnings: Tuple[ParseWarning, ...] = ()

    @property
    def headings(self) -> Tuple[Heading, ...]:
        return tuple(block for block in self.blocks if isinstance(block, Heading))

    @property
    def links(self) -> Tuple[Link, ...]:
        return tuple(block for block in self.blocks if isinstance(block, Link))

    @property
    def code_blocks(self) -> Tuple[CodeBlock, ...]:
        return tuple(block for block in self.blocks if isinstance(block, CodeBlock))

    @property
    def anchors(self) -> FrozenSet[str]:
        """Return every fragment identifier this document defines."""
        return frozenset(heading.anchor for heading in self.headings) | self.explicit_anchors


@dataclass(frozen=True)
class Issue:
    """Single report entry, rendered as ``path:line: kind: detail``."""

    path: str
    line: int
    kind: str
    detail: str
    severity: Severity = Severity.ERROR
    column: int = 0

    def format(self) -> str:
        return f"{self.path}:{self.line}: {self.kind}: {self.detail}"

    def to_dict(self) -> Dict[str, object]:
        return {
            "path": self.path,
            "line": self.line,
            "kind": self.kind,
            "detail": self.detail,
            "severity": self.severity.value,
            "column": self.column,
        }


@dataclass(frozen=True)
class DocumentReport:
    """Issues found in one document, or the error that prevented reading it."""

    path: str
    issues: Tuple[Issue, ...] = ()
    error: Optional[str] = None

    @property
    def all_issues(self) -> Tuple[Issue, ...]:
        if self.error is None:
            return self.issues
        read_error = Issue(path=self.path, line=0, kind="read-error", detail=self.error)
        return (read_error,) + self.issues

    @property
    def is_clean(self) -> bool:
        return not self.all_issues


@dataclass(frozen=True)
class Report:
    """Aggregate validation result for one directory."""

    root: str
    documents: Tuple[DocumentReport, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Issue]:
        return iter(self.issues)

    @property
    def issues(self) -> Tuple[Issue, ...]:
        return tuple(issue for document in self.documents for issue in document.all_issues)

    @property
    def is_empty(self) -> bool:
        return not self.issues

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity is Severity.WARNING)

    @property
    def counts_by_kind(self) -> Dict[str, int]:
        return dict(sorted(Counter(issue.kind for issue in self.issues).items()))

    def to_dict(self) -> Dict[str, object]:
        return {
            "root": self.root,
            "documents": [
                {
                    "path": document.path,
                    "error": document.error,
                    "issues": [issue.to_dict() for issue in document.issues],
                }
                for document in self.documents
            ],
            "summary": {
                "documents": len(self.documents),
                "errors": self.error_count,
                "warnings": self.warning_count,
                "by_kind": self.counts_by_kind,
            },
        }
