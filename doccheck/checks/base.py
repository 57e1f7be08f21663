"""Base classes for document checks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

from ..config import ChecksConfig
from ..models import Document, Issue


@dataclass
class CheckContext:
    """Read-only view of the validation run shared with every check."""

    root: Path
    options: ChecksConfig = field(default_factory=ChecksConfig)
    documents: Dict[str, Document] = field(default_factory=dict)
    loader: Optional[Callable[[Path], Optional[Document]]] = None
    markdown_suffixes: tuple[str, ...] = (".md", ".markdown")

    def document_at(self, path: Path) -> Optional[Document]:
        """Return the parsed document at ``path``, loading it outside the scan when needed."""
        try:
            rel_path = path.relative_to(self.root).as_posix()
        except ValueError:
            return None
        document = self.documents.get(rel_path)
        if document is None and self.loader is not None:
            document = self.loader(path)
        return document

    def is_markdown(self, path: Path) -> bool:
        return path.suffix.lower() in self.markdown_suffixes


class Check(ABC):
    """Contract for named rules that emit issues for a document."""

    name: str = ""

    @abstractmethod
    def check(self, document: Document, context: CheckContext) -> Iterable[Issue]:
        """Yield issues found in ``document``."""
