"""Markdown documentation checker: broken links and untagged code blocks."""

from .models import CodeBlock, Document, DocumentReport, Issue, Link, LinkKind, Report, Severity
from .validator import Validator, validate

__version__ = "0.1.0"

__all__ = [
    "CodeBlock",
    "Document",
    "DocumentReport",
    "Issue",
    "Link",
    "LinkKind",
    "Report",
    "Severity",
    "Validator",
    "validate",
]
