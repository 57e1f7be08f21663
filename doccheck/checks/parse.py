"""Surfaces parser recoveries as report warnings."""

from __future__ import annotations

from typing import Iterator

from ..models import Document, Issue, Severity
from .base import Check, CheckContext


class ParseWarningCheck(Check):
    name = "parse"

    def check(self, document: Document, context: CheckContext) -> Iterator[Issue]:
        for warning in document.warnings:
            yield Issue(
                path=document.rel_path,
                line=warning.line,
                kind=warning.kind,
                detail=warning.detail,
                severity=Severity.WARNING,
            )
