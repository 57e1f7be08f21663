"""Code fence language checks."""

from __future__ import annotations

from typing import Iterator

from ..models import Document, Issue, Severity
from .base import Check, CheckContext


class CodeBlockCheck(Check):
    """Flags fences that cannot be syntax highlighted."""

    name = "code-blocks"

    def check(self, document: Document, context: CheckContext) -> Iterator[Issue]:
        allowed = {language.lower() for language in context.options.languages}
        for block in document.code_blocks:
            if block.language is None:
                yield Issue(
                    path=document.rel_path,
                    line=block.line,
                    kind="untagged-code-block",
                    detail="code block has no language tag",
                    severity=Severity.WARNING,
                )
            elif allowed and block.language not in allowed:
                yield Issue(
                    path=document.rel_path,
                    line=block.line,
                    kind="unknown-language",
                    detail=f"code block language '{block.language}' is not in the configured languages",
                    severity=Severity.WARNING,
                )
