"""Link resolution checks."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from ..models import Document, Issue, Link, LinkKind
from .base import Check, CheckContext


class LinkCheck(Check):
    """Reports relative links and anchors that do not resolve inside the root."""

    name = "links"

    def check(self, document: Document, context: CheckContext) -> Iterator[Issue]:
        for link in document.links:
            if link.kind is LinkKind.EXTERNAL:
                continue
            if not link.target.strip():
                yield self._issue(document, link, "empty-link", "link target is empty")
                continue
            if link.kind is LinkKind.ANCHOR:
                yield from self._check_anchor(document, link, document, context)
                continue
            yield from self._check_relative(document, link, context)

    def _check_relative(self, document: Document, link: Link, context: CheckContext) -> Iterator[Issue]:
        path_part = link.path_part
        if not path_part:
            yield from self._check_anchor(document, link, document, context)
            return

        if path_part.startswith("/"):
            candidate = context.root / path_part.lstrip("/")
        else:
            candidate = document.path.parent / path_part
        resolved = Path(os.path.normpath(candidate))

        if resolved != context.root and context.root not in resolved.parents:
            yield self._issue(
                document, link, "broken-link", f"link target escapes the documentation root: {link.target}"
            )
            return
        if not resolved.exists():
            yield self._issue(document, link, "broken-link", f"link target not found: {link.target}")
            return
        if link.fragment is None or not resolved.is_file() or not context.is_markdown(resolved):
            return
        target = context.document_at(resolved)
        if target is not None:
            yield from self._check_anchor(document, link, target, context)

    def _check_anchor(
        self, document: Document, link: Link, target: Document, context: CheckContext
    ) -> Iterator[Issue]:
        fragment = link.fragment
        if not context.options.check_anchors or not fragment:
            return
        if fragment in target.anchors or fragment.lower() in target.anchors:
            return
        where = "this document" if target is document else target.rel_path
        yield self._issue(document, link, "broken-anchor", f"anchor '#{fragment}' not found in {where}")

    @staticmethod
    def _issue(document: Document, link: Link, kind: str, detail: str) -> Issue:
        return Issue(path=document.rel_path, line=link.line, column=link.column, kind=kind, detail=detail)
