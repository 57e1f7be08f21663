"""GitHub-compatible heading anchor generation."""

from __future__ import annotations

import re
from typing import Dict

_INLINE_LINK = re.compile(r"!?\[([^\]]*)\]\([^)]*\)")
_HTML_TAG = re.compile(r"<[^>]+>")
_PUNCTUATION = re.compile(r"[^\w\- ]", re.UNICODE)


def slugify(title: str) -> str:
    """Return the anchor GitHub assigns to a heading with ``title``."""
    text = _INLINE_LINK.sub(r"\1", title)
    text = _HTML_TAG.sub("", text)
    text = text.replace("`", "").strip().lower()
    text = _PUNCTUATION.sub("", text)
    return text.replace(" ", "-")


class SlugRegistry:
    """Issues unique slugs within one document, suffixing repeats with -1, -2, ..."""

    def __init__(self) -> None:
        self._seen: Dict[str, int] = {}

    def claim(self, title: str) -> str:
        base = slugify(title)
        count = self._seen.get(base)
        if count is None:
            self._seen[base] = 0
            return base
        while True:
            count += 1
            candidate = f"{base}-{count}"
            if candidate not in self._seen:
                break
        self._seen[base] = count
        self._seen[candidate] = 0
        return candidate


__all__ = ["SlugRegistry", "slugify"]
