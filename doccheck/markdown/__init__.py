"""Markdown parsing for doccheck documents."""

from .anchors import SlugRegistry, slugify
from .parser import MarkdownParser, classify_target, fence_language, parse_document

__all__ = [
    "MarkdownParser",
    "SlugRegistry",
    "classify_target",
    "fence_language",
    "parse_document",
    "slugify",
]
