"""Markdown document discovery honoring .gitignore and configured excludes."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Sequence

from .config import DEFAULT_SUFFIXES
from .logging import get_logger

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    ".tox",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
}

_LOGGER = get_logger("scanner")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or configured excludes."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        for part in rel_path.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


def build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _LOGGER.warning("Ignoring unreadable %s: %s", path, exc)
        return []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


@dataclass
class ScanResult:
    """Documents found by a scan plus the directories that could not be listed."""

    paths: List[Path]
    errors: Dict[str, str] = field(default_factory=dict)


class DocumentScanner:
    """Walks a directory tree and returns markdown files in lexical order."""

    def __init__(
        self,
        *,
        suffixes: Iterable[str] = DEFAULT_SUFFIXES,
        exclude_paths: Iterable[str] = (),
    ) -> None:
        self.suffixes = tuple(suffix.lower() for suffix in suffixes)
        self.exclude_paths = list(exclude_paths)

    def scan(self, root: Path) -> List[Path]:
        """Return markdown files under ``root`` sorted by relative POSIX path."""
        return self.walk(root).paths

    def walk(self, root: Path) -> ScanResult:
        """Scan ``root``; unreadable subdirectories are recorded rather than raised."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Directory not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {root}")
        with os.scandir(root_path):
            pass

        rules = parse_gitignore(root_path / ".gitignore")
        for pattern in self.exclude_paths:
            rule = build_ignore_rule(pattern)
            if rule is not None:
                rules.append(rule)

        errors: Dict[str, str] = {}
        found = list(self._iter_documents(root_path, rules, errors))
        found.sort(key=lambda path: path.relative_to(root_path).as_posix())
        return ScanResult(paths=found, errors=dict(sorted(errors.items())))

    def _iter_documents(
        self, root: Path, rules: Sequence[IgnoreRule], errors: Dict[str, str]
    ) -> Iterator[Path]:
        def _on_error(exc: OSError) -> None:
            failed = Path(exc.filename) if exc.filename else root
            rel_path = failed.relative_to(root).as_posix() if failed != root else "."
            _LOGGER.warning("Could not list %s: %s", rel_path, exc.strerror or exc)
            errors[rel_path] = exc.strerror or str(exc)

        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            kept_dirs = []
            for name in dirnames:
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if name in _EXCLUDED_DIRS or should_ignore(rel_path, True, rules):
                    _LOGGER.debug("Skipping directory %s", rel_path)
                    continue
                kept_dirs.append(name)
            dirnames[:] = kept_dirs

            for filename in filenames:
                if not filename.lower().endswith(self.suffixes):
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if should_ignore(rel_path, False, rules):
                    _LOGGER.debug("Skipping %s", rel_path)
                    continue
                yield current_dir / filename


__all__ = ["DocumentScanner", "ScanResult", "IgnoreRule", "build_ignore_rule", "parse_gitignore", "should_ignore"]
