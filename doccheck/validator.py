"""Directory validation: load every document, run the enabled checks, collect a report."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .checks import Check, CheckContext, discover_checks
from .config import DocCheckConfig
from .logging import get_logger
from .markdown import MarkdownParser
from .models import Document, DocumentReport, Issue, Report
from .scanner import DocumentScanner

_LOGGER = get_logger("validator")


class DocumentLoadError(OSError):
    """Raised when a document exists but cannot be read as UTF-8 text."""


class Validator:
    """Validates a directory of markdown documents against the enabled checks."""

    def __init__(
        self,
        config: DocCheckConfig | None = None,
        *,
        checks: Sequence[Check] | None = None,
        extra_excludes: Iterable[str] = (),
        parser: MarkdownParser | None = None,
    ) -> None:
        self.config = config
        self._checks = list(checks) if checks is not None else None
        self.extra_excludes = list(extra_excludes)
        self.parser = parser or MarkdownParser()

    def validate(self, directory: Path | str) -> Report:
        """Return the report for every markdown document under ``directory``."""
        root = Path(directory).expanduser().resolve()
        config = self.config or DocCheckConfig(root=root)
        scanner = DocumentScanner(
            suffixes=config.suffixes,
            exclude_paths=[*config.exclude_paths, *self.extra_excludes],
        )
        scan = scanner.walk(root)
        paths = scan.paths
        checks = self._checks if self._checks is not None else discover_checks(config.checks.enabled)
        _LOGGER.debug("Validating %d document(s) under %s", len(paths), root)

        documents: Dict[str, Document] = {}
        errors: Dict[str, str] = {}
        for path in paths:
            rel_path = path.relative_to(root).as_posix()
            try:
                documents[rel_path] = self.load(path, root=root)
            except DocumentLoadError as exc:
                _LOGGER.warning("Could not read %s: %s", rel_path, exc)
                errors[rel_path] = str(exc)

        extra: Dict[Path, Optional[Document]] = {}

        def _load_outside_scan(path: Path) -> Optional[Document]:
            if path not in extra:
                try:
                    extra[path] = self.load(path, root=root)
                except DocumentLoadError:
                    extra[path] = None
            return extra[path]

        context = CheckContext(
            root=root,
            options=config.checks,
            documents=documents,
            loader=_load_outside_scan,
            markdown_suffixes=tuple(config.suffixes),
        )

        reports: List[DocumentReport] = []
        for path in paths:
            rel_path = path.relative_to(root).as_posix()
            if rel_path in errors:
                reports.append(DocumentReport(path=rel_path, error=errors[rel_path]))
                continue
            issues = self._run_checks(documents[rel_path], checks, context)
            _LOGGER.debug("%s: %d issue(s)", rel_path, len(issues))
            reports.append(DocumentReport(path=rel_path, issues=tuple(issues)))

        for rel_dir, message in scan.errors.items():
            reports.append(DocumentReport(path=rel_dir, error=f"could not list directory: {message}"))
        reports.sort(key=lambda report: report.path)
        return Report(root=str(root), documents=tuple(reports))

    def load(self, path: Path, *, root: Path) -> Document:
        """Read and parse one document."""
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise DocumentLoadError(f"not valid UTF-8: {exc.reason} at byte {exc.start}") from exc
        except OSError as exc:
            raise DocumentLoadError(exc.strerror or str(exc)) from exc
        return self.parser.parse(text, path=path, rel_path=path.relative_to(root).as_posix())

    @staticmethod
    def _run_checks(document: Document, checks: Sequence[Check], context: CheckContext) -> List[Issue]:
        issues: List[Issue] = []
        for check in checks:
            issues.extend(check.check(document, context))
        issues.sort(key=lambda issue: (issue.line, issue.column))
        return issues


def validate(directory: Path | str, config: DocCheckConfig | None = None) -> Report:
    """Validate ``directory`` with ``config`` (defaults when omitted)."""
    return Validator(config).validate(directory)


__all__ = ["DocumentLoadError", "Validator", "validate"]
