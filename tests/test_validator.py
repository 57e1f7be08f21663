"""Tests for doccheck.validator."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from tests._fixtures.docs_builder import DocsBuilder

from doccheck.checks import CodeBlockCheck
from doccheck.validator import Validator, validate


def test_reports_documents_in_lexical_order(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "z.md": "[x](missing.md)\n",
            "a.md": "# A\n",
            "guide/b.md": "[y](nope.md)\n",
            "guide-extra.md": "# Extra\n",
        }
    )

    report = docs_builder.validate()

    assert [document.path for document in report.documents] == [
        "a.md",
        "guide-extra.md",
        "guide/b.md",
        "z.md",
    ]
    assert [issue.path for issue in report.issues] == ["guide/b.md", "z.md"]


def test_issues_follow_source_order_within_document(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": """
            [second](two.md) [first-on-line](one.md)

            ```
            plain
            ```

            [later](three.md)
            """
        }
    )

    report = docs_builder.validate()

    assert [(issue.line, issue.kind) for issue in report.issues] == [
        (1, "broken-link"),
        (1, "broken-link"),
        (3, "untagged-code-block"),
        (7, "broken-link"),
    ]
    assert [issue.column for issue in report.issues][:2] == [1, 18]


def test_validate_is_idempotent(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": "[b](b.md) [c](c.md#x)\n\n```\ncode\n```\n",
            "c.md": "# C\n",
        }
    )

    assert docs_builder.validate() == docs_builder.validate()


def test_invalid_utf8_is_reported_per_document(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"b.md": "[x](missing.md)\n"})
    (docs_builder.path() / "a.md").write_bytes(b"# Caf\xe9\n")

    report = docs_builder.validate()

    assert [document.path for document in report.documents] == ["a.md", "b.md"]
    assert report.documents[0].error is not None
    assert "UTF-8" in report.documents[0].error
    assert [issue.kind for issue in report.issues] == ["read-error", "broken-link"]
    assert report.issues[0].format().startswith("a.md:0: read-error: ")


def test_unreadable_file_does_not_abort_run(docs_builder: DocsBuilder, monkeypatch: pytest.MonkeyPatch) -> None:
    docs_builder.write({"a.md": "# A\n", "b.md": "[x](missing.md)\n"})
    real_read_text = Path.read_text

    def _read_text(self: Path, *args: object, **kwargs: object) -> str:
        if self.name == "a.md":
            raise PermissionError(13, "Permission denied", str(self))
        return real_read_text(self, *args, **kwargs)  # type: ignore[arg-type]

    monkeypatch.setattr(Path, "read_text", _read_text)

    report = docs_builder.validate()

    assert report.documents[0].error == "Permission denied"
    assert [issue.format() for issue in report.issues] == [
        "a.md:0: read-error: Permission denied",
        "b.md:1: broken-link: link target not found: missing.md",
    ]


def _deny_listing(monkeypatch: pytest.MonkeyPatch, denied: Path) -> None:
    real_scandir = os.scandir
    denied = denied.resolve()

    def _scandir(path: object = ".") -> object:
        if Path(path) == denied:  # type: ignore[arg-type]
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)  # type: ignore[arg-type]

    monkeypatch.setattr(os, "scandir", _scandir)


def test_unlistable_root_raises(docs_builder: DocsBuilder, monkeypatch: pytest.MonkeyPatch) -> None:
    docs_builder.write({"a.md": "# A\n"})
    _deny_listing(monkeypatch, docs_builder.path())

    with pytest.raises(PermissionError):
        docs_builder.validate()


def test_unlistable_subdirectory_is_reported(docs_builder: DocsBuilder, monkeypatch: pytest.MonkeyPatch) -> None:
    docs_builder.write({"a.md": "# A\n", "private/b.md": "[x](missing.md)\n", "z.md": "# Z\n"})
    _deny_listing(monkeypatch, docs_builder.path() / "private")

    report = docs_builder.validate()

    assert [document.path for document in report.documents] == ["a.md", "private", "z.md"]
    assert [issue.format() for issue in report.issues] == [
        "private:0: read-error: could not list directory: Permission denied",
    ]


def test_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        validate(tmp_path / "missing")


def test_file_instead_of_directory_raises(tmp_path: Path) -> None:
    target = tmp_path / "a.md"
    target.write_text("# A\n", encoding="utf-8")
    with pytest.raises(NotADirectoryError):
        validate(target)


def test_empty_directory_yields_empty_report(docs_builder: DocsBuilder) -> None:
    report = docs_builder.validate()
    assert report.documents == ()
    assert report.is_empty


def test_explicit_checks_override_configuration(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "[x](missing.md)\n\n```\nplain\n```\n"})

    report = Validator(checks=[CodeBlockCheck()]).validate(docs_builder.path())

    assert [issue.kind for issue in report.issues] == ["untagged-code-block"]


def test_extra_excludes_skip_documents(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "# A\n", "drafts/wip.md": "[x](missing.md)\n"})

    report = Validator(extra_excludes=["drafts/"]).validate(docs_builder.path())

    assert [document.path for document in report.documents] == ["a.md"]
    assert report.is_empty


def test_report_summary_counts(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "[x](missing.md)\n\n```\nplain\n```\n"})

    data = docs_builder.validate().to_dict()

    assert data["summary"] == {
        "documents": 1,
        "errors": 1,
        "warnings": 1,
        "by_kind": {"broken-link": 1, "untagged-code-block": 1},
    }
