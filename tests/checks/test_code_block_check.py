"""Tests for code fence language checks."""

from __future__ import annotations

from tests._fixtures.docs_builder import DocsBuilder

from doccheck.config import DocCheckConfig
from doccheck.models import Severity
from doccheck.validator import validate


def test_untagged_fence_is_reported_once(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": """
            # Example

            ```
            int x = 0;
            ```

            ```c
            int *p = &x;
            ```
            """
        }
    )

    report = docs_builder.validate()

    assert [(issue.line, issue.kind) for issue in report.issues] == [(3, "untagged-code-block")]
    assert report.issues[0].severity is Severity.WARNING
    assert report.warning_count == 1
    assert report.error_count == 0


def test_languages_allow_list(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": """
            ```python
            pass
            ```

            ```Fortran
            end
            ```
            """
        }
    )
    config = DocCheckConfig(root=docs_builder.path())
    config.checks.languages = ["python", "c"]

    report = validate(docs_builder.path(), config)

    assert [(issue.line, issue.kind) for issue in report.issues] == [(5, "unknown-language")]
    assert "fortran" in report.issues[0].detail


def test_unclosed_fence_surfaces_parse_warning(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "```bash\necho hi\n"})

    report = docs_builder.validate()

    assert [(issue.line, issue.kind) for issue in report.issues] == [(1, "unclosed-code-fence")]
