"""Tests for relative link and anchor resolution."""

from __future__ import annotations

from tests._fixtures.docs_builder import DocsBuilder

from doccheck.config import DocCheckConfig
from doccheck.validator import validate


def _kinds(report):  # type: ignore[no-untyped-def]
    return [(issue.path, issue.line, issue.kind) for issue in report.issues]


def test_missing_relative_target_is_reported(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "[see b](b.md)\n"})

    report = docs_builder.validate()

    assert _kinds(report) == [("a.md", 1, "broken-link")]
    assert report.issues[0].format() == "a.md:1: broken-link: link target not found: b.md"


def test_existing_relative_targets_are_not_reported(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": """
            [b](b.md), [nested](guide/intro.md), [dir](guide/), [image](img/plot.png),
            [rooted](/guide/intro.md), [escaped](guide/with%20space.md), [query](b.md?plain=1)
            """,
            "b.md": "# B\n",
            "guide/intro.md": "[back](../a.md)\n",
            "guide/with space.md": "# Space\n",
            "img/plot.png": "",
        }
    )

    report = docs_builder.validate()

    assert report.is_empty


def test_document_without_links_has_no_link_issues(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"plain.md": "# Plain\n\nJust prose about pointers.\n"})

    report = docs_builder.validate()

    assert report.documents[0].issues == ()


def test_external_links_are_never_reported(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": """
            [web](https://example.invalid/missing.md) <http://nowhere.invalid>
            [mail](mailto:someone@example.com) [proto](//cdn.example.com/x.js)
            """
        }
    )

    assert docs_builder.validate().is_empty


def test_target_outside_root_is_broken(docs_builder: DocsBuilder) -> None:
    (docs_builder.path().parent / "outside.md").write_text("# Outside\n", encoding="utf-8")
    docs_builder.write({"a.md": "[out](../outside.md)\n"})

    report = docs_builder.validate()

    assert _kinds(report) == [("a.md", 1, "broken-link")]
    assert "escapes" in report.issues[0].detail


def test_empty_link_target(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "[nothing]()\n"})

    assert _kinds(docs_builder.validate()) == [("a.md", 1, "empty-link")]


def test_anchor_checks_same_and_other_document(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": """
            # Pointers

            ## Pointer Arithmetic

            [ok](#pointer-arithmetic) [bad](#missing)
            [other ok](b.md#free-memory) [other bad](b.md#nope)
            [explicit](b.md#custom)
            """,
            "b.md": """
            # B

            ## Free memory

            <a name="custom"></a>
            """,
        }
    )

    report = docs_builder.validate()

    assert _kinds(report) == [("a.md", 5, "broken-anchor"), ("a.md", 6, "broken-anchor")]
    assert report.issues[0].detail == "anchor '#missing' not found in this document"
    assert report.issues[1].detail == "anchor '#nope' not found in b.md"


def test_anchor_checks_can_be_disabled(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "[bad](#missing)\n"})
    config = DocCheckConfig(root=docs_builder.path())
    config.checks.check_anchors = False

    assert validate(docs_builder.path(), config).is_empty


def test_anchor_lookup_loads_excluded_documents(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": "[ok](drafts/b.md#section) [bad](drafts/b.md#gone)\n",
            "drafts/b.md": "## Section\n",
        }
    )
    config = DocCheckConfig(root=docs_builder.path(), exclude_paths=["drafts/"])

    report = validate(docs_builder.path(), config)

    assert [document.path for document in report.documents] == ["a.md"]
    assert [issue.detail for issue in report.issues] == ["anchor '#gone' not found in drafts/b.md"]


def test_anchors_on_non_markdown_targets_are_not_checked(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "[code](src/main.c#L10)\n", "src/main.c": "int main(void) { return 0; }\n"})

    assert docs_builder.validate().is_empty


def test_reference_style_links_are_resolved(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": """
            See the [guide][g].

            [g]: missing/guide.md
            """
        }
    )

    assert _kinds(docs_builder.validate()) == [("a.md", 1, "broken-link")]


def test_escaped_and_entity_targets_resolve(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": "[x](a\\_b.md) [y](q&amp;a.md) [z](c\\_d.md)\n",
            "a_b.md": "# A B\n",
            "q&a.md": "# Q and A\n",
        }
    )

    report = docs_builder.validate()

    assert [issue.format() for issue in report.issues] == ["a.md:1: broken-link: link target not found: c_d.md"]
