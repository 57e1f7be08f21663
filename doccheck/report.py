"""Report rendering in text, JSON, and markdown formats."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader

from .models import Report

_TEMPLATES_DIR = Path(__file__).with_name("templates")


def render_text(report: Report) -> str:
    """Return one ``path:line: kind: detail`` line per issue."""
    return "".join(f"{issue.format()}\n" for issue in report.issues)


def render_json(report: Report) -> str:
    return json.dumps(report.to_dict(), indent=2, sort_keys=True) + "\n"


def render_markdown(report: Report, *, templates_dir: Path | None = None) -> str:
    env = _create_env(templates_dir)
    template = env.get_template("report.md.j2")
    return template.render(report=report).strip() + "\n"


def render_report(report: Report, fmt: str = "text", *, templates_dir: Path | None = None) -> str:
    if fmt == "text":
        return render_text(report)
    if fmt == "json":
        return render_json(report)
    if fmt == "markdown":
        return render_markdown(report, templates_dir=templates_dir)
    raise ValueError(f"Unknown report format: {fmt}")


def summarize(report: Report) -> str:
    """Return a one-line summary of the report counts."""
    checked = len(report.documents)
    noun = "document" if checked == 1 else "documents"
    if report.is_empty:
        return f"{checked} {noun} checked, no issues found"
    return (
        f"{checked} {noun} checked: {report.error_count} error(s), "
        f"{report.warning_count} warning(s)"
    )


def _create_env(templates_dir: Path | None) -> Environment:
    directories: List[str] = []
    if templates_dir:
        directories.append(str(templates_dir))
    directories.append(str(_TEMPLATES_DIR))
    loader = FileSystemLoader(directories)
    return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


__all__ = ["render_json", "render_markdown", "render_report", "render_text", "summarize"]
