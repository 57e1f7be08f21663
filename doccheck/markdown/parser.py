"""Line-oriented markdown parser extracting headings, links, and code fences."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import yaml

from ..models import Block, CodeBlock, Document, Heading, Link, LinkKind, ParseWarning
from .anchors import SlugRegistry

_FENCE_OPEN = re.compile(r"^(?P<indent>[ \t]*)(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_ATX_HEADING = re.compile(r"^ {0,3}(?P<marks>#{1,6})(?:[ \t]+(?P<title>.*?))?[ \t]*$")
_ATX_CLOSING = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")
_SETEXT_UNDERLINE = re.compile(r"^ {0,3}(?P<bar>=+|-+)[ \t]*$")
_REF_DEFINITION = re.compile(r"^ {0,3}\[(?P<label>[^\]]+)\]:[ \t]*(?P<target><[^>]*>|\S+)?")
_HTML_ANCHOR = re.compile(r"""<[a-zA-Z][^>]*?\b(?:name|id)\s*=\s*["'](?P<anchor>[^"']+)["']""")
_AUTOLINK = re.compile(r"<(?P<url>[a-zA-Z][a-zA-Z0-9+.\-]{1,31}:[^\s<>]*)>")
_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")
_THEMATIC_BREAK = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_NON_PARAGRAPH = re.compile(r"^\s*(?:[-*+>|]|\d+[.)])(?:\s|$)")
_LIST_ITEM = re.compile(r"^\s*(?:[-*+]|\d+[.)])(?:\s|$)")
_ESCAPED_PUNCTUATION = re.compile(r"\\([!-/:-@\[-`{-~])")
_FRONT_MATTER_END = {"---", "..."}
_UNCLOSED_LINK = re.compile(r"\[[^\[\]]*[^\s\[\]]\([^()\s]+\)")
_CODE_INDENT = 4


def classify_target(target: str) -> LinkKind:
    """Return the kind of a raw link target."""
    if target.startswith("#"):
        return LinkKind.ANCHOR
    if target.startswith("//") or _SCHEME.match(target):
        return LinkKind.EXTERNAL
    return LinkKind.RELATIVE


def normalise_label(label: str) -> str:
    return " ".join(label.split()).casefold()


def unescape_target(target: str) -> str:
    """Drop backslash escapes and decode HTML entities, as renderers do."""
    return html.unescape(_ESCAPED_PUNCTUATION.sub(r"\1", target))


def fence_language(info: str) -> Optional[str]:
    """Return the language tag from a fence info string.

    Handles plain tags (``python``), pandoc classes (``.python``) and
    R markdown chunk headers (``{r setup, echo=FALSE}``).
    """
    info = info.strip()
    if not info:
        return None
    if info.startswith("{"):
        inner = info[1:].split("}", 1)[0]
        word = re.split(r"[\s,]+", inner.strip(), maxsplit=1)[0]
    else:
        word = info.split(None, 1)[0]
    word = word.lstrip(".").rstrip(",")
    return word.lower() or None


def mask_code_spans(line: str) -> str:
    """Blank out inline code spans so their contents are not parsed."""
    result = list(line)
    index = 0
    length = len(line)
    while index < length:
        if line[index] != "`":
            index += 1
            continue
        run_end = index
        while run_end < length and line[run_end] == "`":
            run_end += 1
        run = line[index:run_end]
        search = run_end
        closing = -1
        while True:
            found = line.find(run, search)
            if found == -1:
                break
            after = found + len(run)
            if (found == 0 or line[found - 1] != "`") and (after >= length or line[after] != "`"):
                closing = found
                break
            search = after
        if closing == -1:
            index = run_end
            continue
        stop = closing + len(run)
        for position in range(index, stop):
            result[position] = " "
        index = stop
    return "".join(result)


def mask_html_comments(line: str, in_comment: bool) -> Tuple[str, bool]:
    """Blank out ``<!-- ... -->`` spans; returns the masked line and whether a comment is still open."""
    result: List[str] = []
    index = 0
    length = len(line)
    while index < length:
        if in_comment:
            end = line.find("-->", index)
            stop = length if end == -1 else end + 3
            result.append(" " * (stop - index))
            index = stop
            in_comment = end == -1
            continue
        start = line.find("<!--", index)
        if start == -1:
            result.append(line[index:])
            break
        result.append(line[index:start])
        result.append("    ")
        index = start + 4
        in_comment = True
    return "".join(result), in_comment


def _indent_width(line: str) -> int:
    expanded = line.expandtabs(4)
    return len(expanded) - len(expanded.lstrip(" "))


@dataclass
class _PendingReference:
    label: str
    text: str
    line: int
    column: int
    image: bool
    explicit: bool


@dataclass
class _ParseState:
    slugs: SlugRegistry = field(default_factory=SlugRegistry)
    blocks: List[Tuple[int, int, Block]] = field(default_factory=list)
    warnings: List[ParseWarning] = field(default_factory=list)
    anchors: Set[str] = field(default_factory=set)
    definitions: Dict[str, Tuple[str, int]] = field(default_factory=dict)
    references: List[_PendingReference] = field(default_factory=list)
    paragraph: List[str] = field(default_factory=list)
    paragraph_start: int = 0
    in_comment: bool = False
    in_list: bool = False

    def add(self, line: int, column: int, block: Block) -> None:
        self.blocks.append((line, column, block))

    def warn(self, line: int, kind: str, detail: str) -> None:
        self.warnings.append(ParseWarning(line=line, kind=kind, detail=detail))

    def end_paragraph(self) -> None:
        self.paragraph = []
        self.paragraph_start = 0


class MarkdownParser:
    """Parses markdown text into an immutable :class:`Document`."""

    def parse(self, text: str, *, path: Path, rel_path: str) -> Document:
        text = text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
        lines = text.split("\n")
        state = _ParseState()

        index = self._skip_front_matter(lines)
        while index < len(lines):
            line = lines[index]
            line_no = index + 1

            if state.in_comment:
                masked = self._mask_inline(line, state)
                if masked.strip():
                    self._scan_inline(masked, line_no, state)
                index += 1
                continue

            if not line.strip():
                state.end_paragraph()
                index += 1
                continue

            indent = _indent_width(line)
            if _LIST_ITEM.match(line):
                state.in_list = True
            elif indent == 0:
                state.in_list = False

            if indent >= _CODE_INDENT and not state.paragraph and not state.in_list:
                index += 1
                continue

            fence_match = _FENCE_OPEN.match(line)
            if fence_match and not (
                fence_match.group("fence")[0] == "`" and "`" in fence_match.group("info")
            ) and (indent < _CODE_INDENT or state.in_list):
                state.end_paragraph()
                index = self._consume_fence(lines, index, fence_match, state)
                continue

            setext = _SETEXT_UNDERLINE.match(line)
            if setext and state.paragraph:
                level = 1 if setext.group("bar").startswith("=") else 2
                title = " ".join(part.strip() for part in state.paragraph)
                self._add_heading(state, level, title, state.paragraph_start)
                state.end_paragraph()
                index += 1
                continue

            if _THEMATIC_BREAK.match(line):
                state.end_paragraph()
                index += 1
                continue

            atx = _ATX_HEADING.match(line)
            if atx:
                state.end_paragraph()
                title = _ATX_CLOSING.sub("", atx.group("title") or "").strip()
                self._add_heading(state, len(atx.group("marks")), title, line_no)
                self._scan_inline(self._mask_inline(line, state), line_no, state)
                index += 1
                continue

            definition = _REF_DEFINITION.match(line)
            if definition and definition.group("target") and not definition.group("label").startswith("^"):
                state.end_paragraph()
                target = unescape_target(definition.group("target").strip("<>"))
                label = normalise_label(definition.group("label"))
                state.definitions.setdefault(label, (target, line_no))
                index += 1
                continue

            if _NON_PARAGRAPH.match(line):
                state.end_paragraph()
            else:
                if not state.paragraph:
                    state.paragraph_start = line_no
                state.paragraph.append(line)

            self._scan_inline(self._mask_inline(line, state), line_no, state)
            index += 1

        self._resolve_references(state)
        state.blocks.sort(key=lambda item: (item[0], item[1]))
        return Document(
            path=path,
            rel_path=rel_path,
            text=text,
            blocks=tuple(block for _, _, block in state.blocks),
            explicit_anchors=frozenset(state.anchors),
            warnings=tuple(sorted(state.warnings, key=lambda warning: warning.line)),
        )

    @staticmethod
    def _skip_front_matter(lines: List[str]) -> int:
        """Return the index of the first body line after a YAML front matter block."""
        if not lines or lines[0].strip() != "---":
            return 0
        for index in range(1, len(lines)):
            if lines[index].strip() not in _FRONT_MATTER_END:
                continue
            block = "\n".join(lines[1:index])
            if not block.strip():
                return index + 1
            try:
                data = yaml.safe_load(block)
            except yaml.YAMLError:
                return 0
            return index + 1 if isinstance(data, dict) else 0
        return 0

    @staticmethod
    def _mask_inline(line: str, state: _ParseState) -> str:
        if state.in_comment:
            line, state.in_comment = mask_html_comments(line, True)
            if state.in_comment:
                return line
        masked, state.in_comment = mask_html_comments(mask_code_spans(line), False)
        return masked

    @staticmethod
    def _add_heading(state: _ParseState, level: int, title: str, line_no: int) -> None:
        anchor = state.slugs.claim(title)
        state.add(line_no, 0, Heading(level=level, title=title, line=line_no, anchor=anchor))

    def _consume_fence(
        self, lines: List[str], start: int, match: "re.Match[str]", state: _ParseState
    ) -> int:
        fence = match.group("fence")
        info = match.group("info").strip()
        closing = re.compile(rf"^[ \t]*{re.escape(fence[0])}{{{len(fence)},}}[ \t]*$")
        body: List[str] = []
        index = start + 1
        closed = False
        while index < len(lines):
            if closing.match(lines[index]):
                closed = True
                break
            body.append(lines[index])
            index += 1

        line_no = start + 1
        state.add(
            line_no,
            0,
            CodeBlock(
                language=fence_language(info),
                info=info,
                content="\n".join(body),
                line=line_no,
                fence=fence,
                closed=closed,
            ),
        )
        if not closed:
            state.warn(line_no, "unclosed-code-fence", f"code fence '{fence}' is never closed")
            return len(lines)
        return index + 1

    def _scan_inline(self, masked: str, line_no: int, state: _ParseState, offset: int = 0) -> None:
        for anchor in _HTML_ANCHOR.finditer(masked):
            state.anchors.add(anchor.group("anchor"))

        index = 0
        length = len(masked)
        warned = False
        while index < length:
            char = masked[index]
            if char == "\\":
                index += 2
                continue
            if char == "<":
                autolink = _AUTOLINK.match(masked, index)
                if autolink:
                    url = autolink.group("url")
                    state.add(
                        line_no,
                        offset + index + 1,
                        Link(
                            target=url,
                            text=url,
                            kind=LinkKind.EXTERNAL,
                            line=line_no,
                            column=offset + index + 1,
                        ),
                    )
                    index = autolink.end()
                    continue
            if char != "[":
                index += 1
                continue

            image = index > 0 and masked[index - 1] == "!"
            start = index - 1 if image else index
            close = _find_closing_bracket(masked, index)
            if close is None:
                unclosed = _UNCLOSED_LINK.match(masked, index)
                if unclosed and not warned:
                    warned = True
                    state.warn(
                        line_no,
                        "unterminated-link",
                        f"link text '{unclosed.group(0)}' is missing a closing ']'",
                    )
                index += 1
                continue
            text = masked[index + 1 : close]
            after = close + 1
            column = offset + start + 1

            if after < length and masked[after] == "(":
                target_end = _find_closing_paren(masked, after)
                if target_end is None:
                    state.warn(line_no, "unterminated-link", f"link '[{text}](' is missing a closing ')'")
                    index = after + 1
                    continue
                target = _extract_target(masked[after + 1 : target_end])
                state.add(
                    line_no,
                    column,
                    Link(
                        target=target,
                        text=text,
                        kind=classify_target(target),
                        line=line_no,
                        column=column,
                        image=image,
                    ),
                )
                self._scan_inline(text, line_no, state, offset=offset + index + 1)
                index = target_end + 1
                continue

            if after < length and masked[after] == "[":
                label_end = masked.find("]", after + 1)
                if label_end != -1:
                    label = masked[after + 1 : label_end] or text
                    state.references.append(
                        _PendingReference(label, text, line_no, column, image, explicit=True)
                    )
                    self._scan_inline(text, line_no, state, offset=offset + index + 1)
                    index = label_end + 1
                    continue

            if text.strip() and not text.startswith("^"):
                state.references.append(
                    _PendingReference(text, text, line_no, column, image, explicit=False)
                )
            self._scan_inline(text, line_no, state, offset=offset + index + 1)
            index = close + 1

    @staticmethod
    def _resolve_references(state: _ParseState) -> None:
        for reference in state.references:
            definition = state.definitions.get(normalise_label(reference.label))
            if definition is None:
                if reference.explicit:
                    state.warn(
                        reference.line,
                        "undefined-reference",
                        f"no definition for reference '[{reference.label}]'",
                    )
                continue
            target, _ = definition
            state.add(
                reference.line,
                reference.column,
                Link(
                    target=target,
                    text=reference.text,
                    kind=classify_target(target),
                    line=reference.line,
                    column=reference.column,
                    image=reference.image,
                    reference=reference.label,
                ),
            )


def _find_closing_bracket(text: str, start: int) -> Optional[int]:
    depth = 0
    index = start
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return None


def _find_closing_paren(text: str, start: int) -> Optional[int]:
    depth = 0
    index = start
    in_angle = False
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if in_angle:
            if char == ">":
                in_angle = False
        elif char == "<" and index == start + 1:
            in_angle = True
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return None


def _extract_target(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("<"):
        end = raw.find(">")
        return unescape_target(raw[1:end] if end != -1 else raw[1:])
    parts = raw.split(None, 1)
    return unescape_target(parts[0]) if parts else ""


def parse_document(text: str, *, path: Path, rel_path: str) -> Document:
    """Parse ``text`` into a :class:`Document` using the default parser."""
    return MarkdownParser().parse(text, path=path, rel_path=rel_path)
