"""
Markdown document parser.

Scans raw text into an ordered section list plus the leading YAML frontmatter
block. Supports ATX headings (# style) only. Lines inside fenced code blocks
(``` or ~~~) are never structural, so example headers in code don't become
sections.

The parser never fails: unterminated frontmatter, headers in fences and
duplicate titles all degrade to a best-effort, internally consistent Document.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import replace

from .dom import Document, Section
from .errors import INVALID_ID, SECTION_NOT_FOUND, MdError
from .ids import is_valid_id, normalize_title, section_hash

logger = logging.getLogger(__name__)

# ATX heading pattern: # to ###### followed by whitespace and text
HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")

FRONTMATTER_DELIMITER = "---"

FENCE_MARKERS = ("```", "~~~")


def is_fence(line: str) -> bool:
    """True for a line that opens or closes a fenced code block."""
    return line.strip().startswith(FENCE_MARKERS)


def match_heading(line: str) -> tuple[int, str] | None:
    """Return (level, title) if line is an ATX heading, else None."""
    match = HEADING_PATTERN.match(line)
    if not match:
        return None
    title = match.group(2).strip()
    if not title:
        return None
    return len(match.group(1)), title


def iter_structural(lines: list[str], start: int = 0) -> Iterator[tuple[int, str]]:
    """Yield (index, line) for lines outside fenced code, fence lines excluded."""
    in_code_block = False
    for i in range(start, len(lines)):
        line = lines[i]
        if is_fence(line):
            in_code_block = not in_code_block
            continue
        if in_code_block:
            continue
        yield i, line


def _find_frontmatter(lines: list[str]) -> int:
    """Index of the closing delimiter, or -1 when there is no frontmatter."""
    if lines[0].strip() != FRONTMATTER_DELIMITER:
        return -1
    for i in range(1, len(lines)):
        if lines[i].strip() == FRONTMATTER_DELIMITER:
            return i
    return -1


def _last_content_line(lines: list[str], floor: int) -> int:
    """1-indexed end of file with trailing blank lines trimmed, never below floor."""
    last = len(lines)
    while last > floor and lines[last - 1].strip() == "":
        last -= 1
    return last


def parse_document(content: str) -> Document:
    """
    Parse Markdown text into a Document.

    Structure:
    - frontmatter: '---' on the first line up to the next '---' line
    - sections: every ATX heading outside code fences, in line order

    Section ids are derived from (level, normalized title, occurrence index);
    the occurrence counter lives only for the duration of this call.
    """
    lines = content.split("\n")
    sections: list[Section] = []

    frontmatter: str | None = None
    frontmatter_end_line = 0
    start = 0

    closing = _find_frontmatter(lines)
    if closing != -1:
        frontmatter = "\n".join(lines[: closing + 1])
        frontmatter_end_line = closing + 1
        start = closing + 1

    occurrences: dict[tuple[int, str], int] = {}

    for i, line in iter_structural(lines, start):
        heading = match_heading(line)
        if heading is None:
            continue
        level, title = heading
        key = (level, normalize_title(title))
        occurrence = occurrences.get(key, 0)
        occurrences[key] = occurrence + 1

        sections.append(Section(
            id=section_hash(level, title, occurrence),
            level=level,
            title=title,
            line=i + 1,
            line_end=len(lines),  # fixed up below
        ))

    # Shallow boundary: line before the next header, or trimmed EOF for the last
    for current, following in zip(sections, sections[1:]):
        current.line_end = following.line - 1
    if sections:
        sections[-1].line_end = _last_content_line(lines, sections[-1].line)

    logger.debug(
        "parsed %d lines: %d sections, frontmatter=%s",
        len(lines), len(sections), frontmatter is not None,
    )
    return Document(
        lines=lines,
        sections=sections,
        frontmatter=frontmatter,
        frontmatter_end_line=frontmatter_end_line,
    )


def serialize_document(doc: Document) -> str:
    return "\n".join(doc.lines)


def find_section(doc: Document, id: str) -> Section | None:
    """Find a section by id (case-insensitive)."""
    wanted = id.lower()
    for section in doc.sections:
        if section.id == wanted:
            return section
    return None


def require_section(doc: Document, id: str, file: str | None = None) -> Section:
    """Find a section by id or raise invalid_id / section_not_found."""
    if not is_valid_id(id):
        raise MdError(INVALID_ID, f"Invalid section ID: {id}", file, id)
    section = find_section(doc, id)
    if section is None:
        where = f" in {file}" if file else ""
        raise MdError(SECTION_NOT_FOUND, f"No section with id '{id}'{where}", file, id)
    return section


def find_section_at_line(doc: Document, line: int) -> Section | None:
    """Innermost section enclosing a 1-indexed line: the last one starting at or before it."""
    for section in reversed(doc.sections):
        if section.line <= line:
            return section
    return None


def section_end_line(doc: Document, section: Section, deep: bool) -> int:
    """
    Resolve where a section's content ends (1-indexed, inclusive).

    Shallow: stop at the very next header of any level (precomputed line_end).
    Deep: stop before the next header whose level is <= this one, so nested
    subsections are included. Every mutation goes through here so reading and
    editing never disagree about boundaries.
    """
    try:
        index = doc.sections.index(section)
    except ValueError:
        raise MdError(
            SECTION_NOT_FOUND, f"Section {section.id} not found", id=section.id
        ) from None

    if not deep:
        return section.line_end

    for following in doc.sections[index + 1:]:
        if following.level <= section.level:
            return following.line - 1

    return _last_content_line(doc.lines, section.line)


def section_content(doc: Document, section: Section, deep: bool) -> str:
    """Content lines after the header, up to the resolved end line."""
    end = section_end_line(doc, section, deep)
    return "\n".join(doc.lines[section.line:end])


def get_frontmatter_content(doc: Document) -> str:
    """The YAML body without its delimiter lines, or '' when there is none."""
    if not doc.frontmatter:
        return ""
    return "\n".join(doc.frontmatter.split("\n")[1:-1])


def set_frontmatter(doc: Document, yaml_text: str) -> Document:
    """
    Replace, insert or remove the leading YAML block.

    Returns a new Document with updated lines and frontmatter fields. Section
    line numbers are NOT adjusted - reparse the serialized text if you need them.
    """
    body = yaml_text.strip()
    block = [FRONTMATTER_DELIMITER, *body.split("\n"), FRONTMATTER_DELIMITER] if body else []

    if doc.has_frontmatter:
        lines = block + doc.lines[doc.frontmatter_end_line:]
    elif block:
        lines = block + [""] + doc.lines
    else:
        return replace(doc, lines=list(doc.lines))

    return replace(
        doc,
        lines=lines,
        frontmatter="\n".join(block) if block else None,
        frontmatter_end_line=len(block),
    )


def starts_with_header(content: str) -> tuple[int, str] | None:
    """(level, title) if the first line of content is an ATX heading."""
    return match_heading(content.split("\n")[0])
