"""
Core operations for mdsurgeon.

Implements:
- Section queries: outline, read
- Mutation engine: write, append, empty, remove - each one a single splice
  of a [start, end) range in the line list, returning fresh lines plus a
  MutationResult audit record
- Search with attribution to the innermost enclosing section
- Frontmatter value get/set/delete, new-file creation and concatenation

Every function takes a freshly parsed Document and never touches the
filesystem. Mutations do not patch section metadata: reparse the new lines
if you need updated structure.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable
from typing import Any

from .dom import Document, MutationResult, SearchMatch, SearchSummary, Section, SectionContent
from .errors import PARSE_ERROR, MdError
from .frontmatter import (
    coerce_value,
    delete_nested_value,
    format_value,
    get_nested_value,
    load_frontmatter,
    parse_frontmatter,
    set_nested_value,
    stringify_frontmatter,
)
from .magic import expand_magic
from .parser import (
    find_section,
    find_section_at_line,
    get_frontmatter_content,
    iter_structural,
    match_heading,
    parse_document,
    require_section,
    section_content,
    section_end_line,
    set_frontmatter,
    starts_with_header,
)

logger = logging.getLogger(__name__)

NO_SECTION_ID = "-"


def splice(lines: list[str], start: int, end: int, replacement: list[str]) -> list[str]:
    """New list with lines[start:end] replaced. The input list is left alone."""
    return [*lines[:start], *replacement, *lines[end:]]


def frontmatter_meta(doc: Document) -> dict[str, Any]:
    """Parsed frontmatter values of a document ({} when absent or malformed)."""
    return parse_frontmatter(get_frontmatter_content(doc))


def _expand(doc: Document, content: str, expand: bool) -> str:
    if not expand:
        return content
    return expand_magic(content, frontmatter_meta(doc))


def _is_blank(line: str) -> bool:
    return line.strip() == ""


def _logged(result: MutationResult) -> MutationResult:
    logger.debug(
        "%s %s at L%d (+%d, -%d)",
        result.action, result.id, result.line_start,
        result.lines_added, result.lines_removed,
    )
    return result


# -- queries ---------------------------------------------------------------


def outline(doc: Document, after: str | None = None, file: str | None = None) -> list[Section]:
    """
    List sections in document order.

    With `after`, only the descendants of that section: headers inside its deep
    range with a strictly greater level.
    """
    if after is None:
        return list(doc.sections)

    parent = require_section(doc, after, file)
    parent_end = section_end_line(doc, parent, deep=True)
    return [
        s for s in doc.sections
        if parent.line < s.line <= parent_end and s.level > parent.level
    ]


def read_section(doc: Document, id: str, deep: bool = False, file: str | None = None) -> SectionContent:
    section = require_section(doc, id, file)
    return SectionContent(
        section=section,
        line_end=section_end_line(doc, section, deep),
        content=section_content(doc, section, deep),
    )


# -- mutations -------------------------------------------------------------


def write_section(
    doc: Document,
    id: str,
    content: str,
    deep: bool = False,
    expand: bool = True,
    file: str | None = None,
) -> tuple[list[str], MutationResult]:
    """
    Replace a section's content, keeping its header.

    A non-blank first line gets a blank line in front of it so the header stays
    visually separated; content that already starts blank is left alone.
    """
    section = require_section(doc, id, file)
    expanded = _expand(doc, content, expand)

    end = section_end_line(doc, section, deep)
    new_lines = expanded.split("\n") if expanded else []
    if new_lines and not _is_blank(new_lines[0]):
        new_lines.insert(0, "")

    # header is 1-indexed line, so it doubles as the 0-indexed start of content
    lines = splice(doc.lines, section.line, end, new_lines)

    return lines, _logged(MutationResult(
        action="updated",
        id=section.id,
        line_start=section.line,
        line_end=section.line + len(new_lines),
        lines_added=len(new_lines),
        lines_removed=end - section.line,
    ))


def append_content(
    doc: Document,
    id: str | None,
    content: str,
    deep: bool = False,
    before: bool = False,
    expand: bool = True,
    file: str | None = None,
) -> tuple[list[str], MutationResult]:
    """
    Insert content relative to a section, or at the start/end of the file.

    With an id: before the header (`before`), or after the section's content
    (after its descendants too when `deep`). Without an id: right after the
    frontmatter (`before`) or at end of file.

    If the content starts with a header the action is "created" and the new
    section's id is recovered by reparsing the result: ids are structural, so
    they cannot be known until the section sits in its final position.
    """
    expanded = _expand(doc, content, expand)
    new_lines = expanded.split("\n")

    section: Section | None = None
    if id is None:
        insert_at = doc.frontmatter_end_line if before else len(doc.lines)
    else:
        section = require_section(doc, id, file)
        insert_at = section.line - 1 if before else section_end_line(doc, section, deep)

    padded = (
        not before
        and insert_at > 0
        and not _is_blank(doc.lines[insert_at - 1])
        and not _is_blank(new_lines[0])
    )
    if padded:
        new_lines.insert(0, "")

    lines = splice(doc.lines, insert_at, insert_at, new_lines)

    result_id = section.id if section else NO_SECTION_ID
    heading = starts_with_header(expanded)
    if heading:
        _, title = heading
        header_line = insert_at + 1 + (1 if padded else 0)
        for created in parse_document("\n".join(lines)).sections:
            if created.line == header_line and created.title == title:
                result_id = created.id
                break

    return lines, _logged(MutationResult(
        action="created" if heading else "appended",
        id=result_id,
        line_start=insert_at + 1,
        line_end=insert_at + len(new_lines) if heading else None,
        lines_added=len(new_lines),
        lines_removed=0,
    ))


def empty_section(
    doc: Document,
    id: str,
    deep: bool = False,
    file: str | None = None,
) -> tuple[list[str], MutationResult]:
    """Drop a section's content, leaving the bare header."""
    section = require_section(doc, id, file)
    end = section_end_line(doc, section, deep)
    lines = splice(doc.lines, section.line, end, [])

    return lines, _logged(MutationResult(
        action="emptied",
        id=section.id,
        line_start=section.line,
        lines_added=0,
        lines_removed=end - section.line,
    ))


def remove_section(
    doc: Document,
    id: str,
    file: str | None = None,
) -> tuple[list[str], MutationResult]:
    """
    Delete a section, header included, together with all its descendants.

    Always deep: removing a parent while leaving its child headers behind would
    reattach them to whatever section precedes.
    """
    section = require_section(doc, id, file)
    end = section_end_line(doc, section, deep=True)
    lines = splice(doc.lines, section.line - 1, end, [])

    return lines, _logged(MutationResult(
        action="removed",
        id=section.id,
        line_start=section.line,
        lines_added=0,
        lines_removed=end - section.line + 1,
    ))


# -- search ----------------------------------------------------------------


def search(doc: Document, pattern: str) -> list[SearchMatch]:
    """Plain substring search, case-sensitive, one match per line."""
    matches = []
    for number, line in enumerate(doc.lines, start=1):
        if pattern in line:
            section = find_section_at_line(doc, number)
            matches.append(SearchMatch(
                section_id=section.id if section else None,
                line=number,
                content=line,
            ))
    return matches


def summarize_matches(doc: Document, matches: Iterable[SearchMatch]) -> list[SearchSummary]:
    """Group matches by section in first-appearance order. Unattributed matches are dropped."""
    grouped: dict[str, SearchSummary] = {}
    for match in matches:
        if match.section_id is None:
            continue
        entry = grouped.get(match.section_id)
        if entry is None:
            section = find_section(doc, match.section_id)
            if section is None:
                continue
            entry = SearchSummary(id=section.id, level=section.level, title=section.title)
            grouped[match.section_id] = entry
        entry.lines.append(match.line)
    return list(grouped.values())


# -- frontmatter values ----------------------------------------------------


def meta_get(doc: Document, key: str | None = None) -> str:
    """The whole YAML body, or one formatted value by dotted key ('' if missing)."""
    if key is None:
        return get_frontmatter_content(doc)
    return format_value(get_nested_value(frontmatter_meta(doc), key))


def meta_set(doc: Document, key: str, value: str, expand: bool = True) -> Document:
    """
    Set a frontmatter value. Returns a Document whose sections must be reparsed.

    An existing block that does not parse as a mapping is a parse_error.
    """
    meta = load_frontmatter(get_frontmatter_content(doc))
    text = expand_magic(value, meta) if expand else value
    set_nested_value(meta, key, coerce_value(text))
    return set_frontmatter(doc, stringify_frontmatter(meta))


def meta_delete(doc: Document, key: str) -> Document:
    meta = load_frontmatter(get_frontmatter_content(doc))
    if not delete_nested_value(meta, key):
        raise MdError(PARSE_ERROR, f"Key '{key}' not found")
    return set_frontmatter(doc, stringify_frontmatter(meta))


def h1_title(doc: Document) -> str:
    """Title of the first level-1 section, '' if there is none."""
    for section in doc.sections:
        if section.level == 1:
            return section.title
    return ""


# -- whole files -----------------------------------------------------------


def create(
    title: str | None = None,
    meta: Iterable[tuple[str, str]] = (),
    content: str | None = None,
    expand: bool = True,
    now: datetime.datetime | None = None,
) -> str:
    """
    Text of a new document: optional frontmatter, optional H1, optional body.

    Each meta value may reference the entries set before it via {meta:key}.
    """
    data: dict[str, Any] = {}
    for key, value in meta:
        set_nested_value(data, key, expand_magic(value, data, now) if expand else value)

    lines: list[str] = []
    if data:
        lines.extend(["---", stringify_frontmatter(data), "---", ""])
    if title:
        heading = expand_magic(title, data, now) if expand else title
        lines.extend([f"# {heading}", ""])
    if content:
        lines.append(expand_magic(content, data, now) if expand else content)
    return "\n".join(lines)


def shift_headers(lines: list[str], shift: int) -> list[str]:
    """Demote every structural header by `shift` levels, capped at level 6."""
    shifted = list(lines)
    if shift <= 0:
        return shifted
    for index, line in iter_structural(lines):
        heading = match_heading(line)
        if heading:
            level, title = heading
            shifted[index] = f"{'#' * min(6, level + shift)} {title}"
    return shifted


def concat(texts: Iterable[str], shift: int = 0) -> str:
    """
    Join documents with a blank line between them.

    Only the first document's frontmatter survives; later ones are dropped.
    """
    bodies = []
    first_frontmatter: str | None = None

    for i, text in enumerate(texts):
        doc = parse_document(text)
        if i == 0 and doc.has_frontmatter:
            first_frontmatter = doc.frontmatter
        body = shift_headers(doc.lines[doc.frontmatter_end_line:], shift)
        bodies.append("\n".join(body))

    result = "\n\n".join(bodies)
    if first_frontmatter:
        result = first_frontmatter + "\n\n" + result
    return result
