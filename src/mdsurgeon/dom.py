"""
DOM - Document model for mdsurgeon

A Markdown file is parsed into a flat, line-ordered list of Sections plus the
raw lines they index into. Nothing here is persisted between invocations:
every operation parses fresh text, computes, and hands back fresh lines.

Key invariant: sections are strictly ascending by header line, and for
consecutive sections s[i].line_end < s[i+1].line. A section's content is
lines (line, line_end] - the header itself is excluded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Action = Literal["updated", "created", "appended", "emptied", "removed"]


@dataclass
class Section:
    """One ATX header and the content that structurally belongs to it."""
    id: str
    level: int
    title: str
    line: int  # 1-indexed header line
    line_end: int  # 1-indexed last content line under shallow semantics

    @property
    def marker(self) -> str:
        """The header prefix, e.g. '##' for a level-2 section."""
        return "#" * self.level


@dataclass
class Document:
    """Full in-memory representation of one file."""
    lines: list[str] = field(default_factory=lambda: [""])
    sections: list[Section] = field(default_factory=list)
    frontmatter: str | None = None  # raw block including both '---' lines
    frontmatter_end_line: int = 0  # 1-indexed line after closing '---', 0 if none

    @property
    def has_frontmatter(self) -> bool:
        return self.frontmatter is not None


@dataclass
class MutationResult:
    """Audit record of one completed edit. Not part of document state."""
    action: Action
    id: str
    line_start: int
    line_end: int | None = None
    lines_added: int = 0
    lines_removed: int = 0

    def to_dict(self) -> dict:
        data = {
            "action": self.action,
            "id": self.id,
            "lineStart": self.line_start,
            "lineEnd": self.line_end,
            "linesAdded": self.lines_added,
            "linesRemoved": self.lines_removed,
        }
        if self.line_end is None:
            del data["lineEnd"]
        return data


@dataclass
class SectionContent:
    """A section read back together with its resolved boundary."""
    section: Section
    line_end: int
    content: str

    def to_dict(self) -> dict:
        return {
            "id": self.section.id,
            "level": self.section.level,
            "title": self.section.title,
            "lineStart": self.section.line,
            "lineEnd": self.line_end,
            "content": self.content,
        }


@dataclass
class SearchMatch:
    """A line containing the search pattern, attributed to its section."""
    section_id: str | None  # None when the match precedes the first header
    line: int
    content: str

    def to_dict(self) -> dict:
        return {"sectionId": self.section_id, "line": self.line, "content": self.content}


@dataclass
class SearchSummary:
    """Matches grouped under one section."""
    id: str
    level: int
    title: str
    lines: list[int] = field(default_factory=list)

    @property
    def match_count(self) -> int:
        return len(self.lines)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "level": self.level,
            "title": self.title,
            "lines": list(self.lines),
            "matchCount": self.match_count,
        }


def section_to_dict(section: Section) -> dict:
    """Outline entry shape (no line_end, matches what callers index by)."""
    return {
        "id": section.id,
        "level": section.level,
        "title": section.title,
        "line": section.line,
    }
