"""
Text output format.

Compact, one line per item, built to be cheap for an agent to read:

    ## Setup ^3f2a9c1d L12
    updated ^3f2a9c1d L12-L15 (+3, -2)
    ^3f2a9c1d L14 matching line
"""

from __future__ import annotations

from ..dom import MutationResult, SearchMatch, SearchSummary, Section, SectionContent
from .base import OutputFormat, registry


def _heading(section: Section) -> str:
    return f"{section.marker} {section.title}"


class TextFormat(OutputFormat):
    """Human-readable, grep-friendly lines."""

    @property
    def name(self) -> str:
        return "text"

    def outline(self, sections: list[Section]) -> str:
        return "\n".join(self.section(s) for s in sections)

    def section(self, section: Section | None) -> str:
        if section is None:
            return ""
        return f"{_heading(section)} ^{section.id} L{section.line}"

    def count(self, n: int) -> str:
        return str(n)

    def read(self, result: SectionContent) -> str:
        section = result.section
        header = f"{_heading(section)} ^{section.id} L{section.line}-L{result.line_end}"
        if not result.content.strip():
            return header
        return f"{header}\n\n{result.content}"

    def mutation(self, result: MutationResult) -> str:
        if result.line_end:
            span = f"L{result.line_start}-L{result.line_end}"
        else:
            span = f"L{result.line_start}"

        delta = []
        if result.lines_added > 0:
            delta.append(f"+{result.lines_added}")
        if result.lines_removed > 0:
            delta.append(f"-{result.lines_removed}")
        delta_str = f" ({', '.join(delta)})" if delta else ""

        return f"{result.action} ^{result.id} {span}{delta_str}"

    def matches(self, matches: list[SearchMatch]) -> str:
        return "\n".join(
            f"^{m.section_id or '-'} L{m.line} {m.content}" for m in matches
        )

    def summary(self, summaries: list[SearchSummary]) -> str:
        out = []
        for s in summaries:
            lines = ",".join(f"L{n}" for n in s.lines)
            word = "match" if s.match_count == 1 else "matches"
            out.append(f"{'#' * s.level} {s.title} ^{s.id} {lines} ({s.match_count} {word})")
        return "\n".join(out)


# Register the format
registry.register(TextFormat())
