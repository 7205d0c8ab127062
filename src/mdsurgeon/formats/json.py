"""
JSON output format.

Compact single-line JSON with camelCase keys, one value per command.
"""

from __future__ import annotations

import json

from ..dom import (
    MutationResult,
    SearchMatch,
    SearchSummary,
    Section,
    SectionContent,
    section_to_dict,
)
from .base import OutputFormat, registry


def dumps(value: object) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


class JSONFormat(OutputFormat):
    """Machine-readable output."""

    @property
    def name(self) -> str:
        return "json"

    def outline(self, sections: list[Section]) -> str:
        return dumps([section_to_dict(s) for s in sections])

    def section(self, section: Section | None) -> str:
        return dumps(section_to_dict(section) if section else None)

    def count(self, n: int) -> str:
        return dumps({"count": n})

    def read(self, result: SectionContent) -> str:
        return dumps(result.to_dict())

    def mutation(self, result: MutationResult) -> str:
        return dumps(result.to_dict())

    def matches(self, matches: list[SearchMatch]) -> str:
        return dumps([m.to_dict() for m in matches])

    def summary(self, summaries: list[SearchSummary]) -> str:
        return dumps([s.to_dict() for s in summaries])


# Register the format
registry.register(JSONFormat())
