"""
Base output format interface and registry.

Core operations return structured values (Sections, MutationResults, search
matches); an output format renders each of them as a string. The core never
branches on output mode.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..dom import MutationResult, SearchMatch, SearchSummary, Section, SectionContent


class OutputFormat(ABC):
    """Base class for result renderers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Format name as given to --format."""
        ...

    @abstractmethod
    def outline(self, sections: list[Section]) -> str:
        ...

    @abstractmethod
    def section(self, section: Section | None) -> str:
        """A single outline entry (outline --last). None when there is nothing to show."""
        ...

    @abstractmethod
    def count(self, n: int) -> str:
        ...

    @abstractmethod
    def read(self, result: SectionContent) -> str:
        ...

    @abstractmethod
    def mutation(self, result: MutationResult) -> str:
        ...

    @abstractmethod
    def matches(self, matches: list[SearchMatch]) -> str:
        ...

    @abstractmethod
    def summary(self, summaries: list[SearchSummary]) -> str:
        ...


class FormatRegistry:
    """Registry of output formats by name."""

    def __init__(self):
        self._by_name: dict[str, OutputFormat] = {}

    def register(self, fmt: OutputFormat) -> None:
        # First registered wins for name conflicts
        if fmt.name not in self._by_name:
            self._by_name[fmt.name] = fmt

    def get(self, name: str) -> OutputFormat | None:
        return self._by_name.get(name.lower())

    @property
    def names(self) -> list[str]:
        return list(self._by_name)


# Global registry instance
registry = FormatRegistry()
