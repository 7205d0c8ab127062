"""
mdsurgeon - address, read and surgically edit Markdown sections by stable id.
"""

__version__ = "0.4.0"

from .dom import Document, MutationResult, SearchMatch, SearchSummary, Section, SectionContent
from .errors import MdError
from .ids import is_valid_id, section_hash
from .parser import parse_document, section_end_line, serialize_document

__all__ = [
    "Document",
    "MdError",
    "MutationResult",
    "SearchMatch",
    "SearchSummary",
    "Section",
    "SectionContent",
    "__version__",
    "is_valid_id",
    "parse_document",
    "section_end_line",
    "section_hash",
    "serialize_document",
]
