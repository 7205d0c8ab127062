"""
Section identifiers.

An id is the first 8 hex chars of SHA-256 over "level:normalized-title:occurrence".
Same structure in, same id out, across runs and processes. 32 bits is enough to
tell sections of one file apart; it is not meant to be collision-proof.
"""

from __future__ import annotations

import hashlib
import re

ID_LENGTH = 8

ID_PATTERN = re.compile(r"[0-9a-fA-F]{8}")


def normalize_title(title: str) -> str:
    """Case- and whitespace-insensitive form used for identity."""
    return title.lower().strip()


def section_hash(level: int, title: str, occurrence: int) -> str:
    """Derive the id for the occurrence-th header with this level and title."""
    key = f"{level}:{normalize_title(title)}:{occurrence}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:ID_LENGTH]


def is_valid_id(value: str) -> bool:
    """True iff value is exactly 8 hex characters (either case)."""
    return bool(ID_PATTERN.fullmatch(value))
