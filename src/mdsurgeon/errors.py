"""
Structured errors.

Every failure the core can report carries a stable code so callers can branch
on it, plus a free-text message for humans.
"""

from __future__ import annotations

from typing import Literal

ErrorCode = Literal[
    "file_not_found",
    "section_not_found",
    "parse_error",
    "invalid_id",
    "io_error",
]

FILE_NOT_FOUND: ErrorCode = "file_not_found"
SECTION_NOT_FOUND: ErrorCode = "section_not_found"
PARSE_ERROR: ErrorCode = "parse_error"
INVALID_ID: ErrorCode = "invalid_id"
IO_ERROR: ErrorCode = "io_error"


class MdError(Exception):
    """A user-facing failure with a stable error code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        file: str | None = None,
        id: str | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.file = file
        self.id = id

    def format(self) -> str:
        return f"error: {self.code}\n{self.message}"

    def __repr__(self) -> str:
        return f"MdError({self.code!r}, {self.message!r})"
