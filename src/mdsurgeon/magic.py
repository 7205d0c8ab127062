"""
Magic placeholder expansion for user-supplied content.

Supported:
- {datetime} or {dt}             -> 2024-01-15T14:30:00+01:00 (local time, with offset)
- {datetime:short} or {dt:short} -> 2024-01-15 14:30
- {date}                         -> 2024-01-15
- {time}                         -> 14:30:00
- {meta:key}                     -> frontmatter value, dotted paths allowed ({meta:author.name})

Unknown expressions are left as-is.
"""

from __future__ import annotations

import datetime
import re
from typing import Any

from .frontmatter import format_value, get_nested_value

MAGIC_PATTERN = re.compile(r"\{([^}]+)\}")


def _now() -> datetime.datetime:
    return datetime.datetime.now().astimezone()


def expand_magic(
    text: str,
    meta: dict[str, Any] | None = None,
    now: datetime.datetime | None = None,
) -> str:
    """Substitute magic expressions in text. `now` is injectable for tests."""
    moment = now or _now()

    def substitute(match: re.Match) -> str:
        expr = match.group(1).strip()

        if expr in ("datetime", "dt"):
            return moment.isoformat(timespec="seconds")
        if expr in ("datetime:short", "dt:short"):
            return moment.strftime("%Y-%m-%d %H:%M")
        if expr == "date":
            return moment.strftime("%Y-%m-%d")
        if expr == "time":
            return moment.strftime("%H:%M:%S")
        if expr.startswith("meta:") and meta is not None:
            return format_value(get_nested_value(meta, expr[len("meta:"):]))

        return match.group(0)

    return MAGIC_PATTERN.sub(substitute, text)
