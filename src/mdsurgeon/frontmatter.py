"""
Frontmatter values.

YAML (de)serialization of the leading metadata block and dotted-path access
into it ("author.name", "tags.0"). The block's position in the file is the
parser's business; this module only deals with its values.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any

import yaml

from .errors import PARSE_ERROR, MdError

logger = logging.getLogger(__name__)


def parse_frontmatter(text: str) -> dict[str, Any]:
    """Parse a YAML body (no delimiters) into a dict. Anything unusable -> {}."""
    if not text.strip():
        return {}
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.debug("ignoring malformed frontmatter: %s", e)
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def load_frontmatter(text: str) -> dict[str, Any]:
    """
    Parse a YAML body that is about to be rewritten.

    Unlike parse_frontmatter, a body that is not a mapping raises parse_error
    instead of reading as {}.
    """
    try:
        data = yaml.safe_load(text) if text.strip() else None
    except yaml.YAMLError as e:
        raise MdError(PARSE_ERROR, f"Frontmatter is not valid YAML: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MdError(PARSE_ERROR, "Frontmatter is not a YAML mapping")
    return data


def _dump(value: Any) -> str:
    return yaml.safe_dump(
        value,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    ).strip()


def stringify_frontmatter(data: dict[str, Any]) -> str:
    """Dump a dict to a YAML body (no delimiters). Empty dict -> ''."""
    if not data:
        return ""
    return _dump(data)


def format_value(value: Any) -> str:
    """Render a value for output: scalars bare, collections as YAML."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return _dump(value)


def coerce_value(text: str) -> Any:
    """
    Interpret a command-line value as YAML where that is clearly intended.

    Numbers, booleans and non-empty lists/mappings come back typed; anything
    else (plain words, dates, empty input) stays the original string.
    """
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError:
        return text
    if isinstance(parsed, (bool, int, float)):
        return parsed
    if isinstance(parsed, (list, dict)) and parsed:
        return parsed
    return text


def _lookup(container: Any, part: str) -> Any:
    if isinstance(container, dict):
        return container.get(part)
    if isinstance(container, list) and part.isdigit():
        index = int(part)
        return container[index] if index < len(container) else None
    return None


def _assign(container: dict | list, part: str, value: Any, path: str) -> None:
    if isinstance(container, dict):
        container[part] = value
        return
    if not part.isdigit():
        raise MdError(PARSE_ERROR, f"Key '{part}' in '{path}' is not a list index")
    index = int(part)
    while len(container) <= index:
        container.append(None)
    container[index] = value


def get_nested_value(obj: Any, path: str) -> Any:
    """Value at a dotted path, or None if any segment is missing."""
    current = obj
    for part in path.split("."):
        current = _lookup(current, part)
        if current is None:
            return None
    return current


def set_nested_value(obj: dict[str, Any], path: str, value: Any) -> None:
    """Set a value at a dotted path, creating intermediate dicts/lists as needed."""
    parts = path.split(".")
    current: dict | list = obj
    for i, part in enumerate(parts[:-1]):
        child = _lookup(current, part)
        if not isinstance(child, (dict, list)):
            child = [] if parts[i + 1].isdigit() else {}
            _assign(current, part, child, path)
        current = child
    _assign(current, parts[-1], value, path)


def delete_nested_value(obj: dict[str, Any], path: str) -> bool:
    """Delete the value at a dotted path. Returns False if it wasn't there."""
    parts = path.split(".")
    current: Any = obj
    for part in parts[:-1]:
        current = _lookup(current, part)
        if not isinstance(current, (dict, list)):
            return False

    last = parts[-1]
    if isinstance(current, dict):
        if last in current:
            del current[last]
            return True
        return False
    if last.isdigit() and int(last) < len(current):
        del current[int(last)]
        return True
    return False
