# =============================================================================
# core/forms.py - Extended URL-Encoded Form Parser
# =============================================================================
# Parses application/x-www-form-urlencoded bodies into nested structures,
# using the bracket conventions browsers and jQuery-style clients send:
#
#   name=Ann                    -> {"name": "Ann"}
#   tag=a&tag=b                 -> {"tag": ["a", "b"]}
#   item[]=a&item[]=b           -> {"item": ["a", "b"]}
#   address[city]=Paris         -> {"address": {"city": "Paris"}}
#   lines[0][sku]=X&lines[1][sku]=Y
#                               -> {"lines": [{"sku": "X"}, {"sku": "Y"}]}
#
# Nesting deeper than `depth` keeps the rest of the key as one literal
# segment. Numeric indices above ARRAY_INDEX_LIMIT stay mapping keys.
# =============================================================================

from __future__ import annotations

import re
from typing import Any
from urllib.parse import unquote_plus

DEFAULT_PARAMETER_LIMIT = 1000
DEFAULT_DEPTH = 5
ARRAY_INDEX_LIMIT = 20

_SEGMENT = re.compile(r"\[([^\[\]]*)\]")


class TooManyParametersError(ValueError):
    """Raised when a form body carries more parameters than allowed."""

    def __init__(self, limit: int):
        super().__init__(f"too many parameters (limit: {limit})")
        self.limit = limit


def parse_urlencoded(
    body: str,
    parameter_limit: int = DEFAULT_PARAMETER_LIMIT,
    depth: int = DEFAULT_DEPTH,
) -> dict[str, Any]:
    """
    Parse a URL-encoded body into nested dicts and lists.

    Args:
        body: Decoded request body text
        parameter_limit: Maximum number of key/value pairs
        depth: Maximum bracket nesting below the top-level key

    Returns:
        Parsed mapping (empty for an empty body)

    Raises:
        TooManyParametersError: If the body has more than parameter_limit pairs
    """
    pairs = [pair for pair in body.split("&") if pair]
    if len(pairs) > parameter_limit:
        raise TooManyParametersError(parameter_limit)

    result: dict[str, Any] = {}
    for pair in pairs:
        raw_key, _, raw_value = pair.partition("=")
        key = unquote_plus(raw_key)
        if not key:
            continue
        _assign(result, split_key(key, depth), unquote_plus(raw_value))

    return _compact(result)


def split_key(key: str, depth: int = DEFAULT_DEPTH) -> list[str]:
    """
    Split "a[b][]" into ["a", "b", ""].

    A key that does not start with a name followed by a bracket pair is
    returned unsplit.
    """
    bracket = key.find("[")
    if bracket <= 0:
        return [key]

    rest = key[bracket:]
    segments = [key[:bracket]]
    position = 0
    while len(segments) <= depth:
        match = _SEGMENT.match(rest, position)
        if not match:
            break
        segments.append(match.group(1))
        position = match.end()

    if position == 0:
        return [key]
    if position < len(rest):
        segments.append(rest[position:])
    return segments


# =============================================================================
# Helpers
# =============================================================================

def _assign(target: dict[str, Any], path: list[str], value: str) -> None:
    key, rest = path[0], path[1:]

    if not rest:
        _set_leaf(target, key, value)
        return

    if rest[0] == "":
        # Empty brackets append to a list
        items = target.get(key)
        if not isinstance(items, list):
            items = [] if items is None else [items]
            target[key] = items
        if len(rest) == 1:
            items.append(value)
        else:
            child: dict[str, Any] = {}
            items.append(child)
            _assign(child, rest[1:], value)
        return

    child = target.get(key)
    if not isinstance(child, dict):
        child = {}
        target[key] = child
    _assign(child, rest, value)


def _set_leaf(target: dict[str, Any], key: str, value: str) -> None:
    existing = target.get(key)
    if existing is None:
        target[key] = value
    elif isinstance(existing, list):
        existing.append(value)
    else:
        target[key] = [existing, value]


def _compact(value: Any) -> Any:
    """Turn mappings keyed 0..n into lists, recursively."""
    if isinstance(value, list):
        return [_compact(item) for item in value]
    if not isinstance(value, dict):
        return value

    compacted = {key: _compact(item) for key, item in value.items()}
    if compacted and all(key.isdigit() and key == str(int(key)) for key in compacted):
        indices = sorted(int(key) for key in compacted)
        if indices[-1] <= ARRAY_INDEX_LIMIT:
            return [compacted[str(index)] for index in indices]
    return compacted
