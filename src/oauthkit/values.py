"""Helpers for multi-valued URL parameter sets.

OAuth2 requests and form-encoded token responses are both modelled as a
:data:`Values` mapping of parameter name to a list of values, the same
shape :func:`urllib.parse.parse_qs` produces. Every helper here that
builds a new mapping copies its input so caller-supplied parameters are
never mutated.

Encoding is deterministic: keys are emitted in sorted order, so the same
parameters always produce the same query string.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional, Sequence
from urllib.parse import quote_plus, unquote_plus

Values = dict[str, list[str]]

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def clone_values(vals: Optional[Mapping[str, Sequence[str]]]) -> Values:
    """Return a copy of *vals* with fresh value lists.

    ``None`` yields an empty mapping.
    """
    if not vals:
        return {}
    return {key: list(items) for key, items in vals.items()}


def set_value(vals: Values, key: str, value: str) -> None:
    """Replace every value stored under *key* with *value*."""
    vals[key] = [value]


def add_value(vals: Values, key: str, value: str) -> None:
    """Append *value* to the values stored under *key*."""
    vals.setdefault(key, []).append(value)


def get_value(vals: Mapping[str, Sequence[str]], key: str) -> str:
    """Return the first value stored under *key*, or ``""`` if there is none."""
    items = vals.get(key)
    if not items:
        return ""
    return items[0]


def query_escape(text: str) -> str:
    """Escape *text* for use inside a query component (space becomes ``+``)."""
    return quote_plus(text, safe="")


def encode_values(vals: Mapping[str, Sequence[str]]) -> str:
    """Encode *vals* as ``application/x-www-form-urlencoded`` text sorted by key.

    Example::

        >>> encode_values({"state": ["x y"], "code": ["abc"]})
        'code=abc&state=x+y'
    """
    parts: list[str] = []
    for key in sorted(vals):
        escaped_key = query_escape(key)
        for value in vals[key]:
            parts.append(f"{escaped_key}={query_escape(value)}")
    return "&".join(parts)


def parse_query(text: str) -> Values:
    """Parse a URL-encoded query string into :data:`Values`.

    Blank values are kept (``a=&b`` yields ``{"a": [""], "b": [""]}``).

    Raises:
        ValueError: If a pair uses ``;`` as a separator or contains an
            invalid percent escape.
    """
    vals: Values = {}
    for pair in text.split("&"):
        if not pair:
            continue
        if ";" in pair:
            raise ValueError(f"invalid semicolon separator in query: {pair!r}")
        key, _, value = pair.partition("=")
        for part in (key, value):
            if _BAD_ESCAPE.search(part):
                raise ValueError(f"invalid URL escape in {part!r}")
        add_value(vals, unquote_plus(key), unquote_plus(value))
    return vals
