"""Text helpers for property values, heading markup and labels."""

from __future__ import annotations

import re
from typing import Iterable, List

_LINK_RE = re.compile(r"\[\[([^\]]*)\](?:\[([^\]]*)\])?\]")
_VALUE_RE = re.compile(r"\[\[.*?\]\]|\S+")
_SCHEME_RE = re.compile(r"^(?:mailto|tel):", re.IGNORECASE)


def strip_markup(heading: str) -> str:
    """Return heading text the way it is displayed: links show their description."""
    text = _LINK_RE.sub(lambda match: match.group(2) or match.group(1), heading)
    return " ".join(text.split())


def split_property(value: str | None) -> List[str]:
    """Split a property value into its whitespace separated parts.

    Bracketed links are kept whole even when their description contains spaces.
    """
    if not value:
        return []
    return _VALUE_RE.findall(value)


def strip_link(value: str) -> str:
    """Reduce ``[[mailto:a@b][A]]`` or ``mailto:a@b`` to ``a@b``."""
    match = _LINK_RE.fullmatch(value)
    if match:
        value = match.group(1)
    return _SCHEME_RE.sub("", value)


def remove_ignored(values: Iterable[str], ignored: Iterable[str]) -> List[str]:
    ignored_set = {strip_link(item) for item in ignored}
    return [value for value in values if strip_link(value) not in ignored_set]


def uniquify(items: Iterable[str]) -> List[str]:
    """Drop duplicates, keeping the first occurrence."""
    seen: set[str] = set()
    result: List[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def format_email(name: str | None, email: str) -> str:
    """Format a recipient as ``Name <email>``, or the bare address without a name."""
    if not name:
        return email
    return f"{name} <{email}>"


def ordinal_suffix(number: int) -> str:
    if number % 100 in (11, 12, 13):
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


def ordinal(number: int) -> str:
    """Format ``3`` as ``3rd``."""
    return f"{number}{ordinal_suffix(number)}"
