"""Outline document loading.

Reads the subset of Org syntax the contact scanner needs: headings with an
optional TODO keyword and tag suffix, ``#+FILETAGS:`` lines, tag inheritance
and ``:PROPERTIES:`` drawers.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from orgcontacts.errors import OutlineFormatError
from orgcontacts.utils.text import uniquify

LOGGER = logging.getLogger(__name__)

HEADING_RE = re.compile(r"^(\*+)[ \t]+(.*?)[ \t]*$")
TAGS_RE = re.compile(r"^(.*?)[ \t]*(:[\w@#%:]+:)$")
FILETAGS_RE = re.compile(r"^#\+FILETAGS:[ \t]*(.*)$", re.IGNORECASE)
PLANNING_RE = re.compile(r"^[ \t]*(?:SCHEDULED|DEADLINE|CLOSED):")
PROPERTY_RE = re.compile(r"^:([^\s:]+?)(\+)?:(?:[ \t]+(.*?))?[ \t]*$")


@dataclass(slots=True)
class Heading:
    """One heading of an outline document."""

    title: str
    level: int
    position: int
    line: int
    todo: str | None = None
    local_tags: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    properties: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class OutlineDocument:
    path: Path
    mtime: float
    generation: int
    headings: List[Heading] = field(default_factory=list)

    def heading_at(self, position: int) -> Heading | None:
        for heading in self.headings:
            if heading.position == position:
                return heading
        return None


def split_tags(value: str) -> List[str]:
    """Split ``:a:b:`` or ``a b`` into tags."""
    return [tag for tag in re.split(r"[:\s]+", value) if tag]


def _parse_title(text: str, todo_keywords: Sequence[str]) -> Tuple[str, str | None, List[str]]:
    tags: List[str] = []
    match = TAGS_RE.match(text)
    if match and (match.group(1) == "" or text[len(match.group(1))] in " \t"):
        text, tags = match.group(1), split_tags(match.group(2))

    todo = None
    keyword, _, rest = text.partition(" ")
    if keyword in todo_keywords:
        todo, text = keyword, rest.strip()
    return text, todo, tags


def _parse_drawer(
    lines: Sequence[str], start: int, path: Path
) -> Tuple[Dict[str, str], int]:
    """Parse the drawer opened at ``lines[start]``; return properties and the :END: index."""
    properties: Dict[str, str] = {}
    index = start + 1
    while index < len(lines):
        stripped = lines[index].strip()
        if stripped.upper() == ":END:":
            return properties, index
        if HEADING_RE.match(lines[index]):
            break
        match = PROPERTY_RE.match(stripped)
        if match:
            key, append, value = match.group(1).upper(), match.group(2), match.group(3) or ""
            if append and key in properties:
                properties[key] = f"{properties[key]} {value}".strip()
            else:
                properties[key] = value
        elif stripped:
            LOGGER.debug("Ignoring drawer line %d in %s: %s", index + 1, path, stripped)
        index += 1
    raise OutlineFormatError(f"Unterminated property drawer at line {start + 1} in {path}")


def parse_outline(
    text: str,
    path: Path,
    *,
    todo_keywords: Sequence[str] = ("TODO", "DONE"),
) -> List[Heading]:
    """Parse outline text into its headings, in document order."""
    lines = text.splitlines(keepends=True)
    offsets = [0]
    for line in lines:
        offsets.append(offsets[-1] + len(line))

    file_tags: List[str] = []
    parents: List[Tuple[int, List[str]]] = []
    headings: List[Heading] = []

    index = 0
    while index < len(lines):
        line = lines[index].rstrip("\r\n")
        filetags = FILETAGS_RE.match(line)
        if filetags:
            file_tags.extend(split_tags(filetags.group(1)))

        match = HEADING_RE.match(line)
        if not match:
            index += 1
            continue

        level = len(match.group(1))
        title, todo, local_tags = _parse_title(match.group(2), todo_keywords)
        while parents and parents[-1][0] >= level:
            parents.pop()
        inherited = [tag for _, tags in parents for tag in tags]

        heading = Heading(
            title=title,
            level=level,
            position=offsets[index],
            line=index + 1,
            todo=todo,
            local_tags=tuple(local_tags),
            tags=tuple(uniquify(file_tags + inherited + local_tags)),
        )

        cursor = index + 1
        if cursor < len(lines) and PLANNING_RE.match(lines[cursor]):
            cursor += 1
        if cursor < len(lines) and lines[cursor].strip().upper() == ":PROPERTIES:":
            heading.properties, cursor = _parse_drawer(lines, cursor, path)
            cursor += 1

        headings.append(heading)
        parents.append((level, local_tags))
        index = cursor

    return headings


def load_outline(
    path: Path,
    *,
    generation: int = 0,
    extensions: Sequence[str] = (".org",),
    todo_keywords: Sequence[str] = ("TODO", "DONE"),
) -> OutlineDocument:
    """Read and parse an outline file."""
    if path.suffix.lower() not in {ext.lower() for ext in extensions}:
        raise OutlineFormatError(f"File {path} is not an outline document")

    mtime = path.stat().st_mtime
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise OutlineFormatError(f"File {path} is not valid UTF-8: {exc}") from exc

    headings = parse_outline(text, path, todo_keywords=todo_keywords)
    LOGGER.debug("Parsed %d headings from %s", len(headings), path)
    return OutlineDocument(path=path, mtime=mtime, generation=generation, headings=headings)
