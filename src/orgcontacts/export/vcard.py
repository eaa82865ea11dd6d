"""VCard export of contacts.

Every value of a multi-valued category gets its own line, so a contact with
``EMAIL`` and ``EMAIL_WORK`` (or several addresses in one property) exports
one ``EMAIL:`` line per address.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Sequence, TextIO, Union

from orgcontacts.config import AppConfig
from orgcontacts.errors import MalformedRecordError
from orgcontacts.index.search import ContactSearcher
from orgcontacts.models import ContactRecord
from orgcontacts.utils.dates import parse_org_date
from orgcontacts.utils.text import split_property

LOGGER = logging.getLogger(__name__)

VCARD_VERSION = "3.0"

_ESCAPE_RE = re.compile(r"([;,\\])")
_UNESCAPE_RE = re.compile(r"\\(.)")


def escape(value: str) -> str:
    """Backslash-escape ``;``, ``,``, backslash and newlines."""
    return _ESCAPE_RE.sub(r"\\\1", value).replace("\n", "\\n")


def unescape(value: str) -> str:
    return _UNESCAPE_RE.sub(lambda match: "\n" if match.group(1) in "nN" else match.group(1), value)


def encode_name(name: str) -> str:
    """Best effort ``Family;Given;;;`` from a display name."""
    return re.sub(r"(\w+) (.*)", r"\2;\1", name, count=1) + ";;;"


def format_vcard(record: ContactRecord, config: AppConfig) -> str:
    ignored = split_property(record.get(config.ignore_property))
    name = escape(record.name)
    lines = [
        "BEGIN:VCARD",
        f"VERSION:{VCARD_VERSION}",
        f"N:{encode_name(name)}",
        f"FN:{name}",
    ]

    for email in record.category_values(config.category("Email"), ignore=ignored):
        lines.append(f"EMAIL:{escape(email)}")

    address_category = config.category("Address")
    for prop in address_category.properties:
        address = record.get(prop)
        if address:
            parts = re.split(r", ?", address)
            lines.append("ADR:;;" + ";".join(escape(part) for part in parts))

    for phone in record.category_values(config.category("Phone"), ignore=ignored):
        lines.append(f"TEL:{escape(phone)}")

    birthday = record.get(config.category("Birthday").default)
    if birthday:
        try:
            lines.append(f"BDAY:{parse_org_date(birthday).isoformat()}")
        except MalformedRecordError as exc:
            LOGGER.warning("Not exporting birthday of %s: %s", record.name, exc)

    nickname = record.get(config.category("Nickname").default)
    if nickname:
        lines.append(f"NICKNAME:{escape(nickname)}")
    note = record.get(config.category("Note").default)
    if note:
        lines.append(f"NOTE:{escape(note)}")

    lines.append("END:VCARD")
    return "\n".join(lines) + "\n\n"


def format_vcards(records: Sequence[ContactRecord], config: AppConfig) -> str:
    return "".join(format_vcard(record, config) for record in records)


def export_vcards(
    searcher: ContactSearcher,
    destination: Union[Path, str, TextIO],
    name: str | None = None,
) -> int:
    """Write the cards of the contacts matching ``name`` (all when None); return the count."""
    records = searcher.filter(name)
    text = format_vcards(records, searcher.config)
    if isinstance(destination, (str, Path)):
        path = Path(destination)
        path.write_text(text, encoding="utf-8")
        LOGGER.info("Exported %d contacts to %s", len(records), path)
    else:
        destination.write(text)
    return len(records)


def parse_vcards(text: str) -> List[Dict[str, List[str]]]:
    """Read cards back into ``{TYPE: [values]}`` dictionaries."""
    cards: List[Dict[str, List[str]]] = []
    current: Dict[str, List[str]] | None = None

    # Continuation lines start with a space or a tab.
    unfolded: List[str] = []
    for line in text.splitlines():
        if line[:1] in (" ", "\t") and unfolded:
            unfolded[-1] += line[1:]
        else:
            unfolded.append(line)

    for line in unfolded:
        if not line.strip():
            continue
        key, _, value = line.partition(":")
        key = key.split(";", 1)[0].upper()
        if key == "BEGIN":
            current = {}
        elif key == "END":
            if current is not None:
                cards.append(current)
            current = None
        elif current is not None:
            current.setdefault(key, []).append(unescape(value))
    return cards
