"""Contact extraction from outline documents."""

from __future__ import annotations

from typing import Iterator

from orgcontacts.index.expression import Matcher
from orgcontacts.ingestion.outline import Heading, OutlineDocument
from orgcontacts.ingestion.registry import DocumentRegistry
from orgcontacts.models import ContactRecord, PropertyBag
from orgcontacts.utils.text import strip_markup


def _format_tags(tags: tuple[str, ...]) -> str:
    return f":{':'.join(tags)}:" if tags else ""


def heading_properties(document: OutlineDocument, heading: Heading) -> PropertyBag:
    """Drawer properties of a heading plus the synthetic TAGS, ALLTAGS and FILE."""
    items = list(heading.properties.items())
    items.append(("TAGS", _format_tags(heading.local_tags)))
    items.append(("ALLTAGS", _format_tags(heading.tags)))
    items.append(("FILE", str(document.path)))
    return PropertyBag(items)


def iter_contacts(
    document: OutlineDocument, matcher: Matcher, registry: DocumentRegistry
) -> Iterator[ContactRecord]:
    """Lazily yield a contact record for every heading accepted by ``matcher``."""
    for heading in document.headings:
        properties = heading_properties(document, heading)
        if not matcher.matches(heading.tags, properties):
            continue
        yield ContactRecord(
            name=strip_markup(heading.title),
            location=registry.location_for(document, heading),
            properties=properties,
        )
