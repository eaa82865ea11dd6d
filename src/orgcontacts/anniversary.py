"""Birthdays and other yearly dates stored on contacts."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from typing import List

from orgcontacts.errors import MalformedRecordError
from orgcontacts.index.search import ContactSearcher
from orgcontacts.models import ContactRecord
from orgcontacts.utils.dates import parse_org_date
from orgcontacts.utils.text import ordinal

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Anniversary:
    record: ContactRecord
    original: date
    years: int

    @property
    def ordinal(self) -> str:
        return ordinal(self.years)

    def render(self, template: str) -> str:
        """Fill ``{name}``, ``{link}``, ``{years}`` and ``{ordinal}`` in a template."""
        return template.format(
            name=self.record.name,
            link=self.record.location.link(self.record.name),
            years=self.years,
            ordinal=self.ordinal,
        )


def recurrence_in(original: date, year: int) -> date:
    """Date a yearly event falls on in ``year``; Feb 29 moves to Mar 1 outside leap years."""
    if (original.month, original.day) == (2, 29) and not calendar.isleap(year):
        return date(year, 3, 1)
    return original.replace(year=year)


def anniversary_years(original: date, today: date) -> int | None:
    """Elapsed years when ``today`` is a recurrence of ``original``, else None."""
    years = today.year - original.year
    if years > 0 and recurrence_in(original, today.year) == today:
        return years
    return None


def find_anniversaries(
    searcher: ContactSearcher,
    field: str | None = None,
    *,
    today: date | None = None,
) -> List[Anniversary]:
    """Contacts whose ``field`` date recurs on ``today``."""
    field = field or searcher.config.category("Birthday").default
    today = today or date.today()
    found: List[Anniversary] = []
    for record in searcher.filter():
        value = record.get(field)
        if not value:
            continue
        try:
            original = parse_org_date(value)
        except MalformedRecordError as exc:
            LOGGER.warning("Skipping %s of %s: %s", field, record.name, exc)
            continue
        years = anniversary_years(original, today)
        if years is not None:
            found.append(Anniversary(record=record, original=original, years=years))
    return found


def anniversaries(
    searcher: ContactSearcher,
    field: str | None = None,
    template: str | None = None,
    *,
    today: date | None = None,
) -> List[str]:
    """Formatted lines for every anniversary falling on ``today``."""
    template = template or searcher.config.birthday_format
    return [event.render(template) for event in find_anniversaries(searcher, field, today=today)]
