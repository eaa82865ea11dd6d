"""Picking one property value of a contact, e.g. to copy it somewhere."""

from __future__ import annotations

from typing import Callable, List, Sequence

from orgcontacts.config import AppConfig
from orgcontacts.errors import AmbiguousSelection, EmptyResultError
from orgcontacts.models import ContactRecord
from orgcontacts.utils.text import split_property

Chooser = Callable[[Sequence[str]], str]


def property_choices(record: ContactRecord, category: str, config: AppConfig) -> List[str]:
    """Every value of ``category`` on the contact, ignored values excluded."""
    ignored = split_property(record.get(config.ignore_property))
    return record.category_values(config.category(category), ignore=ignored)


def pick_value(
    record: ContactRecord,
    category: str,
    config: AppConfig,
    choose: Chooser | None = None,
) -> str:
    """Return the single value of ``category``.

    Raises EmptyResultError when the contact has none. With several values,
    ``choose`` picks one; without it AmbiguousSelection carries the choices.
    """
    values = property_choices(record, category, config)
    if not values:
        raise EmptyResultError(f"No {category} found for {record.name}")
    if len(values) == 1:
        return values[0]
    if choose is None:
        raise AmbiguousSelection(f"{record.name} has {len(values)} {category} values", values)
    return choose(values)
