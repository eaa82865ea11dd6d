"""Contact filtering on top of the contact database."""

from __future__ import annotations

import re
from typing import List, Sequence, Tuple

from orgcontacts.config import AppConfig
from orgcontacts.index.cache import ContactDatabase
from orgcontacts.models import ContactRecord


class ContactSearcher:
    """High-level API to query the contact database."""

    def __init__(self, database: ContactDatabase) -> None:
        self.database = database

    @property
    def config(self) -> AppConfig:
        return self.database.config

    def filter(
        self,
        name_match: str | None = None,
        tags_match: str | None = None,
        prop_match: Tuple[str, str] | None = None,
        *,
        ignore_case: bool = True,
    ) -> Sequence[ContactRecord]:
        """Return the contacts matching any of the given criteria.

        A contact is kept when its name matches ``name_match``, OR one of its
        tags matches ``tags_match``, OR its property ``prop_match[0]`` matches
        the regex ``prop_match[1]``. Without criteria every contact is
        returned. Order follows the database.
        """
        records = self.database.current_records()
        if name_match is None and tags_match is None and prop_match is None:
            return records

        flags = re.IGNORECASE if ignore_case else 0
        name_re = re.compile(name_match, flags) if name_match is not None else None
        tags_re = re.compile(tags_match, flags) if tags_match is not None else None
        prop_re = re.compile(prop_match[1], flags) if prop_match is not None else None

        results: List[ContactRecord] = []
        for record in records:
            if name_re is not None and name_re.search(record.name):
                results.append(record)
            elif tags_re is not None and any(tags_re.search(tag) for tag in record.tags):
                results.append(record)
            elif prop_match is not None and prop_re is not None:
                value = record.get(prop_match[0])
                if value is not None and prop_re.search(value):
                    results.append(record)
        return results

    def find_by_email(self, email: str) -> List[ContactRecord]:
        """Contacts listing ``email`` under any property of the Email category."""
        category = self.config.category("Email")
        wanted = email.strip().lower()
        return [
            record
            for record in self.database.current_records()
            if wanted in (value.lower() for value in record.category_values(category))
        ]
