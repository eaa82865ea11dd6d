"""Date parsing for Org timestamps."""

from __future__ import annotations

import re
from datetime import date

from orgcontacts.errors import MalformedRecordError

_DATE_RE = re.compile(r"^[<\[]?\s*(\d{4})-(\d{1,2})-(\d{1,2})(?:\s+[^>\]]*)?[>\]]?$")


def parse_org_date(value: str) -> date:
    """Parse ``1990-05-20``, ``<1990-05-20 Sun>`` or ``[1990-05-20]`` into a date."""
    match = _DATE_RE.match(value.strip())
    if not match:
        raise MalformedRecordError(f"Not a date: {value!r}")
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise MalformedRecordError(f"Not a date: {value!r}") from exc
