"""Looking up the contact behind a mail sender."""

from __future__ import annotations

from typing import Protocol, Tuple

from orgcontacts.index.search import ContactSearcher
from orgcontacts.models import ContactRecord


class SenderSource(Protocol):
    """Anything able to tell who sent the current message (a mail client)."""

    def get_sender_name_and_email(self) -> Tuple[str, str] | None:
        ...


def find_sender_contact(searcher: ContactSearcher, source: SenderSource) -> ContactRecord | None:
    """First contact owning the sender's address, or None."""
    sender = source.get_sender_name_and_email()
    if sender is None:
        return None
    _, email = sender
    matches = searcher.find_by_email(email)
    return matches[0] if matches else None
