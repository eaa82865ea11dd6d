"""Tests for picking property values and finding mail senders."""

from __future__ import annotations

from typing import Sequence, Tuple
from unittest.mock import MagicMock

import pytest

from orgcontacts.errors import AmbiguousSelection, ConfigurationError, EmptyResultError
from orgcontacts.index.search import ContactSearcher
from orgcontacts.mail import find_sender_contact
from orgcontacts.picker import pick_value, property_choices


def _contact(searcher: ContactSearcher, name: str):
    return searcher.filter(name)[0]


class TestPickValue:
    """Tests for pick_value."""

    def test_single_value(self, searcher: ContactSearcher) -> None:
        alice = _contact(searcher, "Alice")

        assert pick_value(alice, "Email", searcher.config) == "alice@example.com"
        assert pick_value(alice, "phone", searcher.config) == "+33-1-23-45-67"

    def test_ignored_values_are_not_choices(self, searcher: ContactSearcher) -> None:
        carol = _contact(searcher, "Carol")

        assert property_choices(carol, "Email", searcher.config) == ["carol@example.com"]
        assert pick_value(carol, "Email", searcher.config) == "carol@example.com"

    def test_several_values_without_chooser(self, searcher: ContactSearcher) -> None:
        """The caller gets the choices back when it cannot be asked."""
        bob = _contact(searcher, "Bob")

        with pytest.raises(AmbiguousSelection) as excinfo:
            pick_value(bob, "Email", searcher.config)

        assert excinfo.value.choices == ["bob@example.com", "bob@work.example"]

    def test_several_values_with_chooser(self, searcher: ContactSearcher) -> None:
        bob = _contact(searcher, "Bob")

        def choose(values: Sequence[str]) -> str:
            return values[-1]

        assert pick_value(bob, "Email", searcher.config, choose) == "bob@work.example"

    def test_no_value(self, searcher: ContactSearcher) -> None:
        dora = _contact(searcher, "Dora")

        with pytest.raises(EmptyResultError, match="No Email found for Dora Stone"):
            pick_value(dora, "Email", searcher.config)

    def test_unknown_category(self, searcher: ContactSearcher) -> None:
        with pytest.raises(ConfigurationError):
            pick_value(_contact(searcher, "Alice"), "Fax", searcher.config)


class FakeMailClient:
    """Mail client reporting a fixed sender."""

    def __init__(self, sender: Tuple[str, str] | None) -> None:
        self.sender = sender

    def get_sender_name_and_email(self) -> Tuple[str, str] | None:
        return self.sender


class TestFindSenderContact:
    """Tests for find_sender_contact."""

    def test_known_sender(self, searcher: ContactSearcher) -> None:
        """The sender is found through any of their addresses."""
        contact = find_sender_contact(searcher, FakeMailClient(("Bob", "bob@work.example")))

        assert contact is not None
        assert contact.name == "Bob Stone"

    def test_unknown_sender(self, searcher: ContactSearcher) -> None:
        assert find_sender_contact(searcher, FakeMailClient(("X", "x@example.com"))) is None

    def test_no_message(self, searcher: ContactSearcher) -> None:
        source = MagicMock()
        source.get_sender_name_and_email.return_value = None

        assert find_sender_contact(searcher, source) is None
        source.get_sender_name_and_email.assert_called_once_with()
