"""Tests for recipient completion."""

from __future__ import annotations

from pathlib import Path

import pytest

from orgcontacts.completion.complete import Completer
from orgcontacts.config import AppConfig
from orgcontacts.index.cache import ContactDatabase
from orgcontacts.index.search import ContactSearcher

FAMILY = "Alice Martin <alice@example.com>, Bob Stone <bob@example.com>"


@pytest.fixture
def completer(searcher: ContactSearcher) -> Completer:
    return Completer(searcher)


def _completer_for(path: Path, **options) -> Completer:
    return Completer(ContactSearcher(ContactDatabase(AppConfig(sources=[path], **options))))


class TestEmails:
    """Tests for Completer.emails and name_candidates."""

    def test_ignored_addresses_are_dropped(self, completer: Completer, searcher: ContactSearcher) -> None:
        carol = searcher.filter("Carol")[0]

        assert completer.emails(carol) == ["carol@example.com"]

    def test_every_address_of_every_property(self, completer: Completer, searcher: ContactSearcher) -> None:
        bob = searcher.filter("Bob")[0]

        assert completer.emails(bob) == ["bob@example.com", "bob@work.example"]

    def test_name_candidates(self, completer: Completer) -> None:
        """One candidate per address; contacts without email give none."""
        assert completer.name_candidates() == [
            "Alice Martin <alice@example.com>",
            "Bob Stone <bob@example.com>",
            "Bob Stone <bob@work.example>",
            "Carol Jones <carol@example.com>",
        ]


class TestGroupCompletion:
    """Tests for +group tokens."""

    def test_single_group_expands(self, completer: Completer) -> None:
        """A group expands to the first address of each member with an address."""
        result = completer.complete("+family")

        assert result.resolved
        assert result.expansion == FAMILY
        assert (result.start, result.end) == (0, 7)

    def test_unique_prefix_expands(self, completer: Completer) -> None:
        assert completer.complete("+fam").expansion == FAMILY
        assert completer.complete("+FAM").expansion == FAMILY

    def test_inherited_group(self, completer: Completer) -> None:
        result = completer.complete("+people")

        assert result.expansion == (
            "Alice Martin <alice@example.com>, Bob Stone <bob@example.com>, "
            "Carol Jones <carol@example.com>"
        )

    def test_several_groups(self, completer: Completer) -> None:
        """With several groups left the token stays unresolved."""
        result = completer.complete("+")

        assert not result.resolved
        assert [candidate.text for candidate in result.candidates] == [
            "+people",
            "+friend",
            "+family",
            "+work",
        ]

    def test_unknown_group(self, completer: Completer) -> None:
        result = completer.complete("+zzz")

        assert not result.resolved
        assert result.candidates == []

    def test_group_without_addresses(self, write_org) -> None:
        """A group whose members have no address does not expand."""
        path = write_org("solo.org", "* Dora :solo:\n:PROPERTIES:\n:PHONE: 555\n:END:\n")

        result = _completer_for(path).complete("+solo")

        assert not result.resolved
        assert [candidate.text for candidate in result.candidates] == ["+solo"]

    def test_exact_group_among_longer_ones(self, write_org) -> None:
        """A group named in full expands even when longer groups share its prefix."""
        path = write_org(
            "groups.org",
            "* Ann :family:\n:PROPERTIES:\n:EMAIL: ann@example.com\n:END:\n"
            "* Ben :family2:\n:PROPERTIES:\n:EMAIL: ben@example.com\n:END:\n",
        )
        completer = _completer_for(path)

        assert completer.complete("+family").expansion == "Ann <ann@example.com>"
        assert completer.complete("+family2").expansion == "Ben <ben@example.com>"
        result = completer.complete("+fam")
        assert not result.resolved
        assert [candidate.text for candidate in result.candidates] == ["+family", "+family2"]

    def test_case_sensitive_groups(self, contacts_file: Path) -> None:
        completer = _completer_for(contacts_file, completion_ignore_case=False)

        assert completer.complete("+FAM").candidates == []
        assert completer.complete("+fam").expansion == FAMILY


class TestTagsPropsCompletion:
    """Tests for #expression tokens."""

    def test_tag_expression(self, completer: Completer) -> None:
        assert completer.complete("#family").expansion == FAMILY

    def test_negation(self, completer: Completer) -> None:
        result = completer.complete("#people-family")

        assert result.expansion == "Carol Jones <carol@example.com>"

    def test_property_expression(self, completer: Completer) -> None:
        result = completer.complete("#EMAIL_WORK={work}")

        assert result.expansion == "Bob Stone <bob@example.com>"

    def test_no_match(self, completer: Completer) -> None:
        result = completer.complete("#PHONE={^555}")

        assert not result.resolved
        assert result.candidates == []

    @pytest.mark.parametrize("token", ["#", "#(", "#family)"])
    def test_invalid_expression(self, completer: Completer, token: str) -> None:
        """Unparseable expressions leave the token unresolved."""
        result = completer.complete(token)

        assert not result.resolved
        assert result.candidates == []


class TestNameCompletion:
    """Tests for plain name tokens."""

    def test_candidates_and_common_text(self, completer: Completer) -> None:
        result = completer.complete("bob")

        assert not result.resolved
        assert [candidate.text for candidate in result.candidates] == [
            "Bob Stone <bob@example.com>",
            "Bob Stone <bob@work.example>",
        ]
        assert all(candidate.marks == frozenset({3}) for candidate in result.candidates)
        assert result.common == "Bob Stone <bob@"

    def test_matches_inside_address(self, completer: Completer) -> None:
        """Any word of the candidate can be completed, the address included."""
        result = completer.complete("carol@")

        assert [candidate.text for candidate in result.candidates] == [
            "Carol Jones <carol@example.com>"
        ]

    def test_ignored_address_is_not_offered(self, completer: Completer) -> None:
        result = completer.complete("carol@old")

        assert result.candidates == []
        assert result.common is False

    def test_exact_candidate(self, completer: Completer) -> None:
        result = completer.complete("Alice Martin <alice@example.com>")

        assert result.common is True

    def test_start_offset(self, completer: Completer) -> None:
        result = completer.complete("ali", start=10)

        assert (result.start, result.end) == (10, 13)


class TestCompleteAtPoint:
    """Tests for Completer.complete_at_point."""

    def test_token_after_last_separator(self, completer: Completer) -> None:
        text = "To: alice@example.com, bo"

        result = completer.complete_at_point(text)

        assert (result.start, result.end) == (23, 25)
        assert len(result.candidates) == 2

    def test_first_recipient(self, completer: Completer) -> None:
        result = completer.complete_at_point("To:   +family")

        assert result.start == 6
        assert result.expansion == FAMILY

    def test_point_inside_text(self, completer: Completer) -> None:
        text = "To: car, alice@example.com"

        result = completer.complete_at_point(text, point=7)

        assert (result.start, result.end) == (4, 7)
        assert [candidate.text for candidate in result.candidates] == [
            "Carol Jones <carol@example.com>"
        ]
