"""Tests for anniversaries."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import pytest

from orgcontacts.anniversary import (
    anniversaries,
    anniversary_years,
    find_anniversaries,
    recurrence_in,
)
from orgcontacts.config import AppConfig
from orgcontacts.index.cache import ContactDatabase
from orgcontacts.index.search import ContactSearcher

ALICE_BIRTHDAY = date(2024, 5, 20)


def _searcher_for(path: Path) -> ContactSearcher:
    return ContactSearcher(ContactDatabase(AppConfig(sources=[path])))


class TestRecurrence:
    """Tests for recurrence_in and anniversary_years."""

    def test_same_day(self) -> None:
        assert recurrence_in(date(1990, 5, 20), 2024) == date(2024, 5, 20)

    def test_leap_day(self) -> None:
        """Feb 29 falls on Mar 1 outside leap years."""
        assert recurrence_in(date(2000, 2, 29), 2023) == date(2023, 3, 1)
        assert recurrence_in(date(2000, 2, 29), 2024) == date(2024, 2, 29)

    def test_years(self) -> None:
        assert anniversary_years(date(1990, 5, 20), date(2024, 5, 20)) == 34
        assert anniversary_years(date(2000, 2, 29), date(2023, 3, 1)) == 23
        assert anniversary_years(date(2000, 2, 29), date(2023, 2, 28)) is None

    def test_other_day(self) -> None:
        assert anniversary_years(date(1990, 5, 20), date(2024, 5, 21)) is None

    def test_original_date_is_not_an_anniversary(self) -> None:
        """Zero or negative elapsed years never count."""
        assert anniversary_years(date(1990, 5, 20), date(1990, 5, 20)) is None
        assert anniversary_years(date(2030, 5, 20), date(2024, 5, 20)) is None


class TestFindAnniversaries:
    """Tests for find_anniversaries and anniversaries."""

    def test_birthday(self, searcher: ContactSearcher) -> None:
        events = find_anniversaries(searcher, today=ALICE_BIRTHDAY)

        assert len(events) == 1
        assert events[0].record.name == "Alice Martin"
        assert events[0].original == date(1990, 5, 20)
        assert events[0].years == 34
        assert events[0].ordinal == "34th"

    def test_nothing_today(self, searcher: ContactSearcher) -> None:
        assert anniversaries(searcher, today=date(2024, 1, 1)) == []

    def test_default_format(self, searcher: ContactSearcher, contacts_file: Path) -> None:
        """Lines link back to the contact heading."""
        lines = anniversaries(searcher, today=ALICE_BIRTHDAY)

        link = f"[[file:{contacts_file.resolve()}::*Alice Martin][Alice Martin]]"
        assert lines == [f"Birthday: {link} (34th)"]

    def test_custom_template(self, searcher: ContactSearcher) -> None:
        lines = anniversaries(searcher, template="{name} turns {years}", today=ALICE_BIRTHDAY)

        assert lines == ["Alice Martin turns 34"]

    def test_custom_field(self, write_org) -> None:
        """Any property holding a date can be used."""
        path = write_org(
            "wedding.org",
            "* Alice\n:PROPERTIES:\n:EMAIL: a@x.com\n:WEDDING: <2012-06-11 Mon>\n:END:\n",
        )

        lines = anniversaries(
            _searcher_for(path),
            "WEDDING",
            "{name}: {ordinal} wedding anniversary",
            today=date(2023, 6, 11),
        )

        assert lines == ["Alice: 11th wedding anniversary"]

    def test_leap_day_birthday(self, write_org) -> None:
        path = write_org("leap.org", "* Leo\n:PROPERTIES:\n:BIRTHDAY: 2000-02-29\n:END:\n")

        events = find_anniversaries(_searcher_for(path), today=date(2021, 3, 1))

        assert [(event.record.name, event.years) for event in events] == [("Leo", 21)]

    def test_malformed_date_is_skipped(
        self, write_org, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A bad date is logged and the other contacts still count."""
        path = write_org(
            "bad.org",
            "* Ann\n:PROPERTIES:\n:BIRTHDAY: someday\n:END:\n"
            "* Ben\n:PROPERTIES:\n:BIRTHDAY: 1980-07-04\n:END:\n",
        )

        with caplog.at_level(logging.WARNING):
            events = find_anniversaries(_searcher_for(path), today=date(2001, 7, 4))

        assert [event.record.name for event in events] == ["Ben"]
        assert "Ann" in caplog.text
