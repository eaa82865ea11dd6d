"""Shared fixtures: outline files written to a temporary directory."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from orgcontacts.config import AppConfig
from orgcontacts.index.cache import ContactDatabase
from orgcontacts.index.search import ContactSearcher

CONTACTS_ORG = """\
#+FILETAGS: :people:
* Friends :friend:
** Alice Martin :family:
:PROPERTIES:
:EMAIL: alice@example.com
:PHONE: +33-1-23-45-67
:BIRTHDAY: 1990-05-20
:END:
** Bob Stone :family:
:PROPERTIES:
:EMAIL: bob@example.com
:EMAIL_WORK: bob@work.example
:END:
** Dora Stone :family:
:PROPERTIES:
:PHONE: 555-0100
:END:
* Colleagues
** Carol Jones :work:
:PROPERTIES:
:EMAIL: carol@example.com
:IGNORE: carol@old.example
:EMAIL_OTHER: carol@old.example
:END:
* Notes
Just some text, no contact here.
"""


@pytest.fixture
def write_org(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write an outline file under tmp_path and return its path."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def contacts_file(write_org: Callable[[str, str], Path]) -> Path:
    return write_org("contacts.org", CONTACTS_ORG)


@pytest.fixture
def database(contacts_file: Path) -> ContactDatabase:
    return ContactDatabase(AppConfig(sources=[contacts_file]))


@pytest.fixture
def searcher(database: ContactDatabase) -> ContactSearcher:
    return ContactSearcher(database)
