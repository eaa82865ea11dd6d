"""Exception types raised by orgcontacts."""

from __future__ import annotations

from typing import Sequence


class OrgContactsError(Exception):
    """Base class for all orgcontacts errors."""


class ConfigurationError(OrgContactsError):
    """No usable source documents or an unknown configuration key."""


class OutlineFormatError(OrgContactsError):
    """A document cannot be read as an outline."""


class LocationError(OrgContactsError):
    """A location handle could not be resolved."""


class DocumentClosedError(LocationError):
    """The document a location points into is no longer open."""


class OffsetOutOfRangeError(LocationError):
    """The document is open but no heading starts at the location."""


class MalformedRecordError(OrgContactsError):
    """A contact carries a value that cannot be interpreted."""


class ExpressionError(OrgContactsError, ValueError):
    """A tag/property match expression cannot be parsed."""


class EmptyResultError(OrgContactsError):
    """A lookup produced no value to return."""


class AmbiguousSelection(OrgContactsError):
    """Several values are possible and the caller has to choose one."""

    def __init__(self, message: str, choices: Sequence[str]) -> None:
        super().__init__(message)
        self.choices = list(choices)
