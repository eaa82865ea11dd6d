"""Recipient completion against the contact database.

Three kinds of tokens are understood:

- ``+family`` (group prefix) completes to the tags seen on contacts; once a
  single tag is left it expands to the addresses of every contact with it.
- ``#work-boss`` (tags/properties prefix) evaluates a match expression and
  expands to the addresses of every matching contact.
- anything else completes ``Name <email>`` strings at word boundaries.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Sequence, Union

from orgcontacts.completion.prefix import all_completions, try_completion
from orgcontacts.config import AppConfig
from orgcontacts.errors import ExpressionError
from orgcontacts.index.expression import compile_expression
from orgcontacts.index.search import ContactSearcher
from orgcontacts.models import CompletionCandidate, ContactRecord
from orgcontacts.utils.text import format_email, split_property, uniquify

LOGGER = logging.getLogger(__name__)

_TOKEN_START_RE = re.compile(r"[\n:,][ \t]*")
EXPANSION_SEPARATOR = ", "


def _starts_with(text: str, prefix: str, ignore_case: bool) -> bool:
    if ignore_case:
        return text.lower().startswith(prefix.lower())
    return text.startswith(prefix)


@dataclass(slots=True)
class CompletionResult:
    """Outcome of completing the text between ``start`` and ``end``.

    ``expansion`` is set when the token resolved to replacement text; otherwise
    ``candidates`` lists what the token may still complete to and ``common``
    holds ``try_completion``'s answer for them.
    """

    start: int
    end: int
    candidates: List[CompletionCandidate] = field(default_factory=list)
    expansion: str | None = None
    common: Union[str, bool] = False

    @property
    def resolved(self) -> bool:
        return self.expansion is not None


class Completer:
    def __init__(self, searcher: ContactSearcher) -> None:
        self.searcher = searcher

    @property
    def config(self) -> AppConfig:
        return self.searcher.config

    def emails(self, record: ContactRecord) -> List[str]:
        """Addresses of a contact, minus those listed in its ignore property."""
        ignored = split_property(record.get(self.config.ignore_property))
        return record.category_values(self.config.category("Email"), ignore=ignored)

    def _first_addresses(self, records: Sequence[ContactRecord]) -> List[str]:
        addresses = []
        for record in records:
            emails = self.emails(record)
            if emails:
                addresses.append(format_email(record.name, emails[0]))
        return addresses

    def complete(self, token: str, start: int = 0) -> CompletionResult:
        """Complete ``token``, which sits at ``start`` in the caller's text."""
        end = start + len(token)
        result = self.complete_group(token, start, end)
        if result is None:
            result = self.complete_tags_props(token, start, end)
        if result is None:
            result = self.complete_name(token, start, end)
        return result

    def complete_at_point(self, text: str, point: int | None = None) -> CompletionResult:
        """Complete the recipient ending at ``point`` in a header such as ``To: a, b``."""
        point = len(text) if point is None else point
        start = 0
        for match in _TOKEN_START_RE.finditer(text, 0, point):
            start = match.end()
        while start < point and text[start] in " \t":
            start += 1
        return self.complete(text[start:point], start)

    def complete_group(self, token: str, start: int, end: int) -> CompletionResult | None:
        prefix = self.config.group_prefix
        if not token.startswith(prefix):
            return None

        ignore_case = self.config.completion_ignore_case
        tags = uniquify(tag for record in self.searcher.filter() for tag in record.tags)
        groups = [prefix + tag for tag in tags if _starts_with(prefix + tag, token, ignore_case)]
        candidates = [CompletionCandidate(group) for group in groups]
        exact = [group for group in groups if len(group) == len(token)]
        if len(exact) == 1:
            groups = exact

        if len(groups) != 1:
            LOGGER.debug("Group %r matches %d groups", token, len(groups))
            return CompletionResult(start, end, candidates=candidates)

        tag = groups[0][len(prefix):]
        records = self.searcher.filter(tags_match=f"^{re.escape(tag)}$", ignore_case=False)
        addresses = self._first_addresses(records)
        if not addresses:
            return CompletionResult(start, end, candidates=candidates)
        return CompletionResult(start, end, expansion=EXPANSION_SEPARATOR.join(addresses))

    def complete_tags_props(self, token: str, start: int, end: int) -> CompletionResult | None:
        prefix = self.config.tags_props_prefix
        if not token.startswith(prefix):
            return None

        try:
            matcher = compile_expression(token[len(prefix):])
        except ExpressionError as exc:
            LOGGER.debug("Cannot complete %r: %s", token, exc)
            return CompletionResult(start, end)

        addresses = self._first_addresses([r for r in self.searcher.filter() if matcher(r)])
        if not addresses:
            return CompletionResult(start, end)
        return CompletionResult(start, end, expansion=EXPANSION_SEPARATOR.join(addresses))

    def name_candidates(self) -> List[str]:
        """One ``Name <email>`` string per address of every contact."""
        return uniquify(
            format_email(record.name, email)
            for record in self.searcher.filter()
            for email in self.emails(record)
        )

    def complete_name(self, token: str, start: int, end: int) -> CompletionResult:
        ignore_case = self.config.completion_ignore_case
        candidates = all_completions(token, self.name_candidates(), ignore_case=ignore_case)
        return CompletionResult(
            start,
            end,
            candidates=candidates,
            common=try_completion(token, candidates, ignore_case=ignore_case),
        )
