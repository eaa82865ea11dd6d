"""Prefix completion that matches at any word boundary of a candidate.

A token completes a candidate when it occurs in the candidate right after a
non-word character (or at its start): ``bar`` completes ``foo bar`` and
``barstool`` but not ``foobar``. Several matches are merged into the longest
text they share around the matched region, which generalises the usual
longest-common-prefix computation to a common core anywhere in the strings.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, List, Sequence, Tuple, Union

from rich.text import Text

from orgcontacts.models import CompletionCandidate

Candidate = Union[str, CompletionCandidate, Sequence[str]]
CandidatePredicate = Callable[[str], bool]

BOLD = "bold"
UNDERLINE = "underline"


def candidate_text(candidate: Candidate) -> str:
    """Matchable string of a candidate: the string itself or the first element of a tuple."""
    if isinstance(candidate, str):
        return candidate
    if isinstance(candidate, CompletionCandidate):
        return candidate.text
    return candidate[0]


def boundary_pattern(token: str, ignore_case: bool = False) -> re.Pattern[str]:
    return re.compile(r"(?<!\w)" + re.escape(token), re.IGNORECASE if ignore_case else 0)


def boundary_match(token: str, text: str, ignore_case: bool = False) -> re.Match[str] | None:
    """First occurrence of ``token`` in ``text`` not preceded by a word character."""
    return boundary_pattern(token, ignore_case).search(text)


def _iter_matches(
    token: str,
    collection: Iterable[Candidate],
    predicate: CandidatePredicate | None,
    ignore_case: bool,
) -> Iterable[Tuple[str, re.Match[str]]]:
    pattern = boundary_pattern(token, ignore_case)
    for candidate in collection:
        text = candidate_text(candidate)
        if predicate is not None and not predicate(text):
            continue
        match = pattern.search(text)
        if match:
            yield text, match


def all_completions(
    token: str,
    collection: Iterable[Candidate],
    predicate: CandidatePredicate | None = None,
    ignore_case: bool = False,
) -> List[CompletionCandidate]:
    """Every candidate completed by ``token``.

    The character right after the match is marked so that the distinguishing
    part of each candidate can be highlighted.
    """
    results: List[CompletionCandidate] = []
    for text, match in _iter_matches(token, collection, predicate, ignore_case):
        end = match.end()
        marks = frozenset({end}) if end < len(text) else frozenset()
        results.append(CompletionCandidate(text, marks))
    return results


def _common_prefix_length(first: str, second: str, ignore_case: bool) -> int:
    length = 0
    for left, right in zip(first, second):
        if left != right and not (ignore_case and left.lower() == right.lower()):
            break
        length += 1
    return length


def common_substring(
    s1: str,
    start1: int | None,
    end1: int | None,
    s2: str,
    start2: int | None,
    end2: int | None,
    ignore_case: bool = False,
) -> Tuple[str, int, int]:
    """Grow the range known to be common to two strings as far as they agree.

    ``s1[start1:end1]`` and ``s2[start2:end2]`` hold the same text. The range
    is extended to the left by comparing the reversed text before it, and to
    the right by comparing the text after it. Returns the merged text (a slice
    of ``s1``) and the start and end of the original range inside that text.

    For ``"foo bar baz"`` and ``"fooo bar baz"`` with ``"bar"`` known common,
    the result is ``("oo bar baz", 3, 6)``.
    """
    start1 = 0 if start1 is None else start1
    end1 = len(s1) if end1 is None else end1
    start2 = 0 if start2 is None else start2
    end2 = len(s2) if end2 is None else end2

    left = _common_prefix_length(s1[:start1][::-1], s2[:start2][::-1], ignore_case)
    right = _common_prefix_length(s1[end1:], s2[end2:], ignore_case)
    merged = s1[start1 - left : end1 + right]
    return merged, left, left + (end1 - start1)


def try_completion(
    token: str,
    collection: Iterable[Candidate],
    predicate: CandidatePredicate | None = None,
    ignore_case: bool = False,
) -> Union[str, bool]:
    """Complete ``token`` as far as every matching candidate allows.

    Returns True when the token runs up to the end of a matching candidate
    (the completion is exact), False when nothing matches, and otherwise the
    text all matching candidates share around the token.
    """
    merged: str | None = None
    start = end = 0
    for text, match in _iter_matches(token, collection, predicate, ignore_case):
        if match.end() == len(text):
            return True
        if merged is None:
            merged, start, end = text, match.start(), match.end()
        else:
            merged, start, end = common_substring(
                merged, start, end, text, match.start(), match.end(), ignore_case
            )
    if merged is None:
        return False
    return merged.lstrip(" \t\n")


def is_completion(
    text: str,
    collection: Iterable[Candidate],
    predicate: CandidatePredicate | None = None,
) -> bool:
    """True when ``text`` is itself one of the candidates."""
    return any(
        candidate_text(candidate) == text
        for candidate in collection
        if predicate is None or predicate(candidate_text(candidate))
    )


def highlight_styles(candidate: CompletionCandidate) -> Dict[int, str]:
    """Style of every marked position; spaces cannot show bold, so they get underlined."""
    styles: Dict[int, str] = {}
    for position in sorted(candidate.marks):
        if position < len(candidate.text):
            styles[position] = UNDERLINE if candidate.text[position] == " " else BOLD
    return styles


def highlight(candidates: Iterable[CompletionCandidate]) -> List[Text]:
    """Render candidates as rich text with their marked characters styled."""
    rendered: List[Text] = []
    for candidate in candidates:
        text = Text(candidate.text)
        for position, style in highlight_styles(candidate).items():
            text.stylize(style, position, position + 1)
        rendered.append(text)
    return rendered
