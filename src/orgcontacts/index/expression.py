"""Tag and property match expressions.

The grammar follows Org's tag/property matcher::

    expr     := and_expr ("|" and_expr)*
    and_expr := ["+" | "-"] factor (("&" | "+" | "-")? factor)*
    factor   := "(" expr ")" | "{" regex "}" | NAME | NAME op value
    op       := "=" | "<>"
    value    := '"' text '"' | "{" regex "}"

A bare NAME tests for a tag, ``{regex}`` for a tag matching the regex, and
``NAME op value`` compares the property NAME (missing properties read as the
empty string). ``-`` negates the factor that follows it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Mapping, Sequence, Tuple

from orgcontacts.errors import ExpressionError
from orgcontacts.models import ContactRecord

Predicate = Callable[[Sequence[str], Mapping[str, str]], bool]

_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
    | (?P<regex>\{[^}]*\})
    | (?P<string>"(?:[^"\\]|\\.)*")
    | (?P<op><>|=)
    | (?P<punct>[|&+\-()])
    | (?P<name>[\w@#%]+)
    """,
    re.VERBOSE,
)


def tokenize(text: str) -> List[Tuple[str, str]]:
    tokens: List[Tuple[str, str]] = []
    position = 0
    while position < len(text):
        match = _TOKEN_RE.match(text, position)
        if not match:
            raise ExpressionError(f"Unexpected character {text[position]!r} at {position} in {text!r}")
        kind = match.lastgroup or ""
        if kind != "space":
            tokens.append((kind, match.group()))
        position = match.end()
    return tokens


def _compile_regex(token: str) -> re.Pattern[str]:
    try:
        return re.compile(token[1:-1])
    except re.error as exc:
        raise ExpressionError(f"Invalid regex {token}: {exc}") from exc


def _unquote(token: str) -> str:
    return re.sub(r"\\(.)", r"\1", token[1:-1])


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0

    def peek(self) -> Tuple[str, str] | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def advance(self) -> Tuple[str, str]:
        token = self.peek()
        if token is None:
            raise ExpressionError(f"Unexpected end of expression {self.text!r}")
        self.index += 1
        return token

    def parse(self) -> Predicate:
        predicate = self.parse_or()
        token = self.peek()
        if token is not None:
            raise ExpressionError(f"Unexpected {token[1]!r} in {self.text!r}")
        return predicate

    def parse_or(self) -> Predicate:
        branches = [self.parse_and()]
        while self.peek() == ("punct", "|"):
            self.advance()
            branches.append(self.parse_and())
        if len(branches) == 1:
            return branches[0]
        return lambda tags, props: any(branch(tags, props) for branch in branches)

    def parse_and(self) -> Predicate:
        factors: List[Predicate] = []
        while True:
            token = self.peek()
            if token is None or token == ("punct", "|") or token == ("punct", ")"):
                break
            negate = False
            if token in (("punct", "+"), ("punct", "&")):
                self.advance()
            elif token == ("punct", "-"):
                self.advance()
                negate = True
            factor = self.parse_factor()
            if negate:
                factors.append(lambda tags, props, inner=factor: not inner(tags, props))
            else:
                factors.append(factor)
        if not factors:
            raise ExpressionError(f"Empty term in {self.text!r}")
        if len(factors) == 1:
            return factors[0]
        return lambda tags, props: all(factor(tags, props) for factor in factors)

    def parse_factor(self) -> Predicate:
        kind, value = self.advance()
        if (kind, value) == ("punct", "("):
            inner = self.parse_or()
            if self.advance() != ("punct", ")"):
                raise ExpressionError(f"Missing ')' in {self.text!r}")
            return inner
        if kind == "regex":
            pattern = _compile_regex(value)
            return lambda tags, props: any(pattern.search(tag) for tag in tags)
        if kind != "name":
            raise ExpressionError(f"Unexpected {value!r} in {self.text!r}")
        following = self.peek()
        if following is not None and following[0] == "op":
            return self.parse_comparison(value.upper())
        return lambda tags, props: value in tags

    def parse_comparison(self, prop: str) -> Predicate:
        _, op = self.advance()
        kind, raw = self.advance()
        if kind == "string":
            expected = _unquote(raw)
            test: Callable[[str], bool] = lambda actual: actual == expected
        elif kind == "regex":
            pattern = _compile_regex(raw)
            test = lambda actual: pattern.search(actual) is not None
        else:
            raise ExpressionError(f"Expected a string or {{regex}} after {prop}{op} in {self.text!r}")
        if op == "<>":
            return lambda tags, props: not test(props.get(prop) or "")
        return lambda tags, props: test(props.get(prop) or "")


@dataclass(frozen=True, slots=True)
class Matcher:
    """Compiled match expression usable on headings and on contact records."""

    source: str
    predicate: Predicate

    def matches(self, tags: Sequence[str], properties: Mapping[str, str]) -> bool:
        return self.predicate(tags, properties)

    def __call__(self, record: ContactRecord) -> bool:
        return self.predicate(record.tags, record.properties)


def compile_expression(text: str) -> Matcher:
    """Compile a match expression; raises ExpressionError when it cannot be parsed."""
    if not text.strip():
        raise ExpressionError("Empty match expression")
    return Matcher(source=text, predicate=_Parser(text).parse())
