"""Core orgcontacts data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Tuple

from orgcontacts.utils.text import remove_ignored, split_property, strip_link

if TYPE_CHECKING:
    from orgcontacts.config import PropertyCategory


class PropertyBag(Mapping[str, str]):
    """Ordered, read-only property mapping with case-insensitive keys.

    Keys are upper-cased when the bag is built, so ``bag["email"]`` and
    ``bag["EMAIL"]`` are the same entry and iteration yields upper-case keys.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[str, str] | Iterable[Tuple[str, str]] = ()) -> None:
        pairs = items.items() if isinstance(items, Mapping) else items
        self._items: Dict[str, str] = {}
        for key, value in pairs:
            self._items[key.upper()] = value

    def __getitem__(self, key: str) -> str:
        return self._items[key.upper()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.upper() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"PropertyBag({self._items!r})"


@dataclass(frozen=True, slots=True)
class Location:
    """Handle on a heading inside an open document.

    ``generation`` identifies the loaded copy of the document; a handle from a
    closed or reloaded copy no longer resolves.
    """

    document_id: str
    position: int
    line: int
    generation: int

    def link(self, description: str) -> str:
        """Org link pointing back at the heading."""
        return f"[[file:{self.document_id}::*{description}][{description}]]"


@dataclass(frozen=True, slots=True)
class ContactRecord:
    """A heading recognised as a contact, with a snapshot of its properties."""

    name: str
    location: Location
    properties: PropertyBag = field(default_factory=PropertyBag)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.properties.get(key, default)

    @property
    def tags(self) -> List[str]:
        return [tag for tag in (self.get("ALLTAGS") or "").split(":") if tag]

    def category_values(
        self, category: PropertyCategory, ignore: Iterable[str] = ()
    ) -> List[str]:
        """All values stored under the properties of ``category``, in category order."""
        values: List[str] = []
        for prop in category.properties:
            values.extend(split_property(self.get(prop)))
        return [strip_link(value) for value in remove_ignored(values, ignore)]


@dataclass(frozen=True, slots=True)
class CompletionCandidate:
    """Completion string with the positions that directly follow a match."""

    text: str
    marks: FrozenSet[int] = frozenset()

    def __str__(self) -> str:
        return self.text
