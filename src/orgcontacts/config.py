"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from orgcontacts.errors import ConfigurationError
from orgcontacts.utils.files import iter_outline_paths


@dataclass(frozen=True, slots=True)
class PropertyCategory:
    """A named group of property names; the first one is the default property."""

    name: str
    properties: Tuple[str, ...]

    @property
    def default(self) -> str:
        return self.properties[0]


DEFAULT_CATEGORIES: Dict[str, PropertyCategory] = {
    category.name: category
    for category in (
        PropertyCategory("Email", ("EMAIL", "EMAIL_HOME", "EMAIL_WORK", "EMAIL_OTHER")),
        PropertyCategory("Phone", ("PHONE", "PHONE_HOME", "PHONE_WORK", "PHONE_MOBILE")),
        PropertyCategory("Address", ("ADDRESS", "ADDRESS_HOME", "ADDRESS_WORK")),
        PropertyCategory("Alias", ("ALIAS",)),
        PropertyCategory("Birthday", ("BIRTHDAY",)),
        PropertyCategory("Nickname", ("NICKNAME",)),
        PropertyCategory("Note", ("NOTE",)),
    )
}

# Categories whose properties make a heading a contact.
MATCHER_CATEGORIES = ("Email", "Alias", "Phone", "Address", "Birthday")


def _get_default_fallback_dir() -> Path:
    """Directory searched for outline files when no source is configured."""
    # When running from a checkout, prefer a local org/ directory if it exists
    local_dir = Path("org")
    if local_dir.is_dir():
        return local_dir

    return Path.home() / "org"


def build_contact_matcher(categories: Dict[str, PropertyCategory]) -> str:
    """Matcher accepting headings with any contact property set to a non-empty value."""
    names = [
        prop
        for category in MATCHER_CATEGORIES
        if category in categories
        for prop in categories[category].properties
    ]
    return "|".join(f'{name}<>""' for name in names)


@dataclass(slots=True)
class AppConfig:
    sources: List[Path] = field(default_factory=list)
    fallback_dirs: List[Path] | None = None
    extensions: Tuple[str, ...] = (".org",)
    categories: Dict[str, PropertyCategory] = field(default_factory=lambda: dict(DEFAULT_CATEGORIES))
    contact_matcher: str | None = None
    ignore_property: str = "IGNORE"
    group_prefix: str = "+"
    tags_props_prefix: str = "#"
    completion_ignore_case: bool = True
    birthday_format: str = "Birthday: {link} ({ordinal})"
    todo_keywords: Tuple[str, ...] = ("TODO", "DONE")

    def __post_init__(self) -> None:
        if self.fallback_dirs is None:
            self.fallback_dirs = [_get_default_fallback_dir()]
        if self.contact_matcher is None:
            self.contact_matcher = build_contact_matcher(self.categories)

    def category(self, name: str) -> PropertyCategory:
        for key, category in self.categories.items():
            if key.lower() == name.lower():
                return category
        raise ConfigurationError(f"Unknown property category: {name}")

    def resolve_sources(self, base_dir: Path | None = None) -> List[Path]:
        """Return the configured sources, or the outline files found in the fallback dirs."""
        if self.sources:
            return [
                path if path.is_absolute() or base_dir is None else base_dir / path
                for path in map(Path, self.sources)
            ]
        found = list(iter_outline_paths(self.fallback_dirs or [], self.extensions))
        if not found:
            raise ConfigurationError(
                "No contact files configured and none found in "
                + ", ".join(str(path) for path in self.fallback_dirs or [])
            )
        return found
