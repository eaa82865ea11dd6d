"""In-memory contact database built from outline documents."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from orgcontacts.config import AppConfig
from orgcontacts.errors import ConfigurationError, OutlineFormatError
from orgcontacts.index.expression import Matcher, compile_expression
from orgcontacts.ingestion.registry import DocumentRegistry
from orgcontacts.ingestion.scanner import iter_contacts
from orgcontacts.models import ContactRecord
from orgcontacts.utils.files import file_mtime

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ScanStats:
    scanned: int = 0
    missing: int = 0
    failed: int = 0
    contacts: int = 0
    processed_files: list[Path] = field(default_factory=list)

    def increment(self, status: str, path: Path) -> None:
        if status == "scanned":
            self.scanned += 1
        elif status == "missing":
            self.missing += 1
        else:
            self.failed += 1
        self.processed_files.append(path)


class ContactDatabase:
    """Contacts of every configured source document, rescanned on demand.

    The record list is rebuilt as a whole whenever it is stale: never scanned,
    a source file was edited, created or deleted since the last scan, the
    set of sources changed, or a record points into a document that is no
    longer open.
    """

    def __init__(
        self,
        config: AppConfig,
        registry: DocumentRegistry | None = None,
        *,
        base_dir: Path | None = None,
    ) -> None:
        self.config = config
        self.registry = registry or DocumentRegistry(
            extensions=config.extensions, todo_keywords=config.todo_keywords
        )
        self.base_dir = base_dir
        self.matcher: Matcher = compile_expression(config.contact_matcher or "")
        self.scan_count = 0
        self.last_stats: ScanStats | None = None
        self._records: Tuple[ContactRecord, ...] = ()
        self._last_scan_time: float | None = None
        self._scanned_sources: Tuple[Path, ...] = ()
        self._source_mtimes: Dict[Path, float | None] = {}

    @property
    def records(self) -> Tuple[ContactRecord, ...]:
        """Records of the last successful scan, without any staleness check."""
        return self._records

    @property
    def last_scan_time(self) -> float | None:
        return self._last_scan_time

    def sources(self) -> List[Path]:
        return self.config.resolve_sources(self.base_dir)

    def current_records(self) -> Tuple[ContactRecord, ...]:
        """Return all contacts, rescanning first when the cache is stale."""
        if self.is_stale():
            self.rescan()
        return self._records

    def is_stale(self) -> bool:
        if self._last_scan_time is None:
            LOGGER.debug("Contact database never scanned")
            return True

        sources = tuple(self.sources())
        if sources != self._scanned_sources:
            LOGGER.debug("Contact sources changed")
            return True

        for path in sources:
            mtime = file_mtime(path)
            if mtime != self._source_mtimes.get(path) or (
                mtime is not None and mtime > self._last_scan_time
            ):
                LOGGER.debug("%s modified since last scan", path)
                return True

        if self.has_dead_references():
            LOGGER.debug("Contact database holds dead references")
            return True
        return False

    def has_dead_references(self) -> bool:
        return any(not self.registry.is_live(record.location) for record in self._records)

    def invalidate(self) -> None:
        """Force the next query to rescan."""
        self._last_scan_time = None

    def rescan(self) -> ScanStats:
        """Rebuild the record list from every source document."""
        sources = self.sources()
        stats = ScanStats()
        records: List[ContactRecord] = []
        mtimes: Dict[Path, float | None] = {}

        for path in sources:
            mtimes[path] = file_mtime(path)
            if not path.exists():
                LOGGER.warning("Skipping nonexistent file %s", path)
                stats.increment("missing", path)
                continue
            try:
                document = self.registry.open(path)
                found = list(iter_contacts(document, self.matcher, self.registry))
            except (OutlineFormatError, OSError) as exc:
                LOGGER.warning("Skipping %s: %s", path, exc)
                stats.increment("failed", path)
                continue
            records.extend(found)
            stats.increment("scanned", path)

        if sources and not stats.scanned:
            raise ConfigurationError(
                "None of the contact files could be read: "
                + ", ".join(str(path) for path in sources)
            )

        stats.contacts = len(records)
        self._records = tuple(records)
        self._scanned_sources = tuple(sources)
        self._source_mtimes = mtimes
        self._last_scan_time = time.time()
        self.scan_count += 1
        self.last_stats = stats
        LOGGER.info(
            "Scanned %d contacts from %d files (%d missing, %d failed)",
            stats.contacts,
            stats.scanned,
            stats.missing,
            stats.failed,
        )
        return stats
