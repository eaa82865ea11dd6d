"""Set of open outline documents and resolution of location handles."""

from __future__ import annotations

import itertools
import logging
from pathlib import Path
from typing import Dict, List, Sequence

from orgcontacts.errors import DocumentClosedError, OffsetOutOfRangeError
from orgcontacts.ingestion.outline import Heading, OutlineDocument, load_outline
from orgcontacts.models import Location
from orgcontacts.utils.files import file_mtime

LOGGER = logging.getLogger(__name__)


class DocumentRegistry:
    """Keeps documents open between scans and tells live handles from dead ones.

    Opening a document whose file changed on disk loads a new generation of
    it; handles taken from the previous generation are dead from then on, just
    like handles into a document that was closed.
    """

    def __init__(
        self,
        *,
        extensions: Sequence[str] = (".org",),
        todo_keywords: Sequence[str] = ("TODO", "DONE"),
    ) -> None:
        self.extensions = tuple(extensions)
        self.todo_keywords = tuple(todo_keywords)
        self._documents: Dict[str, OutlineDocument] = {}
        self._generations = itertools.count(1)

    @staticmethod
    def document_id(path: Path) -> str:
        return str(Path(path).resolve())

    @property
    def documents(self) -> List[OutlineDocument]:
        return list(self._documents.values())

    def is_open(self, path: Path) -> bool:
        return self.document_id(path) in self._documents

    def open(self, path: Path) -> OutlineDocument:
        """Return the open document for ``path``, loading it when absent or changed."""
        key = self.document_id(path)
        document = self._documents.get(key)
        if document is not None and document.mtime == file_mtime(Path(key)):
            return document

        document = load_outline(
            Path(key),
            generation=next(self._generations),
            extensions=self.extensions,
            todo_keywords=self.todo_keywords,
        )
        if key in self._documents:
            LOGGER.debug("Reloaded %s (generation %d)", key, document.generation)
        self._documents[key] = document
        return document

    def close(self, path: Path) -> bool:
        """Drop a document; handles into it become dead."""
        return self._documents.pop(self.document_id(path), None) is not None

    def clear(self) -> None:
        self._documents.clear()

    def location_for(self, document: OutlineDocument, heading: Heading) -> Location:
        return Location(
            document_id=self.document_id(document.path),
            position=heading.position,
            line=heading.line,
            generation=document.generation,
        )

    def resolve(self, location: Location) -> Heading:
        """Return the heading a handle points at.

        Raises DocumentClosedError when the document is not open any more (closed or
        reloaded) or its file is gone, OffsetOutOfRangeError when
        it is open but has no heading at that position.
        """
        document = self._documents.get(location.document_id)
        if document is None or document.generation != location.generation:
            raise DocumentClosedError(f"Document {location.document_id} is not open")
        if file_mtime(Path(location.document_id)) is None:
            raise DocumentClosedError(f"Document {location.document_id} no longer exists")
        heading = document.heading_at(location.position)
        if heading is None:
            raise OffsetOutOfRangeError(
                f"No heading at offset {location.position} in {location.document_id}"
            )
        return heading

    def is_live(self, location: Location) -> bool:
        try:
            self.resolve(location)
        except DocumentClosedError:
            return False
        except OffsetOutOfRangeError as exc:
            LOGGER.warning("%s", exc)
        return True
