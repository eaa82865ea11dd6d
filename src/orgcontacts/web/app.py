"""FastAPI application exposing contact search, completion and export."""

from __future__ import annotations

import logging
import re
from collections import OrderedDict
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from orgcontacts.anniversary import find_anniversaries
from orgcontacts.completion.complete import Completer
from orgcontacts.completion.prefix import highlight_styles
from orgcontacts.config import AppConfig
from orgcontacts.errors import ConfigurationError
from orgcontacts.export.vcard import format_vcards
from orgcontacts.index.cache import ContactDatabase
from orgcontacts.index.search import ContactSearcher
from orgcontacts.models import ContactRecord

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="orgcontacts", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# One database per source set, kept across requests so rescans only happen
# when the files change. The least recently used set is dropped past the limit.
_MAX_DATABASES = 8
_DATABASES: OrderedDict[Tuple[str, ...], ContactDatabase] = OrderedDict()
_DEFAULT_SOURCES: List[Path] = []


class FilterPayload(BaseModel):
    name: str | None = None
    tag: str | None = None
    prop_name: str | None = None
    prop_value: str | None = None
    files: List[str] | None = None


class CompletePayload(BaseModel):
    token: str
    files: List[str] | None = None


class AnniversaryPayload(BaseModel):
    field: str | None = None
    template: str | None = None
    on: date | None = None
    files: List[str] | None = None


class ExportPayload(BaseModel):
    name: str | None = None
    files: List[str] | None = None


def configure_sources(sources: List[Path]) -> None:
    """Set the sources used when a request does not name any."""
    _DEFAULT_SOURCES[:] = [Path(source) for source in sources]


def _get_searcher(files: List[str] | None) -> ContactSearcher:
    sources = [Path(item).expanduser() for item in files] if files else list(_DEFAULT_SOURCES)
    key = tuple(str(source) for source in sources)
    database = _DATABASES.get(key)
    if database is None:
        database = ContactDatabase(AppConfig(sources=sources), base_dir=Path.cwd())
        _DATABASES[key] = database
        while len(_DATABASES) > _MAX_DATABASES:
            evicted, _ = _DATABASES.popitem(last=False)
            LOGGER.debug("Dropped cached database for %s", evicted)
    else:
        _DATABASES.move_to_end(key)
    try:
        database.current_records()
    except ConfigurationError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return ContactSearcher(database)


def _record_to_dict(record: ContactRecord) -> Dict[str, Any]:
    return {
        "name": record.name,
        "file": record.location.document_id,
        "line": record.location.line,
        "tags": record.tags,
        "properties": dict(record.properties),
    }


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.post("/contacts")
async def search_contacts(payload: FilterPayload) -> Dict[str, Any]:
    if (payload.prop_name is None) != (payload.prop_value is None):
        raise HTTPException(status_code=400, detail="prop_name and prop_value go together")

    searcher = _get_searcher(payload.files)
    prop = None
    if payload.prop_name is not None and payload.prop_value is not None:
        prop = (payload.prop_name, payload.prop_value)
    try:
        records = searcher.filter(payload.name, payload.tag, prop)
    except re.error as exc:
        LOGGER.info("Invalid filter %s: %s", payload, exc)
        raise HTTPException(status_code=400, detail=f"Invalid pattern: {exc}") from exc
    return {"contacts": [_record_to_dict(record) for record in records]}


@app.post("/complete")
async def complete_recipient(payload: CompletePayload) -> Dict[str, Any]:
    completer = Completer(_get_searcher(payload.files))
    result = completer.complete(payload.token)
    return {
        "start": result.start,
        "end": result.end,
        "resolved": result.resolved,
        "expansion": result.expansion,
        "common": result.common,
        "candidates": [
            {
                "text": candidate.text,
                "highlight": [
                    {"position": position, "style": style}
                    for position, style in highlight_styles(candidate).items()
                ],
            }
            for candidate in result.candidates
        ],
    }


@app.post("/anniversaries")
async def list_anniversaries(payload: AnniversaryPayload) -> Dict[str, Any]:
    searcher = _get_searcher(payload.files)
    template = payload.template or searcher.config.birthday_format
    events = find_anniversaries(searcher, payload.field, today=payload.on)
    try:
        lines = [event.render(template) for event in events]
    except (KeyError, IndexError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid template field: {exc}") from exc
    return {
        "anniversaries": [
            {
                "name": event.record.name,
                "date": event.original.isoformat(),
                "years": event.years,
                "ordinal": event.ordinal,
                "text": line,
            }
            for event, line in zip(events, lines)
        ]
    }


@app.post("/export", response_class=PlainTextResponse)
async def export_contacts(payload: ExportPayload) -> PlainTextResponse:
    searcher = _get_searcher(payload.files)
    try:
        records = searcher.filter(payload.name)
    except re.error as exc:
        LOGGER.info("Invalid export filter %s: %s", payload, exc)
        raise HTTPException(status_code=400, detail=f"Invalid pattern: {exc}") from exc
    return PlainTextResponse(content=format_vcards(records, searcher.config), media_type="text/vcard")
