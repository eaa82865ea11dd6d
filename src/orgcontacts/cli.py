"""Command line interface for orgcontacts."""

from __future__ import annotations

import io
import logging
import re
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import typer
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from orgcontacts.anniversary import anniversaries as find_anniversary_lines
from orgcontacts.completion.complete import Completer
from orgcontacts.completion.prefix import highlight
from orgcontacts.config import AppConfig
from orgcontacts.errors import ConfigurationError, EmptyResultError
from orgcontacts.export.vcard import export_vcards
from orgcontacts.index.cache import ContactDatabase
from orgcontacts.index.search import ContactSearcher
from orgcontacts.models import ContactRecord
from orgcontacts.picker import pick_value
from orgcontacts.web.app import app as web_app, configure_sources


console = Console()
app = typer.Typer(help="orgcontacts - contacts kept in Org outline files")

FILES_OPTION = typer.Option(None, "--file", "-f", help="Outline file holding contacts (repeatable)")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Verbose logging")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_searcher(files: Optional[Sequence[Path]]) -> ContactSearcher:
    config = AppConfig(sources=list(files or []))
    database = ContactDatabase(config, base_dir=Path.cwd())
    try:
        database.current_records()
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return ContactSearcher(database)


def _filter(
    searcher: ContactSearcher,
    name: Optional[str],
    tag: Optional[str] = None,
    prop: Optional[Tuple[str, str]] = None,
) -> Sequence[ContactRecord]:
    try:
        return searcher.filter(name, tag, prop)
    except re.error as exc:
        raise typer.BadParameter(f"Invalid pattern: {exc}") from exc


def _parse_prop(prop: Optional[str]) -> Optional[Tuple[str, str]]:
    if prop is None:
        return None
    key, sep, pattern = prop.partition("=")
    if not sep or not key:
        raise typer.BadParameter(f"Expected PROPERTY=REGEX, got {prop!r}")
    return key, pattern


@app.command("list")
def list_contacts(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Regex matched against names"),
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Regex matched against each tag"),
    prop: Optional[str] = typer.Option(None, "--prop", "-p", help="PROPERTY=REGEX"),
    files: List[Path] = FILES_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List contacts matching the name, the tag OR the property."""
    _setup_logging(verbose)
    searcher = _build_searcher(files)
    records = _filter(searcher, name, tag, _parse_prop(prop))
    if not records:
        console.print("[yellow]No contacts found.[/yellow]")
        return

    config = searcher.config
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name")
    table.add_column("Tags")
    table.add_column("Email")
    table.add_column("Phone")
    table.add_column("File")

    for record in records:
        table.add_row(
            record.name,
            " ".join(record.tags),
            "\n".join(record.category_values(config.category("Email"))),
            "\n".join(record.category_values(config.category("Phone"))),
            f"{record.location.document_id}:{record.location.line}",
        )
    console.print(table)


@app.command()
def complete(
    token: str = typer.Argument(..., help="Partial name, +group or #expression"),
    files: List[Path] = FILES_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Complete a recipient the way a mail composer would."""
    _setup_logging(verbose)
    completer = Completer(_build_searcher(files))
    result = completer.complete(token)
    if result.resolved:
        typer.echo(result.expansion)
        return
    if not result.candidates:
        console.print("[yellow]No completions.[/yellow]")
        return
    if isinstance(result.common, str):
        console.print(f"Common: [bold]{result.common}[/bold]")
    for line in highlight(result.candidates):
        console.print(line)


@app.command()
def anniversaries(
    field: Optional[str] = typer.Option(None, "--field", help="Property holding the date"),
    template: Optional[str] = typer.Option(
        None, "--format", help="Template with {name}, {link}, {years}, {ordinal}"
    ),
    on: Optional[str] = typer.Option(None, "--date", help="Reference date (YYYY-MM-DD)"),
    files: List[Path] = FILES_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show the anniversaries falling on a date (today by default)."""
    _setup_logging(verbose)
    try:
        today = date.fromisoformat(on) if on else None
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid date: {on}") from exc

    lines = find_anniversary_lines(_build_searcher(files), field, template, today=today)
    if not lines:
        console.print("[yellow]No anniversaries.[/yellow]")
        return
    for line in lines:
        typer.echo(line)


@app.command()
def export(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Regex matched against names"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="VCard file to write"),
    files: List[Path] = FILES_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Export contacts as VCards."""
    _setup_logging(verbose)
    searcher = _build_searcher(files)
    buffer = io.StringIO()
    try:
        count = export_vcards(searcher, output if output is not None else buffer, name)
    except re.error as exc:
        raise typer.BadParameter(f"Invalid pattern: {exc}") from exc
    if output is not None:
        console.print(f"Exported {count} contacts to [bold]{output}[/bold]")
        return
    typer.echo(buffer.getvalue(), nl=False)


@app.command()
def pick(
    name: str = typer.Argument(..., help="Regex matched against names"),
    category: str = typer.Argument("Email", help="Property category, e.g. Email or Phone"),
    files: List[Path] = FILES_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Print one value of a contact, asking when there are several."""
    _setup_logging(verbose)
    searcher = _build_searcher(files)
    try:
        config_category = searcher.config.category(category)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    records = _filter(searcher, name)
    if not records:
        console.print(f"[red]No contact matches {name}.[/red]")
        raise typer.Exit(code=1)
    if len(records) > 1:
        names = [record.name for record in records]
        chosen = Prompt.ask("Contact", choices=names, console=console)
        records = [record for record in records if record.name == chosen]

    def choose(values: Sequence[str]) -> str:
        return Prompt.ask(config_category.name, choices=list(values), console=console)

    try:
        value = pick_value(records[0], config_category.name, searcher.config, choose)
    except EmptyResultError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    typer.echo(value)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    files: List[Path] = FILES_OPTION,
) -> None:
    """Start the JSON API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    configure_sources(files or [])
    console.print(f"Starting contacts API on http://{host}:{port}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
