"""CLI entry point for Iliad Tutor."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from iliadtutor import __version__
from iliadtutor.cache import HITS_NAMESPACE, MORPHO_NAMESPACE, MemoCache
from iliadtutor.config import Settings
from iliadtutor.db.connection import get_connection, init_db
from iliadtutor.engine.chunks import get_chunk
from iliadtutor.ingest.greek_text import GreekText, TextLoadError
from iliadtutor.ingest.translation import TranslationIndexer, TranslationLoadError
from iliadtutor.keys import (
    API_KEY_ENV,
    KeyStorageError,
    delete_api_key,
    get_api_key,
    mask_key,
    store_api_key,
)
from iliadtutor.services.base import ServiceError
from iliadtutor.services.browser import PageRenderer
from iliadtutor.services.corpus import CorpusFrequencyService, PhilologicClient
from iliadtutor.services.morphology import LogeionClient, MorphologyService
from iliadtutor.services.tutor import TutorClient, TutorRequest, WordGuess
from iliadtutor.studylog.store import StudyLogStore

console = Console()


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _store(settings: Settings) -> StudyLogStore:
    conn = get_connection(settings.db_path)
    init_db(conn)
    return StudyLogStore(conn)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML settings file",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None):
    """Iliad Tutor - Homeric Greek study reader."""
    ctx.ensure_object(dict)
    ctx.obj["settings"] = Settings.load(config_path)


@cli.command()
@click.option("--host", default=None, help="Bind host (default from settings)")
@click.option("--port", default=None, type=int, help="Bind port")
@click.option("--log-level", default="info", help="Log level")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, log_level: str):
    """Start the lookup proxy and study API."""
    from iliadtutor.api.main import run_server

    settings = _settings(ctx)
    console.print(
        f"[bold blue]Starting Iliad Tutor on "
        f"http://{host or settings.host}:{port or settings.port}[/bold blue]"
    )
    try:
        run_server(settings, host=host, port=port, log_level=log_level)
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped by user[/yellow]")


@cli.command()
@click.argument("book")
@click.argument("first_line", type=click.IntRange(min=1))
@click.argument("last_line", type=click.IntRange(min=1), required=False)
@click.option("--size", "-n", type=click.IntRange(min=1), default=None, help="Window size")
@click.pass_context
def lines(
    ctx: click.Context, book: str, first_line: int, last_line: int | None, size: int | None
):
    """Show a window of Greek lines.

    Example: iliadtutor lines 1 1
    """
    settings = _settings(ctx)
    size = size or settings.selector_window
    if last_line is None:
        last_line = first_line + size - 1

    text = GreekText(settings.resolve_document(settings.greek_text), settings.http_timeout)
    try:
        window = text.load_book_window(book, first_line, last_line, size)
    except TextLoadError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if not window:
        console.print(f"[yellow]No lines found for Book {book}[/yellow]")
        sys.exit(1)

    for line in window:
        console.print(f"[dim]{line.line_number:>4}[/dim]  {line.text}")


@cli.command()
@click.argument("book")
@click.argument("line", type=click.IntRange(min=1))
@click.pass_context
def chunk(ctx: click.Context, book: str, line: int):
    """Show the reference translation window containing a line."""
    settings = _settings(ctx)
    indexer = TranslationIndexer.from_settings(settings)
    try:
        index = indexer.get_index_sync()
    except TranslationLoadError as e:
        console.print(f"[red]Error loading translation: {e}[/red]")
        sys.exit(1)

    chunks = get_chunk(index, book, line, settings.chunk_size)
    if not chunks:
        console.print(f"[yellow]No translation available for Book {book}, line {line}[/yellow]")
        return

    for c in chunks:
        console.print(Panel(c.text, title=f"Book {book}, from line {c.start_line}"))


@cli.command()
@click.argument("word")
@click.pass_context
def hits(ctx: click.Context, word: str):
    """Concordance hit count for a word (memoized)."""
    settings = _settings(ctx)
    conn = get_connection(settings.db_path)
    init_db(conn)
    service = CorpusFrequencyService(
        PhilologicClient(settings.hits_url, settings.hits_title, settings.http_timeout),
        MemoCache(conn, HITS_NAMESPACE).load(),
    )
    try:
        count = service.lookup(word)
    except ServiceError as e:
        console.print(f"[red]Error fetching hits: {e}[/red]")
        sys.exit(1)
    finally:
        conn.close()
    console.print(f"Corpus hits for [bold]{word}[/bold]: {count}")


@cli.command()
@click.argument("word")
@click.pass_context
def lookup(ctx: click.Context, word: str):
    """Morphological parses and definitions for a word (memoized)."""
    settings = _settings(ctx)
    conn = get_connection(settings.db_path)
    init_db(conn)
    service = MorphologyService(
        LogeionClient(settings.morpho_url, PageRenderer(settings.http_timeout)),
        MemoCache(conn, MORPHO_NAMESPACE).load(),
    )
    try:
        result = service.lookup(word)
    except ServiceError as e:
        console.print(f"[red]Error loading morphology: {e}[/red]")
        sys.exit(1)
    finally:
        conn.close()

    if not result.has_data:
        console.print("[yellow]No data found.[/yellow]")
        return

    if result.parses:
        table = Table(title="Parses")
        table.add_column("Lemma", style="cyan")
        table.add_column("Parse", style="green")
        for p in result.parses:
            table.add_row(p.lemma, p.parse)
        console.print(table)
    if result.definitions:
        console.print("[bold]Definitions[/bold]")
        for definition in result.definitions:
            console.print(f"  • {definition}")


@cli.command()
@click.argument("original_line")
@click.option("--line-number", "-l", type=int, default=None, help="Source line number")
@click.option(
    "--word",
    "-w",
    "words",
    multiple=True,
    help="Word guess as word=translation[=form]. Can be repeated.",
)
@click.option("--translation", "-t", default="", help="Your phrase translation")
@click.pass_context
def tutor(
    ctx: click.Context,
    original_line: str,
    line_number: int | None,
    words: tuple[str, ...],
    translation: str,
):
    """Ask the tutor to critique your guesses for a line."""
    guesses = []
    for item in words:
        parts = item.split("=")
        guesses.append(WordGuess(*[p.strip() for p in parts[:3]]))

    try:
        client = TutorClient.from_settings(_settings(ctx))
        analysis = client.analyze(
            TutorRequest(
                original_line=original_line,
                line_number=line_number,
                word_guesses=guesses,
                user_translation=translation,
            )
        )
    except ServiceError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(Panel(analysis or "[dim](empty response)[/dim]", title="Tutor"))


@cli.group()
def log():
    """Study log commands."""
    pass


@log.command("show")
@click.option("--limit", "-n", type=click.IntRange(min=0), default=None, help="Blocks to show")
@click.pass_context
def log_show(ctx: click.Context, limit: int | None):
    """Show the most recent study log blocks."""
    settings = _settings(ctx)
    store = _store(settings)
    blocks = store.display(settings.log_display_limit if limit is None else limit)
    store.conn.close()

    if not blocks:
        console.print("No translations logged yet.")
        return

    for block in blocks:
        for line in block.metadata:
            console.print(line, markup=False)
        table = Table(*block.header) if block.header else Table(show_header=False)
        for row in block.rows:
            table.add_row(*row)
        console.print(table)
        for line in block.trailing:
            console.print(line, style="dim", markup=False)
        console.print()


@log.command("export")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write to file")
@click.pass_context
def log_export(ctx: click.Context, output: Path | None):
    """Export the whole study log in flat-text format."""
    store = _store(_settings(ctx))
    text = store.render_text()
    store.conn.close()

    if output:
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]✓ Log written to {output}[/green]")
    else:
        click.echo(text, nl=False)


@log.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def log_import(ctx: click.Context, source: Path):
    """Append blocks from a flat-text study log file."""
    store = _store(_settings(ctx))
    count = store.import_text(source.read_text(encoding="utf-8"))
    store.conn.close()
    console.print(f"[green]✓ Imported {count} blocks from {source}[/green]")


@cli.group()
def keys():
    """Tutor API key management."""
    pass


@keys.command("set")
@click.option("--key", prompt=True, hide_input=True, help="API key")
def keys_set(key: str):
    """Store the tutor API key in the OS keychain."""
    try:
        store_api_key(key)
    except KeyStorageError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    console.print("[green]✓ API key stored[/green]")


@keys.command("show")
def keys_show():
    """Show whether an API key is configured (masked)."""
    key = get_api_key()
    if not key:
        console.print(f"[yellow]No API key configured. Set {API_KEY_ENV} or run 'iliadtutor keys set'.[/yellow]")
        sys.exit(1)
    console.print(f"API key: {mask_key(key)}")


@keys.command("delete")
def keys_delete():
    """Delete the stored API key."""
    if delete_api_key():
        console.print("[green]✓ API key deleted[/green]")
    else:
        console.print("[yellow]No stored API key found[/yellow]")


if __name__ == "__main__":
    cli()
