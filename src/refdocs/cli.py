"""Command line interface for refdocs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from refdocs.config import AppConfig, find_docs_root
from refdocs.errors import (
    IndexNotFoundError,
    IngestionError,
    InvalidArgumentError,
    StorageUnavailableError,
)
from refdocs.index.indexer import Indexer, build_index
from refdocs.index.search import DocLookup
from refdocs.index.storage import SQLiteDocIndex

console = Console()
app = typer.Typer(help="refdocs - reference documentation index and lookup")


def _setup_logging(verbose: bool, level: str = "INFO") -> None:
    resolved = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=resolved, format="[%(levelname)s] %(message)s")


def _resolve_index(index: Optional[Path]) -> tuple[AppConfig, Path]:
    config = AppConfig.from_env()
    if index is not None:
        config.index_path = index
    return config, config.resolve_index_path(Path.cwd())


def _fail(message: str) -> NoReturn:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(code=1)


def _open_existing(index_path: Path) -> SQLiteDocIndex:
    try:
        return SQLiteDocIndex.open(index_path)
    except IndexNotFoundError:
        raise typer.BadParameter(f"Index not found: {index_path}. Run 'refdocs build' first.")
    except StorageUnavailableError as exc:
        _fail(str(exc))


@app.command()
def build(
    docs_root: Optional[Path] = typer.Argument(
        None, help="Documentation tree; each sub-directory is ingested as one source."
    ),
    index: Optional[Path] = typer.Option(None, "--index", help="Index database path"),
    source: Optional[List[str]] = typer.Option(
        None, "--source", "-s", help="Only ingest these sub-directories (repeatable)."
    ),
    project_file: Optional[List[Path]] = typer.Option(
        None, "--project-file", help="Extra single files indexed with source 'project'."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Rebuild the documentation index from scratch."""
    config, index_path = _resolve_index(index)
    _setup_logging(verbose, config.log_level)
    if docs_root is not None:
        if not docs_root.is_dir():
            raise typer.BadParameter(f"Docs directory not found: {docs_root}")
        config.docs_root = docs_root
    root = find_docs_root(config)

    sources = {name: Path(name) for name in source} if source else None
    console.print(f"Building index into [bold]{index_path}[/bold]...")
    try:
        total = build_index(
            index_path,
            root,
            sources=sources,
            project_files=project_file or (),
            sample_chars=config.category_sample_chars,
        )
    except (IngestionError, StorageUnavailableError) as exc:
        _fail(str(exc))
    if root is None:
        console.print("[yellow]No docs directory found, index is empty.[/yellow]")
    console.print(f"Indexed {total} documents.")


@app.command()
def ingest(
    path: Path = typer.Argument(..., help="Markdown file or directory to ingest.", resolve_path=True),
    source: str = typer.Option(..., "--source", "-s", help="Source tag for the documents"),
    index: Optional[Path] = typer.Option(None, "--index", help="Index database path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Add documents to an existing index, creating it if needed."""
    config, index_path = _resolve_index(index)
    _setup_logging(verbose, config.log_level)
    try:
        store = SQLiteDocIndex.open_or_create(index_path)
    except StorageUnavailableError as exc:
        _fail(str(exc))

    try:
        count = Indexer(store, sample_chars=config.category_sample_chars).ingest(path, source)
    except (IngestionError, StorageUnavailableError) as exc:
        _fail(str(exc))
    finally:
        store.close()
    console.print(f"Indexed {count} documents from [bold]{path}[/bold].")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category filter"),
    max_tokens: int = typer.Option(0, "--max-tokens", help="Token budget (0 uses the default)"),
    index: Optional[Path] = typer.Option(None, "--index", help="Index database path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search the documentation."""
    config, index_path = _resolve_index(index)
    _setup_logging(verbose, config.log_level)
    store = _open_existing(index_path)
    lookup = DocLookup(
        store,
        default_max_tokens=config.default_max_tokens,
        chars_per_token=config.chars_per_token,
    )
    try:
        result = lookup.lookup_docs(query, category=category, max_tokens=max_tokens)
    except InvalidArgumentError as exc:
        raise typer.BadParameter(str(exc))
    except StorageUnavailableError as exc:
        _fail(str(exc))
    finally:
        store.close()

    if not result.results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Title")
    table.add_column("Source")
    table.add_column("Category")
    table.add_column("Snippet")

    for item in result.results:
        snippet = item.snippet.replace("\n", " ")
        table.add_row(f"{item.score:.4f}", item.title, item.source, item.category, snippet[:180])

    console.print(table)


@app.command("lookup-class")
def lookup_class(
    class_name: str = typer.Argument(..., help="Class name, e.g. AActor"),
    index: Optional[Path] = typer.Option(None, "--index", help="Index database path"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON payload"),
) -> None:
    """Show the class reference for one class."""
    config, index_path = _resolve_index(index)
    store = _open_existing(index_path)
    lookup = DocLookup(
        store,
        default_max_tokens=config.default_max_tokens,
        chars_per_token=config.chars_per_token,
    )
    try:
        result = lookup.lookup_class(class_name)
    except InvalidArgumentError as exc:
        raise typer.BadParameter(str(exc))
    except StorageUnavailableError as exc:
        _fail(str(exc))
    finally:
        store.close()

    if as_json:
        typer.echo(json.dumps(result.as_dict(), indent=2))
        return
    if not result.found or result.class_ref is None:
        console.print(f"[yellow]Class {class_name} not found.[/yellow]")
        return

    info = result.class_ref
    console.print(f"[bold]{info.name}[/bold]")
    if info.parent:
        console.print(f"Parent: {info.parent}")
    if info.module:
        console.print(f"Module: {info.module}")
    if info.description:
        console.print(info.description)
    for heading, items in (("Properties", info.properties), ("Functions", info.functions)):
        if items:
            console.print(f"\n[bold]{heading}[/bold]")
            for item in items:
                console.print(f"  - {item}", markup=False)
    if info.source:
        console.print(f"\nSource: {info.source}")


@app.command()
def stats(
    index: Optional[Path] = typer.Option(None, "--index", help="Index database path"),
) -> None:
    """Show document counts per source and category."""
    _, index_path = _resolve_index(index)
    store = _open_existing(index_path)
    try:
        summary = store.get_stats()
    except StorageUnavailableError as exc:
        _fail(str(exc))
    finally:
        store.close()

    console.print(f"Documents: {summary['document_count']}")
    for heading, counts in (("Source", summary["sources"]), ("Category", summary["categories"])):
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column(heading)
        table.add_column("Documents")
        for name, count in counts.items():
            table.add_row(name, str(count))
        console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    index: Optional[Path] = typer.Option(None, "--index", help="Index database path"),
) -> None:
    """Serve lookup_docs and lookup_class over HTTP."""
    import uvicorn

    from refdocs.web.app import create_app

    config, index_path = _resolve_index(index)
    config.index_path = index_path
    if not index_path.exists():
        console.print("[yellow]Warning: index not found, an empty one will be created.[/yellow]")

    console.print(f"Starting refdocs on http://{host}:{port} (index: {index_path})")
    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        reload=False,
        log_level=config.log_level.lower(),
    )
