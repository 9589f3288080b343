"""Command-line interface for symscope."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from .config import ScopeConfig, merge_config
from .database import Database, ProgressCallback
from .errors import SymscopeError
from .export.ctags import export_ctags
from .export.cscope import export_cscope
from .extract.registry import default_extractors
from .logging import configure_logging, get_logger

app = typer.Typer(help="Index source trees into a queryable database of symbol facts.")
LOGGER = get_logger(__name__)

EXPORT_DEFAULTS = {"ctags": "tags", "cscope": "cscope.out"}


@app.callback()
def main(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(None, help="Database file (default .symscope.db)."),
    read: Optional[bool] = typer.Option(None, "--read/--no-read", help="Load the existing database."),
    write: Optional[bool] = typer.Option(None, "--write/--no-write", help="Save the database afterwards."),
    update: Optional[bool] = typer.Option(None, "--update/--no-update", help="Rescan tracked files for changes."),
    exclude: List[str] = typer.Option([], "--exclude", "-x", help="Exclude files matching this pattern."),
    skip_extractor: List[str] = typer.Option([], "--skip-extractor", help="Do not run the named extractor."),
    progress: Optional[bool] = typer.Option(None, "--progress/--no-progress", help="Show scan progress."),
    log_level: Optional[str] = typer.Option(None, help="Log level."),
) -> None:
    """symscope CLI root."""
    cli_options: dict[str, object] = {
        "db": db,
        "read": read,
        "write": write,
        "update": update,
        "excludes": list(exclude) or None,
        "skip_extractors": list(skip_extractor) or None,
        "progress": progress,
        "log_level": log_level,
    }
    try:
        config = merge_config(Path.cwd(), cli_options)
    except SymscopeError as error:
        _fail(str(error))
    configure_logging(config.log_level)
    ctx.obj = config


def _fail(message: str) -> NoReturn:
    Console(stderr=True).print(f"[bold red]error:[/bold red] {escape(message)}", highlight=False)
    raise typer.Exit(code=1)


@contextmanager
def _handle_errors() -> Iterator[None]:
    try:
        yield
    except SymscopeError as error:
        _fail(str(error))
    except OSError as error:
        _fail(f"{error.filename or ''}: {error.strerror or error}")


@contextmanager
def _progress_reporter(enabled: bool) -> Iterator[ProgressCallback | None]:
    if not enabled:
        yield None
        return
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TextColumn("{task.completed} files"),
        TimeElapsedColumn(),
        console=Console(stderr=True),
        transient=True,
    ) as progress:
        task = progress.add_task("Indexing", total=None)

        def on_file(path: str) -> None:
            progress.update(task, advance=1, description=f"Indexing {path}")

        yield on_file


@contextmanager
def open_database(config: ScopeConfig, paths: List[str] | None = None) -> Iterator[Database]:
    """Load, extend and refresh the database, then save it if the command succeeds."""
    db_path = Path(config.db)
    requested = [*config.paths, *(paths or [])]
    with _handle_errors(), _progress_reporter(config.progress) as callback:
        database = Database(extractors=default_extractors(config.skip_extractors), progress=callback)
        loaded = False
        if config.read and db_path.exists():
            database.load(db_path)
            loaded = True
        if config.excludes:
            database.add_excludes(config.excludes)
        if not loaded and not requested:
            requested = ["."]
        if requested:
            added = database.add_paths(requested)
            LOGGER.info("Indexed %d new file(s)", added)
        if loaded and config.update:
            changed = database.update()
            LOGGER.info("Update %s", "applied changes" if changed else "found no changes")
    with _handle_errors():
        yield database
        if config.write:
            database.save(db_path)


@app.command("scan")
def scan(
    ctx: typer.Context,
    paths: Optional[List[str]] = typer.Argument(None, help="Files or directories to index."),
) -> None:
    """Add paths to the database and bring it up to date."""
    with open_database(ctx.obj, paths) as database:
        LOGGER.info("Tracking %d file(s)", len(database.files))


@app.command("query")
def query(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table to search (defs, calls, assigns, imports, end)."),
    key: str = typer.Argument(..., help="Name or pattern to look for."),
) -> None:
    """Print the records best matching key."""
    with open_database(ctx.obj) as database:
        for record in database.query(table, key):
            typer.echo(record.describe())


@app.command("dump")
def dump(
    ctx: typer.Context,
    table: Optional[str] = typer.Argument(None, help="Table to dump; all tables when omitted."),
) -> None:
    """Print every record of one or all tables."""
    with open_database(ctx.obj) as database:
        lines = database.dump_table(table) if table else database.dump_all()
        for line in lines:
            typer.echo(line)


@app.command("summary")
def summary(ctx: typer.Context) -> None:
    """Print record counts per table."""
    with open_database(ctx.obj) as database:
        for table, count in database.summary().items():
            typer.echo(f"{table:<10} {count}")


@app.command("export")
def export(
    ctx: typer.Context,
    fmt: str = typer.Argument(..., metavar="FORMAT", help="ctags or cscope."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Destination file."),
) -> None:
    """Write the database in a third-party tool's format."""
    if fmt not in EXPORT_DEFAULTS:
        _fail(f"unknown export format '{fmt}' (expected one of: {', '.join(EXPORT_DEFAULTS)})")
    target = output or Path(EXPORT_DEFAULTS[fmt])
    with open_database(ctx.obj) as database:
        if fmt == "ctags":
            export_ctags(database, target)
        else:
            export_cscope(database, target)
        LOGGER.info("Exported %s to %s", fmt, target)


__all__ = ["app", "open_database"]
