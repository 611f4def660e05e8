"""CLI for friendly slugs."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import structlog
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from friendly_slugs import __version__
from friendly_slugs.core import codec
from friendly_slugs.core.config import load_config
from friendly_slugs.core.errors import FriendlyIdError
from friendly_slugs.core.slug import DEFAULT_SLUG_MAX_LENGTH, SlugNormalizer
from friendly_slugs.services.storage import Database, SlugRepository

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="friendly-slugs",
    help="Friendly slugs - parse, normalize and inspect friendly ids",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"friendly-slugs v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Friendly slugs CLI."""


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@app.command()
def parse(
    token: Annotated[str, typer.Argument(help="Friendly id, e.g. my-title--2")],
) -> None:
    """Split a friendly id into slug name and sequence."""
    name, sequence = codec.parse(token)
    console.print(f"name: {name}")
    console.print(f"sequence: {sequence}")
    console.print(f"numeric id: {'yes' if codec.is_numeric_id(token) else 'no'}")


@app.command("format")
def format_token(
    name: Annotated[str, typer.Argument(help="Slug name")],
    sequence: Annotated[int, typer.Option("--sequence", "-s", help="Slug sequence")] = 1,
) -> None:
    """Build a friendly id from slug name and sequence."""
    try:
        console.print(codec.format(name, sequence))
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def normalize(
    text: Annotated[str, typer.Argument(help="Source text to turn into slug text")],
    strip_diacritics: Annotated[
        bool, typer.Option("--strip-diacritics", help="Remove accents (ñ -> n)")
    ] = False,
    strip_non_ascii: Annotated[
        bool, typer.Option("--strip-non-ascii", help="Drop non-ASCII characters")
    ] = False,
    max_length: Annotated[
        int, typer.Option("--max-length", min=1, help="Maximum slug length")
    ] = DEFAULT_SLUG_MAX_LENGTH,
) -> None:
    """Show the slug text a source value normalizes to."""
    normalizer = SlugNormalizer(
        max_length, strip_diacritics=strip_diacritics, strip_non_ascii=strip_non_ascii
    )
    slug = normalizer.normalize(text)
    if not slug:
        console.print(f"[red]Error:[/red] {text!r} is blank after normalization")
        raise typer.Exit(1)
    console.print(slug)


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
) -> None:
    """Validate a configuration file."""
    try:
        config = load_config(config_path)
        console.print("[green]Configuration is valid![/green]")
        console.print(f"  Database: {config.database_url}")
        console.print(f"  Sequence retries: {config.sequence_retries}")
        console.print(f"  Sluggable models: {len(config.sluggables)}")
        for model_name, options in config.sluggables.items():
            scope = f", scope={options.scope}" if options.scope else ""
            console.print(f"    {model_name}: source={options.source}{scope}")

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def history(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
    sluggable_type: Annotated[str, typer.Argument(help="Owning model name, e.g. Post")],
    owner_id: Annotated[int, typer.Argument(help="Primary key of the owning record")],
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """List every slug a record has had, oldest first."""
    _configure_logging(verbose)

    try:
        config = load_config(config_path)
        database = Database(config.database_url)

        async def _run() -> list:
            try:
                return await SlugRepository(database.engine).history_for_owner(
                    owner_id, sluggable_type
                )
            finally:
                await database.close()

        slugs = asyncio.run(_run())

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except FriendlyIdError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1) from e

    if not slugs:
        console.print(f"[yellow]No slugs for {sluggable_type} {owner_id}[/yellow]")
        raise typer.Exit(1)

    table = Table(title=f"{sluggable_type} {owner_id}")
    table.add_column("Friendly ID")
    table.add_column("Sequence", justify="right")
    table.add_column("Scope")
    table.add_column("Created")
    table.add_column("Current")
    for i, slug in enumerate(slugs, 1):
        table.add_row(
            slug.friendly_id,
            str(slug.sequence),
            slug.scope_value or "",
            slug.created_at.isoformat(timespec="seconds"),
            "yes" if i == len(slugs) else "",
        )
    console.print(table)


if __name__ == "__main__":
    app()
