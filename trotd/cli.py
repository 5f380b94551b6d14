"""
trotd command line interface.

Prints today's trending repositories as a compact MOTD, or as JSON for
scripts. Provider failures are reported on stderr and never change the
exit code; only invalid configuration does.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from trotd import __version__
from trotd.cache import CacheStore
from trotd.config import load_config
from trotd.exceptions import ConfigurationError
from trotd.logging import configure_logging
from trotd.pipeline import run_pipeline
from trotd.render import EMPTY_MESSAGE, render_json, render_motd

EXIT_CONFIG_ERROR = 2

app = typer.Typer(
    name="trotd",
    help="Trending repositories of the day - minimal MOTD CLI.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(f"trotd {__version__}")
        raise typer.Exit


@app.command()
def main(
    max_per_provider: Annotated[
        Optional[int],
        typer.Option("--max", "-n", min=0, help="Maximum repositories per provider."),
    ] = None,
    provider: Annotated[
        Optional[list[str]],
        typer.Option(
            "--provider", "-p", help="Enable providers (comma-separated: gh,gl,ge)."
        ),
    ] = None,
    lang: Annotated[
        Optional[list[str]],
        typer.Option("--lang", "-l", help="Filter by language (comma-separated: rust,go)."),
    ] = None,
    min_stars: Annotated[
        Optional[int], typer.Option("--min-stars", min=0, help="Minimum total stars.")
    ] = None,
    no_cache: Annotated[
        bool, typer.Option("--no-cache", help="Ignore cached results (still refreshes the cache).")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output JSON instead of MOTD.")] = False,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", dir_okay=False, help="Path to trotd.toml."),
    ] = None,
    verbose: Annotated[
        int, typer.Option("--verbose", "-v", count=True, help="Increase log verbosity.")
    ] = 0,
    version: Annotated[
        bool,
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version."),
    ] = False,
) -> None:
    """Show today's trending repositories."""
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    # Failed providers get their own stderr line below
    configure_logging(level=level, provider_level=logging.ERROR if verbose == 0 else None)

    try:
        config = load_config(config_path).with_overrides(
            max_per_provider=max_per_provider,
            providers=provider,
            languages=lang,
            min_stars=min_stars,
        )
        query = config.to_query()
    except ConfigurationError as e:
        typer.echo(f"✗ {e.message}", err=True)
        raise typer.Exit(EXIT_CONFIG_ERROR) from e

    if not query.providers:
        typer.echo("✗ No providers enabled", err=True)
        raise typer.Exit(EXIT_CONFIG_ERROR)

    options = config.to_options(no_cache=no_cache)
    cache = CacheStore(config.cache_dir, ttl=options.ttl)
    result = run_pipeline(query, options, cache=cache)

    for kind, error in result.errors.items():
        typer.echo(f"⚠ {kind.value}: {error.message}", err=True)

    if json_output:
        typer.echo(render_json(result.entries))
    elif result.empty:
        typer.echo(EMPTY_MESSAGE)
    else:
        typer.echo(render_motd(result.entries))


def run() -> None:
    """Console script entry point."""
    app()
