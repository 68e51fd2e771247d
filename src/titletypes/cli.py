"""CLI interface for titletypes.

Command-line tool for serving and validating the topic taxonomy.
"""

import logging
import sys
from pathlib import Path

import click

from titletypes.config import Config


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(config_path: Path | None) -> Config:
    """Load configuration or exit with a red error message."""
    try:
        return Config.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


@click.group()
def cli() -> None:
    """titletypes - a browsable taxonomy of topics and example links."""


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover titletypes.toml)",
)
@click.option(
    "--source",
    "-s",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="Taxonomy JSON document (overrides config)",
)
@click.option(
    "--host",
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--preview-endpoint",
    default=None,
    help="oEmbed-compatible metadata service URL (overrides config)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output (debug logging)",
)
def serve(
    config_path: Path | None,
    source: Path | None,
    host: str | None,
    port: int | None,
    preview_endpoint: str | None,
    verbose: bool,
) -> None:
    """Start the taxonomy server."""
    from titletypes.core.taxonomy import TaxonomyError
    from titletypes.server import load_configured_taxonomy, run_server

    _configure_logging(verbose)
    config = _load_config(config_path).with_overrides(
        host=host,
        port=port,
        source=source,
        preview_endpoint=preview_endpoint,
    )

    try:
        taxonomy = load_configured_taxonomy(config)
    except (FileNotFoundError, TaxonomyError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Taxonomy: {config.taxonomy.source or 'bundled'} ({len(taxonomy)} topics)")
    click.echo(f"Preview endpoint: {config.previews.endpoint}")
    for page in config.pages:
        click.echo(f"Page: {page.path} ({page.default_expansion})")
    for subdomain, target in config.routing.hosts.items():
        click.echo(f"Host route: {subdomain}.* -> {target}")

    run_server(config, taxonomy=taxonomy)


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover titletypes.toml)",
)
@click.option(
    "--source",
    "-s",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="Taxonomy JSON document (overrides config)",
)
def check(config_path: Path | None, source: Path | None) -> None:
    """Validate the taxonomy document."""
    from titletypes.core.taxonomy import TaxonomyError
    from titletypes.server import load_configured_taxonomy

    config = _load_config(config_path).with_overrides(source=source)

    try:
        taxonomy = load_configured_taxonomy(config)
    except (FileNotFoundError, TaxonomyError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style("Taxonomy is valid", fg="green", bold=True))
    click.echo(f"Topics: {len(taxonomy)}")
    click.echo(f"Subtypes: {taxonomy.subtype_count}")
    click.echo(f"Examples: {taxonomy.example_count}")


if __name__ == "__main__":
    cli()
