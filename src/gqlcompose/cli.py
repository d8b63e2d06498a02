#!/usr/bin/env python3
"""
CLI entry point for gqlcompose.
"""

from dataclasses import replace
from pathlib import Path

import click
from graphql import print_schema

from gqlcompose import __version__
from gqlcompose.config import settings
from gqlcompose.errors import CompositionError
from gqlcompose.logging import configure_logging, get_logger
from gqlcompose.schema.fragments import FragmentProvider, StaticFragmentProvider
from gqlcompose.schema.generator import CustomSchemaConfig, PipelineConfig, generate_schema_from_providers
from gqlcompose.schema.loader import load_custom_config, resolve_import

logger = get_logger(__name__)


def _load_provider(qualified_name: str) -> FragmentProvider:
    obj = resolve_import(qualified_name)
    if isinstance(obj, FragmentProvider):
        return obj
    if isinstance(obj, (list, tuple)):
        return StaticFragmentProvider(obj)
    if callable(obj):
        provided = obj()
        if isinstance(provided, FragmentProvider):
            return provided
        return StaticFragmentProvider(provided)
    raise click.BadParameter(f"'{qualified_name}' is not a fragment provider", param_hint="--provider")


@click.group()
@click.version_option(version=__version__, prog_name="gqlcompose")
def cli() -> None:
    """gqlcompose CLI - compose and export GraphQL schemas."""
    pass


@cli.command()
@click.option(
    "--config",
    "config_path",
    default=settings.custom_schema_path,
    type=click.Path(exists=True, dir_okay=False),
    help="Custom schema YAML file (default: GQLCOMPOSE_CUSTOM_SCHEMA_PATH)",
)
@click.option(
    "--provider",
    "providers",
    multiple=True,
    help="Fragment provider as module:attribute (repeatable)",
)
@click.option(
    "--federated/--no-federated",
    default=settings.is_federated,
    help="Build a federated subgraph schema",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the SDL to this file instead of stdout",
)
@click.option(
    "--log-level",
    default="warning",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level (default: warning)",
)
def export(
    config_path: str | None,
    providers: tuple[str, ...],
    federated: bool,
    output: str | None,
    log_level: str,
) -> None:
    """Compose the schema and print its SDL."""
    configure_logging(debug=log_level == "debug")

    # Export is explicit, skip the implicit artifact write
    config = replace(PipelineConfig.from_settings(settings), is_federated=federated, production=True)

    try:
        custom = load_custom_config(config_path) if config_path else CustomSchemaConfig()
        schema = generate_schema_from_providers(
            [_load_provider(name) for name in providers],
            custom,
            config,
        )
    except CompositionError as e:
        logger.error("Schema composition failed", error=str(e))
        raise click.ClickException(str(e)) from e

    sdl = print_schema(schema)
    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(sdl, encoding="utf-8")
        click.echo(f"Wrote schema to {path}")
    else:
        click.echo(sdl)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
