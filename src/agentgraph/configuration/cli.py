"""CLI commands for graph engine configuration management."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
import yaml

from agentgraph.configuration.settings import (
    DEFAULT_CONFIG_PATH,
    ConfigurationError,
    ConfigurationManager,
    GraphSettings,
)


config_app = typer.Typer(
    help="Manage graph engine configuration",
    name="config"
)


@config_app.command("init")
def init_config(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to configuration file"
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing configuration file"
    ),
) -> None:
    """Write a configuration file with default values."""
    if config_path.exists() and not force:
        typer.echo(f"❌ Configuration file already exists: {config_path} (use --force)")
        raise typer.Exit(code=1)

    ConfigurationManager(config_path=config_path).save(GraphSettings())
    typer.echo(f"✅ Wrote default configuration: {config_path}")


@config_app.command("validate")
def validate_config(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to configuration file"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Show detailed validation output"
    ),
) -> None:
    """Validate graph engine configuration.

    Checks the file for errors without applying environment overrides.
    """
    manager = ConfigurationManager(config_path=config_path, environ={})
    errors = manager.validate()

    if errors:
        typer.echo(f"❌ Configuration validation failed: {config_path}")
        typer.echo("\nErrors:")
        for error in errors:
            typer.echo(f"  - {error}")
        raise typer.Exit(code=1)

    typer.echo(f"✅ Configuration is valid: {config_path}")
    if verbose:
        config = manager.load()
        typer.echo("\nConfiguration details:")
        typer.echo(f"  Version: {config.version}")
        typer.echo(f"  Store: {config.store.database_path} (WAL: {config.store.wal_mode})")
        typer.echo(f"  Citation lookup workers: {config.validation.citation_lookup_workers}")
        typer.echo(
            f"  Query: default limit {config.query.default_limit}, "
            f"context nodes {config.query.context_max_nodes}"
        )


@config_app.command("show")
def show_config(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to configuration file"
    ),
    section: Optional[str] = typer.Option(
        None,
        "--section",
        help="Show specific section (store, validation, query)"
    ),
    format: str = typer.Option(
        "yaml",
        "--format",
        help="Output format (yaml or json)"
    ),
) -> None:
    """Display the effective configuration, environment overrides included."""
    try:
        config = ConfigurationManager(config_path=config_path).load()
    except ConfigurationError as exc:
        typer.echo(f"❌ Failed to load configuration: {exc}")
        raise typer.Exit(code=1)

    data = config.model_dump(mode="json")

    if section:
        if section not in data:
            typer.echo(f"❌ Unknown section: {section}")
            typer.echo(f"Available sections: {', '.join(data.keys())}")
            raise typer.Exit(code=1)
        data = {section: data[section]}

    if format == "json":
        output = json.dumps(data, indent=2)
    else:
        output = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    typer.echo(output)


__all__ = ["config_app"]
