"""Command line entry points for agentgraph."""

import logging

import typer
from rich.logging import RichHandler
from typer import Typer

from ..configuration.cli import config_app
from .graph import graph_app, seed, tools_app, types_app


cli = Typer(help="Agent knowledge graph command line tools")


@cli.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Agent knowledge graph command line tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


cli.command("seed")(seed)
cli.add_typer(types_app, name="types")
cli.add_typer(graph_app, name="graph")
cli.add_typer(tools_app, name="tools")
cli.add_typer(config_app, name="config")

__all__ = ["cli", "config_app", "graph_app", "tools_app", "types_app"]
