"""CLI commands for seeding, inspecting and querying agent graphs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from agentgraph.configuration.settings import ConfigurationError, ConfigurationManager, GraphSettings
from agentgraph.graph.exceptions import GraphStoreError
from agentgraph.graph.models import TypeKind
from agentgraph.graph.queries import (
    format_types_for_llm_context,
    get_graph_stats,
    get_node_neighbors,
    query_graph,
    serialize_graph_for_llm,
)
from agentgraph.graph.seed import ensure_seed_types
from agentgraph.graph.services import GraphServices
from agentgraph.graph.store import GraphStore
from agentgraph.tools.graph_tools import build_graph_tool_registry
from agentgraph.tools.registry import ToolPhase, to_openai_functions

console = Console()
types_app = typer.Typer(help="Node and edge type commands")
graph_app = typer.Typer(help="Graph query commands")
tools_app = typer.Typer(help="Agent tool commands")

ConfigOption = typer.Option(None, "--config", "-c", help="Path to configuration file")
DbOption = typer.Option(None, "--db", help="Graph database path (overrides configuration)")


def _print_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def _load_settings(config_path: Optional[Path]) -> GraphSettings:
    try:
        return ConfigurationManager(config_path=config_path).load()
    except ConfigurationError as exc:
        console.print(f"[red]Failed to load configuration: {exc}[/red]")
        raise typer.Exit(code=1)


def _open_services(
    config_path: Optional[Path],
    db_path: Optional[Path],
    settings: Optional[GraphSettings] = None,
) -> GraphServices:
    """Build graph services from configuration, exiting on bad config."""
    settings = settings or _load_settings(config_path)

    path = db_path.expanduser() if db_path else settings.store.database_path
    try:
        store = GraphStore(path, wal_mode=settings.store.wal_mode)
    except GraphStoreError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    return GraphServices.from_store(
        store,
        citation_lookup_workers=settings.validation.citation_lookup_workers,
        default_query_limit=settings.query.default_limit,
    )


def seed(
    agent_id: str = typer.Argument(..., help="Agent (scope) id"),
    config_path: Optional[Path] = ConfigOption,
    db_path: Optional[Path] = DbOption,
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Install the baseline node and edge types for an agent.

    Safe to run repeatedly; existing types are left alone.
    """
    services = _open_services(config_path, db_path)
    with services.store:
        report = ensure_seed_types(services.registry, agent_id)

    if output_json:
        _print_json(report.model_dump())
        return

    if report.created_count == 0:
        console.print(f"[green]Seed types already present for agent {agent_id}[/green]")
        return
    for name in report.created_node_types:
        console.print(f"Created node type [bold]{name}[/bold]")
    for name in report.created_edge_types:
        console.print(f"Created edge type [bold]{name}[/bold]")
    console.print(f"[green]Seeded {report.created_count} type(s) for agent {agent_id}[/green]")


@types_app.command("list")
def list_types(
    agent_id: str = typer.Argument(..., help="Agent (scope) id"),
    kind: Optional[TypeKind] = typer.Option(None, "--kind", "-k", help="node or edge (default both)"),
    config_path: Optional[Path] = ConfigOption,
    db_path: Optional[Path] = DbOption,
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List the types visible to an agent (its own plus global)."""
    kinds = [kind] if kind else [TypeKind.NODE, TypeKind.EDGE]
    services = _open_services(config_path, db_path)
    with services.store:
        found = {k: services.registry.list_types(agent_id, k) for k in kinds}

    if output_json:
        _print_json({
            f"{k.value}Types": [definition.to_tool_payload() for definition in definitions]
            for k, definitions in found.items()
        })
        return

    for k, definitions in found.items():
        table = Table(title=f"{k.value.capitalize()} types for {agent_id}")
        table.add_column("Name", style="cyan")
        table.add_column("Scope")
        table.add_column("Created by")
        table.add_column("Required")
        table.add_column("Description")
        for definition in definitions:
            table.add_row(
                definition.name,
                definition.scope or "global",
                definition.created_by.value,
                ", ".join(definition.required_properties()),
                definition.description,
            )
        console.print(table)


@graph_app.command("query")
def query(
    agent_id: str = typer.Argument(..., help="Agent (scope) id"),
    node_type: Optional[str] = typer.Option(None, "--type", "-t", help="Filter by node type"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Search in node names"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, max=100, help="Maximum nodes"),
    config_path: Optional[Path] = ConfigOption,
    db_path: Optional[Path] = DbOption,
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Find nodes by type and name, with the edges touching them."""
    services = _open_services(config_path, db_path)
    with services.store:
        subgraph = query_graph(
            services.store,
            agent_id,
            node_type=node_type,
            search_term=search,
            limit=limit or services.default_query_limit,
        )

    if output_json:
        _print_json(subgraph.to_tool_payload())
        return

    table = Table(title=f"Nodes for {agent_id}")
    table.add_column("ID", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Properties")
    for node in subgraph.nodes:
        table.add_row(node.id, node.type, node.name, json.dumps(node.properties, default=str))
    console.print(table)
    console.print(f"{len(subgraph.nodes)} node(s), {len(subgraph.edges)} edge(s)")


@graph_app.command("summary")
def summary(
    agent_id: str = typer.Argument(..., help="Agent (scope) id"),
    config_path: Optional[Path] = ConfigOption,
    db_path: Optional[Path] = DbOption,
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show node and edge counts by type."""
    services = _open_services(config_path, db_path)
    with services.store:
        stats = get_graph_stats(services.store, agent_id)

    if output_json:
        _print_json(stats.to_tool_payload())
        return

    console.print(f"[bold]Graph summary for {agent_id}[/bold]")
    console.print(f"Nodes: {stats.node_count}  Edges: {stats.edge_count}")
    table = Table()
    table.add_column("Kind")
    table.add_column("Type", style="cyan")
    table.add_column("Count", justify="right")
    for name, count in sorted(stats.nodes_by_type.items()):
        table.add_row("node", name, str(count))
    for name, count in sorted(stats.edges_by_type.items()):
        table.add_row("edge", name, str(count))
    console.print(table)


@graph_app.command("neighbors")
def neighbors(
    node_id: str = typer.Argument(..., help="Start node id"),
    depth: int = typer.Option(1, "--depth", "-d", min=0, help="Hops to follow"),
    config_path: Optional[Path] = ConfigOption,
    db_path: Optional[Path] = DbOption,
) -> None:
    """Print the neighbourhood of a node as JSON."""
    services = _open_services(config_path, db_path)
    with services.store:
        subgraph = get_node_neighbors(services.store, node_id, depth)
    _print_json(subgraph.to_tool_payload())


@graph_app.command("context")
def context(
    agent_id: str = typer.Argument(..., help="Agent (scope) id"),
    max_nodes: Optional[int] = typer.Option(None, "--max-nodes", min=1, help="Nodes to render"),
    config_path: Optional[Path] = ConfigOption,
    db_path: Optional[Path] = DbOption,
) -> None:
    """Render the agent's types and graph as LLM context text."""
    settings = _load_settings(config_path)
    services = _open_services(config_path, db_path, settings=settings)
    with services.store:
        types_text = format_types_for_llm_context(services.registry, agent_id)
        graph_text = serialize_graph_for_llm(
            services.store, agent_id, max_nodes or settings.query.context_max_nodes
        )
    typer.echo(types_text)
    typer.echo("")
    typer.echo(graph_text)


@tools_app.command("list")
def list_tools(
    phase: Optional[ToolPhase] = typer.Option(None, "--phase", "-p", help="Only tools for this phase"),
    openai: bool = typer.Option(False, "--openai", help="Print OpenAI function definitions"),
) -> None:
    """List the graph tools an agent can call."""
    services = GraphServices.from_store(GraphStore())
    with services.store:
        registry = build_graph_tool_registry(services)
        tools = registry.for_phase(phase) if phase else registry.all()

    if openai:
        _print_json(to_openai_functions(registry.schemas(tools)))
        return

    table = Table(title=f"Tools ({phase.value})" if phase else "Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Parameters")
    table.add_column("Description")
    for tool in tools:
        params = ", ".join(
            p.name if p.required else f"{p.name}?" for p in tool.schema.parameters
        )
        table.add_row(tool.name, params, tool.schema.description)
    console.print(table)
