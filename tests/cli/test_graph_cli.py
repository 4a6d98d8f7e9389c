"""Tests for the graph CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from agentgraph.cli import cli
from agentgraph.graph import GraphServices, GraphStore, TypeKind

from tests.conftest import AGENT_ID, COMPANY_TYPE


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("AGENTGRAPH_DB_PATH", raising=False)
    monkeypatch.delenv("AGENTGRAPH_QUERY_LIMIT", raising=False)


@pytest.fixture
def cli_args(tmp_path: Path):
    """Options pointing every command at a temporary database."""
    return ["--config", str(tmp_path / "config.yaml"), "--db", str(tmp_path / "graph.db")]


@pytest.fixture
def populated(runner, cli_args, tmp_path: Path) -> Path:
    """Seeded database holding two Company nodes."""
    result = runner.invoke(cli, ["seed", AGENT_ID, *cli_args])
    assert result.exit_code == 0, result.output

    db_path = tmp_path / "graph.db"
    with GraphStore(db_path) as store:
        services = GraphServices.from_store(store)
        services.registry.create_type(AGENT_ID, TypeKind.NODE, COMPANY_TYPE)
        services.nodes.upsert_node(AGENT_ID, "Company", "Acme", {"ticker": "ACME"})
        services.nodes.upsert_node(AGENT_ID, "Company", "Globex", {"ticker": "GBX"})
        services.edges.upsert_edge(AGENT_ID, "about", "Company", "Acme", "Company", "Globex")
    return db_path


def test_seed_creates_types_once(runner, cli_args):
    """Test seeding twice reports the second run as a no-op."""
    result = runner.invoke(cli, ["seed", AGENT_ID, *cli_args])
    assert result.exit_code == 0
    assert "Created node type AgentAnalysis" in result.output
    assert "Seeded 8 type(s) for agent agent-1" in result.output

    result = runner.invoke(cli, ["seed", AGENT_ID, *cli_args])
    assert result.exit_code == 0
    assert "Seed types already present for agent agent-1" in result.output


def test_seed_json(runner, cli_args):
    result = runner.invoke(cli, ["seed", AGENT_ID, *cli_args, "--json"])

    assert result.exit_code == 0
    report = json.loads(result.output)
    assert report["scope"] == AGENT_ID
    assert report["created_node_types"] == ["AgentAnalysis", "AgentAdvice"]
    assert len(report["created_edge_types"]) == 6


def test_db_path_from_environment(runner, tmp_path: Path, monkeypatch):
    db_path = tmp_path / "env" / "graph.db"
    monkeypatch.setenv("AGENTGRAPH_DB_PATH", str(db_path))

    result = runner.invoke(cli, ["seed", AGENT_ID, "--config", str(tmp_path / "config.yaml")])

    assert result.exit_code == 0
    assert db_path.exists()


def test_invalid_config_exits(runner, tmp_path: Path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("query:\n  default_limit: 0\n", encoding="utf-8")

    result = runner.invoke(cli, ["seed", AGENT_ID, "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output


def test_types_list_json(runner, cli_args, populated):
    result = runner.invoke(cli, ["types", "list", AGENT_ID, *cli_args, "--kind", "node", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert list(data) == ["nodeTypes"]
    assert [t["name"] for t in data["nodeTypes"]] == ["AgentAnalysis", "AgentAdvice", "Company"]


def test_types_list_table(runner, cli_args, populated):
    result = runner.invoke(cli, ["types", "list", AGENT_ID, *cli_args])

    assert result.exit_code == 0
    assert "Node types for agent-1" in result.output
    assert "Edge types for agent-1" in result.output
    assert "derived_from" in result.output


def test_graph_query_json(runner, cli_args, populated):
    result = runner.invoke(cli, ["graph", "query", AGENT_ID, *cli_args, "--search", "glob", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [n["name"] for n in data["nodes"]] == ["Globex"]
    assert data["nodes"][0]["properties"] == {"ticker": "GBX"}
    assert len(data["edges"]) == 1


def test_graph_query_limit_bounds(runner, cli_args, populated):
    result = runner.invoke(cli, ["graph", "query", AGENT_ID, *cli_args, "--limit", "101"])
    assert result.exit_code != 0


def test_graph_summary_json(runner, cli_args, populated):
    result = runner.invoke(cli, ["graph", "summary", AGENT_ID, *cli_args, "--json"])

    assert result.exit_code == 0
    assert json.loads(result.output) == {
        "nodeCount": 2,
        "edgeCount": 1,
        "nodesByType": {"Company": 2},
        "edgesByType": {"about": 1},
    }


def test_graph_neighbors(runner, cli_args, populated):
    with GraphStore(populated) as store:
        acme = store.list_nodes(AGENT_ID)[0]

    result = runner.invoke(cli, ["graph", "neighbors", acme.id, *cli_args, "--depth", "1"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [n["name"] for n in data["nodes"]] == ["Acme", "Globex"]


def test_graph_context(runner, cli_args, populated):
    result = runner.invoke(cli, ["graph", "context", AGENT_ID, *cli_args])

    assert result.exit_code == 0
    assert result.output.startswith("### Node Types")
    assert "- **Company**: A publicly traded company" in result.output
    assert "Nodes:" in result.output
    assert "Acme --about--> Globex" in result.output


def test_graph_context_empty(runner, cli_args):
    result = runner.invoke(cli, ["graph", "context", "nobody", *cli_args])

    assert result.exit_code == 0
    assert "No node types defined." in result.output
    assert "No knowledge graph data available." in result.output


def test_tools_list_openai(runner):
    result = runner.invoke(cli, ["tools", "list", "--openai"])

    assert result.exit_code == 0
    functions = json.loads(result.output)
    assert len(functions) == 10
    assert all(f["type"] == "function" for f in functions)


def test_tools_list_for_phase(runner):
    result = runner.invoke(cli, ["tools", "list", "--phase", "conversation", "--openai"])

    assert result.exit_code == 0
    functions = json.loads(result.output)
    assert [f["function"]["name"] for f in functions] == ["queryGraph"]


def test_tools_list_table(runner):
    result = runner.invoke(cli, ["tools", "list"])

    assert result.exit_code == 0
    assert "addGraphNode" in result.output
