"""Shared fixtures for agentgraph tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator

import pytest

from agentgraph.graph import GraphServices, GraphStore, TypeKind, ensure_seed_types

AGENT_ID = "agent-1"
OTHER_AGENT_ID = "agent-2"

COMPANY_TYPE: Dict[str, Any] = {
    "name": "Company",
    "description": "A publicly traded company",
    "justification": "Needed to track issuers",
    "properties_schema": {
        "type": "object",
        "required": ["ticker"],
        "properties": {
            "ticker": {"type": "string"},
            "price": {"type": "number", "minimum": 0},
            "listed_at": {"type": "string", "format": "date-time"},
        },
    },
    "example_properties": {"ticker": "ACME", "price": 171.88},
}

COMPETES_WITH_TYPE: Dict[str, Any] = {
    "name": "competes_with",
    "description": "Source company competes with target company",
    "properties_schema": {
        "type": "object",
        "properties": {"strength": {"type": "number", "minimum": 0, "maximum": 1}},
    },
}


@pytest.fixture
def agent_id() -> str:
    return AGENT_ID


@pytest.fixture
def other_agent_id() -> str:
    return OTHER_AGENT_ID


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "graph.db"


@pytest.fixture
def store(db_path: Path) -> Iterator[GraphStore]:
    """File-backed graph store, closed after the test."""
    graph_store = GraphStore(db_path)
    yield graph_store
    graph_store.close()


@pytest.fixture
def services(store: GraphStore) -> GraphServices:
    return GraphServices.from_store(store)


@pytest.fixture
def seeded(services: GraphServices) -> GraphServices:
    """Services with seed types installed for both test agents."""
    ensure_seed_types(services.registry, AGENT_ID)
    ensure_seed_types(services.registry, OTHER_AGENT_ID)
    return services


@pytest.fixture
def company_graph(seeded: GraphServices) -> GraphServices:
    """Seeded services plus Company / competes_with types for both agents."""
    for scope in (AGENT_ID, OTHER_AGENT_ID):
        seeded.registry.create_type(scope, TypeKind.NODE, COMPANY_TYPE)
        seeded.registry.create_type(scope, TypeKind.EDGE, COMPETES_WITH_TYPE)
    return seeded
