"""Wiring for the graph engine components around one ``GraphStore``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from agentgraph.graph.citations import CitationVerifier
from agentgraph.graph.derived import DerivedKnowledgeWriter
from agentgraph.graph.edges import EdgeStore
from agentgraph.graph.nodes import NodeStore
from agentgraph.graph.notifications import NotificationSink, StoreNotificationSink
from agentgraph.graph.registry import TypeRegistry
from agentgraph.graph.store import GraphStore


@dataclass
class GraphServices:
    """Every graph component, sharing a single store.

    Example:
        >>> services = GraphServices.from_store(GraphStore(tmp_path / "graph.db"))
        >>> services.nodes.upsert_node("agent-1", "Company", "Acme", {"ticker": "ACME"})
    """

    store: GraphStore
    registry: TypeRegistry
    nodes: NodeStore
    edges: EdgeStore
    verifier: CitationVerifier
    notifications: NotificationSink
    derived: DerivedKnowledgeWriter = field(repr=False)
    default_query_limit: int = 20

    @classmethod
    def from_store(
        cls,
        store: GraphStore,
        citation_lookup_workers: int = 1,
        notifications: Optional[NotificationSink] = None,
        default_query_limit: int = 20,
    ) -> "GraphServices":
        registry = TypeRegistry(store)
        nodes = NodeStore(registry)
        verifier = CitationVerifier(store, max_workers=citation_lookup_workers)
        sink = notifications if notifications is not None else StoreNotificationSink(store)
        return cls(
            store=store,
            registry=registry,
            nodes=nodes,
            edges=EdgeStore(registry),
            verifier=verifier,
            notifications=sink,
            derived=DerivedKnowledgeWriter(registry, nodes, verifier, sink),
            default_query_limit=default_query_limit,
        )
