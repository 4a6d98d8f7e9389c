"""Read-side graph queries and LLM context renderers.

Reads are plain snapshots: no isolation across the several lookups a single
query makes.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from typing import Dict, List, Optional

from agentgraph.graph.models import GraphEdge, GraphNode, GraphStats, Subgraph, TypeDefinition, TypeKind
from agentgraph.graph.registry import TypeRegistry
from agentgraph.graph.store import GraphStore

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 20
MAX_QUERY_LIMIT = 100
DEFAULT_CONTEXT_NODES = 100

EMPTY_GRAPH_TEXT = "No knowledge graph data available."


def _dedupe_edges(edges: List[GraphEdge]) -> List[GraphEdge]:
    by_id: Dict[str, GraphEdge] = {}
    for edge in edges:
        by_id.setdefault(edge.id, edge)
    return list(by_id.values())


def query_graph(
    store: GraphStore,
    scope: str,
    node_type: Optional[str] = None,
    search_term: Optional[str] = None,
    limit: int = DEFAULT_QUERY_LIMIT,
) -> Subgraph:
    """Nodes of ``scope`` matching the filters, plus every edge touching them.

    ``search_term`` is a case-insensitive substring match on node names and
    is applied before ``limit``.
    """
    nodes = store.list_nodes(scope, node_type=node_type, search=search_term, limit=limit)
    edges: List[GraphEdge] = []
    for node in nodes:
        edges.extend(store.edges_for_node(node.id, "both"))
    return Subgraph(nodes=nodes, edges=_dedupe_edges(edges))


def get_graph_stats(store: GraphStore, scope: str) -> GraphStats:
    return store.graph_stats(scope)


def get_node_neighbors(store: GraphStore, node_id: str, depth: int = 1) -> Subgraph:
    """Breadth-first neighbourhood of a node, ``depth`` hops in either direction.

    The start node comes first; an unknown start node yields an empty result.
    """
    start = store.get_node(node_id)
    if start is None:
        return Subgraph()

    nodes: List[GraphNode] = [start]
    edges: List[GraphEdge] = []
    visited_nodes = {node_id}
    visited_edges = set()

    frontier = deque([node_id])
    for _ in range(max(0, depth)):
        next_frontier: deque = deque()
        while frontier:
            current = frontier.popleft()
            for edge in store.edges_for_node(current, "both"):
                if edge.id in visited_edges:
                    continue
                visited_edges.add(edge.id)
                edges.append(edge)

                neighbor_id = edge.target_id if edge.source_id == current else edge.source_id
                if neighbor_id in visited_nodes:
                    continue
                visited_nodes.add(neighbor_id)
                neighbor = store.get_node(neighbor_id)
                if neighbor is not None:
                    nodes.append(neighbor)
                    next_frontier.append(neighbor_id)
        frontier = next_frontier

    return Subgraph(nodes=nodes, edges=edges)


def serialize_graph_for_llm(store: GraphStore, scope: str, max_nodes: int = DEFAULT_CONTEXT_NODES) -> str:
    """Render up to ``max_nodes`` nodes and the edges among them as prompt text.

    Edge lines carry ``[edge:<id>]`` and node lines carry the node id, so a
    model reading the text can cite both.
    """
    nodes = store.list_nodes(scope, limit=max_nodes)
    if not nodes:
        return EMPTY_GRAPH_TEXT

    by_id = {node.id: node for node in nodes}
    edges: List[GraphEdge] = []
    for node in nodes:
        edges.extend(
            edge for edge in store.edges_for_node(node.id, "outgoing") if edge.target_id in by_id
        )
    edges = _dedupe_edges(edges)

    lines = ["Nodes:"]
    for node in nodes:
        props = json.dumps(node.properties, ensure_ascii=False, default=str)
        lines.append(f"- [{node.type}] {node.name} (id: {node.id}): {props}")

    if edges:
        lines.append("")
        lines.append("Relationships:")
        for edge in edges:
            source, target = by_id[edge.source_id], by_id[edge.target_id]
            lines.append(f"- [edge:{edge.id}] {source.name} --{edge.type}--> {target.name}")

    return "\n".join(lines)


def _format_node_type(definition: TypeDefinition) -> str:
    line = f"- **{definition.name}**: {definition.description}"
    required = definition.required_properties()
    optional = definition.optional_properties()
    if required:
        line += f"\n  Required: {', '.join(required)}"
    if optional:
        line += f"\n  Optional: {', '.join(optional)}"
    if definition.example_properties:
        line += f"\n  Example: {json.dumps(definition.example_properties, ensure_ascii=False)}"
    return line


def format_types_for_llm_context(registry: TypeRegistry, scope: str) -> str:
    """Describe the node and edge types visible to ``scope`` for a prompt."""
    lines = ["### Node Types"]
    node_types = registry.list_types(scope, TypeKind.NODE)
    if not node_types:
        lines.append("No node types defined.")
    lines.extend(_format_node_type(definition) for definition in node_types)

    lines.append("")
    lines.append("### Edge Types")
    edge_types = registry.list_types(scope, TypeKind.EDGE)
    if not edge_types:
        lines.append("No edge types defined.")
    for definition in edge_types:
        lines.append(f"- **{definition.name}**")
        lines.append(f"  Description: {definition.description}")

    return "\n".join(lines)
