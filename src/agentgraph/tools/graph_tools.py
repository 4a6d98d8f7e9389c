"""
Graph Tools

Tools agents call to work with their knowledge graph:
- Add or merge nodes, add edges
- Query the graph and summarise it
- List the available node/edge types and create new ones
- Write citation-verified analysis and advice nodes

Every operation is scoped to ``ToolContext.agent_id``. Handlers raise graph
errors; ``ToolRegistry.execute`` turns them into ``CODE: message`` results.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from agentgraph.graph.models import CreatedBy, TypeKind
from agentgraph.graph.queries import get_graph_stats, query_graph
from agentgraph.graph.seed import ADVICE_TYPE_NAME, ANALYSIS_TYPE_NAME
from agentgraph.graph.services import GraphServices
from agentgraph.tools.params import (
    AddAgentAdviceNodeParams,
    AddAgentAnalysisNodeParams,
    AddGraphEdgeParams,
    AddGraphNodeParams,
    CreateEdgeTypeParams,
    CreateNodeTypeParams,
    QueryGraphParams,
)
from agentgraph.tools.registry import (
    Tool,
    ToolContext,
    ToolParameter,
    ToolRegistry,
    ToolResult,
    ToolSchema,
    parse_params,
)

logger = logging.getLogger(__name__)

GRAPH_TOOL_NAMES = [
    "addGraphNode",
    "addGraphEdge",
    "queryGraph",
    "getGraphSummary",
    "listNodeTypes",
    "listEdgeTypes",
    "createNodeType",
    "createEdgeType",
    "addAgentAnalysisNode",
    "addAgentAdviceNode",
]


class GraphToolHandlers:
    """Tool handlers bound to one set of graph services."""

    def __init__(self, services: GraphServices):
        self._services = services

    # ---------------------------------------------------------------------------
    # Nodes and edges
    # ---------------------------------------------------------------------------

    def add_graph_node(self, params: Dict[str, Any], context: ToolContext) -> ToolResult:
        parsed = parse_params(AddGraphNodeParams, params)
        result = self._services.nodes.upsert_node(
            context.agent_id, parsed.type, parsed.name, parsed.properties
        )
        return ToolResult.ok({"nodeId": result.id, "action": result.action.value})

    def add_graph_edge(self, params: Dict[str, Any], context: ToolContext) -> ToolResult:
        parsed = parse_params(AddGraphEdgeParams, params)
        result = self._services.edges.upsert_edge(
            context.agent_id,
            parsed.type,
            parsed.source_type,
            parsed.source_name,
            parsed.target_type,
            parsed.target_name,
            parsed.properties,
        )
        return ToolResult.ok({"edgeId": result.id, "action": result.action.value})

    # ---------------------------------------------------------------------------
    # Reads
    # ---------------------------------------------------------------------------

    def query_graph(self, params: Dict[str, Any], context: ToolContext) -> ToolResult:
        parsed = parse_params(QueryGraphParams, params)
        subgraph = query_graph(
            self._services.store,
            context.agent_id,
            node_type=parsed.node_type,
            search_term=parsed.search_term,
            limit=parsed.limit or self._services.default_query_limit,
        )
        return ToolResult.ok(subgraph.to_tool_payload())

    def get_graph_summary(self, params: Dict[str, Any], context: ToolContext) -> ToolResult:
        stats = get_graph_stats(self._services.store, context.agent_id)
        return ToolResult.ok(stats.to_tool_payload())

    def list_node_types(self, params: Dict[str, Any], context: ToolContext) -> ToolResult:
        types = self._services.registry.list_types(context.agent_id, TypeKind.NODE)
        return ToolResult.ok({"nodeTypes": [t.to_tool_payload() for t in types]})

    def list_edge_types(self, params: Dict[str, Any], context: ToolContext) -> ToolResult:
        types = self._services.registry.list_types(context.agent_id, TypeKind.EDGE)
        return ToolResult.ok({"edgeTypes": [t.to_tool_payload() for t in types]})

    # ---------------------------------------------------------------------------
    # Type creation
    # ---------------------------------------------------------------------------

    def create_node_type(self, params: Dict[str, Any], context: ToolContext) -> ToolResult:
        parsed = parse_params(CreateNodeTypeParams, params)
        type_id = self._services.registry.create_type(
            context.agent_id,
            TypeKind.NODE,
            {**parsed.model_dump(), "created_by": CreatedBy.AGENT},
        )
        logger.info(f"Agent {context.agent_id} created node type {parsed.name!r}")
        return ToolResult.ok({
            "nodeTypeId": type_id,
            "name": parsed.name,
            "justification": parsed.justification,
        })

    def create_edge_type(self, params: Dict[str, Any], context: ToolContext) -> ToolResult:
        parsed = parse_params(CreateEdgeTypeParams, params)
        type_id = self._services.registry.create_type(
            context.agent_id,
            TypeKind.EDGE,
            {**parsed.model_dump(), "created_by": CreatedBy.AGENT},
        )
        logger.info(f"Agent {context.agent_id} created edge type {parsed.name!r}")
        return ToolResult.ok({
            "edgeTypeId": type_id,
            "name": parsed.name,
            "justification": parsed.justification,
        })

    # ---------------------------------------------------------------------------
    # Derived knowledge
    # ---------------------------------------------------------------------------

    def add_agent_analysis_node(self, params: Dict[str, Any], context: ToolContext) -> ToolResult:
        parsed = parse_params(AddAgentAnalysisNodeParams, params)
        result = self._services.derived.add_analysis_node(
            context.agent_id, parsed.name, parsed.properties
        )
        return ToolResult.ok({
            "nodeId": result.node_id,
            "message": f'Created {ANALYSIS_TYPE_NAME} "{parsed.name}"',
        })

    def add_agent_advice_node(self, params: Dict[str, Any], context: ToolContext) -> ToolResult:
        parsed = parse_params(AddAgentAdviceNodeParams, params)
        result = self._services.derived.add_advice_node(
            context.agent_id, parsed.name, parsed.properties
        )
        return ToolResult.ok({
            "nodeId": result.node_id,
            "notificationId": result.notification_id,
            "message": f'Created {ADVICE_TYPE_NAME} "{parsed.name}" and notified user',
        })


def _param(name: str, type_: str, description: str, required: bool = True) -> ToolParameter:
    return ToolParameter(name=name, type=type_, description=description, required=required)


def graph_tools(services: GraphServices) -> List[Tool]:
    """Build every graph tool bound to ``services``."""
    handlers = GraphToolHandlers(services)
    return [
        Tool(
            ToolSchema(
                name="addGraphNode",
                description=(
                    "Add a node to the knowledge graph. Use existing node types when possible. "
                    "Temporal fields (occurred_at, published_at, etc.) should be included in "
                    "properties per the type schema."
                ),
                parameters=[
                    _param("type", "string", 'Node type (must be an existing type, e.g., "Company", "Asset")'),
                    _param("name", "string", "Human-readable identifier for this node"),
                    _param(
                        "properties",
                        "object",
                        "Properties for this node (must match type schema, including any temporal fields)",
                        required=False,
                    ),
                ],
            ),
            handlers.add_graph_node,
        ),
        Tool(
            ToolSchema(
                name="addGraphEdge",
                description="Add a relationship (edge) between two nodes in the knowledge graph.",
                parameters=[
                    _param("type", "string", 'Edge type (e.g., "affects", "issued_by")'),
                    _param("sourceName", "string", "Name of the source node"),
                    _param("sourceType", "string", "Type of the source node"),
                    _param("targetName", "string", "Name of the target node"),
                    _param("targetType", "string", "Type of the target node"),
                    _param("properties", "object", "Optional properties for this edge", required=False),
                ],
            ),
            handlers.add_graph_edge,
        ),
        Tool(
            ToolSchema(
                name="queryGraph",
                description=(
                    "Query the knowledge graph to find relevant information. Returns nodes and "
                    "relationships with node/edge IDs for precise [node:uuid] / [edge:uuid] citations."
                ),
                parameters=[
                    _param("nodeType", "string", "Filter by node type", required=False),
                    _param("searchTerm", "string", "Search in node names", required=False),
                    _param(
                        "limit",
                        "number",
                        f"Maximum nodes to return (default {services.default_query_limit})",
                        required=False,
                    ),
                ],
            ),
            handlers.query_graph,
        ),
        Tool(
            ToolSchema(
                name="getGraphSummary",
                description=(
                    "Get a summary of the current knowledge graph state "
                    "(node counts, edge counts by type)."
                ),
            ),
            handlers.get_graph_summary,
        ),
        Tool(
            ToolSchema(
                name="listNodeTypes",
                description=(
                    "List all available node types (agent-specific and global) with descriptions "
                    "and schemas. Use this before creating new node types."
                ),
            ),
            handlers.list_node_types,
        ),
        Tool(
            ToolSchema(
                name="listEdgeTypes",
                description=(
                    "List all available edge types (agent-specific and global) with descriptions "
                    "and schemas. Use this before creating new edge types."
                ),
            ),
            handlers.list_edge_types,
        ),
        Tool(
            ToolSchema(
                name="createNodeType",
                description=(
                    "Create a new node type when you discover knowledge that does not fit existing "
                    "types. Use sparingly - prefer existing types."
                ),
                parameters=[
                    _param(
                        "name",
                        "string",
                        'Capitalized node type name (spaces allowed), e.g., "Regulation", "Market Event"',
                    ),
                    _param("description", "string", "Clear explanation of what this type represents"),
                    _param("propertiesSchema", "object", "JSON Schema defining allowed properties"),
                    _param("exampleProperties", "object", "Example property values for few-shot learning"),
                    _param("justification", "string", "Why existing types are insufficient"),
                ],
            ),
            handlers.create_node_type,
        ),
        Tool(
            ToolSchema(
                name="createEdgeType",
                description=(
                    "Create a new edge (relationship) type when you need to express a relationship "
                    "not covered by existing types."
                ),
                parameters=[
                    _param(
                        "name",
                        "string",
                        'snake_case name for the relationship (e.g., "regulates", "competes_with")',
                    ),
                    _param("description", "string", "Clear explanation of what this relationship represents"),
                    _param("propertiesSchema", "object", "Optional JSON Schema for edge properties", required=False),
                    _param("exampleProperties", "object", "Example property values", required=False),
                    _param("justification", "string", "Why existing edge types are insufficient"),
                ],
            ),
            handlers.create_edge_type,
        ),
        Tool(
            ToolSchema(
                name="addAgentAnalysisNode",
                description=(
                    "Create an AgentAnalysis node for observations or patterns. Citations in content "
                    "must use [node:uuid] or [edge:uuid] with existing graph IDs. This does NOT notify "
                    "users - it is for internal analysis only."
                ),
                parameters=[
                    _param("name", "string", "Descriptive name for the analysis"),
                    _param(
                        "properties",
                        "object",
                        "Properties: type (observation|pattern), summary (1-2 sentences), content "
                        "(detailed analysis with [node:uuid] citations), confidence (0-1, optional), "
                        "generated_at (ISO datetime)",
                    ),
                ],
            ),
            handlers.add_agent_analysis_node,
        ),
        Tool(
            ToolSchema(
                name="addAgentAdviceNode",
                description=(
                    "Create an AgentAdvice node with an actionable recommendation. "
                    "This WILL notify the user."
                ),
                parameters=[
                    _param("name", "string", 'Descriptive name (e.g., "AAPL Buy Recommendation")'),
                    _param(
                        "properties",
                        "object",
                        "Properties: action (BUY|SELL|HOLD), summary (1-2 sentence executive summary), "
                        "content (detailed reasoning citing AgentAnalysis nodes via [node:uuid]), "
                        "confidence (0-1, optional), generated_at (ISO datetime)",
                    ),
                ],
            ),
            handlers.add_agent_advice_node,
        ),
    ]


def register_graph_tools(registry: ToolRegistry, services: GraphServices) -> None:
    for tool in graph_tools(services):
        registry.register(tool)


def build_graph_tool_registry(services: GraphServices) -> ToolRegistry:
    """A fresh registry holding every graph tool."""
    registry = ToolRegistry()
    register_graph_tools(registry, services)
    return registry
