"""Tool layer: schemas, explicit registry and the graph tool handlers."""

from agentgraph.tools.graph_tools import (
    GRAPH_TOOL_NAMES,
    GraphToolHandlers,
    build_graph_tool_registry,
    graph_tools,
    register_graph_tools,
)
from agentgraph.tools.registry import (
    PHASE_TOOL_NAMES,
    InvalidParametersError,
    Tool,
    ToolContext,
    ToolParameter,
    ToolPhase,
    ToolRegistry,
    ToolResult,
    ToolSchema,
    to_openai_functions,
)

__all__ = [
    "GRAPH_TOOL_NAMES",
    "GraphToolHandlers",
    "InvalidParametersError",
    "PHASE_TOOL_NAMES",
    "Tool",
    "ToolContext",
    "ToolParameter",
    "ToolPhase",
    "ToolRegistry",
    "ToolResult",
    "ToolSchema",
    "build_graph_tool_registry",
    "graph_tools",
    "register_graph_tools",
    "to_openai_functions",
]
