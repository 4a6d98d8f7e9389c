"""
Agent Tool Infrastructure

Tool schemas (function-calling style), an explicit tool registry, the
execution entry point and conversion to OpenAI function definitions.

The registry is an ordinary value: build one at startup and hand it to
whatever dispatches tool calls. Nothing is registered globally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

from agentgraph.graph.exceptions import GraphError, UnexpectedError

logger = logging.getLogger(__name__)

ParameterType = Literal["string", "number", "boolean", "object", "array"]
ParamsT = TypeVar("ParamsT", bound=BaseModel)


class ToolParameter(BaseModel):
    """One parameter in a tool schema."""

    name: str
    type: ParameterType
    description: str
    required: bool = True
    enum: Optional[List[str]] = None


class ToolSchema(BaseModel):
    """Name, description and parameters advertised to the model."""

    name: str
    description: str
    parameters: List[ToolParameter] = Field(default_factory=list)


class ToolContext(BaseModel):
    """Per-call context. ``agent_id`` is the scope of every graph operation."""

    agent_id: str = Field(..., min_length=1)
    conversation_id: Optional[str] = None


class ToolResult(BaseModel):
    """Tagged outcome of a tool call; failures carry a ``CODE: message`` error."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)

    @classmethod
    def from_error(cls, exc: GraphError) -> "ToolResult":
        return cls.fail(exc.to_error_string())


ToolHandler = Callable[[Dict[str, Any], ToolContext], ToolResult]


@dataclass(frozen=True)
class Tool:
    schema: ToolSchema
    handler: ToolHandler

    @property
    def name(self) -> str:
        return self.schema.name


class ToolPhase(str, Enum):
    """Agent work phases, each with its own tool subset."""

    CONVERSATION = "conversation"
    ANALYSIS_GENERATION = "analysis_generation"
    ADVICE_GENERATION = "advice_generation"
    GRAPH_CONSTRUCTION = "graph_construction"


PHASE_TOOL_NAMES: Dict[ToolPhase, List[str]] = {
    ToolPhase.CONVERSATION: ["queryGraph"],
    ToolPhase.ANALYSIS_GENERATION: ["queryGraph", "addAgentAnalysisNode", "addGraphEdge"],
    ToolPhase.ADVICE_GENERATION: ["queryGraph", "addAgentAdviceNode", "addGraphEdge"],
    ToolPhase.GRAPH_CONSTRUCTION: [
        "queryGraph",
        "addGraphNode",
        "addGraphEdge",
        "listNodeTypes",
        "listEdgeTypes",
        "createNodeType",
        "createEdgeType",
    ],
}


def format_validation_error(exc: ValidationError) -> str:
    """Render pydantic errors as ``loc: msg`` pairs joined by ``; ``."""
    return "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc']) or '(root)'}: {err['msg']}"
        for err in exc.errors()
    )


class InvalidParametersError(GraphError):
    """Raised when tool call arguments fail their parameter model."""

    code = "INVALID_PARAMETERS"

    def __init__(self, exc: ValidationError):
        super().__init__(format_validation_error(exc))
        self.errors = exc.errors()


def parse_params(model: Type[ParamsT], params: Dict[str, Any]) -> ParamsT:
    try:
        return model.model_validate(params)
    except ValidationError as exc:
        raise InvalidParametersError(exc) from exc


class ToolRegistry:
    """Name-indexed collection of tools with a single execution entry point."""

    def __init__(self, tools: Optional[Iterable[Tool]] = None):
        self._tools: Dict[str, Tool] = {}
        for tool in tools or ():
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """Add a tool; registering a name again replaces the earlier tool."""
        if tool.name in self._tools:
            logger.debug(f"Replacing registered tool {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def all(self) -> List[Tool]:
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def select(self, names: Iterable[str]) -> List[Tool]:
        """Registered tools whose names are in ``names``, in registration order."""
        wanted = set(names)
        return [tool for tool in self._tools.values() if tool.name in wanted]

    def for_phase(self, phase: ToolPhase) -> List[Tool]:
        return self.select(PHASE_TOOL_NAMES[ToolPhase(phase)])

    def schemas(self, tools: Optional[Iterable[Tool]] = None) -> List[ToolSchema]:
        return [tool.schema for tool in (self.all() if tools is None else tools)]

    def execute(self, name: str, params: Optional[Dict[str, Any]], context: ToolContext) -> ToolResult:
        """Run a tool by name. Never raises; every outcome is a ``ToolResult``."""
        tool = self.get(name)
        if tool is None:
            return ToolResult.fail(f"Tool not found: {name}")

        try:
            return tool.handler(dict(params or {}), context)
        except GraphError as exc:
            return ToolResult.from_error(exc)
        except Exception as exc:
            logger.exception(f"Tool {name} failed for agent {context.agent_id}")
            return ToolResult.from_error(UnexpectedError(str(exc) or exc.__class__.__name__, exc))


def to_openai_functions(schemas: Iterable[ToolSchema]) -> List[Dict[str, Any]]:
    """Convert tool schemas to OpenAI ``tools`` entries."""
    functions = []
    for schema in schemas:
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for param in schema.parameters:
            entry: Dict[str, Any] = {"type": param.type, "description": param.description}
            if param.enum:
                entry["enum"] = list(param.enum)
            properties[param.name] = entry
            if param.required:
                required.append(param.name)

        functions.append({
            "type": "function",
            "function": {
                "name": schema.name,
                "description": schema.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": required,
                },
            },
        })
    return functions
