"""Agent Graph Data Models

Pydantic models for dynamic type definitions, graph nodes and edges, and the
results returned by upsert and query operations.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


def _new_id() -> str:
    return str(uuid4())


class TypeKind(str, Enum):
    """The two kinds of type definition held by the registry."""

    NODE = "node"
    EDGE = "edge"


class CreatedBy(str, Enum):
    """Who registered a type definition."""

    SYSTEM = "system"  # seed provisioner, initializers
    AGENT = "agent"    # createNodeType / createEdgeType tool calls


class UpsertAction(str, Enum):
    """Outcome of an idempotent node or edge write."""

    CREATED = "created"
    UPDATED = "updated"
    ALREADY_EXISTS = "already_exists"


class TypeDefinition(BaseModel):
    """Registered node or edge type.

    ``scope`` is the owning agent id, or None for a global type visible to
    every agent.
    """

    id: str = Field(default_factory=_new_id, description="Type id (UUID)")
    kind: TypeKind = Field(..., description="node or edge")
    scope: Optional[str] = Field(None, description="Owning agent id, None for global")
    name: str = Field(..., min_length=1, description="Type name")
    description: str = Field(..., description="What this type represents")
    justification: str = Field("", description="Why existing types were insufficient")
    properties_schema: Optional[Dict[str, Any]] = Field(
        None,
        description="JSON-Schema-like descriptor for properties",
    )
    example_properties: Optional[Dict[str, Any]] = Field(
        None,
        description="Example property values for few-shot prompting",
    )
    created_by: CreatedBy = Field(CreatedBy.SYSTEM, description="system or agent")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def required_properties(self) -> List[str]:
        """Names listed in the schema's ``required``."""
        schema = self.properties_schema or {}
        required = schema.get("required") or []
        return [str(key) for key in required]

    def optional_properties(self) -> List[str]:
        """Declared properties that are not required."""
        schema = self.properties_schema or {}
        declared = schema.get("properties") or {}
        required = set(self.required_properties())
        return [key for key in declared if key not in required]

    def to_tool_payload(self) -> Dict[str, Any]:
        """Shape returned by listNodeTypes / listEdgeTypes."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "justification": self.justification,
            "propertiesSchema": self.properties_schema,
            "exampleProperties": self.example_properties,
            "createdBy": self.created_by.value,
        }


class GraphNode(BaseModel):
    """A named, typed node owned by one agent."""

    id: str = Field(default_factory=_new_id)
    scope: str = Field(..., description="Owning agent id")
    type: str = Field(..., description="NodeType name")
    name: str = Field(..., description="Human-readable identifier")
    properties: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def to_tool_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "properties": self.properties,
        }


class GraphEdge(BaseModel):
    """A typed relationship between two nodes of the same agent."""

    id: str = Field(default_factory=_new_id)
    scope: str = Field(..., description="Owning agent id")
    type: str = Field(..., description="EdgeType name")
    source_id: str = Field(..., description="Source node id")
    target_id: str = Field(..., description="Target node id")
    properties: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def to_tool_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "sourceId": self.source_id,
            "targetId": self.target_id,
            "properties": self.properties,
        }


class UpsertResult(BaseModel):
    """Id of the written (or matched) entity and what happened to it."""

    id: str
    action: UpsertAction


class GraphStats(BaseModel):
    """Node and edge counts for one agent."""

    node_count: int = 0
    edge_count: int = 0
    nodes_by_type: Dict[str, int] = Field(default_factory=dict)
    edges_by_type: Dict[str, int] = Field(default_factory=dict)

    def to_tool_payload(self) -> Dict[str, Any]:
        return {
            "nodeCount": self.node_count,
            "edgeCount": self.edge_count,
            "nodesByType": self.nodes_by_type,
            "edgesByType": self.edges_by_type,
        }


class Subgraph(BaseModel):
    """A set of nodes plus the edges touching them."""

    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)

    def to_tool_payload(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_tool_payload() for node in self.nodes],
            "edges": [edge.to_tool_payload() for edge in self.edges],
        }


class Notification(BaseModel):
    """User-facing notification recorded when advice is written."""

    id: str = Field(default_factory=_new_id)
    scope: str = Field(..., description="Agent that produced the notification")
    node_id: Optional[str] = Field(None, description="Node that triggered it")
    title: str
    content: str
    read: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
