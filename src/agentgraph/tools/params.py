"""Pydantic parameter models for the graph tools.

Field aliases are the camelCase names the tools advertise; snake_case names
are accepted too.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from agentgraph.graph.derived import AdviceProperties, AnalysisProperties
from agentgraph.graph.queries import MAX_QUERY_LIMIT


class ToolParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AddGraphNodeParams(ToolParams):
    type: str = Field(..., min_length=1, description="Node type (must be an existing type)")
    name: str = Field(..., min_length=1, description="Human-readable identifier for this node")
    properties: Dict[str, Any] = Field(default_factory=dict)


class AddGraphEdgeParams(ToolParams):
    type: str = Field(..., min_length=1, description="Edge type")
    source_name: str = Field(..., min_length=1, alias="sourceName")
    source_type: str = Field(..., min_length=1, alias="sourceType")
    target_name: str = Field(..., min_length=1, alias="targetName")
    target_type: str = Field(..., min_length=1, alias="targetType")
    properties: Optional[Dict[str, Any]] = None


class QueryGraphParams(ToolParams):
    node_type: Optional[str] = Field(None, alias="nodeType")
    search_term: Optional[str] = Field(None, alias="searchTerm")
    limit: Optional[int] = Field(None, ge=1, le=MAX_QUERY_LIMIT)


class CreateNodeTypeParams(ToolParams):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    properties_schema: Dict[str, Any] = Field(..., alias="propertiesSchema")
    example_properties: Dict[str, Any] = Field(..., alias="exampleProperties")
    justification: str = Field(..., min_length=1)


class CreateEdgeTypeParams(ToolParams):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    properties_schema: Optional[Dict[str, Any]] = Field(None, alias="propertiesSchema")
    example_properties: Optional[Dict[str, Any]] = Field(None, alias="exampleProperties")
    justification: str = Field(..., min_length=1)


class AddAgentAnalysisNodeParams(ToolParams):
    name: str = Field(..., min_length=1, description="Name for the analysis node")
    properties: AnalysisProperties


class AddAgentAdviceNodeParams(ToolParams):
    name: str = Field(..., min_length=1, description="Name for the advice node")
    properties: AdviceProperties
