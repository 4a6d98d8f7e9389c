"""Tests for the graph tools exposed to agents."""

from __future__ import annotations

from typing import Any, Dict, Optional

import pytest

from agentgraph.graph import GraphServices, TypeKind
from agentgraph.tools import (
    ToolContext,
    ToolRegistry,
    ToolResult,
    build_graph_tool_registry,
)

from tests.conftest import AGENT_ID, OTHER_AGENT_ID

COMPANY_TOOL_ARGS = {
    "name": "Company",
    "description": "A publicly traded company",
    "propertiesSchema": {
        "type": "object",
        "required": ["ticker"],
        "properties": {"ticker": {"type": "string"}},
    },
    "exampleProperties": {"ticker": "ACME"},
    "justification": "No existing type represents issuers",
}


@pytest.fixture
def registry(seeded: GraphServices) -> ToolRegistry:
    return build_graph_tool_registry(seeded)


def call(registry: ToolRegistry, name: str, params: Optional[Dict[str, Any]] = None,
         agent_id: str = AGENT_ID) -> ToolResult:
    return registry.execute(name, params or {}, ToolContext(agent_id=agent_id))


def assert_error(result: ToolResult, code: str) -> str:
    assert result.success is False
    assert result.data is None
    assert result.error.startswith(f"{code}: "), result.error
    return result.error


class TestEndToEnd:
    def test_company_scenario(self, registry: ToolRegistry) -> None:
        """Test the type-then-node flow, including the rejected retyped write."""
        created = call(registry, "createNodeType", COMPANY_TOOL_ARGS)
        assert created.success is True
        assert created.data["name"] == "Company"
        assert created.data["nodeTypeId"]

        first = call(registry, "addGraphNode", {"type": "Company", "name": "Acme", "properties": {"ticker": "ACME"}})
        assert first.success is True
        assert first.data["action"] == "created"

        second = call(registry, "addGraphNode", {"type": "Company", "name": "Acme", "properties": {"ticker": 123}})
        error = assert_error(second, "NODE_PROPERTIES_SCHEMA_VALIDATION_FAILED")
        assert "properties.ticker expected string" in error

        queried = call(registry, "queryGraph", {"nodeType": "Company"})
        assert queried.data["nodes"][0]["properties"] == {"ticker": "ACME"}

    def test_analysis_and_advice_flow(self, registry: ToolRegistry) -> None:
        call(registry, "createNodeType", COMPANY_TOOL_ARGS)
        node_id = call(
            registry, "addGraphNode", {"type": "Company", "name": "Acme", "properties": {"ticker": "ACME"}}
        ).data["nodeId"]

        analysis = call(registry, "addAgentAnalysisNode", {
            "name": "Acme momentum",
            "properties": {
                "type": "observation",
                "summary": "Acme is growing.",
                "content": f"Revenue up [node:{node_id}]",
                "generated_at": "2025-01-15T10:30:00Z",
            },
        })
        assert analysis.success is True, analysis.error
        assert analysis.data["message"] == 'Created AgentAnalysis "Acme momentum"'

        advice = call(registry, "addAgentAdviceNode", {
            "name": "ACME Buy",
            "properties": {
                "action": "BUY",
                "summary": "Buy Acme.",
                "content": f"See [node:{analysis.data['nodeId']}]",
                "generated_at": "2025-01-15T14:00:00Z",
                "confidence": 0.7,
            },
        })
        assert advice.success is True, advice.error
        assert advice.data["notificationId"]
        assert advice.data["message"] == 'Created AgentAdvice "ACME Buy" and notified user'

        link = call(registry, "addGraphEdge", {
            "type": "based_on",
            "sourceName": "ACME Buy",
            "sourceType": "AgentAdvice",
            "targetName": "Acme momentum",
            "targetType": "AgentAnalysis",
        })
        assert link.data["action"] == "created"


class TestTypeTools:
    def test_list_node_types(self, registry: ToolRegistry) -> None:
        result = call(registry, "listNodeTypes")
        names = [t["name"] for t in result.data["nodeTypes"]]
        assert names == ["AgentAnalysis", "AgentAdvice"]
        assert result.data["nodeTypes"][0]["propertiesSchema"]["required"] == [
            "type", "summary", "content", "generated_at"
        ]

    def test_list_edge_types(self, registry: ToolRegistry) -> None:
        names = [t["name"] for t in call(registry, "listEdgeTypes").data["edgeTypes"]]
        assert "derived_from" in names
        assert len(names) == 6

    def test_created_types_are_agent_owned(self, seeded: GraphServices, registry: ToolRegistry) -> None:
        call(registry, "createNodeType", COMPANY_TOOL_ARGS)
        definition = seeded.registry.get_type(AGENT_ID, TypeKind.NODE, "Company")
        assert definition.created_by.value == "agent"
        assert definition.justification == "No existing type represents issuers"
        assert not seeded.registry.type_exists(OTHER_AGENT_ID, TypeKind.NODE, "Company")

    def test_invalid_node_type_name(self, registry: ToolRegistry) -> None:
        result = call(registry, "createNodeType", {**COMPANY_TOOL_ARGS, "name": "lowercase name"})
        assert_error(result, "INVALID_NAME")

    def test_invalid_edge_type_name(self, registry: ToolRegistry) -> None:
        result = call(registry, "createEdgeType", {
            "name": "CamelCase", "description": "x", "justification": "y",
        })
        assert_error(result, "INVALID_NAME")

    def test_duplicate_type(self, registry: ToolRegistry) -> None:
        call(registry, "createNodeType", COMPANY_TOOL_ARGS)
        assert_error(call(registry, "createNodeType", COMPANY_TOOL_ARGS), "DUPLICATE_TYPE")

    def test_create_edge_type(self, registry: ToolRegistry) -> None:
        result = call(registry, "createEdgeType", {
            "name": "regulates",
            "description": "Source regulates target",
            "justification": "No regulatory relationship exists",
        })
        assert result.success is True
        assert set(result.data) == {"edgeTypeId", "name", "justification"}

    def test_node_type_requires_schema_and_example(self, registry: ToolRegistry) -> None:
        args = {k: v for k, v in COMPANY_TOOL_ARGS.items() if k != "exampleProperties"}
        error = assert_error(call(registry, "createNodeType", args), "INVALID_PARAMETERS")
        assert "exampleProperties" in error


class TestNodeAndEdgeTools:
    def test_unknown_node_type(self, registry: ToolRegistry) -> None:
        error = assert_error(
            call(registry, "addGraphNode", {"type": "Company", "name": "Acme"}), "NODE_TYPE_NOT_FOUND"
        )
        assert "Available node types: AgentAdvice, AgentAnalysis." in error

    def test_missing_parameters(self, registry: ToolRegistry) -> None:
        error = assert_error(call(registry, "addGraphNode", {"type": "Company"}), "INVALID_PARAMETERS")
        assert "name" in error

    def test_edge_errors(self, registry: ToolRegistry) -> None:
        call(registry, "createNodeType", COMPANY_TOOL_ARGS)
        call(registry, "addGraphNode", {"type": "Company", "name": "Acme", "properties": {"ticker": "ACME"}})
        edge = {
            "type": "about",
            "sourceName": "Acme",
            "sourceType": "Company",
            "targetName": "Globex",
            "targetType": "Company",
        }

        assert_error(call(registry, "addGraphEdge", edge), "REFERENCE_NOT_FOUND")
        assert_error(call(registry, "addGraphEdge", {**edge, "type": "acquired"}), "EDGE_TYPE_NOT_FOUND")

        call(registry, "addGraphNode", {"type": "Company", "name": "Globex", "properties": {"ticker": "GBX"}})
        assert call(registry, "addGraphEdge", edge).data["action"] == "created"
        assert call(registry, "addGraphEdge", edge).data["action"] == "already_exists"

    def test_snake_case_parameters_accepted(self, registry: ToolRegistry) -> None:
        call(registry, "createNodeType", COMPANY_TOOL_ARGS)
        for name in ("Acme", "Globex"):
            call(registry, "addGraphNode", {"type": "Company", "name": name, "properties": {"ticker": name.upper()}})
        result = call(registry, "addGraphEdge", {
            "type": "about",
            "source_name": "Acme",
            "source_type": "Company",
            "target_name": "Globex",
            "target_type": "Company",
        })
        assert result.success is True, result.error

    def test_scope_comes_from_context(self, registry: ToolRegistry) -> None:
        call(registry, "createNodeType", COMPANY_TOOL_ARGS)
        call(registry, "addGraphNode", {"type": "Company", "name": "Acme", "properties": {"ticker": "ACME"}})

        assert call(registry, "queryGraph", agent_id=OTHER_AGENT_ID).data == {"nodes": [], "edges": []}
        assert_error(
            call(registry, "addGraphNode", {"type": "Company", "name": "Acme"}, agent_id=OTHER_AGENT_ID),
            "NODE_TYPE_NOT_FOUND",
        )


class TestQueryTools:
    def test_limit_bounds(self, registry: ToolRegistry) -> None:
        assert_error(call(registry, "queryGraph", {"limit": 0}), "INVALID_PARAMETERS")
        assert_error(call(registry, "queryGraph", {"limit": 101}), "INVALID_PARAMETERS")
        assert call(registry, "queryGraph", {"limit": 100}).success is True

    def test_default_limit(self, seeded: GraphServices) -> None:
        seeded.registry.create_type(AGENT_ID, TypeKind.NODE, {
            "name": "Ticker", "description": "x", "properties_schema": {"type": "object"},
        })
        for i in range(25):
            seeded.nodes.upsert_node(AGENT_ID, "Ticker", f"T{i}")

        registry = build_graph_tool_registry(seeded)
        assert len(call(registry, "queryGraph").data["nodes"]) == 20
        assert len(call(registry, "queryGraph", {"limit": 25}).data["nodes"]) == 25

    def test_graph_summary(self, registry: ToolRegistry) -> None:
        call(registry, "createNodeType", COMPANY_TOOL_ARGS)
        call(registry, "addGraphNode", {"type": "Company", "name": "Acme", "properties": {"ticker": "ACME"}})

        data = call(registry, "getGraphSummary").data
        assert data == {
            "nodeCount": 1,
            "edgeCount": 0,
            "nodesByType": {"Company": 1},
            "edgesByType": {},
        }


class TestDerivedTools:
    def test_citation_error(self, registry: ToolRegistry) -> None:
        result = call(registry, "addAgentAnalysisNode", {
            "name": "Ungrounded",
            "properties": {
                "type": "pattern",
                "summary": "s",
                "content": "no citations",
                "generated_at": "2025-01-15T10:30:00Z",
            },
        })
        error = assert_error(result, "CITATION_ERROR")
        assert "must include at least one citation" in error

    def test_invalid_properties(self, registry: ToolRegistry) -> None:
        result = call(registry, "addAgentAdviceNode", {
            "name": "Bad",
            "properties": {"action": "SHORT", "summary": "s", "content": "c", "generated_at": "x"},
        })
        error = assert_error(result, "INVALID_PARAMETERS")
        assert "properties.action" in error

    @pytest.mark.parametrize("confidence", ["0.85", True])
    def test_confidence_must_be_a_number(self, registry: ToolRegistry, confidence) -> None:
        call(registry, "createNodeType", COMPANY_TOOL_ARGS)
        node_id = call(
            registry, "addGraphNode", {"type": "Company", "name": "Acme", "properties": {"ticker": "ACME"}}
        ).data["nodeId"]

        result = call(registry, "addAgentAnalysisNode", {
            "name": "Acme momentum",
            "properties": {
                "type": "observation",
                "summary": "Acme is growing.",
                "content": f"Revenue up [node:{node_id}]",
                "generated_at": "2025-01-15T10:30:00Z",
                "confidence": confidence,
            },
        })
        error = assert_error(result, "INVALID_PARAMETERS")
        assert "properties.confidence" in error
        assert call(registry, "queryGraph", {"nodeType": "AgentAnalysis"}).data["nodes"] == []
