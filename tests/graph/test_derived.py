"""Tests for citation-verified analysis and advice writes."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest
from pydantic import ValidationError

from agentgraph.graph import (
    CitationError,
    GraphServices,
    GraphStore,
    NodePropertiesSchemaValidationError,
    NodeTypeNotFoundError,
    TypeKind,
    UpsertAction,
    ensure_seed_types,
)
from agentgraph.graph.seed import ADVICE_TYPE_NAME, ANALYSIS_TYPE_NAME

from tests.conftest import AGENT_ID, COMPANY_TYPE, OTHER_AGENT_ID

GENERATED_AT = "2025-01-15T10:30:00Z"


def analysis(content: str, **overrides: Any) -> Dict[str, Any]:
    return {
        "type": "observation",
        "summary": "Services revenue is outpacing hardware.",
        "content": content,
        "generated_at": GENERATED_AT,
        **overrides,
    }


def advice(content: str, **overrides: Any) -> Dict[str, Any]:
    return {
        "action": "BUY",
        "summary": "Strong buy on services momentum.",
        "content": content,
        "generated_at": GENERATED_AT,
        **overrides,
    }


class RecordingSink:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, Optional[str], str, str]] = []

    def notify(self, scope: str, node_id: Optional[str], title: str, content: str) -> str:
        self.calls.append((scope, node_id, title, content))
        return f"notification-{len(self.calls)}"


@pytest.fixture
def evidence(company_graph: GraphServices) -> Dict[str, str]:
    """Ids of a Company node in each scope."""
    return {
        scope: company_graph.nodes.upsert_node(scope, "Company", "Acme", {"ticker": "ACME"}).id
        for scope in (AGENT_ID, OTHER_AGENT_ID)
    }


class TestAnalysisNode:
    def test_writes_cited_analysis(self, company_graph: GraphServices, evidence) -> None:
        node_id = evidence[AGENT_ID]
        result = company_graph.derived.add_analysis_node(
            AGENT_ID, "Services growth", analysis(f"Growth is strong [node:{node_id}].", confidence=0.8)
        )

        assert result.action == UpsertAction.CREATED
        assert result.cited_ids == [node_id]
        assert result.notification_id is None

        node = company_graph.nodes.get_node(result.node_id)
        assert node.type == ANALYSIS_TYPE_NAME
        assert node.name == "Services growth"
        assert node.properties["confidence"] == 0.8
        assert node.properties["generated_at"] == GENERATED_AT

    def test_analysis_does_not_notify(self, company_graph: GraphServices, evidence) -> None:
        company_graph.derived.add_analysis_node(
            AGENT_ID, "Services growth", analysis(f"[node:{evidence[AGENT_ID]}]")
        )
        assert company_graph.notifications.list_for_scope(AGENT_ID) == []

    def test_confidence_is_optional(self, company_graph: GraphServices, evidence) -> None:
        result = company_graph.derived.add_analysis_node(
            AGENT_ID, "No confidence", analysis(f"[node:{evidence[AGENT_ID]}]")
        )
        assert "confidence" not in company_graph.nodes.get_node(result.node_id).properties

    def test_zero_citations_fail(self, company_graph: GraphServices, evidence) -> None:
        """Test uncited content is rejected and nothing is written."""
        with pytest.raises(CitationError) as exc_info:
            company_graph.derived.add_analysis_node(AGENT_ID, "Ungrounded", analysis("Trust me."))

        assert "must include at least one citation" in str(exc_info.value)
        assert company_graph.nodes.find_node(AGENT_ID, ANALYSIS_TYPE_NAME, "Ungrounded") is None

    def test_malformed_citation_fails_before_lookup(self, company_graph: GraphServices, evidence, monkeypatch) -> None:
        def no_lookups(*args):
            raise AssertionError("lookup issued for malformed content")

        monkeypatch.setattr(company_graph.store, "get_node", no_lookups)
        with pytest.raises(CitationError) as exc_info:
            company_graph.derived.add_analysis_node(AGENT_ID, "Bad ids", analysis("[node:acme]"))
        assert "Invalid citation format" in str(exc_info.value)

    def test_cross_scope_citation_fails(self, company_graph: GraphServices, evidence) -> None:
        """Test citing another agent's real node is never accepted."""
        foreign = evidence[OTHER_AGENT_ID]
        with pytest.raises(CitationError) as exc_info:
            company_graph.derived.add_analysis_node(AGENT_ID, "Borrowed", analysis(f"[node:{foreign}]"))

        assert exc_info.value.cross_scope_nodes == [foreign]
        assert "cross-agent nodes" in str(exc_info.value)

    def test_edge_citations_are_allowed(self, company_graph: GraphServices, evidence) -> None:
        company_graph.nodes.upsert_node(AGENT_ID, "Company", "Globex", {"ticker": "GBX"})
        edge = company_graph.edges.upsert_edge(
            AGENT_ID, "competes_with", "Company", "Acme", "Company", "Globex"
        )
        result = company_graph.derived.add_analysis_node(
            AGENT_ID, "Rivalry", analysis(f"Acme and Globex compete [edge:{edge.id}].", type="pattern")
        )
        assert result.cited_ids == [edge.id]

    def test_rewrite_merges_same_name(self, company_graph: GraphServices, evidence) -> None:
        first = company_graph.derived.add_analysis_node(
            AGENT_ID, "Services growth", analysis(f"[node:{evidence[AGENT_ID]}]")
        )
        second = company_graph.derived.add_analysis_node(
            AGENT_ID, "Services growth", analysis(f"Updated [node:{evidence[AGENT_ID]}]")
        )
        assert second.action == UpsertAction.UPDATED
        assert second.node_id == first.node_id

    def test_unseeded_scope(self, store: GraphStore) -> None:
        services = GraphServices.from_store(store)
        with pytest.raises(NodeTypeNotFoundError) as exc_info:
            services.derived.add_analysis_node(AGENT_ID, "Early", analysis("[node:11111111-1111-4111-8111-111111111111]"))

        assert str(exc_info.value) == (
            "AgentAnalysis node type does not exist. "
            "This should have been created during agent initialization."
        )

    def test_invalid_generated_at(self, company_graph: GraphServices, evidence) -> None:
        with pytest.raises(NodePropertiesSchemaValidationError) as exc_info:
            company_graph.derived.add_analysis_node(
                AGENT_ID, "Undated", analysis(f"[node:{evidence[AGENT_ID]}]", generated_at="not a timestamp")
            )
        assert "properties.generated_at must be a valid date-time string" in str(exc_info.value)

    def test_invalid_analysis_kind(self, company_graph: GraphServices, evidence) -> None:
        with pytest.raises(ValidationError):
            company_graph.derived.add_analysis_node(
                AGENT_ID, "Guess", analysis(f"[node:{evidence[AGENT_ID]}]", type="prediction")
            )

    @pytest.mark.parametrize("confidence", ["0.85", True])
    def test_confidence_is_not_coerced(self, company_graph: GraphServices, evidence, confidence) -> None:
        """Test a string or boolean confidence is rejected rather than converted."""
        with pytest.raises(ValidationError) as exc_info:
            company_graph.derived.add_analysis_node(
                AGENT_ID, "Coerced", analysis(f"[node:{evidence[AGENT_ID]}]", confidence=confidence)
            )
        assert "confidence" in str(exc_info.value)
        assert company_graph.nodes.find_node(AGENT_ID, ANALYSIS_TYPE_NAME, "Coerced") is None

    def test_integer_confidence_is_accepted(self, company_graph: GraphServices, evidence) -> None:
        company_graph.derived.add_analysis_node(
            AGENT_ID, "Certain", analysis(f"[node:{evidence[AGENT_ID]}]", confidence=1)
        )
        node = company_graph.nodes.find_node(AGENT_ID, ANALYSIS_TYPE_NAME, "Certain")
        assert node.properties["confidence"] == 1


class TestAdviceNode:
    @pytest.fixture
    def analysis_id(self, company_graph: GraphServices, evidence) -> str:
        return company_graph.derived.add_analysis_node(
            AGENT_ID, "Services growth", analysis(f"[node:{evidence[AGENT_ID]}]")
        ).node_id

    def test_writes_advice_and_notifies(self, company_graph: GraphServices, analysis_id: str) -> None:
        result = company_graph.derived.add_advice_node(
            AGENT_ID, "ACME Buy", advice(f"Based on [node:{analysis_id}].")
        )

        assert result.notification_id is not None
        assert company_graph.nodes.get_node(result.node_id).type == ADVICE_TYPE_NAME

        notifications = company_graph.notifications.list_for_scope(AGENT_ID)
        assert len(notifications) == 1
        assert notifications[0].id == result.notification_id
        assert notifications[0].node_id == result.node_id
        assert notifications[0].title == "BUY: ACME Buy"
        assert notifications[0].content == "Strong buy on services momentum."

    def test_must_cite_only_analysis_nodes(self, company_graph: GraphServices, evidence, analysis_id: str) -> None:
        """Test advice citing raw evidence is rejected outright."""
        content = f"[node:{analysis_id}] and raw data [node:{evidence[AGENT_ID]}]"
        with pytest.raises(CitationError) as exc_info:
            company_graph.derived.add_advice_node(AGENT_ID, "ACME Buy", advice(content))

        assert str(exc_info.value) == (
            "AgentAdvice content may cite only AgentAnalysis nodes using [node:uuid]. "
            f"Disallowed citations: {evidence[AGENT_ID]}"
        )
        assert company_graph.nodes.find_node(AGENT_ID, ADVICE_TYPE_NAME, "ACME Buy") is None
        assert company_graph.notifications.list_for_scope(AGENT_ID) == []

    def test_edge_citations_are_rejected(self, company_graph: GraphServices, analysis_id: str) -> None:
        company_graph.nodes.upsert_node(AGENT_ID, "Company", "Globex", {"ticker": "GBX"})
        edge = company_graph.edges.upsert_edge(
            AGENT_ID, "competes_with", "Company", "Acme", "Company", "Globex"
        )
        with pytest.raises(CitationError) as exc_info:
            company_graph.derived.add_advice_node(
                AGENT_ID, "ACME Buy", advice(f"[node:{analysis_id}] [edge:{edge.id}]")
            )
        assert exc_info.value.invalid_citations == [edge.id]

    def test_advice_needs_citations(self, company_graph: GraphServices, analysis_id: str) -> None:
        with pytest.raises(CitationError) as exc_info:
            company_graph.derived.add_advice_node(AGENT_ID, "ACME Buy", advice("Just buy."))
        assert str(exc_info.value).startswith("AgentAdvice content must include at least one citation")

    def test_invalid_action(self, company_graph: GraphServices, analysis_id: str) -> None:
        with pytest.raises(ValidationError):
            company_graph.derived.add_advice_node(
                AGENT_ID, "ACME Short", advice(f"[node:{analysis_id}]", action="SHORT")
            )

    def test_custom_notification_sink(self, store: GraphStore) -> None:
        sink = RecordingSink()
        services = GraphServices.from_store(store, notifications=sink)
        ensure_seed_types(services.registry, AGENT_ID)
        services.registry.create_type(AGENT_ID, TypeKind.NODE, COMPANY_TYPE)
        company = services.nodes.upsert_node(AGENT_ID, "Company", "Acme", {"ticker": "ACME"})
        analysis_node = services.derived.add_analysis_node(
            AGENT_ID, "Services growth", analysis(f"[node:{company.id}]")
        )

        result = services.derived.add_advice_node(
            AGENT_ID, "ACME Hold", advice(f"[node:{analysis_node.node_id}]", action="HOLD")
        )

        assert result.notification_id == "notification-1"
        assert sink.calls == [
            (AGENT_ID, result.node_id, "HOLD: ACME Hold", "Strong buy on services momentum.")
        ]
