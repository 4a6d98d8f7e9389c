"""
Seed Type Provisioning

Installs the baseline type set every agent needs before any other write is
trusted: the ``AgentAnalysis`` and ``AgentAdvice`` derived-knowledge node
types and a small set of provenance edge types.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from agentgraph.graph.exceptions import DuplicateTypeError
from agentgraph.graph.models import CreatedBy, TypeKind
from agentgraph.graph.registry import TypeRegistry

logger = logging.getLogger(__name__)

ANALYSIS_TYPE_NAME = "AgentAnalysis"
ADVICE_TYPE_NAME = "AgentAdvice"

_CONFIDENCE_SCHEMA = {
    "type": "number",
    "minimum": 0,
    "maximum": 1,
    "description": "Confidence level (0=low, 1=high)",
}

AGENT_ANALYSIS_NODE_TYPE: Dict[str, Any] = {
    "name": ANALYSIS_TYPE_NAME,
    "description": "Agent-derived observations and patterns from knowledge analysis",
    "justification": (
        "Required baseline type for the Decide step: stores reusable analytical "
        "outputs that are distinct from raw evidence nodes."
    ),
    "properties_schema": {
        "type": "object",
        "required": ["type", "summary", "content", "generated_at"],
        "properties": {
            "type": {
                "type": "string",
                "enum": ["observation", "pattern"],
                "description": (
                    "observation=notable trend or development, "
                    "pattern=recurring behavior or relationship"
                ),
            },
            "summary": {
                "type": "string",
                "description": "Brief 1-2 sentence summary of the analysis",
            },
            "content": {
                "type": "string",
                "description": "Detailed analysis with [node:uuid] or [edge:uuid] citations",
            },
            "confidence": dict(_CONFIDENCE_SCHEMA),
            "generated_at": {
                "type": "string",
                "format": "date-time",
                "description": "When this analysis was derived",
            },
        },
    },
    "example_properties": {
        "type": "observation",
        "summary": "Apple's services revenue growth is outpacing hardware sales.",
        "content": (
            "## Analysis\n\n"
            "Apple's services segment continues to demonstrate accelerating growth "
            "compared to its hardware divisions.\n\n"
            "### Supporting Evidence\n"
            "- Q4 earnings report [node:11111111-1111-4111-8111-111111111111] showed "
            "services revenue grew 24% YoY\n"
            "- Hardware revenue [node:22222222-2222-4222-8222-222222222222] grew only "
            "3% in the same period\n"
            "- Services margins [node:33333333-3333-4333-8333-333333333333] reached "
            "71%, significantly above hardware margins\n\n"
            "### Implications\n"
            "This shift suggests Apple is successfully transitioning toward a "
            "higher-margin business model, which could impact long-term valuation multiples."
        ),
        "confidence": 0.85,
        "generated_at": "2025-01-15T10:30:00Z",
    },
}

AGENT_ADVICE_NODE_TYPE: Dict[str, Any] = {
    "name": ADVICE_TYPE_NAME,
    "description": (
        "Actionable investment recommendation derived exclusively from AgentAnalysis analysis"
    ),
    "justification": (
        "Required baseline type for the Act step: stores actionable recommendations "
        "that can trigger user-facing notifications."
    ),
    "properties_schema": {
        "type": "object",
        "required": ["action", "summary", "content", "generated_at"],
        "properties": {
            "action": {
                "type": "string",
                "enum": ["BUY", "SELL", "HOLD"],
                "description": "The recommended action",
            },
            "summary": {
                "type": "string",
                "description": "Executive summary of the recommendation (1-2 sentences)",
            },
            "content": {
                "type": "string",
                "description": (
                    "Detailed reasoning citing ONLY AgentAnalysis nodes using [node:uuid] "
                    "format. Other node types are prohibited."
                ),
            },
            "confidence": dict(_CONFIDENCE_SCHEMA),
            "generated_at": {
                "type": "string",
                "format": "date-time",
                "description": "When this advice was generated",
            },
        },
    },
    "example_properties": {
        "action": "BUY",
        "summary": (
            "Strong buy signal for AAPL based on services growth momentum and undervaluation."
        ),
        "content": (
            "## Recommendation: BUY\n\n"
            "Based on recent analysis, AAPL presents a compelling buying opportunity.\n\n"
            "### Supporting AgentAnalyses\n"
            "- [node:44444444-4444-4444-8444-444444444444] Services revenue pattern shows "
            "accelerating growth trajectory\n"
            "- [node:55555555-5555-4555-8555-555555555555] Institutional accumulation "
            "observation indicates smart money confidence\n\n"
            "### Risk Factors\n"
            "- China revenue exposure remains elevated\n"
            "- Hardware cycle timing uncertainty"
        ),
        "confidence": 0.78,
        "generated_at": "2025-01-15T14:00:00Z",
    },
}

SEED_NODE_TYPES: List[Dict[str, Any]] = [AGENT_ANALYSIS_NODE_TYPE, AGENT_ADVICE_NODE_TYPE]

SEED_EDGE_TYPES: List[Dict[str, Any]] = [
    {
        "name": "derived_from",
        "description": (
            "Indicates the source node was derived from the target node or its "
            "underlying information."
        ),
        "justification": (
            "Baseline provenance relationship needed to trace how any node output was generated."
        ),
    },
    {
        "name": "about",
        "description": (
            "Indicates the source node is about, concerns, or focuses on the target node."
        ),
        "justification": (
            "Baseline semantic relationship needed to associate analyses, advice, "
            "and findings with their subjects."
        ),
    },
    {
        "name": "supports",
        "description": (
            "Indicates the source node provides supporting evidence or rationale "
            "for the target node."
        ),
        "justification": (
            "Baseline evidence relationship needed to represent positive evidence chains."
        ),
    },
    {
        "name": "contradicts",
        "description": "Indicates the source node conflicts with or challenges the target node.",
        "justification": (
            "Baseline evidence relationship needed to represent conflicting evidence "
            "and avoid one-sided conclusions."
        ),
    },
    {
        "name": "correlates_with",
        "description": (
            "Indicates the source node has a meaningful correlation or association "
            "with the target node."
        ),
        "justification": (
            "Baseline analytical relationship needed to model non-causal but "
            "decision-relevant associations."
        ),
    },
    {
        "name": "based_on",
        "description": (
            "Indicates the source node is based on information, evidence, or analysis "
            "represented by the target node."
        ),
        "justification": (
            "Baseline lineage relationship needed to connect downstream outputs like "
            "advice back to upstream analyses."
        ),
    },
]


class SeedReport(BaseModel):
    """Which seed types a provisioning run actually created."""

    scope: str
    created_node_types: List[str] = Field(default_factory=list)
    created_edge_types: List[str] = Field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created_node_types) + len(self.created_edge_types)


def _ensure(registry: TypeRegistry, scope: str, kind: TypeKind, definition: Dict[str, Any]) -> bool:
    name = definition["name"]
    if registry.type_exists(scope, kind, name):
        return False
    try:
        registry.create_type(scope, kind, {**definition, "created_by": CreatedBy.SYSTEM})
    except DuplicateTypeError:
        # Another seeder got there first
        return False
    return True


def ensure_seed_types(registry: TypeRegistry, scope: str) -> SeedReport:
    """
    Install the baseline node and edge types for ``scope`` where absent.

    Safe to call on every initialization path: once the set exists a call
    is a pure no-op.

    Returns:
        SeedReport: Names of the types this call created

    Example:
        >>> report = ensure_seed_types(registry, "agent-1")
        >>> assert "AgentAnalysis" in report.created_node_types
        >>> assert ensure_seed_types(registry, "agent-1").created_count == 0
    """
    report = SeedReport(scope=scope)

    for definition in SEED_NODE_TYPES:
        if _ensure(registry, scope, TypeKind.NODE, definition):
            report.created_node_types.append(definition["name"])
            logger.info(f"Created seed {definition['name']} node type for agent {scope}")

    for definition in SEED_EDGE_TYPES:
        if _ensure(registry, scope, TypeKind.EDGE, definition):
            report.created_edge_types.append(definition["name"])
            logger.info(f"Created seed edge type \"{definition['name']}\" for agent {scope}")

    return report
