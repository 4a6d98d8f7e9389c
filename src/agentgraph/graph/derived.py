"""
Derived-Knowledge Writers

Analysis and advice nodes are produced from existing graph knowledge rather
than gathered from outside, so their content must be grounded: every write
verifies the ``[node:...]`` / ``[edge:...]`` citations in ``content`` before
the node is stored. Advice is stricter still and may only cite analysis nodes.

Writing advice also records a user-facing notification. The node write and
the notification are independent; a failed notification does not remove the
node.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from agentgraph.graph.citations import CitationVerifier
from agentgraph.graph.exceptions import (
    CitationError,
    NodePropertiesSchemaValidationError,
    NodeTypeNotFoundError,
)
from agentgraph.graph.models import GraphNode, TypeKind, UpsertAction
from agentgraph.graph.nodes import NodeStore
from agentgraph.graph.notifications import NotificationSink
from agentgraph.graph.registry import TypeRegistry
from agentgraph.graph.seed import ADVICE_TYPE_NAME, ANALYSIS_TYPE_NAME
from agentgraph.graph.validation import validate_properties

logger = logging.getLogger(__name__)

PropertiesT = TypeVar("PropertiesT", bound="DerivedProperties")


class DerivedProperties(BaseModel):
    """Fields shared by analysis and advice properties."""

    # No coercion: "0.85" and True are not confidences
    model_config = ConfigDict(strict=True)

    summary: str = Field(..., min_length=1, description="Brief 1-2 sentence summary")
    content: str = Field(
        ...,
        min_length=1,
        description="Detailed reasoning with [node:uuid] or [edge:uuid] citations",
    )
    confidence: Optional[float] = Field(
        None, ge=0.0, le=1.0, description="Confidence level (0=low, 1=high)"
    )
    generated_at: str = Field(..., description="When this was generated (ISO datetime)")

    def to_properties(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class AnalysisProperties(DerivedProperties):
    """Properties of an ``AgentAnalysis`` node."""

    type: Literal["observation", "pattern"] = Field(
        ...,
        description="observation=notable trend or development, pattern=recurring behavior or relationship",
    )


class AdviceProperties(DerivedProperties):
    """Properties of an ``AgentAdvice`` node."""

    action: Literal["BUY", "SELL", "HOLD"] = Field(..., description="The recommended action")


class DerivedWriteResult(BaseModel):
    """Outcome of a derived-knowledge write."""

    node_id: str
    action: UpsertAction
    cited_ids: List[str] = Field(default_factory=list)
    notification_id: Optional[str] = None


def _coerce(model: Type[PropertiesT], properties: Union[PropertiesT, Mapping[str, Any]]) -> PropertiesT:
    if isinstance(properties, model):
        return properties
    return model.model_validate(properties)


class DerivedKnowledgeWriter:
    """Writes citation-verified ``AgentAnalysis`` and ``AgentAdvice`` nodes."""

    def __init__(
        self,
        registry: TypeRegistry,
        nodes: NodeStore,
        verifier: CitationVerifier,
        notifications: NotificationSink,
    ):
        self._registry = registry
        self._nodes = nodes
        self._verifier = verifier
        self._notifications = notifications
        self._logger = logging.getLogger(self.__class__.__name__)

    def _check_preconditions(self, scope: str, type_name: str, properties: Dict[str, Any]) -> None:
        definition = self._registry.get_type(scope, TypeKind.NODE, type_name)
        if definition is None:
            raise NodeTypeNotFoundError(
                type_name,
                self._registry.available_type_names(scope, TypeKind.NODE),
                message=(
                    f"{type_name} node type does not exist. "
                    "This should have been created during agent initialization."
                ),
            )
        violations = validate_properties(properties, definition.properties_schema)
        if violations:
            raise NodePropertiesSchemaValidationError(violations)

    def add_analysis_node(
        self,
        scope: str,
        name: str,
        properties: Union[AnalysisProperties, Mapping[str, Any]],
    ) -> DerivedWriteResult:
        """Write an ``AgentAnalysis`` node after verifying its citations.

        Analysis is internal: no notification is recorded.

        Raises:
            pydantic.ValidationError: ``properties`` do not fit AnalysisProperties
            NodeTypeNotFoundError: The scope was never seeded
            NodePropertiesSchemaValidationError: Properties violate the type schema
            CitationError: Missing, malformed, unknown or cross-scope citations
        """
        parsed = _coerce(AnalysisProperties, properties)
        values = parsed.to_properties()

        self._check_preconditions(scope, ANALYSIS_TYPE_NAME, values)
        cited = self._verifier.verify(scope, parsed.content, subject=ANALYSIS_TYPE_NAME)

        result = self._nodes.upsert_node(scope, ANALYSIS_TYPE_NAME, name, values)
        self._logger.info(
            f"Wrote {ANALYSIS_TYPE_NAME} {name!r} for agent {scope} citing {len(cited)} reference(s)"
        )
        return DerivedWriteResult(
            node_id=result.id,
            action=result.action,
            cited_ids=[entity.id for entity in cited],
        )

    def add_advice_node(
        self,
        scope: str,
        name: str,
        properties: Union[AdviceProperties, Mapping[str, Any]],
    ) -> DerivedWriteResult:
        """Write an ``AgentAdvice`` node and record a notification for it.

        Every citation must resolve to an ``AgentAnalysis`` node; edges and
        other node types are rejected.

        Raises:
            Same as ``add_analysis_node``.
        """
        parsed = _coerce(AdviceProperties, properties)
        values = parsed.to_properties()

        self._check_preconditions(scope, ADVICE_TYPE_NAME, values)
        cited = self._verifier.verify(scope, parsed.content, subject=ADVICE_TYPE_NAME)

        offending = [
            entity.id
            for entity in cited
            if not (isinstance(entity, GraphNode) and entity.type == ANALYSIS_TYPE_NAME)
        ]
        if offending:
            self._logger.warning(
                f"Rejected {ADVICE_TYPE_NAME} {name!r} for agent {scope}: "
                f"{len(offending)} non-analysis citation(s)"
            )
            raise CitationError(
                f"{ADVICE_TYPE_NAME} content may cite only {ANALYSIS_TYPE_NAME} nodes "
                f"using [node:uuid]. Disallowed citations: {', '.join(offending)}",
                invalid_citations=offending,
            )

        result = self._nodes.upsert_node(scope, ADVICE_TYPE_NAME, name, values)
        notification_id = self._notifications.notify(
            scope,
            result.id,
            f"{parsed.action}: {name}",
            parsed.summary,
        )
        self._logger.info(f"Wrote {ADVICE_TYPE_NAME} {name!r} for agent {scope} and notified user")
        return DerivedWriteResult(
            node_id=result.id,
            action=result.action,
            cited_ids=[entity.id for entity in cited],
            notification_id=notification_id,
        )
