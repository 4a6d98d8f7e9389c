"""Edge Store

Idempotent create-or-no-op of typed relationships between two existing nodes.
``(scope, type, source_id, target_id)`` identifies an edge. Edges are
write-once: a repeated write reports ``already_exists`` and never merges.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from agentgraph.graph.exceptions import (
    EdgePropertiesSchemaValidationError,
    EdgeTypeNotFoundError,
    ReferenceNotFoundError,
    StoreConflictError,
)
from agentgraph.graph.models import GraphEdge, GraphNode, TypeKind, UpsertAction, UpsertResult
from agentgraph.graph.registry import TypeRegistry
from agentgraph.graph.validation import validate_properties

logger = logging.getLogger(__name__)


class EdgeStore:
    """Create-if-absent writes and lookups for graph edges."""

    def __init__(self, registry: TypeRegistry):
        self._registry = registry
        self._store = registry.store
        self._logger = logging.getLogger(self.__class__.__name__)

    def get_edge(self, edge_id: str) -> Optional[GraphEdge]:
        return self._store.get_edge(edge_id)

    def _resolve_endpoint(self, scope: str, side: str, node_type: str, node_name: str) -> GraphNode:
        node = self._store.find_node(scope, node_type, node_name)
        if node is None:
            self._logger.warning(
                f"Rejected edge for scope {scope}: {side} {node_type}:{node_name} not found"
            )
            raise ReferenceNotFoundError(side, node_type, node_name)
        return node

    def upsert_edge(
        self,
        scope: str,
        edge_type: str,
        source_type: str,
        source_name: str,
        target_type: str,
        target_name: str,
        properties: Optional[Dict[str, Any]] = None,
    ) -> UpsertResult:
        """Create the edge unless an identical one exists.

        Endpoint node types are not restricted by the edge type.

        Raises:
            EdgeTypeNotFoundError: ``edge_type`` is not registered for scope
            EdgePropertiesSchemaValidationError: Properties violate the schema
            ReferenceNotFoundError: Source or target node does not exist
        """
        properties = dict(properties or {})
        descriptor = f"{source_type}:{source_name} -[{edge_type}]-> {target_type}:{target_name}"

        definition = self._registry.get_type(scope, TypeKind.EDGE, edge_type)
        if definition is None:
            available = self._registry.available_type_names(scope, TypeKind.EDGE)
            self._logger.warning(f"Rejected edge {descriptor} for scope {scope}: unknown edge type")
            raise EdgeTypeNotFoundError(edge_type, available)

        violations = validate_properties(properties, definition.properties_schema)
        if violations:
            self._logger.warning(
                f"Rejected edge {descriptor} for scope {scope}: "
                f"{len(violations)} schema violation(s)"
            )
            raise EdgePropertiesSchemaValidationError(violations)

        source = self._resolve_endpoint(scope, "source", source_type, source_name)
        target = self._resolve_endpoint(scope, "target", target_type, target_name)

        existing = self._store.find_edge(scope, edge_type, source.id, target.id)
        if existing is not None:
            return UpsertResult(id=existing.id, action=UpsertAction.ALREADY_EXISTS)

        edge = GraphEdge(
            scope=scope,
            type=edge_type,
            source_id=source.id,
            target_id=target.id,
            properties=properties,
        )
        try:
            self._store.insert_edge(edge)
        except StoreConflictError:
            existing = self._store.find_edge(scope, edge_type, source.id, target.id)
            if existing is None:
                raise
            return UpsertResult(id=existing.id, action=UpsertAction.ALREADY_EXISTS)

        self._logger.debug(f"Created edge {descriptor} ({edge.id})")
        return UpsertResult(id=edge.id, action=UpsertAction.CREATED)
