"""Node Store

Idempotent create-or-merge of named, typed nodes. ``(scope, type, name)``
identifies a node: writing the same identity again shallow-merges the new
properties over the stored ones and validates the merged result, so the same
real-world entity discovered repeatedly stays a single node.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from agentgraph.graph.exceptions import (
    NodePropertiesSchemaValidationError,
    NodeTypeNotFoundError,
    StoreConflictError,
)
from agentgraph.graph.models import GraphNode, TypeKind, UpsertAction, UpsertResult
from agentgraph.graph.registry import TypeRegistry
from agentgraph.graph.validation import validate_properties

logger = logging.getLogger(__name__)


class NodeStore:
    """Create-or-merge writes and point lookups for graph nodes."""

    def __init__(self, registry: TypeRegistry):
        self._registry = registry
        self._store = registry.store
        self._logger = logging.getLogger(self.__class__.__name__)

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return self._store.get_node(node_id)

    def find_node(self, scope: str, node_type: str, name: str) -> Optional[GraphNode]:
        return self._store.find_node(scope, node_type, name)

    def upsert_node(
        self,
        scope: str,
        node_type: str,
        name: str,
        properties: Optional[Dict[str, Any]] = None,
    ) -> UpsertResult:
        """Create the node, or merge ``properties`` into the existing one.

        Merge validation is all-or-nothing: when the merged properties fail
        the type schema the stored node is left untouched.

        Raises:
            NodeTypeNotFoundError: ``node_type`` is not registered for scope
            NodePropertiesSchemaValidationError: Properties (merged, when the
                node exists) violate the type schema
        """
        properties = dict(properties or {})

        definition = self._registry.get_type(scope, TypeKind.NODE, node_type)
        if definition is None:
            available = self._registry.available_type_names(scope, TypeKind.NODE)
            self._logger.warning(
                f"Rejected {node_type} node {name!r} for scope {scope}: unknown node type"
            )
            raise NodeTypeNotFoundError(node_type, available)

        existing = self._store.find_node(scope, node_type, name)
        if existing is None:
            violations = validate_properties(properties, definition.properties_schema)
            if violations:
                self._reject(scope, node_type, name, violations)

            node = GraphNode(scope=scope, type=node_type, name=name, properties=properties)
            try:
                self._store.insert_node(node)
            except StoreConflictError:
                # A concurrent writer created it between find and insert
                existing = self._store.find_node(scope, node_type, name)
                if existing is None:
                    raise
            else:
                self._logger.debug(f"Created {node_type} node {name!r} ({node.id})")
                return UpsertResult(id=node.id, action=UpsertAction.CREATED)

        merged = {**existing.properties, **properties}
        violations = validate_properties(merged, definition.properties_schema)
        if violations:
            self._reject(scope, node_type, name, violations)

        self._store.update_node_properties(existing.id, merged)
        self._logger.debug(f"Updated {node_type} node {name!r} ({existing.id})")
        return UpsertResult(id=existing.id, action=UpsertAction.UPDATED)

    def _reject(self, scope: str, node_type: str, name: str, violations) -> None:
        self._logger.warning(
            f"Rejected {node_type} node {name!r} for scope {scope}: "
            f"{len(violations)} schema violation(s)"
        )
        raise NodePropertiesSchemaValidationError(violations)
