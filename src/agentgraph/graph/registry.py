"""Type Registry

Owns node-type and edge-type definitions per scope (an owning agent, or the
global scope shared by every agent). Enforces naming conventions and
uniqueness; exposes lookup, list and create. Nothing else may define a type
and the registry never creates one on demand.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from agentgraph.graph.exceptions import (
    DuplicateTypeError,
    InvalidNameError,
    SchemaValidationError,
    StoreConflictError,
)
from agentgraph.graph.models import CreatedBy, TypeDefinition, TypeKind
from agentgraph.graph.store import GraphStore
from agentgraph.graph.validation import compile_schema

logger = logging.getLogger(__name__)

# Capitalized, interior single spaces allowed: "Company", "Market Event"
NODE_TYPE_NAME_PATTERN = re.compile(r"^[A-Z][A-Za-z0-9]*(?: [A-Za-z0-9]+)*$")
# snake_case: "about", "competes_with"
EDGE_TYPE_NAME_PATTERN = re.compile(r"^[a-z][a-z_]*$")


def is_valid_type_name(kind: TypeKind, name: str) -> bool:
    pattern = NODE_TYPE_NAME_PATTERN if kind == TypeKind.NODE else EDGE_TYPE_NAME_PATTERN
    return bool(pattern.match(name))


class TypeRegistry:
    """Registry of dynamic node and edge types backed by a ``GraphStore``.

    Lookups resolve the scope-specific definition first and fall back to the
    global one, so an agent may shadow a global type with its own.

    Example:
        >>> registry = TypeRegistry(GraphStore())
        >>> type_id = registry.create_type("agent-1", TypeKind.NODE, {
        ...     "name": "Company",
        ...     "description": "A publicly traded company",
        ...     "properties_schema": {"type": "object"},
        ... })
        >>> registry.type_exists("agent-1", TypeKind.NODE, "Company")
        True
    """

    def __init__(self, store: GraphStore):
        self._store = store
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def store(self) -> GraphStore:
        return self._store

    def type_exists(self, scope: Optional[str], kind: TypeKind, name: str) -> bool:
        return self.get_type(scope, kind, name) is not None

    def get_type(self, scope: Optional[str], kind: TypeKind, name: str) -> Optional[TypeDefinition]:
        return self._store.find_type(kind, scope, name)

    def list_types(self, scope: Optional[str], kind: TypeKind) -> List[TypeDefinition]:
        return self._store.list_types(kind, scope)

    def available_type_names(self, scope: Optional[str], kind: TypeKind) -> List[str]:
        """Distinct type names visible to ``scope``, sorted case-insensitively."""
        names = {definition.name for definition in self.list_types(scope, kind)}
        return sorted(names, key=str.lower)

    def create_type(
        self,
        scope: Optional[str],
        kind: TypeKind,
        definition: Dict[str, Any],
    ) -> str:
        """Register a new type and return its id.

        Args:
            scope: Owning agent id, or None for a global type
            kind: TypeKind.NODE or TypeKind.EDGE
            definition: ``name``, ``description`` and optionally
                ``justification``, ``properties_schema``, ``example_properties``
                and ``created_by`` (defaults to ``system``)

        Raises:
            InvalidNameError: Name violates the kind's naming convention
            DuplicateTypeError: A same-scope type with that name exists
            SchemaValidationError: Node type without an object descriptor
        """
        kind = TypeKind(kind)
        name = str(definition.get("name", ""))

        if not is_valid_type_name(kind, name):
            raise InvalidNameError(kind.value, name)

        properties_schema = definition.get("properties_schema")
        if kind == TypeKind.NODE and compile_schema(properties_schema) is None:
            raise SchemaValidationError(
                [f'Node type "{name}" requires a properties schema object']
            )
        if properties_schema is not None and compile_schema(properties_schema) is None:
            raise SchemaValidationError(
                [f'Properties schema for {kind.value} type "{name}" must be an object']
            )

        # Same-scope only: shadowing a global type is allowed
        if self._store.get_type_in_scope(kind, scope, name) is not None:
            raise DuplicateTypeError(kind.value, name)

        created = TypeDefinition(
            kind=kind,
            scope=scope,
            name=name,
            description=str(definition.get("description", "")),
            justification=str(definition.get("justification") or ""),
            properties_schema=properties_schema,
            example_properties=definition.get("example_properties"),
            created_by=CreatedBy(definition.get("created_by", CreatedBy.SYSTEM)),
        )

        try:
            self._store.insert_type(created)
        except StoreConflictError as exc:
            # Lost a race with a concurrent creator
            raise DuplicateTypeError(kind.value, name) from exc

        self._logger.debug(
            f"Created {kind.value} type {name!r} in scope {scope or 'global'} ({created.id})"
        )
        return created.id
