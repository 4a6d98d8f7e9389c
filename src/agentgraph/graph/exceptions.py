"""Agent Graph Exception Hierarchy.

Custom exceptions for type registration, property validation, node/edge
upserts and citation verification. Every exception carries a machine-readable
``code`` so the tool boundary can prefix failures consistently
(``"NODE_TYPE_NOT_FOUND: ..."``) and callers can self-correct.

Components raise these; ``agentgraph.tools`` converts them into tagged
``ToolResult`` values.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


def format_available_type_names(type_names: Sequence[str]) -> str:
    """Render available type names sorted and comma separated, or ``(none)``."""
    if not type_names:
        return "(none)"
    return ", ".join(sorted(type_names, key=str.lower))


class GraphError(Exception):
    """Base exception for all agent graph operations.

    All graph-specific exceptions inherit from this class,
    allowing callers to catch all graph errors with a single handler.

    Example:
        try:
            nodes.upsert_node(agent_id, "Company", "Acme", {"ticker": "ACME"})
        except GraphError as e:
            logger.warning(f"Graph write rejected: {e.code}: {e}")
    """

    code = "GRAPH_ERROR"

    def to_error_string(self) -> str:
        """Render ``CODE: message`` for tool results."""
        return f"{self.code}: {self}"


class InvalidNameError(GraphError):
    """Raised when a type name violates its kind's naming convention.

    Attributes:
        kind: "node" or "edge"
        name: The rejected name
    """

    code = "INVALID_NAME"

    def __init__(self, kind: str, name: str, message: Optional[str] = None):
        self.kind = kind
        self.name = name

        if message is None:
            if kind == "node":
                message = (
                    "Node type name must start with a capital letter and may contain "
                    f'spaces (e.g., "Regulation", "Market Event"). Got: "{name}"'
                )
            else:
                message = (
                    'Edge type name must be snake_case (e.g., "regulates", '
                    f'"competes_with"). Got: "{name}"'
                )

        super().__init__(message)


class DuplicateTypeError(GraphError):
    """Raised when a same-scope type with that name already exists.

    Attributes:
        kind: "node" or "edge"
        name: The duplicate name
    """

    code = "DUPLICATE_TYPE"

    def __init__(self, kind: str, name: str, message: Optional[str] = None):
        self.kind = kind
        self.name = name

        if message is None:
            message = f'{kind.capitalize()} type "{name}" already exists.'

        super().__init__(message)


class TypeNotFoundError(GraphError):
    """Raised when a node or edge type cannot be resolved in a scope.

    Attributes:
        kind: "node" or "edge"
        name: The requested type name
        available: Names of the types that do exist for the scope
    """

    code = "TYPE_NOT_FOUND"
    list_tool = "listTypes"
    hint = " and select an existing type."

    def __init__(
        self,
        kind: str,
        name: str,
        available: Optional[Sequence[str]] = None,
        message: Optional[str] = None,
    ):
        self.kind = kind
        self.name = name
        self.available = sorted(available or [], key=str.lower)

        if message is None:
            message = (
                f'{kind.capitalize()} type "{name}" does not exist. '
                f"Available {kind} types: {format_available_type_names(self.available)}. "
                f"Use {self.list_tool} first{self.hint}"
            )

        super().__init__(message)


class NodeTypeNotFoundError(TypeNotFoundError):
    """Raised when ``upsert_node`` names a node type that does not exist."""

    code = "NODE_TYPE_NOT_FOUND"
    list_tool = "listNodeTypes"
    hint = ", then createNodeType only if necessary."

    def __init__(
        self,
        name: str,
        available: Optional[Sequence[str]] = None,
        message: Optional[str] = None,
    ):
        super().__init__("node", name, available, message)


class EdgeTypeNotFoundError(TypeNotFoundError):
    """Raised when ``upsert_edge`` names an edge type that does not exist."""

    code = "EDGE_TYPE_NOT_FOUND"
    list_tool = "listEdgeTypes"

    def __init__(
        self,
        name: str,
        available: Optional[Sequence[str]] = None,
        message: Optional[str] = None,
    ):
        super().__init__("edge", name, available, message)


class SchemaValidationError(GraphError):
    """Raised when properties violate a type's properties schema.

    Always carries the full violation list; the message joins every
    violation so a caller can fix all of them in one follow-up call.

    Attributes:
        violations: Every violation message, in discovery order
    """

    code = "SCHEMA_VALIDATION_FAILED"

    def __init__(self, violations: Sequence[str], message: Optional[str] = None):
        self.violations: List[str] = list(violations)

        if message is None:
            message = "; ".join(self.violations)

        super().__init__(message)


class NodePropertiesSchemaValidationError(SchemaValidationError):
    """Node properties (merged, on update) failed schema validation."""

    code = "NODE_PROPERTIES_SCHEMA_VALIDATION_FAILED"


class EdgePropertiesSchemaValidationError(SchemaValidationError):
    """Edge properties failed schema validation."""

    code = "EDGE_PROPERTIES_SCHEMA_VALIDATION_FAILED"


class ReferenceNotFoundError(GraphError):
    """Raised when an edge endpoint node does not exist.

    Attributes:
        side: "source" or "target"
        node_type: Type of the missing node
        node_name: Name of the missing node
    """

    code = "REFERENCE_NOT_FOUND"

    def __init__(
        self,
        side: str,
        node_type: str,
        node_name: str,
        message: Optional[str] = None,
    ):
        self.side = side
        self.node_type = node_type
        self.node_name = node_name

        if message is None:
            message = (
                f'{side.capitalize()} node "{node_name}" of type "{node_type}" '
                "not found. Create it first."
            )

        super().__init__(message)


class CitationError(GraphError):
    """Raised when derived-knowledge content fails citation verification.

    Covers: no citations, malformed ids, unknown or cross-scope ids, and
    advice citing anything other than analysis nodes.

    Attributes:
        missing_nodes / cross_scope_nodes / missing_edges / cross_scope_edges:
            Unresolved ids by category (empty for count/format failures)
        invalid_citations: Raw malformed markers (format failures only)
    """

    code = "CITATION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        invalid_citations: Optional[Sequence[str]] = None,
        missing_nodes: Optional[Sequence[str]] = None,
        cross_scope_nodes: Optional[Sequence[str]] = None,
        missing_edges: Optional[Sequence[str]] = None,
        cross_scope_edges: Optional[Sequence[str]] = None,
    ):
        super().__init__(message)
        self.invalid_citations = list(invalid_citations or [])
        self.missing_nodes = list(missing_nodes or [])
        self.cross_scope_nodes = list(cross_scope_nodes or [])
        self.missing_edges = list(missing_edges or [])
        self.cross_scope_edges = list(cross_scope_edges or [])


class UnexpectedError(GraphError):
    """Wraps anything that is not part of the graph error taxonomy."""

    code = "UNEXPECTED_ERROR"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class GraphStoreError(GraphError):
    """Raised when the persistence layer fails."""

    code = "STORE_ERROR"


class StoreConflictError(GraphStoreError):
    """Raised when an insert collides with a unique identifying tuple.

    Node, edge and type write paths treat this as "someone else created it
    first" and fall back to their merge / already-exists / duplicate paths.
    """

    code = "STORE_CONFLICT"
