"""
Agent Graph Type & Validation Engine

Per-agent knowledge graphs whose node and edge types are created at runtime
and then enforced on every write:

1. Type registry with naming rules and per-scope uniqueness
2. Recursive property validation against JSON-Schema-like descriptors
3. Idempotent node (create-or-merge) and edge (create-or-no-op) upserts
4. Citation verification for derived analysis and advice nodes
5. Idempotent seeding of the baseline type set
"""

from agentgraph.graph.citations import Citation, CitationVerifier, parse_citations
from agentgraph.graph.derived import (
    AdviceProperties,
    AnalysisProperties,
    DerivedKnowledgeWriter,
    DerivedWriteResult,
)
from agentgraph.graph.edges import EdgeStore
from agentgraph.graph.exceptions import (
    CitationError,
    DuplicateTypeError,
    EdgePropertiesSchemaValidationError,
    EdgeTypeNotFoundError,
    GraphError,
    GraphStoreError,
    InvalidNameError,
    NodePropertiesSchemaValidationError,
    NodeTypeNotFoundError,
    ReferenceNotFoundError,
    SchemaValidationError,
    StoreConflictError,
    TypeNotFoundError,
    UnexpectedError,
)
from agentgraph.graph.models import (
    CreatedBy,
    GraphEdge,
    GraphNode,
    GraphStats,
    Notification,
    Subgraph,
    TypeDefinition,
    TypeKind,
    UpsertAction,
    UpsertResult,
)
from agentgraph.graph.nodes import NodeStore
from agentgraph.graph.notifications import NotificationSink, StoreNotificationSink
from agentgraph.graph.registry import TypeRegistry
from agentgraph.graph.seed import SeedReport, ensure_seed_types
from agentgraph.graph.services import GraphServices
from agentgraph.graph.store import GraphStore
from agentgraph.graph.validation import Violation, compile_schema, validate, validate_properties

__all__ = [
    "AdviceProperties",
    "AnalysisProperties",
    "Citation",
    "CitationError",
    "CitationVerifier",
    "CreatedBy",
    "DerivedKnowledgeWriter",
    "DerivedWriteResult",
    "DuplicateTypeError",
    "EdgePropertiesSchemaValidationError",
    "EdgeStore",
    "EdgeTypeNotFoundError",
    "GraphEdge",
    "GraphError",
    "GraphNode",
    "GraphServices",
    "GraphStats",
    "GraphStore",
    "GraphStoreError",
    "InvalidNameError",
    "NodePropertiesSchemaValidationError",
    "NodeStore",
    "NodeTypeNotFoundError",
    "Notification",
    "NotificationSink",
    "ReferenceNotFoundError",
    "SchemaValidationError",
    "SeedReport",
    "StoreConflictError",
    "StoreNotificationSink",
    "Subgraph",
    "TypeDefinition",
    "TypeKind",
    "TypeNotFoundError",
    "TypeRegistry",
    "UnexpectedError",
    "UpsertAction",
    "UpsertResult",
    "Violation",
    "compile_schema",
    "ensure_seed_types",
    "parse_citations",
    "validate",
    "validate_properties",
]
