"""SQLite-backed persistence for dynamic types, nodes, edges and notifications.

Provides durable key-indexed storage with the point lookups the graph engine
needs: types by ``(kind, scope, name)``, nodes by ``(scope, type, name)``,
edges by ``(scope, type, source_id, target_id)`` and everything by id.

Identifying tuples are backed by unique indexes. An insert that collides with
an existing row raises ``StoreConflictError`` so the caller can take its
merge / already-exists path instead of creating a duplicate.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from agentgraph.graph.exceptions import GraphStoreError, StoreConflictError
from agentgraph.graph.models import (
    CreatedBy,
    GraphEdge,
    GraphNode,
    GraphStats,
    Notification,
    TypeDefinition,
    TypeKind,
)

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"

SCHEMA = """
CREATE TABLE IF NOT EXISTS graph_types (
    id TEXT PRIMARY KEY,
    kind TEXT NOT NULL,
    scope TEXT,
    name TEXT NOT NULL,
    description TEXT NOT NULL,
    justification TEXT NOT NULL DEFAULT '',
    properties_schema TEXT,
    example_properties TEXT,
    created_by TEXT NOT NULL DEFAULT 'system',
    created_at TEXT NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS graph_types_scope_name
    ON graph_types(kind, COALESCE(scope, ''), name);

CREATE TABLE IF NOT EXISTS graph_nodes (
    id TEXT PRIMARY KEY,
    scope TEXT NOT NULL,
    type TEXT NOT NULL,
    name TEXT NOT NULL,
    properties TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS graph_nodes_identity
    ON graph_nodes(scope, type, name);

CREATE TABLE IF NOT EXISTS graph_edges (
    id TEXT PRIMARY KEY,
    scope TEXT NOT NULL,
    type TEXT NOT NULL,
    source_id TEXT NOT NULL REFERENCES graph_nodes(id) ON DELETE CASCADE,
    target_id TEXT NOT NULL REFERENCES graph_nodes(id) ON DELETE CASCADE,
    properties TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS graph_edges_identity
    ON graph_edges(scope, type, source_id, target_id);
CREATE INDEX IF NOT EXISTS graph_edges_source ON graph_edges(source_id);
CREATE INDEX IF NOT EXISTS graph_edges_target ON graph_edges(target_id);

CREATE TABLE IF NOT EXISTS notifications (
    id TEXT PRIMARY KEY,
    scope TEXT NOT NULL,
    node_id TEXT,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    read INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
"""

_TYPE_COLUMNS = (
    "id, kind, scope, name, description, justification, "
    "properties_schema, example_properties, created_by, created_at"
)
_NODE_COLUMNS = "id, scope, type, name, properties, created_at"
_EDGE_COLUMNS = "id, scope, type, source_id, target_id, properties, created_at"


def _dump(value: Optional[Dict[str, Any]]) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, default=str)


def _load(value: Optional[str]) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    return json.loads(value)


def _casefold(value: Optional[str]) -> Optional[str]:
    # SQLite lower() folds ASCII only
    return value.casefold() if value is not None else None


class GraphStore:
    """SQLite-backed store for one graph database file."""

    def __init__(self, path: Union[Path, str] = MEMORY_PATH, wal_mode: bool = True) -> None:
        self._path = path
        if str(path) != MEMORY_PATH:
            self._path = Path(path)
            self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(str(self._path), check_same_thread=False)
            self._conn.create_function("casefold", 1, _casefold, deterministic=True)
            if wal_mode and str(path) != MEMORY_PATH:
                self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as exc:
            raise GraphStoreError(f"Failed to open graph database {path}: {exc}") from exc
        self._lock = threading.Lock()

    @property
    def path(self) -> Union[Path, str]:
        return self._path

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "GraphStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    def _write(self, sql: str, params: Tuple[Any, ...], what: str) -> int:
        with self._lock:
            try:
                with self._conn:
                    cur = self._conn.execute(sql, params)
                    return cur.rowcount
            except sqlite3.IntegrityError as exc:
                raise StoreConflictError(f"{what} conflicts with an existing row: {exc}") from exc
            except sqlite3.Error as exc:
                raise GraphStoreError(f"Failed to write {what}: {exc}") from exc

    def _fetchall(self, sql: str, params: Iterable[Any] = ()) -> List[Tuple[Any, ...]]:
        with self._lock:
            try:
                cur = self._conn.execute(sql, tuple(params))
                return cur.fetchall()
            except sqlite3.Error as exc:
                raise GraphStoreError(f"Query failed: {exc}") from exc

    def _fetchone(self, sql: str, params: Iterable[Any] = ()) -> Optional[Tuple[Any, ...]]:
        rows = self._fetchall(sql, params)
        return rows[0] if rows else None

    @staticmethod
    def _row_to_type(row: Tuple[Any, ...]) -> TypeDefinition:
        (type_id, kind, scope, name, description, justification,
         properties_schema, example_properties, created_by, created_at) = row
        return TypeDefinition(
            id=type_id,
            kind=TypeKind(kind),
            scope=scope,
            name=name,
            description=description,
            justification=justification,
            properties_schema=_load(properties_schema),
            example_properties=_load(example_properties),
            created_by=CreatedBy(created_by),
            created_at=datetime.fromisoformat(created_at),
        )

    @staticmethod
    def _row_to_node(row: Tuple[Any, ...]) -> GraphNode:
        node_id, scope, node_type, name, properties, created_at = row
        return GraphNode(
            id=node_id,
            scope=scope,
            type=node_type,
            name=name,
            properties=_load(properties) or {},
            created_at=datetime.fromisoformat(created_at),
        )

    @staticmethod
    def _row_to_edge(row: Tuple[Any, ...]) -> GraphEdge:
        edge_id, scope, edge_type, source_id, target_id, properties, created_at = row
        return GraphEdge(
            id=edge_id,
            scope=scope,
            type=edge_type,
            source_id=source_id,
            target_id=target_id,
            properties=_load(properties) or {},
            created_at=datetime.fromisoformat(created_at),
        )

    # ---------------------------------------------------------------------------
    # Types
    # ---------------------------------------------------------------------------

    def insert_type(self, definition: TypeDefinition) -> TypeDefinition:
        self._write(
            f"INSERT INTO graph_types({_TYPE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                definition.id,
                definition.kind.value,
                definition.scope,
                definition.name,
                definition.description,
                definition.justification,
                _dump(definition.properties_schema),
                _dump(definition.example_properties),
                definition.created_by.value,
                definition.created_at.isoformat(),
            ),
            f"{definition.kind.value} type {definition.name!r}",
        )
        return definition

    def get_type_in_scope(
        self, kind: TypeKind, scope: Optional[str], name: str
    ) -> Optional[TypeDefinition]:
        """Exact-scope lookup; ``scope=None`` looks at global types only."""
        row = self._fetchone(
            f"SELECT {_TYPE_COLUMNS} FROM graph_types "
            "WHERE kind = ? AND COALESCE(scope, '') = COALESCE(?, '') AND name = ? LIMIT 1",
            (kind.value, scope, name),
        )
        return self._row_to_type(row) if row else None

    def find_type(self, kind: TypeKind, scope: Optional[str], name: str) -> Optional[TypeDefinition]:
        """Scope-specific type first, then the global one."""
        found = self.get_type_in_scope(kind, scope, name)
        if found is None and scope is not None:
            found = self.get_type_in_scope(kind, None, name)
        return found

    def list_types(self, kind: TypeKind, scope: Optional[str]) -> List[TypeDefinition]:
        """Types owned by ``scope`` plus global types."""
        rows = self._fetchall(
            f"SELECT {_TYPE_COLUMNS} FROM graph_types "
            "WHERE kind = ? AND (scope IS NULL OR scope = ?) ORDER BY created_at, rowid",
            (kind.value, scope),
        )
        return [self._row_to_type(row) for row in rows]

    # ---------------------------------------------------------------------------
    # Nodes
    # ---------------------------------------------------------------------------

    def insert_node(self, node: GraphNode) -> GraphNode:
        self._write(
            f"INSERT INTO graph_nodes({_NODE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (
                node.id,
                node.scope,
                node.type,
                node.name,
                _dump(node.properties),
                node.created_at.isoformat(),
            ),
            f"{node.type} node {node.name!r}",
        )
        return node

    def update_node_properties(self, node_id: str, properties: Dict[str, Any]) -> None:
        """Replace the stored properties. Merging is the caller's job."""
        updated = self._write(
            "UPDATE graph_nodes SET properties = ? WHERE id = ?",
            (_dump(properties), node_id),
            f"node {node_id}",
        )
        if updated == 0:
            raise GraphStoreError(f"Node not found: {node_id}")

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        row = self._fetchone(f"SELECT {_NODE_COLUMNS} FROM graph_nodes WHERE id = ?", (node_id,))
        return self._row_to_node(row) if row else None

    def find_node(self, scope: str, node_type: str, name: str) -> Optional[GraphNode]:
        row = self._fetchone(
            f"SELECT {_NODE_COLUMNS} FROM graph_nodes WHERE scope = ? AND type = ? AND name = ? LIMIT 1",
            (scope, node_type, name),
        )
        return self._row_to_node(row) if row else None

    def list_nodes(
        self,
        scope: str,
        node_type: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[GraphNode]:
        sql = f"SELECT {_NODE_COLUMNS} FROM graph_nodes WHERE scope = ?"
        params: List[Any] = [scope]
        if node_type:
            sql += " AND type = ?"
            params.append(node_type)
        if search:
            sql += " AND instr(casefold(name), casefold(?)) > 0"
            params.append(search)
        sql += " ORDER BY created_at, rowid"
        if limit:
            sql += " LIMIT ?"
            params.append(limit)
        return [self._row_to_node(row) for row in self._fetchall(sql, params)]

    # ---------------------------------------------------------------------------
    # Edges
    # ---------------------------------------------------------------------------

    def insert_edge(self, edge: GraphEdge) -> GraphEdge:
        self._write(
            f"INSERT INTO graph_edges({_EDGE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                edge.id,
                edge.scope,
                edge.type,
                edge.source_id,
                edge.target_id,
                _dump(edge.properties),
                edge.created_at.isoformat(),
            ),
            f"{edge.type} edge {edge.source_id}->{edge.target_id}",
        )
        return edge

    def get_edge(self, edge_id: str) -> Optional[GraphEdge]:
        row = self._fetchone(f"SELECT {_EDGE_COLUMNS} FROM graph_edges WHERE id = ?", (edge_id,))
        return self._row_to_edge(row) if row else None

    def find_edge(
        self, scope: str, edge_type: str, source_id: str, target_id: str
    ) -> Optional[GraphEdge]:
        row = self._fetchone(
            f"SELECT {_EDGE_COLUMNS} FROM graph_edges "
            "WHERE scope = ? AND type = ? AND source_id = ? AND target_id = ? LIMIT 1",
            (scope, edge_type, source_id, target_id),
        )
        return self._row_to_edge(row) if row else None

    def edges_for_node(self, node_id: str, direction: str = "both") -> List[GraphEdge]:
        """Edges touching a node: ``incoming``, ``outgoing`` or ``both``."""
        if direction == "incoming":
            where, params = "target_id = ?", (node_id,)
        elif direction == "outgoing":
            where, params = "source_id = ?", (node_id,)
        elif direction == "both":
            where, params = "source_id = ? OR target_id = ?", (node_id, node_id)
        else:
            raise ValueError(f"Unknown edge direction '{direction}'")
        rows = self._fetchall(
            f"SELECT {_EDGE_COLUMNS} FROM graph_edges WHERE {where} ORDER BY created_at, rowid",
            params,
        )
        return [self._row_to_edge(row) for row in rows]

    def list_edges(self, scope: str) -> List[GraphEdge]:
        rows = self._fetchall(
            f"SELECT {_EDGE_COLUMNS} FROM graph_edges WHERE scope = ? ORDER BY created_at, rowid",
            (scope,),
        )
        return [self._row_to_edge(row) for row in rows]

    # ---------------------------------------------------------------------------
    # Statistics
    # ---------------------------------------------------------------------------

    def graph_stats(self, scope: str) -> GraphStats:
        nodes_by_type = {
            node_type: count
            for node_type, count in self._fetchall(
                "SELECT type, COUNT(*) FROM graph_nodes WHERE scope = ? GROUP BY type", (scope,)
            )
        }
        edges_by_type = {
            edge_type: count
            for edge_type, count in self._fetchall(
                "SELECT type, COUNT(*) FROM graph_edges WHERE scope = ? GROUP BY type", (scope,)
            )
        }
        return GraphStats(
            node_count=sum(nodes_by_type.values()),
            edge_count=sum(edges_by_type.values()),
            nodes_by_type=nodes_by_type,
            edges_by_type=edges_by_type,
        )

    # ---------------------------------------------------------------------------
    # Notifications
    # ---------------------------------------------------------------------------

    def insert_notification(self, notification: Notification) -> Notification:
        self._write(
            "INSERT INTO notifications(id, scope, node_id, title, content, read, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                notification.id,
                notification.scope,
                notification.node_id,
                notification.title,
                notification.content,
                int(notification.read),
                notification.created_at.isoformat(),
            ),
            f"notification {notification.title!r}",
        )
        return notification

    def list_notifications(self, scope: str) -> List[Notification]:
        rows = self._fetchall(
            "SELECT id, scope, node_id, title, content, read, created_at FROM notifications "
            "WHERE scope = ? ORDER BY created_at, rowid",
            (scope,),
        )
        return [
            Notification(
                id=row[0],
                scope=row[1],
                node_id=row[2],
                title=row[3],
                content=row[4],
                read=bool(row[5]),
                created_at=datetime.fromisoformat(row[6]),
            )
            for row in rows
        ]

    # ---------------------------------------------------------------------------
    # Scope lifecycle
    # ---------------------------------------------------------------------------

    def delete_scope(self, scope: str) -> int:
        """Remove every type, node, edge and notification owned by ``scope``.

        This is the only way nodes and edges are ever deleted.

        Returns:
            Number of nodes removed
        """
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute("DELETE FROM graph_edges WHERE scope = ?", (scope,))
                    cur = self._conn.execute("DELETE FROM graph_nodes WHERE scope = ?", (scope,))
                    removed = cur.rowcount
                    self._conn.execute("DELETE FROM graph_types WHERE scope = ?", (scope,))
                    self._conn.execute("DELETE FROM notifications WHERE scope = ?", (scope,))
            except sqlite3.Error as exc:
                raise GraphStoreError(f"Failed to delete scope {scope}: {exc}") from exc
        logger.info(f"Deleted scope {scope} ({removed} nodes)")
        return removed
