"""
Citation Parsing and Provenance Verification

Derived-knowledge content grounds each claim in the graph with inline
markers of the form ``[node:<uuid>]`` or ``[edge:<uuid>]`` (the kind keyword
is case-insensitive). This module extracts those markers with a small
single-pass lexer and verifies that every cited id resolves to an entity
owned by the citing scope.

Lexing rules:
    - A marker is ``[`` + ``node``/``edge`` + ``:`` + id + ``]``.
    - Nothing between the colon and ``]`` means no marker.
    - A ``[`` before the closing ``]`` abandons the current marker and
      scanning resumes at that bracket, so ``[node:[node:abc]`` yields one
      citation (``abc``).
    - An unterminated marker is ignored.

Verification order matters: count first, then id format for every citation,
and only then existence lookups, so a malformed id never costs a lookup.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

from agentgraph.graph.exceptions import CitationError
from agentgraph.graph.models import GraphEdge, GraphNode
from agentgraph.graph.store import GraphStore

logger = logging.getLogger(__name__)

CITATION_KINDS = ("node", "edge")
MAX_REPORTED_INVALID = 5

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_KEYWORD_LENGTH = 4  # len("node") == len("edge")

T = TypeVar("T")
CitedEntity = Union[GraphNode, GraphEdge]


@dataclass(frozen=True)
class Citation:
    """One provenance marker found in text.

    Attributes:
        kind: "node" or "edge" (lowercased)
        id: Cited id with surrounding whitespace stripped
        raw: Marker text exactly as written, brackets included
    """

    kind: str
    id: str
    raw: str


def is_uuid(value: str) -> bool:
    return bool(_UUID_PATTERN.match(value))


def _scan_marker(text: str, start: int) -> Tuple[Optional[Citation], int]:
    """Try to read a marker whose ``[`` is at ``start``.

    Returns the citation (or None) and the index to resume scanning from.
    """
    keyword_end = start + 1 + _KEYWORD_LENGTH
    kind = text[start + 1:keyword_end].lower()
    if kind not in CITATION_KINDS or text[keyword_end:keyword_end + 1] != ":":
        return None, start + 1

    id_start = keyword_end + 1
    index = id_start
    while index < len(text):
        char = text[index]
        if char == "]":
            break
        if char == "[":
            return None, index
        index += 1
    else:
        return None, len(text)

    if index == id_start:
        return None, index + 1

    raw = text[start:index + 1]
    return Citation(kind=kind, id=text[id_start:index].strip(), raw=raw), index + 1


def parse_citations(text: str) -> List[Citation]:
    """Extract every marker in order of appearance, repeats included."""
    citations: List[Citation] = []
    position = 0
    while True:
        start = text.find("[", position)
        if start < 0:
            break
        citation, position = _scan_marker(text, start)
        if citation is not None:
            citations.append(citation)
    return citations


def _unique_ids(citations: Sequence[Citation], kind: str) -> List[str]:
    seen: Dict[str, None] = {}
    for citation in citations:
        if citation.kind == kind:
            seen.setdefault(citation.id.lower(), None)
    return list(seen)


class CitationVerifier:
    """Verifies that derived-knowledge content cites real, same-scope entities.

    Lookups are read-only, so when ``max_workers`` is greater than one and more
    than one id is cited they are issued through a thread pool.
    """

    def __init__(self, store: GraphStore, max_workers: int = 1):
        self._store = store
        self._max_workers = max(1, max_workers)

    def _lookup_all(self, fetch: Callable[[str], Optional[T]], ids: List[str]) -> List[Optional[T]]:
        if self._max_workers > 1 and len(ids) > 1:
            with ThreadPoolExecutor(max_workers=min(self._max_workers, len(ids))) as pool:
                return list(pool.map(fetch, ids))
        return [fetch(entity_id) for entity_id in ids]

    def verify(self, scope: str, content: str, subject: str = "AgentAnalysis") -> List[CitedEntity]:
        """Verify every citation in ``content`` for ``scope``.

        Args:
            scope: Agent id the content is being written for
            content: Free text carrying ``[node:...]`` / ``[edge:...]`` markers
            subject: Type name used in error messages

        Returns:
            The cited nodes followed by the cited edges, deduplicated

        Raises:
            CitationError: No citations, a malformed id, or any id that is
                missing or owned by another scope
        """
        citations = parse_citations(content)

        if not citations:
            raise CitationError(
                f"{subject} content must include at least one citation "
                "using [node:uuid] or [edge:uuid]."
            )

        malformed = [citation.raw for citation in citations if not is_uuid(citation.id)]
        if malformed:
            examples = malformed[:MAX_REPORTED_INVALID]
            raise CitationError(
                f"Invalid citation format in {subject} content. Use [node:uuid] or "
                f"[edge:uuid] only. Invalid citations: {', '.join(examples)}",
                invalid_citations=examples,
            )

        node_ids = _unique_ids(citations, "node")
        edge_ids = _unique_ids(citations, "edge")

        nodes = self._lookup_all(self._store.get_node, node_ids)
        edges = self._lookup_all(self._store.get_edge, edge_ids)

        missing_nodes = [i for i, node in zip(node_ids, nodes) if node is None]
        cross_scope_nodes = [
            i for i, node in zip(node_ids, nodes) if node is not None and node.scope != scope
        ]
        missing_edges = [i for i, edge in zip(edge_ids, edges) if edge is None]
        cross_scope_edges = [
            i for i, edge in zip(edge_ids, edges) if edge is not None and edge.scope != scope
        ]

        if missing_nodes or cross_scope_nodes or missing_edges or cross_scope_edges:
            parts = []
            if missing_nodes:
                parts.append(f"missing nodes: {', '.join(missing_nodes)}")
            if cross_scope_nodes:
                parts.append(f"cross-agent nodes: {', '.join(cross_scope_nodes)}")
            if missing_edges:
                parts.append(f"missing edges: {', '.join(missing_edges)}")
            if cross_scope_edges:
                parts.append(f"cross-agent edges: {', '.join(cross_scope_edges)}")

            logger.warning(f"Rejected {subject} citations for scope {scope}: {'; '.join(parts)}")
            raise CitationError(
                f"{subject} content cites unknown or unauthorized graph references "
                f"({'; '.join(parts)}).",
                missing_nodes=missing_nodes,
                cross_scope_nodes=cross_scope_nodes,
                missing_edges=missing_edges,
                cross_scope_edges=cross_scope_edges,
            )

        resolved: List[CitedEntity] = [node for node in nodes if node is not None]
        resolved.extend(edge for edge in edges if edge is not None)
        return resolved
