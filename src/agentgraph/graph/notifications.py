"""Advice notifications.

Writing advice records a user-facing notification. Delivery (inbox UI, email,
push) happens elsewhere; the graph engine only records the row and hands its
id back to the caller.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from agentgraph.graph.models import Notification
from agentgraph.graph.store import GraphStore

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Anything that can record a notification and return its id."""

    def notify(self, scope: str, node_id: Optional[str], title: str, content: str) -> str:
        ...


class StoreNotificationSink:
    """Records notifications in the graph database's ``notifications`` table."""

    def __init__(self, store: GraphStore):
        self._store = store

    def notify(self, scope: str, node_id: Optional[str], title: str, content: str) -> str:
        notification = self._store.insert_notification(
            Notification(scope=scope, node_id=node_id, title=title, content=content)
        )
        logger.info(f"Recorded notification {notification.id} for agent {scope}: {title}")
        return notification.id

    def list_for_scope(self, scope: str) -> List[Notification]:
        return self._store.list_notifications(scope)
