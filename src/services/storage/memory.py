"""
In-Memory Audit Storage

Keeps the most recent audit events for the lifetime of the process.
Used by the UI's activity panel and by tests.
"""

from collections import deque

from src.models.audit import AuditEvent
from src.services.storage.interface import AuditStorageInterface


class InMemoryAuditStorage(AuditStorageInterface):
    """
    Bounded, append-only audit trail.

    Once `max_events` is reached the oldest events are dropped.
    """

    def __init__(self, max_events: int = 200):
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

    def __len__(self) -> int:
        return len(self._events)
