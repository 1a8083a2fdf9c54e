"""
application.context - Request-scoped session context.

Every generation receives its context explicitly. Two concurrent users
get two different SessionContext instances: no shared mutable state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4


@dataclass
class SessionContext:
    """Per-request/session context passed through all layers.

    Attributes:
        resource_id:  End-user or session identifier owning the threads
                      and the working memory document.
        thread_id:    Conversation thread the turn belongs to.
        request_id:   Unique per request, for tracing/logging.
    """
    resource_id: str
    thread_id: str
    request_id: str = field(default_factory=lambda: uuid4().hex)

    def new_request(self) -> None:
        """Start a new request within the same session."""
        self.request_id = uuid4().hex
