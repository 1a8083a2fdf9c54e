"""
domain.entities - Persistence-aware types (have IDs, timestamps).

Decoupled from any persistence strategy: no SQL concerns, no DB imports.
Timestamps are set by the repository implementations, not by the entities
themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Thread:
    """A conversation thread owned by a resource (end user / session)."""
    thread_id: str = ""
    resource_id: str = ""
    title: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Message:
    """A single message in a thread. Append-only."""
    id: Optional[int] = None
    thread_id: str = ""
    resource_id: str = ""
    role: str = ""  # "user", "assistant" or "system"
    content: str = ""
    created_at: str = ""


@dataclass
class WorkingMemory:
    """The single free-text working memory document of a resource."""
    resource_id: str = ""
    content: str = ""
    updated_at: str = ""
