"""
domain.models - Value objects shared across layers.

These are immutable data containers with no business logic and no
dependencies on infrastructure (no LangChain, no MCP, no SQLite).
The model and memory handles are typed as Any on purpose: the domain
only carries them, it never calls into them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from domain.entities import Message


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AgentConfig:
    """Static configuration of one agent.

    model:        Opaque chat-model handle (a LangChain BaseChatModel).
    instructions: Fixed system prompt.
    memory:       MemoryService shared by the agents, or None.
    """
    name: str
    model: Any
    instructions: str
    memory: Any = None


@dataclass(frozen=True)
class ToolCallRecord:
    """One tool invocation performed while generating an answer."""
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    output: str = ""
    error: bool = False


@dataclass(frozen=True)
class GenerationResult:
    """Final answer of an agent for one prompt."""
    text: str
    tool_calls: tuple[ToolCallRecord, ...] = ()


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MemoryOptions:
    """Recall and working-memory policy of the memory service."""
    last_messages: int = 20
    semantic_top_k: int = 3
    semantic_before: int = 2
    semantic_after: int = 1
    working_memory_enabled: bool = True
    working_memory_template: str = ""
    generate_titles: bool = True


@dataclass(frozen=True)
class RecallResult:
    """Context assembled for one generation turn.

    recent:    The last N messages of the thread, oldest first.
    semantic:  Messages similar to the query (with their context window)
               that are not already part of `recent`, oldest first.
    """
    recent: list[Message] = field(default_factory=list)
    semantic: list[Message] = field(default_factory=list)
    working_memory: Optional[str] = None

    @property
    def messages(self) -> list[Message]:
        """Semantic context first, then the recent window."""
        return [*self.semantic, *self.recent]
