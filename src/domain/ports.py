"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the system needs without specifying HOW. Infrastructure
modules provide concrete implementations. Application services depend only
on these protocols, never on concrete classes.

Using typing.Protocol (structural typing) instead of ABC: any class that
implements the methods satisfies the port without explicit inheritance.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from domain.entities import Message, Thread, WorkingMemory
from domain.models import GenerationResult


# ---------------------------------------------------------------------------
# AI Component Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class GeneratorPort(Protocol):
    """Anything that turns a prompt into a text answer (an Agent)."""

    name: str

    async def generate(self, prompt: str, ctx: Any = None) -> GenerationResult: ...


@runtime_checkable
class AgentLookupPort(Protocol):
    """Name-keyed access to the registered agents."""

    @property
    def default_key(self) -> str: ...

    def find_by_key(self, key: str) -> Optional[GeneratorPort]: ...
    def list_names(self) -> list[str]: ...


@runtime_checkable
class ToolResolverPort(Protocol):
    """Resolve a tool server descriptor into callable tools."""

    async def resolve_tools(self, descriptor: Any) -> Mapping[str, Any]: ...


@runtime_checkable
class MessageIndexPort(Protocol):
    """Vector index over message content."""

    async def add(self, message: Message) -> None: ...

    async def search(
        self, query: str, *, resource_id: str, k: int,
    ) -> list[int]: ...


# ---------------------------------------------------------------------------
# Repository Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class ThreadRepository(Protocol):
    """CRUD operations for Thread entities."""

    async def save(self, thread: Thread) -> Thread: ...
    async def get_by_id(self, thread_id: str) -> Optional[Thread]: ...
    async def get_by_resource(self, resource_id: str) -> list[Thread]: ...
    async def update_title(self, thread_id: str, title: str) -> None: ...
    async def touch(self, thread_id: str) -> None: ...


@runtime_checkable
class MessageRepository(Protocol):
    """Append-only storage for Message entities."""

    async def save(self, message: Message) -> Message: ...
    async def get_last(self, thread_id: str, limit: int) -> list[Message]: ...
    async def get_by_ids(self, message_ids: list[int]) -> list[Message]: ...
    async def get_window(
        self, message: Message, before: int, after: int,
    ) -> list[Message]: ...


@runtime_checkable
class WorkingMemoryRepository(Protocol):
    """Single-slot working memory document per resource."""

    async def get(self, resource_id: str) -> Optional[WorkingMemory]: ...
    async def upsert(self, resource_id: str, content: str) -> None: ...
