"""
application.services.memory - Thread-scoped conversation memory.

Combines three stores behind one service:
    - threads and messages (SQLite, append-only)
    - a vector index over message content for semantic recall
    - one free-text working memory document per resource

Storage failures surface to the caller as StorageError / NotFoundError.
Indexing a message and semantic search are best effort: a broken vector
index degrades recall to the recent window but never loses a message.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

from domain.entities import Message, Thread
from domain.exceptions import NotFoundError, StorageError, ThreadOwnershipError
from domain.models import MemoryOptions, RecallResult
from domain.ports import (
    MessageIndexPort,
    MessageRepository,
    ThreadRepository,
    WorkingMemoryRepository,
)

logger = logging.getLogger(__name__)

TitleGenerator = Callable[[str], Awaitable[str]]

_TITLE_MAX_CHARS = 60


def fallback_title(first_message: str) -> str:
    """First 60 chars of the opening message."""
    text = " ".join(first_message.split())
    title = text[:_TITLE_MAX_CHARS].strip()
    if len(text) > _TITLE_MAX_CHARS:
        title += "…"
    return title


class MemoryService:
    """Conversation history, semantic recall and working memory."""

    def __init__(
        self,
        thread_repo: ThreadRepository,
        message_repo: MessageRepository,
        working_memory_repo: WorkingMemoryRepository,
        message_index: Optional[MessageIndexPort] = None,
        options: Optional[MemoryOptions] = None,
    ):
        self._thread_repo = thread_repo
        self._message_repo = message_repo
        self._working_memory_repo = working_memory_repo
        self._message_index = message_index
        self._options = options or MemoryOptions()

    @property
    def options(self) -> MemoryOptions:
        return self._options

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    async def create_thread(
        self,
        resource_id: str,
        title: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
        thread_id: str = "",
    ) -> Thread:
        """Create a thread for *resource_id*. Raises StorageError on failure."""
        try:
            thread = await self._thread_repo.save(Thread(
                thread_id=thread_id,
                resource_id=resource_id,
                title=title or "",
                metadata=metadata or {},
            ))
        except StorageError:
            logger.exception("Failed to create thread for resource %s", resource_id)
            raise
        logger.info("Created thread %s for resource %s", thread.thread_id, resource_id)
        return thread

    async def list_threads(self, resource_id: str) -> list[Thread]:
        """All threads of a resource, most recently active first."""
        try:
            return await self._thread_repo.get_by_resource(resource_id)
        except StorageError:
            logger.exception("Failed to list threads for resource %s", resource_id)
            raise

    async def get_thread(self, thread_id: str) -> Thread:
        """Return the thread or raise NotFoundError."""
        try:
            thread = await self._thread_repo.get_by_id(thread_id)
        except StorageError:
            logger.exception("Failed to load thread %s", thread_id)
            raise
        if thread is None:
            raise NotFoundError(f"Thread not found: {thread_id}")
        return thread

    async def get_or_create_thread(self, thread_id: str, resource_id: str) -> Thread:
        """Return the thread, creating it for *resource_id* when absent.

        A thread owned by another resource raises ThreadOwnershipError.
        """
        try:
            thread = await self.get_thread(thread_id)
        except NotFoundError:
            return await self.create_thread(resource_id, thread_id=thread_id)
        if thread.resource_id != resource_id:
            logger.warning(
                "Thread %s belongs to resource %s, not %s",
                thread_id, thread.resource_id, resource_id,
            )
            raise ThreadOwnershipError(
                f"Thread {thread_id} belongs to another resource"
            )
        return thread

    async def ensure_title(
        self,
        thread_id: str,
        first_message: str,
        title_generator: Optional[TitleGenerator] = None,
    ) -> str:
        """Give an untitled thread a title derived from its first message."""
        thread = await self.get_thread(thread_id)
        if thread.title or not self._options.generate_titles:
            return thread.title

        title = ""
        if title_generator is not None:
            try:
                title = (await title_generator(first_message)).strip().strip('"\'')
            except Exception:
                logger.warning("Title generation failed for thread %s", thread_id, exc_info=True)
        title = title[:80] if title else fallback_title(first_message)

        await self._thread_repo.update_title(thread_id, title)
        logger.debug("Thread %s titled %r", thread_id, title)
        return title

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def save_message(self, thread_id: str, role: str, content: str) -> Message:
        """Append a message to a thread and index it for semantic recall."""
        thread = await self.get_thread(thread_id)
        message = await self._message_repo.save(Message(
            thread_id=thread_id,
            resource_id=thread.resource_id,
            role=role,
            content=content,
        ))
        await self._thread_repo.touch(thread_id)

        if self._message_index is not None:
            try:
                await self._message_index.add(message)
            except StorageError:
                logger.warning(
                    "Message %s stored but not indexed", message.id, exc_info=True,
                )
        return message

    async def get_messages(self, thread_id: str, limit: Optional[int] = None) -> list[Message]:
        """Last *limit* messages of a thread (default: the recall window)."""
        return await self._message_repo.get_last(
            thread_id, limit if limit is not None else self._options.last_messages,
        )

    async def recall(self, thread_id: str, query: str) -> RecallResult:
        """Assemble the context for answering *query* in *thread_id*.

        Recent window: the last `last_messages` messages of the thread.
        Semantic: up to `semantic_top_k` messages of the same resource that
        are similar to the query and not already in the recent window, each
        with `semantic_before` / `semantic_after` neighbours.
        """
        opts = self._options
        thread = await self.get_thread(thread_id)
        recent = await self._message_repo.get_last(thread_id, opts.last_messages)

        semantic: list[Message] = []
        if self._message_index is not None and opts.semantic_top_k > 0:
            seen = {m.id for m in recent}
            try:
                candidates = await self._message_index.search(
                    query,
                    resource_id=thread.resource_id,
                    k=opts.semantic_top_k + len(seen),
                )
            except StorageError:
                logger.warning("Semantic recall unavailable", exc_info=True)
                candidates = []

            hit_ids = [i for i in candidates if i not in seen][:opts.semantic_top_k]
            for hit in await self._message_repo.get_by_ids(hit_ids):
                window = await self._message_repo.get_window(
                    hit, opts.semantic_before, opts.semantic_after,
                )
                for message in window:
                    if message.id not in seen:
                        seen.add(message.id)
                        semantic.append(message)
            semantic.sort(key=lambda m: m.id or 0)

        working_memory = None
        if opts.working_memory_enabled:
            working_memory = await self.get_working_memory(thread.resource_id)

        return RecallResult(recent=recent, semantic=semantic, working_memory=working_memory)

    # ------------------------------------------------------------------
    # Working memory
    # ------------------------------------------------------------------

    async def get_working_memory(self, resource_id: str) -> str:
        """Current document of the resource, or the template if none yet."""
        stored = await self._working_memory_repo.get(resource_id)
        if stored is None:
            return self._options.working_memory_template
        return stored.content

    async def update_working_memory(self, resource_id: str, content: str) -> None:
        await self._working_memory_repo.upsert(resource_id, content)
        logger.info("Working memory updated for resource %s", resource_id)
