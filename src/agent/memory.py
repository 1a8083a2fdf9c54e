"""
agent.memory - Per-turn conversation memory for an agent.

Bridges the MemoryService (threads, recall, working memory) and the
LangChain message list handed to the chat model. NOT global: one
instance per generation turn, bound to that turn's SessionContext.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from application.context import SessionContext
from domain.entities import Message

if TYPE_CHECKING:
    from application.services.memory import MemoryService, TitleGenerator

logger = logging.getLogger(__name__)


def to_langchain_messages(messages: list[Message]) -> list[BaseMessage]:
    """Convert stored messages to LangChain messages, skipping unknown roles."""
    converted: list[BaseMessage] = []
    for msg in messages:
        if msg.role == "user":
            converted.append(HumanMessage(content=msg.content))
        elif msg.role == "assistant":
            converted.append(AIMessage(content=msg.content))
        elif msg.role == "system":
            converted.append(SystemMessage(content=msg.content))
    return converted


class ConversationMemory:
    """Loads the history of one turn and records its outcome."""

    def __init__(self, memory: MemoryService, ctx: SessionContext):
        self._memory = memory
        self._ctx = ctx
        self._messages: list[BaseMessage] = []
        self._working_memory: Optional[str] = None

    @property
    def messages(self) -> list[BaseMessage]:
        """Recalled history: placed between the system prompt and the new input."""
        return self._messages

    @property
    def working_memory(self) -> Optional[str]:
        return self._working_memory

    @property
    def working_memory_enabled(self) -> bool:
        return self._memory.options.working_memory_enabled

    async def load(self, query: str) -> int:
        """Recall history relevant to *query*. Returns the number of messages."""
        await self._memory.get_or_create_thread(self._ctx.thread_id, self._ctx.resource_id)
        recall = await self._memory.recall(self._ctx.thread_id, query)
        self._messages = to_langchain_messages(recall.messages)
        self._working_memory = recall.working_memory
        if self._messages:
            logger.info(
                "Recalled %d recent and %d semantic message(s) for thread %s",
                len(recall.recent), len(recall.semantic), self._ctx.thread_id,
            )
        return len(self._messages)

    async def save_turn(
        self,
        user_input: str,
        output: str,
        title_generator: Optional[TitleGenerator] = None,
    ) -> None:
        """Persist both sides of the turn and title the thread if needed."""
        await self._memory.save_message(self._ctx.thread_id, "user", user_input)
        await self._memory.save_message(self._ctx.thread_id, "assistant", output)
        await self._memory.ensure_title(self._ctx.thread_id, user_input, title_generator)
