"""
Shared fixtures: fake chat models, an in-memory message index and a
MemoryService over a real SQLite file in tmp_path.
"""

import json
from pathlib import Path
from typing import Any, AsyncIterator, List, Optional

import pytest
import pytest_asyncio
from langchain_core.language_models import BaseChatModel
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.outputs import ChatGeneration, ChatResult

from application.services.memory import MemoryService
from domain.entities import Message
from domain.models import AgentConfig, MemoryOptions
from infrastructure.config import Settings
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.message_repo import SQLiteMessageRepository
from infrastructure.persistence.migrations import run_migrations
from infrastructure.persistence.thread_repo import SQLiteThreadRepository
from infrastructure.persistence.working_memory_repo import SQLiteWorkingMemoryRepository


class EchoChatModel(BaseChatModel):
    """Replies with the content of the last human message."""

    @property
    def _llm_type(self) -> str:
        return "echo"

    def _generate(
        self,
        messages: List[BaseMessage],
        stop: Optional[List[str]] = None,
        run_manager: Any = None,
        **kwargs: Any,
    ) -> ChatResult:
        last = next(
            (m for m in reversed(messages) if isinstance(m, HumanMessage)), None,
        )
        content = last.content if last is not None else ""
        return ChatResult(generations=[ChatGeneration(message=AIMessage(content=content))])

    def bind_tools(self, tools: Any, **kwargs: Any) -> "EchoChatModel":
        return self


class ScriptedChatModel(GenericFakeChatModel):
    """Plays back a fixed list of AI messages (tool calls included)."""

    bound_tools: list = []

    def bind_tools(self, tools: Any, **kwargs: Any) -> "ScriptedChatModel":
        self.bound_tools = [getattr(t, "name", t) for t in tools]
        return self


def scripted(*replies: AIMessage) -> ScriptedChatModel:
    return ScriptedChatModel(messages=iter(replies))


def tool_call(name: str, args: dict, call_id: str = "call-1") -> AIMessage:
    return AIMessage(
        content="",
        tool_calls=[{"name": name, "args": args, "id": call_id, "type": "tool_call"}],
    )


class KeywordMessageIndex:
    """MessageIndexPort double: a hit is any message containing a query word."""

    def __init__(self):
        self.messages: list[Message] = []

    async def add(self, message: Message) -> None:
        self.messages.append(message)

    async def search(self, query: str, *, resource_id: str, k: int) -> list[int]:
        words = {w.lower() for w in query.split()}
        hits = [
            m.id for m in self.messages
            if m.resource_id == resource_id
            and words & {w.lower().strip(".,!?") for w in m.content.split()}
        ]
        return hits[:k]


@pytest.fixture
def echo_model() -> EchoChatModel:
    return EchoChatModel()


@pytest.fixture
def make_config():
    def _make(name: str, model: Any = None, memory: Any = None) -> AgentConfig:
        return AgentConfig(
            name=name,
            model=model if model is not None else EchoChatModel(),
            instructions=f"You are {name}.",
            memory=memory,
        )

    return _make


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(project_root=tmp_path)


@pytest.fixture
def message_index() -> KeywordMessageIndex:
    return KeywordMessageIndex()


@pytest.fixture
def memory_options() -> MemoryOptions:
    return MemoryOptions(working_memory_template="# User\n- **Name**:\n")


@pytest_asyncio.fixture
async def memory_service(
    tmp_path: Path, message_index: KeywordMessageIndex, memory_options: MemoryOptions,
) -> AsyncIterator[MemoryService]:
    connection = AsyncSQLiteConnection(tmp_path / "data" / "memory.db")
    await run_migrations(connection)
    yield MemoryService(
        thread_repo=SQLiteThreadRepository(connection),
        message_repo=SQLiteMessageRepository(connection),
        working_memory_repo=SQLiteWorkingMemoryRepository(connection),
        message_index=message_index,
        options=memory_options,
    )


@pytest.fixture
def write_json():
    def _write(path: Path, payload: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write
