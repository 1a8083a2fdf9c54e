"""
Tests for MemoryService over a real SQLite database in tmp_path.
"""

import logging

import pytest

from application.services.memory import MemoryService, fallback_title
from domain.exceptions import NotFoundError, StorageError, ThreadOwnershipError
from domain.models import MemoryOptions
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.message_repo import SQLiteMessageRepository
from infrastructure.persistence.migrations import run_migrations
from infrastructure.persistence.thread_repo import SQLiteThreadRepository
from infrastructure.persistence.working_memory_repo import SQLiteWorkingMemoryRepository


async def _service(tmp_path, index=None, **options) -> MemoryService:
    connection = AsyncSQLiteConnection(tmp_path / "memory.db")
    await run_migrations(connection)
    return MemoryService(
        thread_repo=SQLiteThreadRepository(connection),
        message_repo=SQLiteMessageRepository(connection),
        working_memory_repo=SQLiteWorkingMemoryRepository(connection),
        message_index=index,
        options=MemoryOptions(**options),
    )


class TestThreads:

    @pytest.mark.asyncio
    async def test_create_and_get_thread(self, memory_service):
        thread = await memory_service.create_thread(
            "alice", title="Trip planning", metadata={"source": "cli"},
        )

        assert thread.thread_id
        loaded = await memory_service.get_thread(thread.thread_id)
        assert loaded.resource_id == "alice"
        assert loaded.title == "Trip planning"
        assert loaded.metadata == {"source": "cli"}

    @pytest.mark.asyncio
    async def test_create_thread_with_explicit_id(self, memory_service):
        thread = await memory_service.create_thread("alice", thread_id="t-1")
        assert thread.thread_id == "t-1"

    @pytest.mark.asyncio
    async def test_list_threads_scoped_to_resource(self, memory_service):
        await memory_service.create_thread("alice", thread_id="a1")
        await memory_service.create_thread("alice", thread_id="a2")
        await memory_service.create_thread("bob", thread_id="b1")

        ids = {t.thread_id for t in await memory_service.list_threads("alice")}
        assert ids == {"a1", "a2"}
        assert await memory_service.list_threads("carol") == []

    @pytest.mark.asyncio
    async def test_unknown_thread_raises_not_found(self, memory_service):
        with pytest.raises(NotFoundError):
            await memory_service.get_thread("missing")

    @pytest.mark.asyncio
    async def test_get_or_create_thread(self, memory_service):
        created = await memory_service.get_or_create_thread("t-9", "alice")
        again = await memory_service.get_or_create_thread("t-9", "alice")
        assert created.thread_id == again.thread_id == "t-9"
        assert len(await memory_service.list_threads("alice")) == 1

    @pytest.mark.asyncio
    async def test_thread_of_another_resource_rejected(self, memory_service):
        await memory_service.create_thread("alice", thread_id="t-alice")

        with pytest.raises(ThreadOwnershipError):
            await memory_service.get_or_create_thread("t-alice", "bob")

        assert await memory_service.list_threads("bob") == []

    @pytest.mark.asyncio
    async def test_duplicate_thread_id_is_storage_error(self, memory_service, caplog):
        await memory_service.create_thread("alice", thread_id="dup")
        with caplog.at_level(logging.ERROR), pytest.raises(StorageError):
            await memory_service.create_thread("alice", thread_id="dup")
        assert "Failed to create thread" in caplog.text

    @pytest.mark.asyncio
    async def test_unusable_database_path_is_storage_error(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")
        connection = AsyncSQLiteConnection(blocker / "memory.db")
        service = MemoryService(
            thread_repo=SQLiteThreadRepository(connection),
            message_repo=SQLiteMessageRepository(connection),
            working_memory_repo=SQLiteWorkingMemoryRepository(connection),
        )

        with pytest.raises(StorageError):
            await service.create_thread("alice")
        with pytest.raises(StorageError):
            await service.list_threads("alice")


class TestTitles:

    @pytest.mark.asyncio
    async def test_generated_title_set_once(self, memory_service):
        await memory_service.create_thread("alice", thread_id="t")

        async def generator(message):
            return '"Weekend in Oslo"'

        assert await memory_service.ensure_title("t", "plan my weekend", generator) == "Weekend in Oslo"
        assert await memory_service.ensure_title("t", "something else", generator) == "Weekend in Oslo"

    @pytest.mark.asyncio
    async def test_failing_generator_falls_back(self, memory_service):
        await memory_service.create_thread("alice", thread_id="t")

        async def generator(message):
            raise RuntimeError("model offline")

        title = await memory_service.ensure_title("t", "plan my weekend", generator)
        assert title == "plan my weekend"

    def test_fallback_title_truncates(self):
        title = fallback_title("word " * 40)
        assert len(title) <= 61
        assert title.endswith("…")

    @pytest.mark.asyncio
    async def test_titles_disabled(self, tmp_path):
        service = await _service(tmp_path, generate_titles=False)
        await service.create_thread("alice", thread_id="t")
        assert await service.ensure_title("t", "hello") == ""


class TestMessagesAndRecall:

    @pytest.mark.asyncio
    async def test_save_message_indexes_it(self, memory_service, message_index):
        await memory_service.create_thread("alice", thread_id="t")
        message = await memory_service.save_message("t", "user", "hello")

        assert message.id is not None
        assert message.resource_id == "alice"
        assert [m.id for m in message_index.messages] == [message.id]

    @pytest.mark.asyncio
    async def test_save_message_unknown_thread(self, memory_service):
        with pytest.raises(NotFoundError):
            await memory_service.save_message("missing", "user", "hello")

    @pytest.mark.asyncio
    async def test_index_failure_does_not_lose_message(self, tmp_path):
        class BrokenIndex:
            async def add(self, message):
                raise StorageError("disk full")

            async def search(self, query, *, resource_id, k):
                raise StorageError("disk full")

        service = await _service(tmp_path, index=BrokenIndex(), last_messages=5)
        await service.create_thread("alice", thread_id="t")
        await service.save_message("t", "user", "hello")

        recall = await service.recall("t", "hello")
        assert [m.content for m in recall.recent] == ["hello"]
        assert recall.semantic == []

    @pytest.mark.asyncio
    async def test_recent_window_oldest_first(self, tmp_path):
        service = await _service(tmp_path, last_messages=3, semantic_top_k=0)
        await service.create_thread("alice", thread_id="t")
        for i in range(5):
            await service.save_message("t", "user", f"m{i}")

        recall = await service.recall("t", "anything")
        assert [m.content for m in recall.recent] == ["m2", "m3", "m4"]
        assert recall.semantic == []

    @pytest.mark.asyncio
    async def test_semantic_hit_with_neighbours(self, tmp_path, message_index):
        service = await _service(
            tmp_path, index=message_index,
            last_messages=2, semantic_top_k=1, semantic_before=1, semantic_after=1,
        )
        await service.create_thread("alice", thread_id="t")
        contents = ["intro", "I love pizza", "noted", "filler", "recent one", "recent two"]
        for content in contents:
            await service.save_message("t", "user", content)

        recall = await service.recall("t", "pizza")

        assert [m.content for m in recall.recent] == ["recent one", "recent two"]
        assert [m.content for m in recall.semantic] == ["intro", "I love pizza", "noted"]
        assert [m.content for m in recall.messages] == [
            "intro", "I love pizza", "noted", "recent one", "recent two",
        ]

    @pytest.mark.asyncio
    async def test_semantic_recall_skips_recent_window(self, tmp_path, message_index):
        service = await _service(
            tmp_path, index=message_index, last_messages=10, semantic_top_k=3,
        )
        await service.create_thread("alice", thread_id="t")
        await service.save_message("t", "user", "pizza talk")

        recall = await service.recall("t", "pizza")
        assert len(recall.recent) == 1
        assert recall.semantic == []

    @pytest.mark.asyncio
    async def test_semantic_recall_spans_threads_of_resource(self, tmp_path, message_index):
        service = await _service(
            tmp_path, index=message_index,
            last_messages=1, semantic_top_k=3, semantic_before=0, semantic_after=0,
        )
        await service.create_thread("alice", thread_id="old")
        await service.create_thread("alice", thread_id="new")
        await service.create_thread("bob", thread_id="other")
        await service.save_message("old", "user", "my cat is Tom")
        await service.save_message("other", "user", "my cat is Felix")
        await service.save_message("new", "user", "hi")

        recall = await service.recall("new", "cat")
        assert [m.content for m in recall.semantic] == ["my cat is Tom"]


class TestWorkingMemory:

    @pytest.mark.asyncio
    async def test_template_until_updated(self, memory_service, memory_options):
        assert await memory_service.get_working_memory("alice") == memory_options.working_memory_template

        await memory_service.update_working_memory("alice", "# User\n- **Name**: Alice\n")
        await memory_service.update_working_memory("alice", "# User\n- **Name**: Alicia\n")

        assert "Alicia" in await memory_service.get_working_memory("alice")
        assert await memory_service.get_working_memory("bob") == memory_options.working_memory_template

    @pytest.mark.asyncio
    async def test_recall_includes_working_memory(self, memory_service):
        await memory_service.create_thread("alice", thread_id="t")
        await memory_service.update_working_memory("alice", "likes tea")

        recall = await memory_service.recall("t", "hello")
        assert recall.working_memory == "likes tea"

    @pytest.mark.asyncio
    async def test_recall_without_working_memory(self, tmp_path):
        service = await _service(tmp_path, working_memory_enabled=False)
        await service.create_thread("alice", thread_id="t")
        assert (await service.recall("t", "x")).working_memory is None
