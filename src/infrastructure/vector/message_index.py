"""
infrastructure.vector.message_index - FAISS index over message content.

One document per stored message; metadata carries the message id, thread
and resource so that search can be scoped to a resource and the hits
mapped back to rows in the message repository.

FAISS and the embedding model are blocking, so every call is pushed to
the default executor. FAISS is not safe for concurrent add and search,
so both run under one asyncio.Lock. An index that failed to load is never
overwritten on disk.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from langchain_community.vectorstores import FAISS
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings

from domain.entities import Message
from domain.exceptions import StorageError
from infrastructure.vector.embeddings import build_embeddings

logger = logging.getLogger(__name__)

_INDEX_FILE = "index.faiss"


class FAISSMessageIndex:
    """Semantic recall index backed by a FAISS store on disk."""

    def __init__(
        self,
        index_path: Optional[str | Path] = None,
        *,
        embeddings: Optional[Embeddings] = None,
        embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2",
    ):
        self._embeddings = embeddings
        self._embedding_model = embedding_model
        self._path = Path(index_path) if index_path else None
        self._store: Optional[FAISS] = None
        self._lock = asyncio.Lock()
        self._load_failed = False

    @property
    def is_empty(self) -> bool:
        return self._store is None

    def _get_embeddings(self) -> Embeddings:
        # Loading the model is slow; only ever called from executor threads.
        if self._embeddings is None:
            self._embeddings = build_embeddings(self._embedding_model)
        return self._embeddings

    def _exists_on_disk(self) -> bool:
        return self._path is not None and (self._path / _INDEX_FILE).exists()

    def load(self) -> None:
        """Load a previously saved index, if any."""
        if not self._exists_on_disk():
            logger.info("No message index on disk yet (%s)", self._path)
            return
        self._store = FAISS.load_local(
            str(self._path),
            self._get_embeddings(),
            allow_dangerous_deserialization=True,
        )
        logger.info("Message index loaded from %s", self._path)

    async def initialize(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.load)
        except Exception as exc:
            self._load_failed = True
            raise StorageError(f"Cannot load message index: {exc}") from exc

    async def add(self, message: Message) -> None:
        if not message.content.strip():
            return
        doc = Document(
            page_content=message.content,
            metadata={
                "message_id": message.id,
                "thread_id": message.thread_id,
                "resource_id": message.resource_id,
                "role": message.role,
            },
        )
        loop = asyncio.get_running_loop()
        async with self._lock:
            try:
                await loop.run_in_executor(None, self._add_sync, doc)
            except Exception as exc:
                raise StorageError(f"Cannot index message {message.id}: {exc}") from exc

    def _add_sync(self, doc: Document) -> None:
        if self._store is None:
            self._store = FAISS.from_documents([doc], self._get_embeddings())
        else:
            self._store.add_documents([doc])
        if self._load_failed:
            logger.warning("Message index at %s failed to load; not saving over it", self._path)
        elif self._path is not None:
            self._path.mkdir(parents=True, exist_ok=True)
            self._store.save_local(str(self._path))

    async def search(self, query: str, *, resource_id: str, k: int) -> list[int]:
        """Return ids of the *k* messages of *resource_id* most similar to *query*."""
        if self._store is None or k <= 0 or not query.strip():
            return []
        store = self._store
        loop = asyncio.get_running_loop()
        async with self._lock:
            try:
                docs = await loop.run_in_executor(
                    None,
                    lambda: store.similarity_search(
                        query,
                        k=k,
                        filter={"resource_id": resource_id},
                        fetch_k=max(k * 10, 50),
                    ),
                )
            except Exception as exc:
                raise StorageError(f"Semantic search failed: {exc}") from exc
        return [d.metadata["message_id"] for d in docs if "message_id" in d.metadata]
