"""SQLite-backed knowledge-base chunk store with in-process cosine search."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

import aiosqlite

from hazard_engine.exceptions import StoreError
from hazard_engine.models.domain import KnowledgeChunk, RetrievalResult
from hazard_engine.retrieval.cosine import top_k_by_cosine
from hazard_engine.storage.migrations import initialize_chunk_db


class SQLiteChunkStore:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        await initialize_chunk_db(self._db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(self._db_path) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as e:
            raise StoreError(f"Chunk store error: {e}") from e

    async def save_chunks(self, chunks: list[KnowledgeChunk]) -> None:
        async with self._connect() as db:
            await db.executemany(
                "INSERT OR REPLACE INTO knowledge_base_chunks "
                "(chunk_id, knowledge_base_id, chunk_text, chunk_index, embedding) "
                "VALUES (?, ?, ?, ?, ?)",
                [
                    (
                        c.chunk_id,
                        c.knowledge_base_id,
                        c.text,
                        c.index,
                        json.dumps(list(c.embedding)) if c.embedding is not None else None,
                    )
                    for c in chunks
                ],
            )
            await db.commit()

    async def vector_top_k(
        self, knowledge_base_id: str, query_vector: Sequence[float], k: int
    ) -> list[RetrievalResult]:
        chunks = await self._load_chunks(knowledge_base_id, limit=None, with_embeddings=True)
        return await asyncio.to_thread(top_k_by_cosine, query_vector, chunks, k)

    async def fetch_chunks(self, knowledge_base_id: str, limit: int) -> list[KnowledgeChunk]:
        return await self._load_chunks(knowledge_base_id, limit=limit, with_embeddings=False)

    async def list_knowledge_bases(self) -> list[str]:
        async with self._connect() as db:
            async with db.execute(
                "SELECT DISTINCT knowledge_base_id FROM knowledge_base_chunks "
                "ORDER BY knowledge_base_id"
            ) as cursor:
                return [row[0] for row in await cursor.fetchall()]

    async def count_chunks(self) -> int:
        async with self._connect() as db:
            async with db.execute("SELECT COUNT(*) FROM knowledge_base_chunks") as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def _load_chunks(
        self, knowledge_base_id: str, limit: int | None, with_embeddings: bool
    ) -> list[KnowledgeChunk]:
        query = (
            "SELECT * FROM knowledge_base_chunks WHERE knowledge_base_id = ? "
            "ORDER BY chunk_index"
        )
        params: list = [knowledge_base_id]
        if limit is not None:
            query += " LIMIT ?"
            params.append(max(limit, 0))
        async with self._connect() as db:
            async with db.execute(query, params) as cursor:
                rows = await cursor.fetchall()
                return [self._row_to_chunk(row, with_embeddings) for row in rows]

    @staticmethod
    def _row_to_chunk(row: aiosqlite.Row, with_embedding: bool) -> KnowledgeChunk:
        embedding = None
        if with_embedding and row["embedding"]:
            embedding = tuple(json.loads(row["embedding"]))
        return KnowledgeChunk(
            chunk_id=row["chunk_id"],
            knowledge_base_id=row["knowledge_base_id"],
            text=row["chunk_text"],
            index=row["chunk_index"],
            embedding=embedding,
        )
