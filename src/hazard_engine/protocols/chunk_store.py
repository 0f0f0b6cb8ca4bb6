"""Protocol for knowledge-base chunk storage with vector search."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from hazard_engine.models.domain import KnowledgeChunk, RetrievalResult


class ChunkStore(Protocol):
    async def vector_top_k(
        self, knowledge_base_id: str, query_vector: Sequence[float], k: int
    ) -> list[RetrievalResult]: ...

    async def fetch_chunks(self, knowledge_base_id: str, limit: int) -> list[KnowledgeChunk]: ...
