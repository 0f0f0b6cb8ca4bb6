"""Top-K knowledge-base context retrieval with unranked fallback."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

from hazard_engine.models.domain import RetrievalResult
from hazard_engine.observability.logger import get_logger
from hazard_engine.observability.metrics import log_latency, log_retrieval_metrics
from hazard_engine.protocols.chunk_store import ChunkStore

logger = get_logger("context_retriever")


def format_context(results: Sequence[RetrievalResult]) -> str:
    """Render retrieved chunks as numbered prompt context."""
    return "\n\n".join(
        f"Context {i}: {result.chunk.text}" for i, result in enumerate(results, start=1)
    )


class ContextRetriever:
    def __init__(self, chunk_store: ChunkStore) -> None:
        self._store = chunk_store

    async def retrieve_context(
        self,
        query_vector: Sequence[float],
        knowledge_base_id: str,
        top_k: int = 3,
    ) -> list[RetrievalResult]:
        """Chunks of one knowledge base ranked by cosine similarity to query_vector.

        If the similarity query fails, returns up to top_k chunks unranked
        (similarity=None) instead of raising.
        """
        if top_k <= 0:
            return []
        start = time.monotonic()
        try:
            results = await self._store.vector_top_k(knowledge_base_id, query_vector, top_k)
            results = sorted(results, key=lambda r: -(r.similarity or 0.0))[:top_k]
        except Exception as e:
            logger.warning(
                "similarity_search_failed",
                knowledge_base_id=knowledge_base_id,
                error=str(e),
            )
            results = await self._fallback(knowledge_base_id, top_k)
            ranked = False
        else:
            ranked = True

        log_retrieval_metrics(
            knowledge_base_id=knowledge_base_id,
            top_k=top_k,
            returned=len(results),
            top_similarities=[r.similarity for r in results if r.similarity is not None],
            ranked=ranked,
        )
        log_latency(
            "retrieve_context",
            (time.monotonic() - start) * 1000,
            knowledge_base_id=knowledge_base_id,
        )
        return results

    async def retrieve_all(
        self,
        query_vector: Sequence[float],
        knowledge_base_ids: Sequence[str],
        top_k: int = 3,
    ) -> dict[str, list[RetrievalResult]]:
        """Retrieve from several knowledge bases concurrently; failures stay isolated."""
        ids = list(dict.fromkeys(knowledge_base_ids))
        outcomes = await asyncio.gather(
            *(self.retrieve_context(query_vector, kb_id, top_k) for kb_id in ids),
            return_exceptions=True,
        )
        results: dict[str, list[RetrievalResult]] = {}
        for kb_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("retrieval_failed", knowledge_base_id=kb_id, error=str(outcome))
                results[kb_id] = []
            else:
                results[kb_id] = outcome
        return results

    async def _fallback(self, knowledge_base_id: str, top_k: int) -> list[RetrievalResult]:
        try:
            chunks = await self._store.fetch_chunks(knowledge_base_id, top_k)
        except Exception as e:
            logger.error(
                "fallback_fetch_failed",
                knowledge_base_id=knowledge_base_id,
                error=str(e),
            )
            return []
        return [RetrievalResult(chunk=c, similarity=None, ranked=False) for c in chunks[:top_k]]
