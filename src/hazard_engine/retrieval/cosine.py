"""Vectorised cosine similarity and top-K selection."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from hazard_engine.exceptions import RetrievalError
from hazard_engine.models.domain import KnowledgeChunk, RetrievalResult


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between a and b; 0 for mismatched or zero vectors."""
    if len(a) != len(b) or len(a) == 0:
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def top_k_by_cosine(
    query_vector: Sequence[float],
    chunks: Sequence[KnowledgeChunk],
    k: int,
) -> list[RetrievalResult]:
    """Rank chunks by cosine similarity to query_vector, highest first.

    Chunks without an embedding of the query's dimension are not rankable and
    are skipped. Raises RetrievalError when nothing could be compared at all.
    """
    if k <= 0:
        return []
    query = np.asarray(query_vector, dtype=np.float64)
    if query.ndim != 1 or query.size == 0:
        raise RetrievalError("Query vector must be a non-empty 1-D vector")
    query_norm = np.linalg.norm(query)
    if query_norm == 0.0:
        raise RetrievalError("Query vector has zero norm")

    rankable = [c for c in chunks if c.embedding is not None and len(c.embedding) == query.size]
    if not rankable:
        if any(c.embedding is not None for c in chunks):
            raise RetrievalError(f"No stored embeddings match query dimension {query.size}")
        return []

    matrix = np.asarray([c.embedding for c in rankable], dtype=np.float64)
    norms = np.linalg.norm(matrix, axis=1) * query_norm
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > 0, matrix @ query / norms, 0.0)

    # Stable sort on -score keeps chunk order for equal scores
    order = np.argsort(-scores, kind="stable")[:k]
    return [
        RetrievalResult(chunk=rankable[i], similarity=float(scores[i]), ranked=True)
        for i in order
    ]
