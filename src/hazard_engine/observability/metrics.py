"""Metric recording helpers."""

from __future__ import annotations

from hazard_engine.observability.logger import get_logger

logger = get_logger("metrics")


def log_similarity_metrics(
    check: str,
    candidates: int,
    matches: int,
    top_scores: list[float],
    threshold: float,
) -> None:
    logger.info(
        "similarity_metrics",
        check=check,
        candidates=candidates,
        matches=matches,
        top_scores=[round(s, 4) for s in top_scores[:5]],
        threshold=threshold,
    )


def log_retrieval_metrics(
    knowledge_base_id: str,
    top_k: int,
    returned: int,
    top_similarities: list[float],
    ranked: bool,
) -> None:
    logger.info(
        "retrieval_metrics",
        knowledge_base_id=knowledge_base_id,
        top_k=top_k,
        returned=returned,
        top_similarities=[round(s, 4) for s in top_similarities[:5]],
        ranked=ranked,
    )


def log_latency(stage: str, duration_ms: float, **fields) -> None:
    logger.info(
        "latency",
        stage=stage,
        duration_ms=round(duration_ms, 2),
        **fields,
    )
