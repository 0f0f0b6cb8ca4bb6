"""Threshold, order and truncate scored candidates."""

from __future__ import annotations

import math

from hazard_engine.models.domain import ScoredCandidate

MISSING_DISTANCE = math.inf


def _sort_key(candidate: ScoredCandidate) -> tuple:
    distance = candidate.distance_km if candidate.distance_km is not None else MISSING_DISTANCE
    return (
        -candidate.score,
        distance,
        -candidate.report.created_at.timestamp(),
        candidate.report.report_id,
    )


def rank_candidates(
    candidates: list[ScoredCandidate],
    threshold: float,
    top_n: int | None = None,
) -> list[ScoredCandidate]:
    """Keep score >= threshold, sort by (score desc, distance asc), cut to top_n.

    Candidates without a distance sort after every real distance. Remaining
    ties fall back to newest first, then report id, so output is deterministic.
    """
    kept = [c for c in candidates if c.score >= threshold]
    kept.sort(key=_sort_key)
    if top_n is not None:
        return kept[: max(top_n, 0)]
    return kept
