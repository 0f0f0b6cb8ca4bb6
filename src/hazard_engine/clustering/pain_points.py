"""Pain points: clusters large enough to indicate a recurring problem."""

from __future__ import annotations

import asyncio
from collections import Counter
from itertools import combinations

from hazard_engine.exceptions import StoreError
from hazard_engine.models.domain import Cluster, PainPointCluster, Report
from hazard_engine.observability.logger import get_logger
from hazard_engine.protocols.report_store import ReportStore
from hazard_engine.scoring.similarity_scorer import SimilarityScorer
from hazard_engine.similarity.text import normalize_text

logger = get_logger("pain_points")


def dominant_value(values: list[str]) -> tuple[str, float]:
    """Most frequent value after normalization and its share of the total.

    Ties go to the value seen first. The returned label keeps the original
    spelling of its first occurrence.
    """
    if not values:
        return "", 0.0
    counts: Counter[str] = Counter()
    first_label: dict[str, str] = {}
    for value in values:
        key = normalize_text(value)
        counts[key] += 1
        first_label.setdefault(key, value)
    # Counter.most_common keeps insertion order among equal counts
    key, count = counts.most_common(1)[0]
    return first_label[key], count / len(values)


def average_pairwise_similarity(reports: list[Report], scorer: SimilarityScorer) -> float | None:
    if len(reports) < 2:
        return None
    scores = [scorer.score_reports(a, b) for a, b in combinations(reports, 2)]
    return sum(scores) / len(scores)


class PainPointAggregator:
    def __init__(
        self,
        store: ReportStore,
        scorer: SimilarityScorer,
        min_cluster_size: int = 3,
        max_pairwise_members: int = 50,
    ) -> None:
        self._store = store
        self._scorer = scorer
        self._min_cluster_size = min_cluster_size
        self._max_pairwise_members = max_pairwise_members

    async def get_pain_points(self) -> list[PainPointCluster]:
        try:
            assignments = await self._store.fetch_all_cluster_ids()
        except StoreError as e:
            logger.warning("pain_point_scan_failed", error=str(e))
            return []

        counts = Counter(cluster_id for _, cluster_id in assignments)
        qualifying = sorted(cid for cid, n in counts.items() if n >= self._min_cluster_size)
        if not qualifying:
            return []

        pain_points = await asyncio.gather(*(self._summarize(cid) for cid in qualifying))
        result = [p for p in pain_points if p is not None]
        result.sort(key=lambda p: (-p.member_count, p.cluster.cluster_id))
        logger.info(
            "pain_points_computed",
            clusters=len(counts),
            pain_points=len(result),
            min_cluster_size=self._min_cluster_size,
        )
        return result

    async def _summarize(self, cluster_id: str) -> PainPointCluster | None:
        try:
            reports = await self._store.fetch_by_cluster_id(cluster_id)
        except StoreError as e:
            logger.warning("pain_point_cluster_fetch_failed", cluster_id=cluster_id, error=str(e))
            return None
        # Membership can shrink below the minimum only if the store changed under us
        if len(reports) < self._min_cluster_size:
            return None

        location, location_ratio = dominant_value([r.location for r in reports])
        category, category_ratio = dominant_value([r.non_compliance for r in reports])

        average = None
        if len(reports) <= self._max_pairwise_members:
            average = await asyncio.to_thread(average_pairwise_similarity, reports, self._scorer)

        timestamps = [r.created_at for r in reports]
        member_ids = frozenset(r.report_id for r in reports)
        return PainPointCluster(
            cluster=Cluster(cluster_id=cluster_id, member_ids=member_ids),
            reports=reports,
            member_count=len(reports),
            dominant_location=location,
            dominant_location_ratio=location_ratio,
            dominant_category=category,
            dominant_category_ratio=category_ratio,
            average_similarity=average,
            first_reported_at=min(timestamps),
            last_reported_at=max(timestamps),
        )
