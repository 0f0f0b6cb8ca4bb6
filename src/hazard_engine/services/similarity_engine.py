"""Engine facade: similarity checks, clustering, pain points and context retrieval."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

from hazard_engine.clustering.cluster_manager import ClusterManager
from hazard_engine.clustering.pain_points import PainPointAggregator
from hazard_engine.config.provider import SimilarityConfigProvider, post_save_weights
from hazard_engine.config.settings import Settings
from hazard_engine.models.domain import (
    Cluster,
    HazardSubmission,
    PainPointCluster,
    Report,
    ReportStatus,
    RetrievalResult,
    ScoredCandidate,
    SimilarityConfig,
)
from hazard_engine.observability.logger import get_logger
from hazard_engine.observability.metrics import log_latency, log_similarity_metrics
from hazard_engine.protocols.chunk_store import ChunkStore
from hazard_engine.protocols.report_store import ReportStore
from hazard_engine.retrieval.context_retriever import ContextRetriever
from hazard_engine.scoring.ranking import rank_candidates
from hazard_engine.scoring.similarity_scorer import SimilarityScorer

logger = get_logger("similarity_engine")


async def score_concurrently(
    scorer: SimilarityScorer,
    submission: HazardSubmission,
    candidates: Sequence[Report],
    batch_size: int = 64,
) -> list[ScoredCandidate]:
    """Score candidates in batches on worker threads and gather the results."""
    if not candidates:
        return []
    batch_size = max(batch_size, 1)

    def _score_batch(batch: Sequence[Report]) -> list[ScoredCandidate]:
        return [scorer.score(submission, c) for c in batch]

    batches = [candidates[i : i + batch_size] for i in range(0, len(candidates), batch_size)]
    scored = await asyncio.gather(*(asyncio.to_thread(_score_batch, b) for b in batches))
    return [c for batch in scored for c in batch]


class SimilarityEngine:
    def __init__(
        self,
        report_store: ReportStore,
        chunk_store: ChunkStore,
        config_provider: SimilarityConfigProvider,
        settings: Settings,
    ) -> None:
        self._reports = report_store
        self._config = config_provider
        self._settings = settings
        self._clusters = ClusterManager(report_store)
        self._retriever = ContextRetriever(chunk_store)

    async def check_similar_before_submit(
        self, submission: HazardSubmission
    ) -> list[ScoredCandidate]:
        """Pre-save duplicate check. Never raises; returns [] when anything fails."""
        start = time.monotonic()
        try:
            config = await self._config.get()
            candidates = await self._reports.fetch_candidates(
                time_window_days=config.time_window_days,
                require_coordinates=submission.coordinates is not None,
            )
            scorer = SimilarityScorer(config.weights, config.location_radius_km)
            scored = await score_concurrently(
                scorer, submission, candidates, self._settings.scoring_batch_size
            )
            ranked = rank_candidates(scored, config.threshold, config.top_n)
        except Exception as e:
            logger.warning("similarity_check_failed", error=str(e))
            return []

        log_similarity_metrics(
            check="pre_submit",
            candidates=len(candidates),
            matches=len(ranked),
            top_scores=[c.score for c in ranked],
            threshold=config.threshold,
        )
        log_latency("check_similar_before_submit", (time.monotonic() - start) * 1000)
        return ranked

    async def find_similar_reports(self, report: Report) -> list[Report]:
        """Post-save check against recent, not-yet-reviewed reports. Never raises."""
        try:
            candidates = await self._reports.fetch_candidates(
                time_window_days=self._settings.post_save_time_window_days,
                status_filter=[ReportStatus(self._settings.post_save_status_filter).value],
                exclude_ids=[report.report_id],
            )
            scorer = SimilarityScorer(post_save_weights(self._settings))
            scored = await score_concurrently(
                scorer,
                HazardSubmission.from_report(report),
                candidates,
                self._settings.scoring_batch_size,
            )
            threshold = self._settings.post_save_threshold
            matches = [
                c for c in rank_candidates(scored, threshold) if c.score > threshold
            ]
        except Exception as e:
            logger.warning("find_similar_reports_failed", report_id=report.report_id, error=str(e))
            return []

        log_similarity_metrics(
            check="post_save",
            candidates=len(candidates),
            matches=len(matches),
            top_scores=[c.score for c in matches],
            threshold=threshold,
        )
        return [c.report for c in matches]

    async def cluster_new_report(self, report: Report) -> str | None:
        """Post-save flow: attach a saved report to a cluster with its matches.

        Returns None when nothing matched. Cluster write failures propagate.
        """
        matches = await self.find_similar_reports(report)
        if not matches:
            return None
        return await self._clusters.assign_to_cluster(report, matches)

    async def create_cluster(self, reports: Sequence[Report]) -> str:
        return await self._clusters.create_cluster(reports)

    async def get_cluster_reports(self, cluster_id: str) -> list[Report]:
        return await self._clusters.get_cluster_reports(cluster_id)

    async def get_cluster(self, cluster_id: str) -> tuple[Cluster, list[Report]]:
        return await self._clusters.get_cluster(cluster_id)

    async def get_pain_points(self) -> list[PainPointCluster]:
        # Pairwise averages use the weights that decide cluster membership
        aggregator = PainPointAggregator(
            self._reports,
            SimilarityScorer(post_save_weights(self._settings)),
            min_cluster_size=self._settings.pain_point_min_cluster_size,
            max_pairwise_members=self._settings.pain_point_max_pairwise_members,
        )
        return await aggregator.get_pain_points()

    async def retrieve_context(
        self,
        query_vector: Sequence[float],
        knowledge_base_id: str,
        top_k: int | None = None,
    ) -> list[RetrievalResult]:
        k = self._settings.retrieval_top_k if top_k is None else top_k
        return await self._retriever.retrieve_context(query_vector, knowledge_base_id, k)

    async def retrieve_all_contexts(
        self,
        query_vector: Sequence[float],
        knowledge_base_ids: Sequence[str],
        top_k: int | None = None,
    ) -> dict[str, list[RetrievalResult]]:
        k = self._settings.retrieval_top_k if top_k is None else top_k
        return await self._retriever.retrieve_all(query_vector, knowledge_base_ids, k)

    async def current_config(self) -> SimilarityConfig:
        return await self._config.get()

    async def refresh_config(self) -> SimilarityConfig:
        return await self._config.refresh()
