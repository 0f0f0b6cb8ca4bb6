"""Cluster identity for groups of mutually similar reports."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from uuid import uuid4

from hazard_engine.exceptions import ClusterError, ClusterNotFoundError, StoreError
from hazard_engine.models.domain import Cluster, Report
from hazard_engine.observability.logger import get_logger
from hazard_engine.protocols.report_store import ReportStore

logger = get_logger("cluster_manager")


class ClusterManager:
    """Creates clusters and attaches new reports to them.

    Clusters are append-only: reports are added, never removed, and two
    existing clusters are never merged. When a new report matches reports in
    several clusters, it joins the largest one (ties broken by smallest id);
    matches already in another cluster stay where they are.
    """

    def __init__(self, store: ReportStore) -> None:
        self._store = store
        self._lock = asyncio.Lock()

    async def create_cluster(self, reports: Sequence[Report]) -> str:
        if not reports:
            raise ClusterError("Cannot create a cluster with no reports")
        cluster_id = str(uuid4())
        report_ids = [r.report_id for r in reports]
        try:
            await self._store.update_cluster_id(report_ids, cluster_id)
        except StoreError as e:
            logger.error("cluster_create_failed", cluster_id=cluster_id, error=str(e))
            raise ClusterError(f"Failed to create cluster {cluster_id}: {e}") from e
        logger.info("cluster_created", cluster_id=cluster_id, reports=len(set(report_ids)))
        return cluster_id

    async def assign_to_cluster(self, new_report: Report, matches: Sequence[Report]) -> str:
        """Find-or-create the cluster for new_report and its matches, atomically."""
        report_ids = [m.report_id for m in matches] + [new_report.report_id]
        async with self._lock:
            try:
                cluster_id = await self._store.assign_cluster(report_ids, str(uuid4()))
            except StoreError as e:
                logger.error("cluster_assign_failed", report_id=new_report.report_id, error=str(e))
                raise ClusterError(f"Failed to assign report {new_report.report_id}: {e}") from e
        logger.info(
            "report_clustered",
            report_id=new_report.report_id,
            cluster_id=cluster_id,
            matches=len(matches),
        )
        return cluster_id

    async def get_cluster_reports(self, cluster_id: str) -> list[Report]:
        return await self._store.fetch_by_cluster_id(cluster_id)

    async def get_cluster(self, cluster_id: str) -> tuple[Cluster, list[Report]]:
        """Cluster and its members, newest first. Raises ClusterNotFoundError."""
        reports = await self.get_cluster_reports(cluster_id)
        if not reports:
            raise ClusterNotFoundError(f"Cluster not found: {cluster_id}")
        cluster = Cluster(cluster_id=cluster_id, member_ids=frozenset(r.report_id for r in reports))
        return cluster, reports
