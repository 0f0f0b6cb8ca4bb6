"""Protocol for the hazard report store."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from hazard_engine.models.domain import Report


class ReportStore(Protocol):
    async def fetch_candidates(
        self,
        time_window_days: int,
        status_filter: Sequence[str] | None = None,
        require_coordinates: bool = False,
        exclude_ids: Sequence[str] = (),
    ) -> list[Report]: ...

    async def update_cluster_id(self, report_ids: Sequence[str], cluster_id: str) -> None: ...

    async def assign_cluster(self, report_ids: Sequence[str], new_cluster_id: str) -> str:
        """Atomically reuse the largest existing cluster among report_ids, or create one.

        Returns the cluster id the unclustered reports were assigned to.
        """
        ...

    async def fetch_by_cluster_id(self, cluster_id: str) -> list[Report]: ...

    async def fetch_all_cluster_ids(self) -> list[tuple[str, str]]:
        """Returns (report_id, cluster_id) for every clustered report."""
        ...
