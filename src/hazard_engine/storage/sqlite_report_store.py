"""SQLite-backed hazard report store."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import aiosqlite

from hazard_engine.exceptions import StoreError
from hazard_engine.models.domain import Report, ReportStatus
from hazard_engine.observability.logger import get_logger
from hazard_engine.storage.migrations import initialize_report_db

logger = get_logger("report_store")


def _to_db_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _placeholders(values: Sequence) -> str:
    return ",".join("?" for _ in values)


class SQLiteReportStore:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        await initialize_report_db(self._db_path)

    @asynccontextmanager
    async def _connect(self, **kwargs) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(self._db_path, **kwargs) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as e:
            raise StoreError(f"Report store error: {e}") from e

    async def save_report(self, report: Report) -> str:
        async with self._connect() as db:
            await db.execute(
                "INSERT OR REPLACE INTO hazard_reports "
                "(report_id, tracking_id, reporter_name, location, detail_location, "
                "location_description, non_compliance, sub_non_compliance, finding_description, "
                "latitude, longitude, created_at, status, similarity_cluster_id) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    report.report_id,
                    report.tracking_id,
                    report.reporter_name,
                    report.location,
                    report.detail_location,
                    report.location_description,
                    report.non_compliance,
                    report.sub_non_compliance,
                    report.finding_description,
                    report.latitude,
                    report.longitude,
                    _to_db_time(report.created_at),
                    ReportStatus(report.status).value,
                    report.cluster_id,
                ),
            )
            await db.commit()
        return report.report_id

    async def get_report(self, report_id: str) -> Report | None:
        async with self._connect() as db:
            async with db.execute(
                "SELECT * FROM hazard_reports WHERE report_id = ?", (report_id,)
            ) as cursor:
                row = await cursor.fetchone()
                return self._row_to_report(row) if row else None

    async def fetch_candidates(
        self,
        time_window_days: int,
        status_filter: Sequence[str] | None = None,
        require_coordinates: bool = False,
        exclude_ids: Sequence[str] = (),
    ) -> list[Report]:
        cutoff = datetime.now(timezone.utc) - timedelta(days=time_window_days)
        clauses = ["created_at >= ?"]
        params: list = [_to_db_time(cutoff)]
        if status_filter:
            clauses.append(f"status IN ({_placeholders(status_filter)})")
            params.extend(ReportStatus(s).value for s in status_filter)
        if require_coordinates:
            clauses.append("latitude IS NOT NULL AND longitude IS NOT NULL")
        if exclude_ids:
            clauses.append(f"report_id NOT IN ({_placeholders(exclude_ids)})")
            params.extend(exclude_ids)

        query = (
            f"SELECT * FROM hazard_reports WHERE {' AND '.join(clauses)} "
            "ORDER BY created_at DESC"
        )
        async with self._connect() as db:
            async with db.execute(query, params) as cursor:
                rows = await cursor.fetchall()
                return [self._row_to_report(row) for row in rows]

    async def update_cluster_id(self, report_ids: Sequence[str], cluster_id: str) -> None:
        ids = list(dict.fromkeys(report_ids))
        if not ids:
            return
        async with self._connect() as db:
            cursor = await db.execute(
                f"UPDATE hazard_reports SET similarity_cluster_id = ? "
                f"WHERE report_id IN ({_placeholders(ids)})",
                [cluster_id, *ids],
            )
            if cursor.rowcount != len(ids):
                await db.rollback()
                raise StoreError(
                    f"Cluster update matched {cursor.rowcount} of {len(ids)} reports"
                )
            await db.commit()
        logger.info("cluster_id_updated", cluster_id=cluster_id, reports=len(ids))

    async def assign_cluster(self, report_ids: Sequence[str], new_cluster_id: str) -> str:
        ids = list(dict.fromkeys(report_ids))
        if not ids:
            raise StoreError("No report ids to assign")

        async with self._connect(isolation_level=None) as db:
            # Write lock up front so concurrent assignments serialise on the same rows
            await db.execute("BEGIN IMMEDIATE")
            try:
                async with db.execute(
                    f"SELECT report_id, similarity_cluster_id FROM hazard_reports "
                    f"WHERE report_id IN ({_placeholders(ids)})",
                    ids,
                ) as cursor:
                    rows = await cursor.fetchall()
                if len(rows) != len(ids):
                    raise StoreError(f"Found {len(rows)} of {len(ids)} reports to cluster")

                existing = sorted({row[1] for row in rows if row[1]})
                if existing:
                    async with db.execute(
                        f"SELECT similarity_cluster_id, COUNT(*) FROM hazard_reports "
                        f"WHERE similarity_cluster_id IN ({_placeholders(existing)}) "
                        f"GROUP BY similarity_cluster_id",
                        existing,
                    ) as cursor:
                        sizes = {row[0]: row[1] for row in await cursor.fetchall()}
                    target = min(existing, key=lambda cid: (-sizes.get(cid, 0), cid))
                else:
                    target = new_cluster_id

                unclustered = [row[0] for row in rows if not row[1]]
                if unclustered:
                    await db.execute(
                        f"UPDATE hazard_reports SET similarity_cluster_id = ? "
                        f"WHERE report_id IN ({_placeholders(unclustered)})",
                        [target, *unclustered],
                    )
                await db.execute("COMMIT")
            except BaseException:
                await db.execute("ROLLBACK")
                raise

        logger.info(
            "cluster_assigned",
            cluster_id=target,
            reused=bool(existing),
            added=len(unclustered),
            other_clusters=[cid for cid in existing if cid != target],
        )
        return target

    async def fetch_by_cluster_id(self, cluster_id: str) -> list[Report]:
        async with self._connect() as db:
            async with db.execute(
                "SELECT * FROM hazard_reports WHERE similarity_cluster_id = ? "
                "ORDER BY created_at DESC",
                (cluster_id,),
            ) as cursor:
                rows = await cursor.fetchall()
                return [self._row_to_report(row) for row in rows]

    async def fetch_all_cluster_ids(self) -> list[tuple[str, str]]:
        async with self._connect() as db:
            async with db.execute(
                "SELECT report_id, similarity_cluster_id FROM hazard_reports "
                "WHERE similarity_cluster_id IS NOT NULL"
            ) as cursor:
                rows = await cursor.fetchall()
                return [(row[0], row[1]) for row in rows]

    async def count_reports(self) -> int:
        async with self._connect() as db:
            async with db.execute("SELECT COUNT(*) FROM hazard_reports") as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    @staticmethod
    def _row_to_report(row: aiosqlite.Row) -> Report:
        return Report(
            report_id=row["report_id"],
            tracking_id=row["tracking_id"],
            reporter_name=row["reporter_name"],
            location=row["location"],
            detail_location=row["detail_location"],
            location_description=row["location_description"],
            non_compliance=row["non_compliance"],
            sub_non_compliance=row["sub_non_compliance"],
            finding_description=row["finding_description"],
            latitude=row["latitude"],
            longitude=row["longitude"],
            created_at=datetime.fromisoformat(row["created_at"]).astimezone(timezone.utc),
            status=ReportStatus(row["status"]),
            cluster_id=row["similarity_cluster_id"],
        )
