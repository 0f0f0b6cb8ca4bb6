"""Cluster and pain-point endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from hazard_engine.api.dependencies import get_engine, get_report_store
from hazard_engine.exceptions import ClusterNotFoundError, HazardEngineError
from hazard_engine.models.schemas import (
    ClusterCreateRequest,
    ClusterCreateResponse,
    ClusterResponse,
    PainPointSchema,
    PainPointsResponse,
    ReportSchema,
)
from hazard_engine.services.similarity_engine import SimilarityEngine
from hazard_engine.storage.sqlite_report_store import SQLiteReportStore

router = APIRouter()


@router.post("/clusters", response_model=ClusterCreateResponse, status_code=201)
async def create_cluster(
    request: ClusterCreateRequest,
    engine: SimilarityEngine = Depends(get_engine),
    store: SQLiteReportStore = Depends(get_report_store),
) -> ClusterCreateResponse:
    report_ids = list(dict.fromkeys(request.report_ids))
    reports = []
    for report_id in report_ids:
        report = await store.get_report(report_id)
        if report is None:
            raise HTTPException(status_code=404, detail=f"Report not found: {report_id}")
        reports.append(report)

    try:
        cluster_id = await engine.create_cluster(reports)
    except HazardEngineError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return ClusterCreateResponse(cluster_id=cluster_id, report_count=len(reports))


@router.get("/clusters/{cluster_id}", response_model=ClusterResponse)
async def get_cluster(
    cluster_id: str,
    engine: SimilarityEngine = Depends(get_engine),
) -> ClusterResponse:
    try:
        cluster, reports = await engine.get_cluster(cluster_id)
    except ClusterNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ClusterResponse(
        cluster_id=cluster.cluster_id,
        report_count=cluster.size,
        reports=[ReportSchema.from_domain(r) for r in reports],
    )


@router.get("/pain-points", response_model=PainPointsResponse)
async def pain_points(
    engine: SimilarityEngine = Depends(get_engine),
) -> PainPointsResponse:
    results = await engine.get_pain_points()
    return PainPointsResponse(pain_points=[PainPointSchema.from_domain(p) for p in results])
