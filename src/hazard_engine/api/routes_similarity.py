"""Similarity check and report endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException

from hazard_engine.api.dependencies import get_engine, get_report_store
from hazard_engine.exceptions import HazardEngineError
from hazard_engine.models.domain import Report
from hazard_engine.models.schemas import (
    ReportCreateRequest,
    ReportCreateResponse,
    ReportSchema,
    ScoredCandidateSchema,
    SimilarityCheckResponse,
    SimilarReportsResponse,
    SubmissionRequest,
)
from hazard_engine.services.similarity_engine import SimilarityEngine
from hazard_engine.storage.sqlite_report_store import SQLiteReportStore

router = APIRouter()


@router.post("/similarity/check", response_model=SimilarityCheckResponse)
async def check_similarity(
    request: SubmissionRequest,
    engine: SimilarityEngine = Depends(get_engine),
) -> SimilarityCheckResponse:
    candidates = await engine.check_similar_before_submit(request.to_domain())
    return SimilarityCheckResponse(
        has_similar=bool(candidates),
        candidates=[ScoredCandidateSchema.from_domain(c) for c in candidates],
    )


@router.post("/reports", response_model=ReportCreateResponse, status_code=201)
async def create_report(
    request: ReportCreateRequest,
    engine: SimilarityEngine = Depends(get_engine),
    store: SQLiteReportStore = Depends(get_report_store),
) -> ReportCreateResponse:
    report = Report(
        report_id=request.report_id or str(uuid4()),
        tracking_id=request.tracking_id,
        reporter_name=request.reporter_name,
        location=request.location,
        detail_location=request.detail_location,
        location_description=request.location_description,
        non_compliance=request.non_compliance,
        sub_non_compliance=request.sub_non_compliance,
        finding_description=request.finding_description,
        latitude=request.latitude,
        longitude=request.longitude,
        created_at=request.created_at or datetime.now(timezone.utc),
        status=request.status,
    )
    try:
        await store.save_report(report)
        cluster_id = await engine.cluster_new_report(report)
    except HazardEngineError as e:
        raise HTTPException(status_code=500, detail=str(e))

    saved = await store.get_report(report.report_id)
    return ReportCreateResponse(
        report=ReportSchema.from_domain(saved or report),
        cluster_id=cluster_id,
    )


@router.get("/reports/{report_id}/similar", response_model=SimilarReportsResponse)
async def similar_reports(
    report_id: str,
    engine: SimilarityEngine = Depends(get_engine),
    store: SQLiteReportStore = Depends(get_report_store),
) -> SimilarReportsResponse:
    report = await store.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"Report not found: {report_id}")
    matches = await engine.find_similar_reports(report)
    return SimilarReportsResponse(
        report_id=report_id,
        similar_reports=[ReportSchema.from_domain(r) for r in matches],
    )
