"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hazard_engine.api.dependencies import get_chunk_store, get_report_store
from hazard_engine.models.schemas import HealthResponse
from hazard_engine.storage.sqlite_chunk_store import SQLiteChunkStore
from hazard_engine.storage.sqlite_report_store import SQLiteReportStore

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    report_store: SQLiteReportStore = Depends(get_report_store),
    chunk_store: SQLiteChunkStore = Depends(get_chunk_store),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        report_count=await report_store.count_reports(),
        chunk_count=await chunk_store.count_chunks(),
        knowledge_bases=await chunk_store.list_knowledge_bases(),
    )
