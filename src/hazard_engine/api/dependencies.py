"""FastAPI dependency injection helpers."""

from __future__ import annotations

from fastapi import Request

from hazard_engine.services.similarity_engine import SimilarityEngine
from hazard_engine.storage.sqlite_chunk_store import SQLiteChunkStore
from hazard_engine.storage.sqlite_report_store import SQLiteReportStore


def get_engine(request: Request) -> SimilarityEngine:
    return request.app.state.engine


def get_report_store(request: Request) -> SQLiteReportStore:
    return request.app.state.report_store


def get_chunk_store(request: Request) -> SQLiteChunkStore:
    return request.app.state.chunk_store
