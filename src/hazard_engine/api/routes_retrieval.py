"""Knowledge-base context retrieval and configuration endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hazard_engine.api.dependencies import get_engine
from hazard_engine.models.domain import SimilarityConfig
from hazard_engine.models.schemas import (
    ConfigResponse,
    KnowledgeBaseContext,
    RetrievalRequest,
    RetrievalResponse,
    RetrievedChunkSchema,
)
from hazard_engine.retrieval.context_retriever import format_context
from hazard_engine.services.similarity_engine import SimilarityEngine

router = APIRouter()


def _config_response(config: SimilarityConfig) -> ConfigResponse:
    return ConfigResponse(
        time_window_days=config.time_window_days,
        location_radius_km=config.location_radius_km,
        threshold=config.threshold,
        top_n=config.top_n,
        weights=config.weights.as_dict(),
    )


@router.post("/retrieval/context", response_model=RetrievalResponse)
async def retrieve_context(
    request: RetrievalRequest,
    engine: SimilarityEngine = Depends(get_engine),
) -> RetrievalResponse:
    by_kb = await engine.retrieve_all_contexts(
        request.query_vector, request.knowledge_base_ids, request.top_k
    )
    return RetrievalResponse(
        results=[
            KnowledgeBaseContext(
                knowledge_base_id=kb_id,
                chunks=[RetrievedChunkSchema.from_domain(r) for r in results],
                context=format_context(results),
            )
            for kb_id, results in by_kb.items()
        ]
    )


@router.get("/config", response_model=ConfigResponse)
async def get_config(engine: SimilarityEngine = Depends(get_engine)) -> ConfigResponse:
    return _config_response(await engine.current_config())


@router.post("/config/refresh", response_model=ConfigResponse)
async def refresh_config(engine: SimilarityEngine = Depends(get_engine)) -> ConfigResponse:
    return _config_response(await engine.refresh_config())
