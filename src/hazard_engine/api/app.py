"""FastAPI application factory with lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from hazard_engine.api.middleware import RequestTimingMiddleware
from hazard_engine.api.routes_clusters import router as clusters_router
from hazard_engine.api.routes_health import router as health_router
from hazard_engine.api.routes_retrieval import router as retrieval_router
from hazard_engine.api.routes_similarity import router as similarity_router
from hazard_engine.config.provider import SimilarityConfigProvider
from hazard_engine.config.settings import Settings
from hazard_engine.observability.logger import get_logger, setup_logging
from hazard_engine.services.similarity_engine import SimilarityEngine
from hazard_engine.storage.sqlite_chunk_store import SQLiteChunkStore
from hazard_engine.storage.sqlite_config_store import SQLiteConfigStore
from hazard_engine.storage.sqlite_report_store import SQLiteReportStore

logger = get_logger("app")


def create_app(settings: Settings | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_settings = settings or Settings()
        setup_logging(app_settings.log_level)

        Path(app_settings.sqlite_db_path).parent.mkdir(parents=True, exist_ok=True)

        # Storage (one SQLite file, three tables)
        report_store = SQLiteReportStore(app_settings.sqlite_db_path)
        await report_store.initialize()
        chunk_store = SQLiteChunkStore(app_settings.sqlite_db_path)
        await chunk_store.initialize()
        config_store = SQLiteConfigStore(app_settings.sqlite_db_path)
        await config_store.initialize()

        # Runtime configuration
        config_provider = SimilarityConfigProvider(config_store, app_settings)

        engine = SimilarityEngine(
            report_store=report_store,
            chunk_store=chunk_store,
            config_provider=config_provider,
            settings=app_settings,
        )

        app.state.engine = engine
        app.state.report_store = report_store
        app.state.chunk_store = chunk_store

        logger.info(
            "startup_complete",
            reports=await report_store.count_reports(),
            chunks=await chunk_store.count_chunks(),
        )

        yield

        logger.info("shutdown_complete")

    app = FastAPI(
        title="Hazard Similarity Engine",
        version="1.0.0",
        description="Duplicate detection, clustering and context retrieval for hazard reports",
        lifespan=lifespan,
    )
    app.add_middleware(RequestTimingMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(similarity_router, tags=["similarity"])
    app.include_router(clusters_router, tags=["clusters"])
    app.include_router(retrieval_router, tags=["retrieval"])
    return app
