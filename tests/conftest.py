"""Shared test fixtures."""

from __future__ import annotations

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import uuid4

import pytest

from hazard_engine.config.provider import SimilarityConfigProvider
from hazard_engine.config.settings import Settings
from hazard_engine.models.domain import HazardSubmission, Report
from hazard_engine.services.similarity_engine import SimilarityEngine
from hazard_engine.storage.sqlite_chunk_store import SQLiteChunkStore
from hazard_engine.storage.sqlite_config_store import SQLiteConfigStore
from hazard_engine.storage.sqlite_report_store import SQLiteReportStore

# Two points in the same pit, roughly 40 m apart
PIT_COORDS = (-2.5401, 115.5012)
PIT_COORDS_NEARBY = (-2.5403, 115.5015)


@pytest.fixture
def settings():
    """Test settings with a temp database."""
    tmp = tempfile.mkdtemp()
    return Settings(sqlite_db_path=str(Path(tmp) / "test_hazard.db"))


@pytest.fixture
def make_report():
    """Factory for reports; every field can be overridden."""
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> Report:
        n = next(counter)
        data = dict(
            report_id=str(uuid4()),
            tracking_id=f"HZ-TEST-{n:04d}",
            reporter_name=f"Reporter {n}",
            location="Pit Utara",
            detail_location="Ramp 3",
            non_compliance="APD",
            sub_non_compliance="Cara Penggunaan APD",
            finding_description="pekerja tidak memakai helm di area ramp",
            latitude=PIT_COORDS[0],
            longitude=PIT_COORDS[1],
            created_at=datetime.now(timezone.utc) - timedelta(hours=n),
        )
        data.update(overrides)
        return Report(**data)

    return _make


@pytest.fixture
def sample_submission():
    return HazardSubmission(
        location="Pit Utara",
        detail_location="Ramp 3",
        non_compliance="APD",
        sub_non_compliance="Cara Penggunaan APD",
        finding_description="pekerja tidak memakai helm di area ramp",
        latitude=PIT_COORDS_NEARBY[0],
        longitude=PIT_COORDS_NEARBY[1],
    )


@pytest.fixture
async def report_store(settings):
    store = SQLiteReportStore(settings.sqlite_db_path)
    await store.initialize()
    return store


@pytest.fixture
async def chunk_store(settings):
    store = SQLiteChunkStore(settings.sqlite_db_path)
    await store.initialize()
    return store


@pytest.fixture
async def config_store(settings):
    store = SQLiteConfigStore(settings.sqlite_db_path)
    await store.initialize()
    return store


@pytest.fixture
async def engine(settings, report_store, chunk_store, config_store):
    provider = SimilarityConfigProvider(config_store, settings)
    return SimilarityEngine(
        report_store=report_store,
        chunk_store=chunk_store,
        config_provider=provider,
        settings=settings,
    )
