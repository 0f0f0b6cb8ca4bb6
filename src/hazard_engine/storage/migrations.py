"""Idempotent database schema creation."""

from __future__ import annotations

import aiosqlite

REPORTS_TABLE = """
CREATE TABLE IF NOT EXISTS hazard_reports (
    report_id TEXT PRIMARY KEY,
    tracking_id TEXT NOT NULL,
    reporter_name TEXT NOT NULL,
    location TEXT NOT NULL,
    detail_location TEXT,
    location_description TEXT,
    non_compliance TEXT NOT NULL,
    sub_non_compliance TEXT NOT NULL,
    finding_description TEXT NOT NULL,
    latitude REAL,
    longitude REAL,
    created_at TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'PENDING_REVIEW',
    similarity_cluster_id TEXT
)
"""

REPORTS_CREATED_INDEX = """
CREATE INDEX IF NOT EXISTS idx_reports_created_at ON hazard_reports(created_at)
"""

REPORTS_CLUSTER_INDEX = """
CREATE INDEX IF NOT EXISTS idx_reports_cluster_id ON hazard_reports(similarity_cluster_id)
"""

CHUNKS_TABLE = """
CREATE TABLE IF NOT EXISTS knowledge_base_chunks (
    chunk_id TEXT PRIMARY KEY,
    knowledge_base_id TEXT NOT NULL,
    chunk_text TEXT NOT NULL,
    chunk_index INTEGER NOT NULL,
    embedding TEXT
)
"""

CHUNKS_KB_INDEX = """
CREATE INDEX IF NOT EXISTS idx_chunks_kb_id ON knowledge_base_chunks(knowledge_base_id, chunk_index)
"""

CONFIG_TABLE = """
CREATE TABLE IF NOT EXISTS system_configurations (
    id TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


async def initialize_report_db(db_path: str) -> None:
    async with aiosqlite.connect(db_path) as db:
        await db.execute(REPORTS_TABLE)
        await db.execute(REPORTS_CREATED_INDEX)
        await db.execute(REPORTS_CLUSTER_INDEX)
        await db.commit()


async def initialize_chunk_db(db_path: str) -> None:
    async with aiosqlite.connect(db_path) as db:
        await db.execute(CHUNKS_TABLE)
        await db.execute(CHUNKS_KB_INDEX)
        await db.commit()


async def initialize_config_db(db_path: str) -> None:
    async with aiosqlite.connect(db_path) as db:
        await db.execute(CONFIG_TABLE)
        await db.commit()
