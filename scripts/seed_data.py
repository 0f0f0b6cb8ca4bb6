"""Seed the system with sample hazard reports and knowledge-base chunks for development."""

from __future__ import annotations

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import uuid4

import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hazard_engine.config.provider import SimilarityConfigProvider
from hazard_engine.config.settings import Settings
from hazard_engine.models.domain import KnowledgeChunk, Report
from hazard_engine.services.similarity_engine import SimilarityEngine
from hazard_engine.storage.sqlite_chunk_store import SQLiteChunkStore
from hazard_engine.storage.sqlite_config_store import SQLiteConfigStore
from hazard_engine.storage.sqlite_report_store import SQLiteReportStore

EMBEDDING_DIMENSIONS = 384

SAMPLE_REPORTS = [
    {
        "location": "Pit Utara",
        "detail_location": "Ramp 3",
        "non_compliance": "APD",
        "sub_non_compliance": "Cara Penggunaan APD",
        "finding_description": "Pekerja tidak memakai helm di area ramp",
        "latitude": -2.5401,
        "longitude": 115.5012,
    },
    {
        "location": "Pit Utara",
        "detail_location": "Ramp 3",
        "non_compliance": "APD",
        "sub_non_compliance": "Cara Penggunaan APD",
        "finding_description": "Ketidaksesuaian: APD\nSub Ketidaksesuaian: Cara Penggunaan APD\n"
        "Deskripsi Temuan: pekerja tidak memakai helm di ramp",
        "latitude": -2.5403,
        "longitude": 115.5015,
    },
    {
        "location": "pit utara",
        "detail_location": "ramp 3",
        "non_compliance": "APD",
        "sub_non_compliance": "Cara Penggunaan APD",
        "finding_description": "operator tidak memakai helm di area ramp",
        "latitude": -2.5399,
        "longitude": 115.5010,
    },
    {
        "location": "Workshop",
        "detail_location": "Bay 2",
        "non_compliance": "Housekeeping",
        "sub_non_compliance": "Tumpahan Oli",
        "finding_description": "Tumpahan oli di lantai workshop tidak dibersihkan",
        "latitude": -2.6100,
        "longitude": 115.4200,
    },
]

KNOWLEDGE_BASES = {
    "safety_golden_rules": [
        "Setiap pekerja wajib menggunakan APD lengkap sesuai area kerja.",
        "Dilarang bekerja di ketinggian tanpa full body harness.",
        "Kendaraan wajib menjaga jarak aman di area tambang.",
    ],
    "pspp": [
        "Tumpahan oli harus segera dibersihkan dan dilaporkan.",
        "Area kerja wajib bebas dari material yang menghalangi jalan.",
    ],
}


async def main() -> None:
    settings = Settings()
    Path(settings.sqlite_db_path).parent.mkdir(parents=True, exist_ok=True)

    report_store = SQLiteReportStore(settings.sqlite_db_path)
    await report_store.initialize()
    chunk_store = SQLiteChunkStore(settings.sqlite_db_path)
    await chunk_store.initialize()
    config_store = SQLiteConfigStore(settings.sqlite_db_path)
    await config_store.initialize()

    engine = SimilarityEngine(
        report_store=report_store,
        chunk_store=chunk_store,
        config_provider=SimilarityConfigProvider(config_store, settings),
        settings=settings,
    )

    now = datetime.now(timezone.utc)
    for i, data in enumerate(SAMPLE_REPORTS):
        report = Report(
            report_id=str(uuid4()),
            tracking_id=f"HZ-{now:%Y%m%d}-{i + 1:04d}",
            reporter_name=f"Reporter {i + 1}",
            created_at=now - timedelta(days=len(SAMPLE_REPORTS) - i),
            **data,
        )
        await report_store.save_report(report)
        cluster_id = await engine.cluster_new_report(report)
        if cluster_id:
            print(f"{report.tracking_id} joined cluster {cluster_id}")
    print(f"Seeded {len(SAMPLE_REPORTS)} reports")

    # Placeholder vectors; real embeddings come from the external embedding provider
    rng = np.random.default_rng(42)
    for kb_id, texts in KNOWLEDGE_BASES.items():
        chunks = [
            KnowledgeChunk(
                chunk_id=str(uuid4()),
                knowledge_base_id=kb_id,
                text=text,
                index=i,
                embedding=tuple(float(x) for x in rng.normal(size=EMBEDDING_DIMENSIONS)),
            )
            for i, text in enumerate(texts)
        ]
        await chunk_store.save_chunks(chunks)
        print(f"Seeded {len(chunks)} chunks for {kb_id}")

    await config_store.set_config("similarity_threshold", settings.similarity_threshold)
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())
