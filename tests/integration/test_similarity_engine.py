"""End-to-end engine tests over a real SQLite database."""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from hazard_engine.config.provider import SimilarityConfigProvider
from hazard_engine.exceptions import StoreError
from hazard_engine.models.domain import KnowledgeChunk, Report, ReportStatus
from hazard_engine.services.similarity_engine import SimilarityEngine


class BrokenReportStore:
    async def fetch_candidates(self, *args, **kwargs):
        raise StoreError("database is locked")


async def test_pre_submit_finds_nearby_duplicate(
    engine, report_store, make_report, sample_submission
):
    duplicate = make_report()
    unrelated = make_report(
        location="Workshop",
        detail_location="Bay 2",
        non_compliance="Housekeeping",
        sub_non_compliance="Tumpahan Oli",
        finding_description="oli tercecer di lantai workshop",
        latitude=-2.6,
        longitude=115.7,
    )
    for r in (duplicate, unrelated):
        await report_store.save_report(r)

    results = await engine.check_similar_before_submit(sample_submission)

    assert [c.report.report_id for c in results] == [duplicate.report_id]
    match = results[0]
    assert match.score == pytest.approx(1.0)
    assert match.distance_km is not None and match.distance_km < 0.1
    assert match.breakdown.location_radius == pytest.approx(0.25)


async def test_pre_submit_respects_time_window(
    engine, report_store, make_report, sample_submission
):
    old = make_report(created_at=datetime.now(timezone.utc) - timedelta(days=10))
    await report_store.save_report(old)
    assert await engine.check_similar_before_submit(sample_submission) == []


async def test_pre_submit_with_coordinates_skips_reports_without(
    engine, report_store, make_report, sample_submission
):
    await report_store.save_report(make_report(latitude=None, longitude=None))
    assert await engine.check_similar_before_submit(sample_submission) == []


async def test_pre_submit_without_coordinates_uses_text_factors(
    engine, report_store, make_report, sample_submission
):
    stored = make_report(latitude=None, longitude=None)
    await report_store.save_report(stored)

    submission = replace(sample_submission, latitude=None, longitude=None)
    [match] = await engine.check_similar_before_submit(submission)
    assert match.report.report_id == stored.report_id
    assert match.distance_km is None
    assert match.breakdown.location_radius == 0.0
    assert match.score == pytest.approx(0.75)


async def test_pre_submit_uses_stored_configuration(
    engine, report_store, config_store, make_report, sample_submission
):
    for _ in range(4):
        await report_store.save_report(make_report())
    await config_store.set_config("similarity_top_n", 2)
    await engine.refresh_config()

    results = await engine.check_similar_before_submit(sample_submission)
    assert len(results) == 2
    assert (await engine.current_config()).top_n == 2


async def test_pre_submit_degrades_to_empty(settings, chunk_store, sample_submission):
    engine = SimilarityEngine(
        report_store=BrokenReportStore(),
        chunk_store=chunk_store,
        config_provider=SimilarityConfigProvider(None, settings),
        settings=settings,
    )
    assert await engine.check_similar_before_submit(sample_submission) == []
    report = Report(
        report_id="r-1",
        tracking_id="HZ-0001",
        reporter_name="Budi",
        location="Pit Utara",
        non_compliance="APD",
        sub_non_compliance="Cara Penggunaan APD",
        finding_description="helm",
    )
    assert await engine.find_similar_reports(report) == []


async def test_find_similar_excludes_self_and_reviewed(engine, report_store, make_report):
    report = make_report()
    pending = make_report()
    reviewed = make_report(status=ReportStatus.UNDER_EVALUATION)
    for r in (report, pending, reviewed):
        await report_store.save_report(r)

    matches = await engine.find_similar_reports(report)
    assert [m.report_id for m in matches] == [pending.report_id]


async def test_find_similar_requires_strictly_above_threshold(engine, report_store, make_report):
    report = make_report()
    # location + categories only: 0.30 + 0.21 + 0.09 = 0.60
    weak = make_report(finding_description="kabel listrik terkelupas di panel")
    await report_store.save_report(report)
    await report_store.save_report(weak)
    assert await engine.find_similar_reports(report) == []


async def test_cluster_new_report_sequence_forms_one_cluster(engine, report_store, make_report):
    cluster_ids = []
    reports = [make_report() for _ in range(4)]
    for r in reports:
        await report_store.save_report(r)
        cluster_ids.append(await engine.cluster_new_report(r))

    assert cluster_ids[0] is None
    assert len(set(cluster_ids[1:])) == 1
    members = await engine.get_cluster_reports(cluster_ids[1])
    assert {m.report_id for m in members} == {r.report_id for r in reports}


async def test_manual_cluster_becomes_pain_point(engine, report_store, make_report):
    group = [make_report() for _ in range(4)]
    pair = [make_report(location="Workshop") for _ in range(2)]
    for r in (*group, *pair):
        await report_store.save_report(r)

    cluster_id = await engine.create_cluster(group)
    await engine.create_cluster(pair)

    pain_points = await engine.get_pain_points()
    assert [p.cluster.cluster_id for p in pain_points] == [cluster_id]
    point = pain_points[0]
    assert point.member_count == 4
    assert point.dominant_location == "Pit Utara"
    assert point.dominant_location_ratio == pytest.approx(1.0)
    assert point.dominant_category == "APD"


async def test_retrieve_context_through_engine(engine, chunk_store):
    await chunk_store.save_chunks(
        [
            KnowledgeChunk("a", "safety_golden_rules", "Rule A", 0, (0.92, 0.39191835884530846)),
            KnowledgeChunk("b", "safety_golden_rules", "Rule B", 1, (0.81, 0.5864298764108148)),
            KnowledgeChunk("c", "safety_golden_rules", "Rule C", 2, (0.40, 0.916515138991168)),
        ]
    )
    results = await engine.retrieve_context([1.0, 0.0], "safety_golden_rules", top_k=2)
    assert [r.chunk.chunk_id for r in results] == ["a", "b"]
    assert results[0].similarity == pytest.approx(0.92)

    by_kb = await engine.retrieve_all_contexts([1.0, 0.0], ["safety_golden_rules", "empty"])
    assert len(by_kb["safety_golden_rules"]) == 3
    assert by_kb["empty"] == []


async def test_concurrent_engines_converge_on_one_cluster(
    settings, report_store, chunk_store, config_store, make_report
):
    # Separate engines have separate locks; only the store transaction serialises them
    engines = [
        SimilarityEngine(
            report_store=report_store,
            chunk_store=chunk_store,
            config_provider=SimilarityConfigProvider(config_store, settings),
            settings=settings,
        )
        for _ in range(2)
    ]
    reports = [make_report() for _ in range(6)]
    for r in reports:
        await report_store.save_report(r)

    cluster_ids = await asyncio.gather(
        *(engines[i % 2].cluster_new_report(r) for i, r in enumerate(reports))
    )

    assignments = await report_store.fetch_all_cluster_ids()
    assert len({cid for _, cid in assignments}) == 1
    assert {rid for rid, _ in assignments} == {r.report_id for r in reports}
    assert set(cluster_ids) == {assignments[0][1]}


async def test_concurrent_assign_cluster_reuses_one_id(report_store, make_report):
    reports = [make_report() for _ in range(4)]
    for r in reports:
        await report_store.save_report(r)
    ids = [r.report_id for r in reports]

    results = await asyncio.gather(
        *(report_store.assign_cluster(ids, f"proposed-{i}") for i in range(5))
    )

    assert len(set(results)) == 1
    members = await report_store.fetch_by_cluster_id(results[0])
    assert {m.report_id for m in members} == set(ids)


async def test_pain_point_average_uses_clustering_weights(engine, report_store, make_report):
    # Same text and categories, far apart: clustering weights ignore distance
    reports = [
        make_report(latitude=-2.5401 + i * 0.5, longitude=115.5012) for i in range(3)
    ]
    for r in reports:
        await report_store.save_report(r)
    await engine.create_cluster(reports)

    [point] = await engine.get_pain_points()
    assert point.average_similarity == pytest.approx(1.0)
