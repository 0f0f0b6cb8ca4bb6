"""Tests for the weighted multi-factor similarity scorer."""

from dataclasses import replace

import pytest

from hazard_engine.models.domain import HazardSubmission, ScoreBreakdown, SimilarityWeights
from hazard_engine.scoring.similarity_scorer import SimilarityScorer
from hazard_engine.similarity.text import text_similarity

DEFAULT_WEIGHTS = SimilarityWeights()


def test_identical_report_scores_every_exact_factor(make_report, sample_submission):
    scorer = SimilarityScorer(DEFAULT_WEIGHTS, location_radius_km=1.0)
    result = scorer.score(sample_submission, make_report())

    b = result.breakdown
    assert b.location_radius == DEFAULT_WEIGHTS.location_radius
    assert b.location_name == DEFAULT_WEIGHTS.location_name
    assert b.detail_location == DEFAULT_WEIGHTS.detail_location
    assert b.non_compliance == DEFAULT_WEIGHTS.non_compliance
    assert b.sub_non_compliance == DEFAULT_WEIGHTS.sub_non_compliance
    assert b.finding_description == pytest.approx(DEFAULT_WEIGHTS.finding_description)
    # Neither side has a location description; the other defaults add up to 1.0
    assert b.location_description == 0.0
    assert result.score == pytest.approx(1.0)
    assert result.distance_km is not None and result.distance_km < 0.1


def test_same_place_same_category_overlapping_findings(make_report):
    weights = SimilarityWeights.from_mapping(
        {"location_name": 0.3, "non_compliance": 0.3, "finding_description": 0.4}
    )
    scorer = SimilarityScorer(weights)
    submission = HazardSubmission(
        location="Pit Utara",
        non_compliance="APD",
        sub_non_compliance="Cara Penggunaan APD",
        finding_description="pekerja tidak memakai helm di area ramp tambang",
    )
    candidate = make_report(finding_description="pekerja tidak memakai helm di area ramp")

    result = scorer.score(submission, candidate)

    finding_sim = text_similarity(submission.finding_description, candidate.finding_description)
    assert finding_sim > 0.8
    assert result.score == pytest.approx(0.3 + 0.3 + 0.4 * finding_sim)
    assert result.score > 0.75


def test_far_apart_unrelated_reports(make_report):
    scorer = SimilarityScorer(DEFAULT_WEIGHTS, location_radius_km=1.0)
    submission = HazardSubmission(
        location="Workshop",
        non_compliance="Housekeeping",
        sub_non_compliance="Tumpahan Oli",
        finding_description="oli tumpah di lantai bengkel",
        latitude=-2.0901,
        longitude=115.5012,
    )
    candidate = make_report(
        detail_location=None,
        finding_description="pekerja tidak memakai helm di area ramp",
    )

    result = scorer.score(submission, candidate)

    finding_sim = text_similarity(submission.finding_description, candidate.finding_description)
    assert result.distance_km == pytest.approx(50.0, abs=0.5)
    assert result.breakdown.location_radius == 0.0
    assert result.score == pytest.approx(DEFAULT_WEIGHTS.finding_description * finding_sim)
    assert result.score < 0.75


def test_missing_coordinates_skip_radius_factor(make_report, sample_submission):
    scorer = SimilarityScorer(DEFAULT_WEIGHTS)
    result = scorer.score(sample_submission, make_report(latitude=None, longitude=None))
    assert result.distance_km is None
    assert result.breakdown.location_radius == 0.0


def test_detail_location_requires_both_sides(make_report, sample_submission):
    scorer = SimilarityScorer(DEFAULT_WEIGHTS)
    no_detail = replace(sample_submission, detail_location=None)
    assert scorer.score(no_detail, make_report(detail_location=None)).breakdown.detail_location == 0.0
    assert scorer.score(no_detail, make_report()).breakdown.detail_location == 0.0


def test_exact_match_ignores_case_and_whitespace(make_report, sample_submission):
    scorer = SimilarityScorer(DEFAULT_WEIGHTS)
    candidate = make_report(location="  PIT   utara ", non_compliance="apd")
    b = scorer.score(sample_submission, candidate).breakdown
    assert b.location_name == DEFAULT_WEIGHTS.location_name
    assert b.non_compliance == DEFAULT_WEIGHTS.non_compliance


def test_location_description_is_continuous(make_report, sample_submission):
    scorer = SimilarityScorer(DEFAULT_WEIGHTS)
    submission = replace(sample_submission, location_description="dekat pos jaga ramp tiga")
    candidate = make_report(location_description="dekat pos jaga ramp")
    b = scorer.score(submission, candidate).breakdown
    expected = DEFAULT_WEIGHTS.location_description * text_similarity(
        "dekat pos jaga ramp tiga", "dekat pos jaga ramp"
    )
    assert b.location_description == pytest.approx(expected)
    assert 0.0 < b.location_description < DEFAULT_WEIGHTS.location_description


def test_compound_stored_finding_is_extracted(make_report, sample_submission):
    scorer = SimilarityScorer(DEFAULT_WEIGHTS)
    candidate = make_report(
        finding_description=(
            "Ketidaksesuaian: APD\n"
            "Sub Ketidaksesuaian: Cara Penggunaan APD\n"
            "Deskripsi Temuan: pekerja tidak memakai helm di area ramp"
        )
    )
    b = scorer.score(sample_submission, candidate).breakdown
    assert b.finding_description == pytest.approx(DEFAULT_WEIGHTS.finding_description)


def test_each_contribution_bounded_by_weight(make_report, sample_submission):
    scorer = SimilarityScorer(DEFAULT_WEIGHTS)
    b = scorer.score(sample_submission, make_report(location_description="x")).breakdown
    for factor, weight in DEFAULT_WEIGHTS.as_dict().items():
        assert getattr(b, factor) <= weight + 1e-12


def test_score_clamped_to_one(make_report, sample_submission):
    heavy = SimilarityWeights.from_mapping({name: 1.0 for name in SimilarityWeights.factor_names()})
    result = SimilarityScorer(heavy).score(sample_submission, make_report())
    assert result.score == 1.0
    assert result.breakdown.total > 1.0


def test_adding_a_matching_factor_never_decreases_score(make_report, sample_submission):
    scorer = SimilarityScorer(DEFAULT_WEIGHTS)
    mismatched = make_report(non_compliance="Housekeeping", sub_non_compliance="Tumpahan Oli")
    one_match = replace(mismatched, non_compliance="APD")
    both_match = replace(one_match, sub_non_compliance="Cara Penggunaan APD")

    s0 = scorer.score(sample_submission, mismatched).score
    s1 = scorer.score(sample_submission, one_match).score
    s2 = scorer.score(sample_submission, both_match).score
    assert s0 <= s1 <= s2
    assert s2 > s0


def test_breakdown_as_dict_keeps_non_zero_factors():
    breakdown = ScoreBreakdown(location_name=0.2, finding_description=0.1)
    assert breakdown.as_dict() == {"location_name": 0.2, "finding_description": 0.1}
    assert breakdown.total == pytest.approx(0.3)


def test_weights_from_mapping_rejects_unknown_factor():
    with pytest.raises(ValueError):
        SimilarityWeights.from_mapping({"colour": 0.5})


def test_score_reports_between_stored_reports(make_report):
    scorer = SimilarityScorer(DEFAULT_WEIGHTS)
    a = make_report()
    b = make_report(latitude=a.latitude, longitude=a.longitude)
    assert scorer.score_reports(a, b) == pytest.approx(1.0)


def test_antipodal_candidate_scores_without_radius(make_report, sample_submission):
    scorer = SimilarityScorer(DEFAULT_WEIGHTS)
    submission = replace(sample_submission, latitude=1.427727525199188, longitude=155.73360995684104)
    candidate = make_report(latitude=-1.427727525199188, longitude=155.73360995684104 - 180.0)
    result = scorer.score(submission, candidate)
    assert result.distance_km == pytest.approx(20015.09, rel=1e-4)
    assert result.breakdown.location_radius == 0.0
