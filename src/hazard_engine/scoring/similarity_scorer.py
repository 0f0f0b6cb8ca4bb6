"""Weighted multi-factor similarity between a submission and a stored report.

score = sum(contribution_f) clamped to [0, 1], where each contribution is at
most the factor's weight:

- location_radius:      full weight if both sides have coordinates within radius
- location_name:        full weight on normalized exact match
- detail_location:      full weight on normalized exact match (both present)
- location_description: text_similarity * weight
- non_compliance:       full weight on normalized exact match
- sub_non_compliance:   full weight on normalized exact match
- finding_description:  text_similarity(submission, extracted stored text) * weight
"""

from __future__ import annotations

from hazard_engine.models.domain import (
    HazardSubmission,
    Report,
    ScoreBreakdown,
    ScoredCandidate,
    SimilarityWeights,
)
from hazard_engine.similarity.geo import distance_between
from hazard_engine.similarity.text import (
    extract_finding_description,
    normalize_text,
    text_similarity,
)


def _exact_match(a: str | None, b: str | None) -> bool:
    return normalize_text(a) == normalize_text(b)


class SimilarityScorer:
    def __init__(self, weights: SimilarityWeights, location_radius_km: float = 1.0) -> None:
        self.weights = weights
        self.location_radius_km = location_radius_km

    def score(self, submission: HazardSubmission, candidate: Report) -> ScoredCandidate:
        w = self.weights
        distance_km = distance_between(submission.coordinates, candidate.coordinates)

        location_radius = 0.0
        if distance_km is not None and distance_km <= self.location_radius_km:
            location_radius = w.location_radius

        location_name = 0.0
        if _exact_match(submission.location, candidate.location):
            location_name = w.location_name

        detail_location = 0.0
        if (
            normalize_text(submission.detail_location)
            and normalize_text(candidate.detail_location)
            and _exact_match(submission.detail_location, candidate.detail_location)
        ):
            detail_location = w.detail_location

        location_description = w.location_description * text_similarity(
            submission.location_description, candidate.location_description
        )

        non_compliance = 0.0
        if _exact_match(submission.non_compliance, candidate.non_compliance):
            non_compliance = w.non_compliance

        sub_non_compliance = 0.0
        if _exact_match(submission.sub_non_compliance, candidate.sub_non_compliance):
            sub_non_compliance = w.sub_non_compliance

        finding_description = w.finding_description * text_similarity(
            extract_finding_description(submission.finding_description),
            extract_finding_description(candidate.finding_description),
        )

        breakdown = ScoreBreakdown(
            location_radius=location_radius,
            location_name=location_name,
            detail_location=detail_location,
            location_description=location_description,
            non_compliance=non_compliance,
            sub_non_compliance=sub_non_compliance,
            finding_description=finding_description,
        )
        total = max(0.0, min(1.0, breakdown.total))
        return ScoredCandidate(
            report=candidate, score=total, breakdown=breakdown, distance_km=distance_km
        )

    def score_reports(self, a: Report, b: Report) -> float:
        """Symmetric-enough score between two stored reports."""
        return self.score(HazardSubmission.from_report(a), b).score
