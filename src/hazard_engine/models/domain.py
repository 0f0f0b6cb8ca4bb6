"""Core domain objects used throughout the system."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum


class ReportStatus(str, Enum):
    PENDING_REVIEW = "PENDING_REVIEW"
    UNDER_EVALUATION = "UNDER_EVALUATION"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    DUPLIKAT = "DUPLIKAT"
    BUKAN_HAZARD = "BUKAN_HAZARD"


def valid_coordinates(
    latitude: float | None, longitude: float | None
) -> tuple[float, float] | None:
    """Return (lat, lon) when both are usable, else None.

    Forms send 0/0 when no GPS fix was available, so that pair counts as missing.
    """
    if latitude is None or longitude is None:
        return None
    lat, lon = float(latitude), float(longitude)
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    if lat == 0.0 or lon == 0.0:
        return None
    return lat, lon


@dataclass(frozen=True)
class Report:
    report_id: str
    tracking_id: str
    reporter_name: str
    location: str
    non_compliance: str
    sub_non_compliance: str
    finding_description: str
    detail_location: str | None = None
    location_description: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: ReportStatus = ReportStatus.PENDING_REVIEW
    cluster_id: str | None = None

    @property
    def coordinates(self) -> tuple[float, float] | None:
        return valid_coordinates(self.latitude, self.longitude)


@dataclass(frozen=True)
class HazardSubmission:
    """Fields of a report that is being compared, saved or not."""

    location: str
    non_compliance: str
    sub_non_compliance: str
    finding_description: str
    detail_location: str | None = None
    location_description: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def coordinates(self) -> tuple[float, float] | None:
        return valid_coordinates(self.latitude, self.longitude)

    @classmethod
    def from_report(cls, report: Report) -> HazardSubmission:
        return cls(
            location=report.location,
            non_compliance=report.non_compliance,
            sub_non_compliance=report.sub_non_compliance,
            finding_description=report.finding_description,
            detail_location=report.detail_location,
            location_description=report.location_description,
            latitude=report.latitude,
            longitude=report.longitude,
        )


@dataclass(frozen=True)
class SimilarityWeights:
    location_radius: float = 0.25
    location_name: float = 0.20
    detail_location: float = 0.15
    location_description: float = 0.10
    non_compliance: float = 0.15
    sub_non_compliance: float = 0.10
    finding_description: float = 0.15

    @classmethod
    def factor_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_mapping(cls, weights: dict[str, float]) -> SimilarityWeights:
        """Build weights from a partial mapping; unnamed factors get weight 0."""
        unknown = set(weights) - set(cls.factor_names())
        if unknown:
            raise ValueError(f"Unknown similarity factors: {sorted(unknown)}")
        return cls(**{name: float(weights.get(name, 0.0)) for name in cls.factor_names()})

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in self.factor_names()}


@dataclass(frozen=True)
class SimilarityConfig:
    time_window_days: int = 7
    location_radius_km: float = 1.0
    threshold: float = 0.7
    top_n: int = 5
    weights: SimilarityWeights = field(default_factory=SimilarityWeights)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-factor contributions to a similarity score."""

    location_radius: float = 0.0
    location_name: float = 0.0
    detail_location: float = 0.0
    location_description: float = 0.0
    non_compliance: float = 0.0
    sub_non_compliance: float = 0.0
    finding_description: float = 0.0

    @property
    def total(self) -> float:
        return sum(getattr(self, f.name) for f in fields(self))

    def as_dict(self) -> dict[str, float]:
        """Non-zero contributions only."""
        return {
            f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) != 0.0
        }


@dataclass(frozen=True)
class ScoredCandidate:
    report: Report
    score: float
    breakdown: ScoreBreakdown
    distance_km: float | None = None


@dataclass(frozen=True)
class Cluster:
    cluster_id: str
    member_ids: frozenset[str]

    @property
    def size(self) -> int:
        return len(self.member_ids)


@dataclass
class PainPointCluster:
    cluster: Cluster
    reports: list[Report]
    member_count: int
    dominant_location: str
    dominant_location_ratio: float
    dominant_category: str
    dominant_category_ratio: float
    average_similarity: float | None
    first_reported_at: datetime
    last_reported_at: datetime


@dataclass(frozen=True)
class KnowledgeChunk:
    chunk_id: str
    knowledge_base_id: str
    text: str
    index: int = 0
    embedding: tuple[float, ...] | None = None


@dataclass(frozen=True)
class RetrievalResult:
    chunk: KnowledgeChunk
    similarity: float | None
    ranked: bool = True
