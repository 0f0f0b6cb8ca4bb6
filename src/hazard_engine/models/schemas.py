"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from hazard_engine.models.domain import (
    HazardSubmission,
    PainPointCluster,
    Report,
    ReportStatus,
    RetrievalResult,
    ScoredCandidate,
)


class SubmissionRequest(BaseModel):
    location: str
    non_compliance: str
    sub_non_compliance: str
    finding_description: str
    detail_location: str | None = None
    location_description: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)

    def to_domain(self) -> HazardSubmission:
        return HazardSubmission(**self.model_dump())


class ReportCreateRequest(SubmissionRequest):
    report_id: str | None = None
    tracking_id: str
    reporter_name: str
    created_at: datetime | None = None
    status: ReportStatus = ReportStatus.PENDING_REVIEW


class ReportSchema(BaseModel):
    report_id: str
    tracking_id: str
    reporter_name: str
    location: str
    detail_location: str | None = None
    location_description: str | None = None
    non_compliance: str
    sub_non_compliance: str
    finding_description: str
    latitude: float | None = None
    longitude: float | None = None
    created_at: datetime
    status: ReportStatus
    cluster_id: str | None = None

    @classmethod
    def from_domain(cls, report: Report) -> ReportSchema:
        return cls(
            report_id=report.report_id,
            tracking_id=report.tracking_id,
            reporter_name=report.reporter_name,
            location=report.location,
            detail_location=report.detail_location,
            location_description=report.location_description,
            non_compliance=report.non_compliance,
            sub_non_compliance=report.sub_non_compliance,
            finding_description=report.finding_description,
            latitude=report.latitude,
            longitude=report.longitude,
            created_at=report.created_at,
            status=report.status,
            cluster_id=report.cluster_id,
        )


class ScoredCandidateSchema(BaseModel):
    report: ReportSchema
    similarity_score: float
    distance_km: float | None = None
    breakdown: dict[str, float]

    @classmethod
    def from_domain(cls, candidate: ScoredCandidate) -> ScoredCandidateSchema:
        return cls(
            report=ReportSchema.from_domain(candidate.report),
            similarity_score=candidate.score,
            distance_km=candidate.distance_km,
            breakdown=candidate.breakdown.as_dict(),
        )


class SimilarityCheckResponse(BaseModel):
    has_similar: bool
    candidates: list[ScoredCandidateSchema]


class ReportCreateResponse(BaseModel):
    report: ReportSchema
    cluster_id: str | None = None


class SimilarReportsResponse(BaseModel):
    report_id: str
    similar_reports: list[ReportSchema]


class ClusterCreateRequest(BaseModel):
    report_ids: list[str] = Field(min_length=1)


class ClusterCreateResponse(BaseModel):
    cluster_id: str
    report_count: int


class ClusterResponse(BaseModel):
    cluster_id: str
    report_count: int
    reports: list[ReportSchema]


class PainPointSchema(BaseModel):
    cluster_id: str
    member_count: int
    dominant_location: str
    dominant_location_ratio: float
    dominant_category: str
    dominant_category_ratio: float
    average_similarity: float | None = None
    first_reported_at: datetime
    last_reported_at: datetime
    reports: list[ReportSchema]

    @classmethod
    def from_domain(cls, pain_point: PainPointCluster) -> PainPointSchema:
        return cls(
            cluster_id=pain_point.cluster.cluster_id,
            member_count=pain_point.member_count,
            dominant_location=pain_point.dominant_location,
            dominant_location_ratio=pain_point.dominant_location_ratio,
            dominant_category=pain_point.dominant_category,
            dominant_category_ratio=pain_point.dominant_category_ratio,
            average_similarity=pain_point.average_similarity,
            first_reported_at=pain_point.first_reported_at,
            last_reported_at=pain_point.last_reported_at,
            reports=[ReportSchema.from_domain(r) for r in pain_point.reports],
        )


class PainPointsResponse(BaseModel):
    pain_points: list[PainPointSchema]


class RetrievalRequest(BaseModel):
    query_vector: list[float] = Field(min_length=1)
    knowledge_base_ids: list[str] = Field(min_length=1)
    top_k: int | None = Field(default=None, ge=1, le=50)


class RetrievedChunkSchema(BaseModel):
    chunk_id: str
    knowledge_base_id: str
    text: str
    similarity: float | None = None
    ranked: bool

    @classmethod
    def from_domain(cls, result: RetrievalResult) -> RetrievedChunkSchema:
        return cls(
            chunk_id=result.chunk.chunk_id,
            knowledge_base_id=result.chunk.knowledge_base_id,
            text=result.chunk.text,
            similarity=result.similarity,
            ranked=result.ranked,
        )


class KnowledgeBaseContext(BaseModel):
    knowledge_base_id: str
    chunks: list[RetrievedChunkSchema]
    context: str


class RetrievalResponse(BaseModel):
    results: list[KnowledgeBaseContext]


class ConfigResponse(BaseModel):
    time_window_days: int
    location_radius_km: float
    threshold: float
    top_n: int
    weights: dict[str, float]


class HealthResponse(BaseModel):
    status: str
    report_count: int
    chunk_count: int
    knowledge_bases: list[str]
