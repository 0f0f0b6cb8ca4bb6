"""Central configuration via Pydantic Settings. All values driven by env vars."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Storage
    sqlite_db_path: str = "data/hazard.db"

    # Pre-submit similarity check (overridable at runtime via system_configurations)
    similarity_time_window_days: int = 7
    similarity_location_radius_km: float = 1.0
    similarity_threshold: float = 0.7
    similarity_top_n: int = 5

    # Similarity factor weights
    weight_location_radius: float = 0.25
    weight_location_name: float = 0.20
    weight_detail_location: float = 0.15
    weight_location_description: float = 0.10
    weight_non_compliance: float = 0.15
    weight_sub_non_compliance: float = 0.10
    weight_finding_description: float = 0.15

    # Post-save clustering check
    post_save_time_window_days: int = 7
    post_save_threshold: float = 0.75
    post_save_status_filter: str = "PENDING_REVIEW"
    post_save_weight_location_name: float = 0.30
    post_save_weight_non_compliance: float = 0.21
    post_save_weight_sub_non_compliance: float = 0.09
    post_save_weight_finding_description: float = 0.40

    # Pain points
    pain_point_min_cluster_size: int = 3
    pain_point_max_pairwise_members: int = 50

    # Retrieval
    retrieval_top_k: int = 3

    # Scoring fan-out
    scoring_batch_size: int = 64

    # Runtime configuration cache
    config_cache_ttl_seconds: float = 300.0

    # Logging
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_file": ".env", "env_prefix": "HAZARD_"}
