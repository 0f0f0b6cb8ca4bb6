"""Runtime similarity configuration with an explicit refresh and a TTL cache.

Values live in the system_configurations table so operators can tune them
without a redeploy; anything missing or malformed falls back to Settings.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any

from hazard_engine.config.settings import Settings
from hazard_engine.exceptions import ConfigurationError
from hazard_engine.models.domain import SimilarityConfig, SimilarityWeights
from hazard_engine.observability.logger import get_logger
from hazard_engine.protocols.config_source import ConfigSource

logger = get_logger("config_provider")

CONFIG_KEYS = [
    "similarity_time_window_days",
    "similarity_location_radius_km",
    "similarity_threshold",
    "similarity_top_n",
    "similarity_weights",
]


def default_similarity_config(settings: Settings) -> SimilarityConfig:
    """Static configuration from Settings. Raises ConfigurationError if unusable."""
    config = SimilarityConfig(
        time_window_days=settings.similarity_time_window_days,
        location_radius_km=settings.similarity_location_radius_km,
        threshold=settings.similarity_threshold,
        top_n=settings.similarity_top_n,
        weights=SimilarityWeights(
            location_radius=settings.weight_location_radius,
            location_name=settings.weight_location_name,
            detail_location=settings.weight_detail_location,
            location_description=settings.weight_location_description,
            non_compliance=settings.weight_non_compliance,
            sub_non_compliance=settings.weight_sub_non_compliance,
            finding_description=settings.weight_finding_description,
        ),
    )
    problems = validate_similarity_config(config)
    if problems:
        raise ConfigurationError(f"Invalid similarity settings: {'; '.join(problems)}")
    return config


def validate_similarity_config(config: SimilarityConfig) -> list[str]:
    problems = []
    if config.time_window_days < 0:
        problems.append("time_window_days must be >= 0")
    if config.location_radius_km < 0:
        problems.append("location_radius_km must be >= 0")
    if not 0.0 <= config.threshold <= 1.0:
        problems.append("threshold must be within [0, 1]")
    if config.top_n < 1:
        problems.append("top_n must be >= 1")
    negative = [name for name, w in config.weights.as_dict().items() if w < 0]
    if negative:
        problems.append(f"negative weights: {', '.join(negative)}")
    return problems


def post_save_weights(settings: Settings) -> SimilarityWeights:
    """Weights for the post-save clustering check; factors not listed score 0."""
    return SimilarityWeights.from_mapping(
        {
            "location_name": settings.post_save_weight_location_name,
            "non_compliance": settings.post_save_weight_non_compliance,
            "sub_non_compliance": settings.post_save_weight_sub_non_compliance,
            "finding_description": settings.post_save_weight_finding_description,
        }
    )


class SimilarityConfigProvider:
    def __init__(
        self,
        source: ConfigSource | None,
        settings: Settings,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._defaults = default_similarity_config(settings)
        self._ttl = settings.config_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._cached: SimilarityConfig | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    async def get(self) -> SimilarityConfig:
        if self._cached is not None and self._clock() < self._expires_at:
            return self._cached
        async with self._lock:
            if self._cached is not None and self._clock() < self._expires_at:
                return self._cached
            return await self._load()

    async def refresh(self) -> SimilarityConfig:
        """Reload from the source now, regardless of TTL."""
        async with self._lock:
            return await self._load()

    def invalidate(self) -> None:
        self._cached = None
        self._expires_at = 0.0

    async def _load(self) -> SimilarityConfig:
        if self._source is None:
            config = self._defaults
        else:
            try:
                raw = await self._source.get_config(CONFIG_KEYS)
            except Exception as e:
                logger.warning("config_load_failed", error=str(e))
                # Keep serving the last good value; retry after the next TTL
                config = self._cached or self._defaults
                self._store(config)
                return config
            config = self._merge(raw)

        self._store(config)
        logger.info(
            "config_loaded",
            threshold=config.threshold,
            time_window_days=config.time_window_days,
            location_radius_km=config.location_radius_km,
            top_n=config.top_n,
        )
        return config

    def _store(self, config: SimilarityConfig) -> None:
        self._cached = config
        self._expires_at = self._clock() + self._ttl

    def _merge(self, raw: dict[str, Any]) -> SimilarityConfig:
        d = self._defaults
        config = SimilarityConfig(
            time_window_days=self._coerce(
                raw, "similarity_time_window_days", int, d.time_window_days
            ),
            location_radius_km=self._coerce(
                raw, "similarity_location_radius_km", float, d.location_radius_km
            ),
            threshold=self._coerce(raw, "similarity_threshold", float, d.threshold),
            top_n=self._coerce(raw, "similarity_top_n", int, d.top_n),
            weights=self._weights(raw.get("similarity_weights"), d.weights),
        )
        problems = validate_similarity_config(config)
        if problems:
            logger.warning("config_rejected", problems=problems)
            return d
        return config

    @staticmethod
    def _coerce(raw: dict[str, Any], key: str, cast: type, default: Any) -> Any:
        if raw.get(key) is None:
            return default
        try:
            return cast(raw[key])
        except (TypeError, ValueError):
            logger.warning("config_value_invalid", key=key, value=raw[key])
            return default

    @staticmethod
    def _weights(raw: Any, default: SimilarityWeights) -> SimilarityWeights:
        if raw is None:
            return default
        if not isinstance(raw, dict):
            logger.warning("config_value_invalid", key="similarity_weights", value=raw)
            return default
        merged = default.as_dict()
        try:
            merged.update({k: float(v) for k, v in raw.items()})
            return SimilarityWeights.from_mapping(merged)
        except (TypeError, ValueError) as e:
            logger.warning("config_value_invalid", key="similarity_weights", error=str(e))
            return default
