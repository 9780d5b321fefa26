"""Pixabay image pool configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

PIXABAY_BASE_URL = "https://pixabay.com/api/"
DEFAULT_IMAGE_QUERY = "football stadium"
DEFAULT_POOL_SIZE = 50
IMAGE_CACHE_TTL_SECONDS = 24 * 3600


def has_hits(payload: object) -> bool:
    """Cache only searches that returned images; an empty pool is retried next run."""

    return isinstance(payload, dict) and bool(payload.get("hits"))


@dataclass(frozen=True, slots=True)
class PixabayConfig:
    api_key: str
    resilience: ResilienceConfig
    query: str = DEFAULT_IMAGE_QUERY
    per_page: int = DEFAULT_POOL_SIZE


def get_pixabay_config() -> PixabayConfig | None:
    """Return the image pool configuration, or ``None`` when no key is configured."""

    api_key = optional_env_var("PIXABAY_API_KEY")
    if api_key is None:
        return None
    return PixabayConfig(
        api_key=api_key,
        query=optional_env_var("SUNBALL_IMAGE_QUERY") or DEFAULT_IMAGE_QUERY,
        resilience=ResilienceConfig(
            name="pixabay",
            base_url=PIXABAY_BASE_URL,
            timeout_seconds=10.0,
            retry=RetryPolicy(total=1),
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            cache=CacheConfig(
                backend="sqlite",
                default_ttl_seconds=IMAGE_CACHE_TTL_SECONDS,
                should_cache=has_hits,
            ),
        ),
    )
