"""Overpass (OpenStreetMap geodata) configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import env_float, env_list
from .http_resilience import ResilienceConfig, RetryPolicy

# ordered by preference; the main instance is often saturated
DEFAULT_OVERPASS_ENDPOINTS: tuple[str, ...] = (
    "https://lz4.overpass-api.de/api/interpreter",
    "https://z.overpass-api.de/api/interpreter",
    "https://overpass-api.de/api/interpreter",
)
OVERPASS_QUERY_TIMEOUT_SECONDS = 25
OVERPASS_HTTP_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class OverpassConfig:
    endpoints: tuple[str, ...] = DEFAULT_OVERPASS_ENDPOINTS
    query_timeout_seconds: int = OVERPASS_QUERY_TIMEOUT_SECONDS
    resilience: ResilienceConfig = field(
        default_factory=lambda: overpass_resilience(OVERPASS_HTTP_TIMEOUT_SECONDS)
    )


def overpass_resilience(timeout_seconds: float) -> ResilienceConfig:
    # Failover to the next endpoint is cheaper than hammering a busy one.
    return ResilienceConfig(
        name="overpass",
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(total=1),
        cache=None,
        default_headers={"User-Agent": "sunball/field-catalog"},
    )


def get_overpass_config() -> OverpassConfig:
    endpoints = env_list("SUNBALL_OVERPASS_ENDPOINTS", DEFAULT_OVERPASS_ENDPOINTS)
    timeout = env_float("SUNBALL_OVERPASS_TIMEOUT", OVERPASS_HTTP_TIMEOUT_SECONDS)
    return OverpassConfig(endpoints=endpoints, resilience=overpass_resilience(timeout))
