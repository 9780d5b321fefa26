"""Presence timing defaults."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .env import env_float

# sessions shorter than this do not count as a visit
DEFAULT_DWELL_THRESHOLD = timedelta(minutes=15)
DEFAULT_PRESENCE_TTL = timedelta(hours=12)
DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0
DEFAULT_TRANSACTION_ATTEMPTS = 5


@dataclass(frozen=True, slots=True)
class PresenceConfig:
    dwell_threshold: timedelta = DEFAULT_DWELL_THRESHOLD
    presence_ttl: timedelta = DEFAULT_PRESENCE_TTL
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS
    transaction_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS


def get_presence_config() -> PresenceConfig:
    ttl_hours = env_float("SUNBALL_PRESENCE_TTL_HOURS", DEFAULT_PRESENCE_TTL.total_seconds() / 3600)
    return PresenceConfig(presence_ttl=timedelta(hours=ttl_hours))
