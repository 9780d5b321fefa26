"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class FieldStatus(StrEnum):
    AVAILABLE = "Available"
    BUSY = "Busy"
    CLOSED = "Closed"


class SurfaceType(StrEnum):
    HALL = "hall"
    SAND = "sand"
    GRASS = "grass"
    RUBBER = "rubber"
    ASPHALT = "asphalt"


class FieldSize(StrEnum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class Collection(StrEnum):
    """Document collections in the backend store."""

    FIELDS = "fields"
    PLAYERS = "users"


class AuthProvider(StrEnum):
    EMAIL = "email"
    GOOGLE = "google"
