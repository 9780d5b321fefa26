"""Domain model for the field catalog and players."""

from __future__ import annotations

from sunball.domain.model.enums import (
    AuthProvider,
    Collection,
    FieldSize,
    FieldStatus,
    SurfaceType,
)
from sunball.domain.model.field import (
    ChatPointer,
    Field,
    FieldDraft,
    FieldId,
    FieldPlayer,
    PlayerId,
    Review,
    TournamentDocument,
    default_size_for,
    mean_rating,
)
from sunball.domain.model.geo import GeoPoint
from sunball.domain.model.player import DEFAULT_PLAYER_RATING, Player, PlayerStats

__all__ = [
    "DEFAULT_PLAYER_RATING",
    "AuthProvider",
    "ChatPointer",
    "Collection",
    "Field",
    "FieldDraft",
    "FieldId",
    "FieldPlayer",
    "FieldSize",
    "FieldStatus",
    "GeoPoint",
    "Player",
    "PlayerId",
    "PlayerStats",
    "Review",
    "SurfaceType",
    "TournamentDocument",
    "default_size_for",
    "mean_rating",
]
