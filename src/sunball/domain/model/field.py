"""Field catalog entries: provider geodata combined with community state."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any

from sunball.domain.model.enums import FieldSize, FieldStatus, SurfaceType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from sunball.domain.model.geo import GeoPoint

type FieldId = str
type PlayerId = str
# owned by the chat and tournament collaborators; stored and preserved verbatim
type ChatPointer = Mapping[str, Any]
type TournamentDocument = Mapping[str, Any]

_SIZES_BY_INDEX: tuple[FieldSize, ...] = (FieldSize.SMALL, FieldSize.MEDIUM, FieldSize.LARGE)


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldPlayer:
    """A player's presence entry inside ``Field.players``."""

    player_id: PlayerId
    name: str
    avatar: str
    check_in_time: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Review:
    id: str
    author_id: PlayerId
    author_name: str
    author_avatar: str
    rating: int
    comment: str
    created_at: datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldDraft:
    """Partial field built from provider geodata only."""

    id: FieldId
    name: str
    position: GeoPoint
    surface: SurfaceType
    lighting: bool


@dataclass(frozen=True, slots=True, kw_only=True)
class Field:
    id: FieldId
    name: str
    position: GeoPoint
    status: FieldStatus = FieldStatus.AVAILABLE
    surface: SurfaceType = SurfaceType.RUBBER
    lighting: bool = False
    size: FieldSize | None = None
    rating: float = 0.0
    photo: str = ""
    players: tuple[FieldPlayer, ...] = ()
    reviews: tuple[Review, ...] = ()
    last_message: ChatPointer | None = None
    tournaments: tuple[TournamentDocument, ...] = ()

    def __post_init__(self) -> None:
        seen: set[PlayerId] = set()
        for entry in self.players:
            if entry.player_id in seen:
                raise ValueError(f"Player {entry.player_id} listed twice on field {self.id}")
            seen.add(entry.player_id)

    def has_player(self, player_id: PlayerId) -> bool:
        return any(entry.player_id == player_id for entry in self.players)

    def without_player(self, player_id: PlayerId) -> Field:
        if not self.has_player(player_id):
            return self
        players = tuple(entry for entry in self.players if entry.player_id != player_id)
        return replace(self, players=players)

    def with_player(self, entry: FieldPlayer) -> Field:
        """Upsert ``entry``, replacing any stale entry for the same player."""

        others = tuple(p for p in self.players if p.player_id != entry.player_id)
        return replace(self, players=(*others, entry))

    def with_reviews(self, reviews: Iterable[Review]) -> Field:
        materialised = tuple(reviews)
        return replace(self, reviews=materialised, rating=mean_rating(materialised))


def mean_rating(reviews: Iterable[Review]) -> float:
    """Mean review rating rounded half-up to one decimal; 0.0 without reviews."""

    ratings = [review.rating for review in reviews]
    if not ratings:
        return 0.0
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def default_size_for(field_id: FieldId) -> FieldSize:
    """Deterministic size bucket for fields the provider does not size."""

    try:
        index = int(field_id)
    except ValueError:
        index = sum(ord(char) for char in field_id)
    return _SIZES_BY_INDEX[index % len(_SIZES_BY_INDEX)]
