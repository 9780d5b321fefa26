"""Players and their presence/social state."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from sunball.domain.model.field import FieldPlayer

if TYPE_CHECKING:
    from datetime import datetime

    from sunball.domain.model.enums import AuthProvider
    from sunball.domain.model.field import FieldId, PlayerId

DEFAULT_PLAYER_RATING = 50


@dataclass(frozen=True, slots=True, kw_only=True)
class PlayerStats:
    games_played: int = 0
    fields_visited: int = 0
    reviews_left: int = 0
    mission_points: int = 0


@dataclass(frozen=True, slots=True, kw_only=True)
class Player:
    id: PlayerId
    name: str
    handle: str
    email: str
    avatar: str
    join_date: datetime
    stats: PlayerStats = field(default_factory=PlayerStats)
    auth_provider: AuthProvider | None = None
    favorite_fields: tuple[FieldId, ...] = ()

    # mutually exclusive per other player id
    friends: tuple[PlayerId, ...] = ()
    friend_requests_sent: tuple[PlayerId, ...] = ()
    friend_requests_received: tuple[PlayerId, ...] = ()

    current_field_id: FieldId | None = None
    check_in_time: datetime | None = None

    rating: int = DEFAULT_PLAYER_RATING
    level: int = 1
    experience: int = 0
    achievements: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if (self.current_field_id is None) != (self.check_in_time is None):
            raise ValueError(
                f"Player {self.id}: current_field_id and check_in_time must be set together"
            )
        social = (self.friends, self.friend_requests_sent, self.friend_requests_received)
        total = sum(len(ids) for ids in social)
        if len(set().union(*social)) != total:
            raise ValueError(f"Player {self.id}: social id sets overlap")

    @property
    def is_present(self) -> bool:
        return self.current_field_id is not None

    def presence_entry(self, check_in_time: datetime) -> FieldPlayer:
        return FieldPlayer(
            player_id=self.id,
            name=self.name,
            avatar=self.avatar,
            check_in_time=check_in_time,
        )

    def checked_in(self, field_id: FieldId, at: datetime) -> Player:
        return replace(self, current_field_id=field_id, check_in_time=at)

    def with_favorites(self, favorite_fields: tuple[FieldId, ...]) -> Player:
        return replace(self, favorite_fields=favorite_fields)

    def checked_out(self, *, stats: PlayerStats | None = None) -> Player:
        return replace(
            self,
            current_field_id=None,
            check_in_time=None,
            stats=stats if stats is not None else self.stats,
        )
