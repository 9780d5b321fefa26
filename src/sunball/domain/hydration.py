"""Conversion between stored documents and domain values.

Stored documents are loosely shaped: records written by older clients miss keys
that were added later, and some carry values of the wrong type. Hydration turns a
partial document into a fully populated domain value, applying these defaults:

Field documents
    ``name`` → ``"Football Venue"``; ``lat``/``lng`` → ``0.0``; ``status`` →
    ``Available``; ``surface`` → ``rubber``; ``lighting`` → ``False``; ``size`` →
    ``None``; ``rating`` → mean of the hydrated reviews; ``photo`` → ``""``;
    ``players``/``reviews``/``tournaments`` → empty; ``lastMessage`` → ``None``.
    Duplicate player entries collapse onto the latest one.

Player documents
    ``name`` → ``"Player"``; ``handle`` → ``"player"``; ``email`` → ``""``;
    ``avatar`` → a generated placeholder URL; ``joinDate`` → hydration time;
    ``stats`` counters → ``0``; social lists and favourites → empty;
    ``rating`` → ``50``; ``level`` → ``1``; ``experience`` → ``0``.
    A ``currentFieldId`` without ``checkInTime`` is treated as checked in at
    ``joinDate`` so the auto-checkout sweep can evict it, and a ``checkInTime``
    without ``currentFieldId`` is dropped. Ids present in several social lists
    keep only the strongest relation (friend, then sent, then received).
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any, cast

from sunball.domain.model import (
    DEFAULT_PLAYER_RATING,
    AuthProvider,
    Field,
    FieldPlayer,
    FieldSize,
    FieldStatus,
    GeoPoint,
    Player,
    PlayerStats,
    Review,
    SurfaceType,
    mean_rating,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from sunball.domain.ports import Document

log = logging.getLogger(__name__)

DEFAULT_FIELD_NAME = "Football Venue"
DEFAULT_PLAYER_NAME = "Player"
AVATAR_PLACEHOLDER_URL = "https://i.pravatar.cc/150?u={player_id}"


def format_timestamp(value: datetime) -> str:
    """Serialise ``value`` as a UTC ISO-8601 string with millisecond precision."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: object) -> datetime | None:
    """Parse stored timestamps; unparseable values hydrate to ``None``."""

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            log.warning("Ignoring malformed timestamp %r", value)
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


# Fields ------------------------------------------------------------------------


def hydrate_field(document_id: str, data: Mapping[str, Any]) -> Field:
    position = _as_position(document_id, data)
    players = _dedupe_players(
        entry
        for raw in _as_list(data.get("players"))
        if (entry := hydrate_field_player(raw)) is not None
    )
    reviews = tuple(
        review
        for raw in _as_list(data.get("reviews"))
        if (review := hydrate_review(raw)) is not None
    )
    rating = data.get("rating")
    last_message = data.get("lastMessage")
    return Field(
        id=document_id,
        name=_as_str(data.get("name")) or DEFAULT_FIELD_NAME,
        position=position,
        status=_as_enum(FieldStatus, data.get("status"), FieldStatus.AVAILABLE),
        surface=_as_enum(SurfaceType, data.get("surface"), SurfaceType.RUBBER),
        lighting=data.get("lighting") is True,
        size=_as_enum(FieldSize, data.get("size"), None),
        rating=_as_float(rating, mean_rating(reviews)),
        photo=_as_str(data.get("photo")),
        players=players,
        reviews=reviews,
        last_message=(
            cast("dict[str, Any]", last_message) if isinstance(last_message, dict) else None
        ),
        tournaments=tuple(
            cast("dict[str, Any]", item)
            for item in _as_list(data.get("tournaments"))
            if isinstance(item, dict)
        ),
    )


def field_to_document(field: Field) -> Document:
    document: Document = {
        "id": field.id,
        "name": field.name,
        "lat": field.position.lat,
        "lng": field.position.lng,
        "status": field.status.value,
        "surface": field.surface.value,
        "lighting": field.lighting,
        "rating": field.rating,
        "photo": field.photo,
        "players": field_players_to_documents(field.players),
        "reviews": [review_to_document(review) for review in field.reviews],
        "tournaments": [dict(item) for item in field.tournaments],
    }
    if field.size is not None:
        document["size"] = field.size.value
    if field.last_message is not None:
        document["lastMessage"] = dict(field.last_message)
    return document


def hydrate_field_player(raw: object) -> FieldPlayer | None:
    if not isinstance(raw, dict):
        return None
    data = cast("dict[str, Any]", raw)
    player_id = _as_str(data.get("id"))
    if not player_id:
        return None
    return FieldPlayer(
        player_id=player_id,
        name=_as_str(data.get("name")) or DEFAULT_PLAYER_NAME,
        avatar=_as_str(data.get("avatar")) or AVATAR_PLACEHOLDER_URL.format(player_id=player_id),
        check_in_time=parse_timestamp(data.get("checkInTime")),
    )


def field_players_to_documents(players: Iterable[FieldPlayer]) -> list[Document]:
    return [
        {
            "id": entry.player_id,
            "name": entry.name,
            "avatar": entry.avatar,
            "checkInTime": (
                format_timestamp(entry.check_in_time) if entry.check_in_time is not None else None
            ),
        }
        for entry in players
    ]


def hydrate_review(raw: object) -> Review | None:
    if not isinstance(raw, dict):
        return None
    data = cast("dict[str, Any]", raw)
    author = data.get("author")
    author_data = cast("dict[str, Any]", author) if isinstance(author, dict) else {}
    author_id = _as_str(author_data.get("id"))
    rating = data.get("rating")
    if not author_id or not isinstance(rating, int | float):
        return None
    return Review(
        id=_as_str(data.get("id")) or f"review-{author_id}",
        author_id=author_id,
        author_name=_as_str(author_data.get("name")) or DEFAULT_PLAYER_NAME,
        author_avatar=_as_str(author_data.get("avatar")),
        rating=min(5, max(1, round(rating))),
        comment=_as_str(data.get("comment")),
        created_at=parse_timestamp(data.get("createdAt")) or datetime.fromtimestamp(0, UTC),
    )


def review_to_document(review: Review) -> Document:
    return {
        "id": review.id,
        "author": {
            "id": review.author_id,
            "name": review.author_name,
            "avatar": review.author_avatar,
        },
        "rating": review.rating,
        "comment": review.comment,
        "createdAt": format_timestamp(review.created_at),
    }


# Players -----------------------------------------------------------------------


def hydrate_player(
    document_id: str,
    data: Mapping[str, Any],
    *,
    now: Callable[[], datetime] | None = None,
) -> Player:
    join_date = parse_timestamp(data.get("joinDate")) or (now or _utcnow)()
    current_field_id = _as_id(data.get("currentFieldId"))
    check_in_time = parse_timestamp(data.get("checkInTime"))
    if current_field_id is None:
        check_in_time = None
    elif check_in_time is None:
        log.warning("Player %s present on %s without check-in time", document_id, current_field_id)
        check_in_time = join_date

    friends = _id_tuple(data.get("friends"))
    sent = tuple(pid for pid in _id_tuple(data.get("friendRequestsSent")) if pid not in friends)
    received = tuple(
        pid
        for pid in _id_tuple(data.get("friendRequestsReceived"))
        if pid not in friends and pid not in sent
    )

    return Player(
        id=document_id,
        name=_as_str(data.get("name")) or DEFAULT_PLAYER_NAME,
        handle=_as_str(data.get("handle")) or "player",
        email=_as_str(data.get("email")),
        avatar=_as_str(data.get("avatar")) or AVATAR_PLACEHOLDER_URL.format(player_id=document_id),
        join_date=join_date,
        stats=hydrate_stats(data.get("stats")),
        auth_provider=_as_enum(AuthProvider, data.get("authProvider"), None),
        favorite_fields=_id_tuple(data.get("favoriteFields")),
        friends=friends,
        friend_requests_sent=sent,
        friend_requests_received=received,
        current_field_id=current_field_id,
        check_in_time=check_in_time,
        rating=_as_int(data.get("rating"), DEFAULT_PLAYER_RATING),
        level=_as_int(data.get("level"), 1),
        experience=_as_int(data.get("experience"), 0),
        achievements=tuple(_as_str(item) for item in _as_list(data.get("achievements")) if item),
    )


def player_to_document(player: Player) -> Document:
    document: Document = {
        "id": player.id,
        "name": player.name,
        "handle": player.handle,
        "email": player.email,
        "avatar": player.avatar,
        "joinDate": format_timestamp(player.join_date),
        "stats": stats_to_document(player.stats),
        "favoriteFields": list(player.favorite_fields),
        "friends": list(player.friends),
        "friendRequestsSent": list(player.friend_requests_sent),
        "friendRequestsReceived": list(player.friend_requests_received),
        "currentFieldId": player.current_field_id,
        "checkInTime": (
            format_timestamp(player.check_in_time) if player.check_in_time is not None else None
        ),
        "rating": player.rating,
        "level": player.level,
        "experience": player.experience,
        "achievements": list(player.achievements),
    }
    if player.auth_provider is not None:
        document["authProvider"] = player.auth_provider.value
    return document


def hydrate_stats(raw: object) -> PlayerStats:
    data = cast("dict[str, Any]", raw) if isinstance(raw, dict) else {}
    return PlayerStats(
        games_played=_as_int(data.get("gamesPlayed"), 0),
        fields_visited=_as_int(data.get("fieldsVisited"), 0),
        reviews_left=_as_int(data.get("reviewsLeft"), 0),
        mission_points=_as_int(data.get("missionPoints"), 0),
    )


def stats_to_document(stats: PlayerStats) -> Document:
    return {
        "gamesPlayed": stats.games_played,
        "fieldsVisited": stats.fields_visited,
        "reviewsLeft": stats.reviews_left,
        "missionPoints": stats.mission_points,
    }


# Coercion helpers --------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _dedupe_players(entries: Iterable[FieldPlayer]) -> tuple[FieldPlayer, ...]:
    by_id: dict[str, FieldPlayer] = {}
    for entry in entries:
        by_id.pop(entry.player_id, None)
        by_id[entry.player_id] = entry
    return tuple(by_id.values())


def _as_list(value: object) -> list[object]:
    if isinstance(value, list | tuple):
        return list(cast("Iterable[object]", value))
    return []


def _as_str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _as_id(value: object) -> str | None:
    # legacy documents store numeric field ids
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _id_tuple(value: object) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for item in _as_list(value):
        identifier = _as_id(item)
        if identifier is not None:
            seen.setdefault(identifier)
    return tuple(seen)


def _as_float(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return default
    return float(value)


def _as_position(document_id: str, data: Mapping[str, Any]) -> GeoPoint:
    lat = _as_float(data.get("lat"), 0.0)
    lng = _as_float(data.get("lng"), 0.0)
    try:
        return GeoPoint(lat=lat, lng=lng)
    except ValueError:
        log.warning("Field %s has invalid coordinates (%s, %s)", document_id, lat, lng)
        return GeoPoint(lat=0.0, lng=0.0)


def _as_int(value: object, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return default
    return int(value)


def _as_enum[E: StrEnum, D](enum_cls: type[E], value: object, default: D) -> E | D:
    if isinstance(value, str):
        try:
            return enum_cls(value)
        except ValueError:
            log.debug("Unknown %s value %r", enum_cls.__name__, value)
    return default
