"""Client-side field collection and the merges applied to it.

The local view holds more than the current viewport: favourites and fields with
chat history stay in it while the map moves. Every merge therefore works by id
and returns a new collection, keeping entries the update does not mention.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from sunball.domain.model import FieldStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from sunball.domain.model import Field, FieldId, FieldSize, GeoPoint, PlayerId, SurfaceType
    from sunball.domain.presence import PresenceChange

log = getLogger(__name__)


class FieldCollection:
    """Immutable, insertion-ordered collection of fields keyed by id."""

    __slots__ = ("_fields",)

    def __init__(self, fields: Iterable[Field] = ()) -> None:
        by_id: dict[FieldId, Field] = {}
        for entry in fields:
            by_id[entry.id] = entry
        self._fields = by_id

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields.values())

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._fields

    def __repr__(self) -> str:
        return f"FieldCollection({len(self._fields)} fields)"

    @property
    def ids(self) -> tuple[FieldId, ...]:
        return tuple(self._fields)

    def get(self, field_id: FieldId) -> Field | None:
        return self._fields.get(field_id)

    def merged(self, fields: Iterable[Field]) -> FieldCollection:
        """Overwrite or append ``fields`` by id; unrelated entries are kept."""

        by_id = dict(self._fields)
        for entry in fields:
            by_id[entry.id] = entry
        return FieldCollection(by_id.values())

    def missing(self, field_ids: Iterable[FieldId]) -> list[FieldId]:
        return [fid for fid in dict.fromkeys(field_ids) if fid not in self._fields]

    def location_of(self, player_id: PlayerId) -> list[FieldId]:
        return [entry.id for entry in self._fields.values() if entry.has_player(player_id)]

    def apply_presence(self, change: PresenceChange) -> FieldCollection:
        """Merge the confirmed fields of ``change`` and settle the player locally.

        Besides the fields the transaction touched, any other local entry still
        listing the player is cleaned so the view shows them on at most one field.
        """

        if not change.changed:
            return self
        player_id = change.player.id
        keep = change.player.current_field_id
        updated = self.merged(change.fields)
        stale = [fid for fid in updated.location_of(player_id) if fid != keep]
        if stale:
            log.debug("Removing player %s from stale local fields %s", player_id, stale)
        return updated.merged(
            entry.without_player(player_id) for entry in updated if entry.id in stale
        )

    def filtered(
        self,
        filters: FieldFilters,
        *,
        center: GeoPoint | None = None,
        favorites: Iterable[FieldId] = (),
    ) -> list[Field]:
        favorite_ids = frozenset(favorites)
        return [
            entry
            for entry in self._fields.values()
            if filters.matches(entry, center=center, favorites=favorite_ids)
        ]


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldFilters:
    """Viewport filter; empty ``surfaces``/``sizes`` accept every value."""

    radius_meters: float | None = None
    min_players: int = 0
    min_rating: float = 0.0
    surfaces: frozenset[SurfaceType] = field(default_factory=frozenset)
    sizes: frozenset[FieldSize] = field(default_factory=frozenset)
    lighting_only: bool = False
    open_only: bool = False
    favorites_only: bool = False
    with_tournaments: bool = False

    def matches(
        self,
        entry: Field,
        *,
        center: GeoPoint | None = None,
        favorites: frozenset[FieldId] = frozenset(),
    ) -> bool:
        if (
            center is not None
            and self.radius_meters is not None
            and center.distance_to(entry.position) > self.radius_meters
        ):
            return False
        if self.favorites_only and entry.id not in favorites:
            return False
        if len(entry.players) < self.min_players or entry.rating < self.min_rating:
            return False
        if self.with_tournaments and not entry.tournaments:
            return False
        if self.open_only and entry.status is FieldStatus.CLOSED:
            return False
        if self.surfaces and entry.surface not in self.surfaces:
            return False
        if self.sizes and entry.size not in self.sizes:
            return False
        return not (self.lighting_only and not entry.lighting)


__all__ = ["FieldCollection", "FieldFilters"]
