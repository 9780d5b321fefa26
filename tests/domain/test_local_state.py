from __future__ import annotations

from sunball.domain.local_state import FieldCollection, FieldFilters
from sunball.domain.model import (
    FieldPlayer,
    FieldSize,
    FieldStatus,
    GeoPoint,
    SurfaceType,
)
from sunball.domain.presence import PresenceChange
from tests.helpers.clock import START
from tests.helpers.documents import make_field, make_player

CENTER = GeoPoint(55.75, 37.61)


def _entry(player_id: str) -> FieldPlayer:
    return FieldPlayer(player_id=player_id, name=player_id, avatar="", check_in_time=START)


def test_merged_replaces_by_id_and_keeps_other_entries() -> None:
    favourite = make_field("fav", name="Favourite")
    collection = FieldCollection([make_field("1"), favourite])

    updated = collection.merged([make_field("1", name="Renamed"), make_field("2")])

    assert updated.ids == ("1", "fav", "2")
    renamed = updated.get("1")
    assert renamed is not None
    assert renamed.name == "Renamed"
    assert updated.get("fav") == favourite
    assert collection.get("1") == make_field("1")


def test_missing_lists_unknown_ids_once() -> None:
    collection = FieldCollection([make_field("1")])

    assert collection.missing(["1", "2", "2", "3"]) == ["2", "3"]


def test_collection_protocols() -> None:
    collection = FieldCollection([make_field("1"), make_field("2")])

    assert len(collection) == 2
    assert "1" in collection
    assert "9" not in collection
    assert [entry.id for entry in collection] == ["1", "2"]


def test_apply_presence_moves_player_locally() -> None:
    old = make_field("100", players=(_entry("x"),))
    stale = make_field("300", players=(_entry("x"), _entry("y")))
    collection = FieldCollection([old, make_field("200"), stale])
    player = make_player("x", current_field_id="200", check_in_time=START)
    change = PresenceChange(
        player=player,
        left=(old.without_player("x"),),
        joined=make_field("200", players=(_entry("x"),)),
    )

    updated = collection.apply_presence(change)

    assert updated.location_of("x") == ["200"]
    assert updated.location_of("y") == ["300"]


def test_apply_presence_after_checkout_removes_player_everywhere() -> None:
    collection = FieldCollection([make_field("100", players=(_entry("x"),))])
    change = PresenceChange(player=make_player("x"), left=(make_field("100"),))

    assert collection.apply_presence(change).location_of("x") == []


def test_apply_presence_ignores_unchanged_outcome() -> None:
    collection = FieldCollection([make_field("100")])
    change = PresenceChange(player=make_player("x"), changed=False)

    assert collection.apply_presence(change) is collection


def test_filters_by_radius() -> None:
    near = make_field("near", position=GeoPoint(55.751, 37.611))
    far = make_field("far", position=GeoPoint(55.9, 37.9))
    collection = FieldCollection([near, far])

    result = collection.filtered(FieldFilters(radius_meters=1000), center=CENTER)

    assert [entry.id for entry in result] == ["near"]


def test_filters_without_center_ignore_radius() -> None:
    collection = FieldCollection([make_field("1", position=GeoPoint(0.0, 0.0))])

    assert len(collection.filtered(FieldFilters(radius_meters=10))) == 1


def test_filters_by_attributes() -> None:
    match = make_field(
        "match",
        surface=SurfaceType.GRASS,
        size=FieldSize.LARGE,
        lighting=True,
        rating=4.5,
        players=(_entry("a"), _entry("b")),
        tournaments=({"name": "Cup"},),
    )
    closed = make_field(
        "closed",
        status=FieldStatus.CLOSED,
        surface=SurfaceType.GRASS,
        size=FieldSize.LARGE,
        lighting=True,
        rating=5.0,
        players=(_entry("c"), _entry("d")),
        tournaments=({"name": "Cup"},),
    )
    dark = make_field("dark", surface=SurfaceType.GRASS, lighting=False, rating=5.0)
    collection = FieldCollection([match, closed, dark])
    filters = FieldFilters(
        min_players=2,
        min_rating=4.0,
        surfaces=frozenset({SurfaceType.GRASS}),
        sizes=frozenset({FieldSize.LARGE}),
        lighting_only=True,
        open_only=True,
        with_tournaments=True,
    )

    assert [entry.id for entry in collection.filtered(filters)] == ["match"]


def test_filters_favourites_only() -> None:
    collection = FieldCollection([make_field("1"), make_field("2")])

    result = collection.filtered(FieldFilters(favorites_only=True), favorites=["2"])

    assert [entry.id for entry in result] == ["2"]


def test_default_filters_accept_everything() -> None:
    collection = FieldCollection([make_field("1"), make_field("2", status=FieldStatus.BUSY)])

    assert len(collection.filtered(FieldFilters())) == 2
