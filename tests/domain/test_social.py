from __future__ import annotations

import pytest

from sunball.adapters.sqlalchemy import SqlAlchemyDocumentStore  # noqa: TC001
from sunball.domain.errors import InvalidOperation, StaleReferenceError
from sunball.domain.model import Collection
from sunball.domain.social import (
    accept_friend_request,
    decline_friend_request,
    load_friend_requesters,
    load_friends,
    remove_friend,
    send_friend_request,
)
from tests.helpers.documents import make_player, seed_player


def _relations(store: SqlAlchemyDocumentStore, player_id: str) -> tuple[object, object, object]:
    document = store.get(Collection.PLAYERS, player_id)
    assert document is not None
    return (
        document["friends"],
        document["friendRequestsSent"],
        document["friendRequestsReceived"],
    )


def test_send_request_updates_both_players(store: SqlAlchemyDocumentStore) -> None:
    ana = seed_player(store, make_player("ana"))
    seed_player(store, make_player("bo"))

    change = send_friend_request(store, ana, "bo")

    assert change.player.friend_requests_sent == ("bo",)
    assert _relations(store, "ana") == ([], ["bo"], [])
    assert _relations(store, "bo") == ([], [], ["ana"])


def test_send_request_twice_is_noop(store: SqlAlchemyDocumentStore) -> None:
    ana = seed_player(store, make_player("ana"))
    seed_player(store, make_player("bo"))
    send_friend_request(store, ana, "bo")

    send_friend_request(store, ana, "bo")

    assert _relations(store, "ana") == ([], ["bo"], [])
    assert _relations(store, "bo") == ([], [], ["ana"])


def test_crossing_request_is_accepted(store: SqlAlchemyDocumentStore) -> None:
    ana = seed_player(store, make_player("ana"))
    bo = seed_player(store, make_player("bo"))
    send_friend_request(store, ana, "bo")

    change = send_friend_request(store, bo, "ana")

    assert change.player.friends == ("ana",)
    assert _relations(store, "ana") == (["bo"], [], [])
    assert _relations(store, "bo") == (["ana"], [], [])


def test_accept_request(store: SqlAlchemyDocumentStore) -> None:
    ana = seed_player(store, make_player("ana"))
    bo = seed_player(store, make_player("bo"))
    send_friend_request(store, ana, "bo")

    accept_friend_request(store, bo, "ana")

    assert _relations(store, "ana") == (["bo"], [], [])
    assert _relations(store, "bo") == (["ana"], [], [])


def test_accept_without_pending_request(store: SqlAlchemyDocumentStore) -> None:
    seed_player(store, make_player("ana"))
    bo = seed_player(store, make_player("bo"))

    with pytest.raises(InvalidOperation):
        accept_friend_request(store, bo, "ana")


def test_decline_request(store: SqlAlchemyDocumentStore) -> None:
    ana = seed_player(store, make_player("ana"))
    bo = seed_player(store, make_player("bo"))
    send_friend_request(store, ana, "bo")

    decline_friend_request(store, bo, "ana")

    assert _relations(store, "ana") == ([], [], [])
    assert _relations(store, "bo") == ([], [], [])


def test_decline_from_deleted_player_cleans_own_list(store: SqlAlchemyDocumentStore) -> None:
    bo = seed_player(store, make_player("bo", friend_requests_received=("ghost",)))

    change = decline_friend_request(store, bo, "ghost")

    assert change.other is None
    assert _relations(store, "bo") == ([], [], [])


def test_remove_friend(store: SqlAlchemyDocumentStore) -> None:
    ana = seed_player(store, make_player("ana", friends=("bo",)))
    seed_player(store, make_player("bo", friends=("ana",)))

    remove_friend(store, ana, "bo")

    assert _relations(store, "ana") == ([], [], [])
    assert _relations(store, "bo") == ([], [], [])


def test_request_to_self_is_rejected(store: SqlAlchemyDocumentStore) -> None:
    ana = seed_player(store, make_player("ana"))

    with pytest.raises(InvalidOperation):
        send_friend_request(store, ana, "ana")


def test_request_to_missing_player(store: SqlAlchemyDocumentStore) -> None:
    ana = seed_player(store, make_player("ana"))

    with pytest.raises(StaleReferenceError):
        send_friend_request(store, ana, "ghost")

    assert _relations(store, "ana") == ([], [], [])


def test_load_friends_and_requesters(store: SqlAlchemyDocumentStore) -> None:
    ana = seed_player(
        store,
        make_player("ana", friends=("bo", "ghost"), friend_requests_received=("cy",)),
    )
    seed_player(store, make_player("bo"))
    seed_player(store, make_player("cy"))

    assert [player.id for player in load_friends(store, ana)] == ["bo"]
    assert [player.id for player in load_friend_requesters(store, ana)] == ["cy"]
