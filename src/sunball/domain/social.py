"""Friend requests and friend lists.

Both sides of a relation change in one transaction so that, per pair of players,
an id sits in exactly one of ``friends``, ``friendRequestsSent`` or
``friendRequestsReceived`` (or in none).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING

from sunball.domain.errors import InvalidOperation, StaleReferenceError
from sunball.domain.hydration import hydrate_player
from sunball.domain.model import Collection
from sunball.domain.players import load_players

if TYPE_CHECKING:
    from collections.abc import Callable

    from sunball.domain.model import Player, PlayerId
    from sunball.domain.ports import Document, DocumentStore, Transaction

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SocialChange:
    player: Player
    other: Player | None


type _Relate = Callable[[Player, Player | None], tuple[Player, Player | None]]


def _with(ids: tuple[PlayerId, ...], player_id: PlayerId) -> tuple[PlayerId, ...]:
    return ids if player_id in ids else (*ids, player_id)


def _without(ids: tuple[PlayerId, ...], player_id: PlayerId) -> tuple[PlayerId, ...]:
    return tuple(pid for pid in ids if pid != player_id)


def _social_document(player: Player) -> Document:
    return {
        "friends": list(player.friends),
        "friendRequestsSent": list(player.friend_requests_sent),
        "friendRequestsReceived": list(player.friend_requests_received),
    }


def _befriend(player: Player, other_id: PlayerId) -> Player:
    return replace(
        player,
        friends=_with(player.friends, other_id),
        friend_requests_sent=_without(player.friend_requests_sent, other_id),
        friend_requests_received=_without(player.friend_requests_received, other_id),
    )


def _forget(player: Player, other_id: PlayerId) -> Player:
    return replace(
        player,
        friends=_without(player.friends, other_id),
        friend_requests_sent=_without(player.friend_requests_sent, other_id),
        friend_requests_received=_without(player.friend_requests_received, other_id),
    )


def _run(
    store: DocumentStore,
    player: Player,
    other_id: PlayerId,
    relate: _Relate,
    *,
    require_other: bool,
) -> SocialChange:
    if other_id == player.id:
        raise InvalidOperation("Players cannot befriend themselves")

    def body(transaction: Transaction) -> SocialChange:
        own_document = transaction.get(Collection.PLAYERS, player.id)
        if own_document is None:
            raise StaleReferenceError(Collection.PLAYERS, player.id)
        other_document = transaction.get(Collection.PLAYERS, other_id)
        if other_document is None and require_other:
            raise StaleReferenceError(Collection.PLAYERS, other_id)

        own = hydrate_player(player.id, own_document)
        other = hydrate_player(other_id, other_document) if other_document is not None else None
        new_own, new_other = relate(own, other)
        if new_own != own:
            transaction.update(Collection.PLAYERS, own.id, _social_document(new_own))
        if other is not None and new_other is not None and new_other != other:
            transaction.update(Collection.PLAYERS, other.id, _social_document(new_other))
        return SocialChange(player=new_own, other=new_other)

    change = store.run_transaction(body)
    if change.other is None:
        log.warning("Player %s no longer exists; updated %s only", other_id, player.id)
    return change


def send_friend_request(store: DocumentStore, player: Player, target_id: PlayerId) -> SocialChange:
    """Request friendship; a pending request from ``target_id`` is accepted instead."""

    def relate(own: Player, other: Player | None) -> tuple[Player, Player | None]:
        if other is None:
            raise StaleReferenceError(Collection.PLAYERS, target_id)
        if target_id in own.friends or target_id in own.friend_requests_sent:
            return own, other
        if target_id in own.friend_requests_received:
            return _befriend(own, target_id), _befriend(other, own.id)
        new_own = replace(own, friend_requests_sent=_with(own.friend_requests_sent, target_id))
        new_other = replace(
            other,
            friend_requests_received=_with(other.friend_requests_received, own.id),
        )
        return new_own, new_other

    return _run(store, player, target_id, relate, require_other=True)


def accept_friend_request(
    store: DocumentStore, player: Player, requester_id: PlayerId
) -> SocialChange:
    def relate(own: Player, other: Player | None) -> tuple[Player, Player | None]:
        if other is None:
            raise StaleReferenceError(Collection.PLAYERS, requester_id)
        if requester_id not in own.friend_requests_received:
            raise InvalidOperation(f"No pending friend request from {requester_id}")
        return _befriend(own, requester_id), _befriend(other, own.id)

    return _run(store, player, requester_id, relate, require_other=True)


def decline_friend_request(
    store: DocumentStore, player: Player, requester_id: PlayerId
) -> SocialChange:
    def relate(own: Player, other: Player | None) -> tuple[Player, Player | None]:
        new_own = replace(
            own,
            friend_requests_received=_without(own.friend_requests_received, requester_id),
        )
        if other is None:
            return new_own, None
        new_other = replace(
            other,
            friend_requests_sent=_without(other.friend_requests_sent, own.id),
        )
        return new_own, new_other

    return _run(store, player, requester_id, relate, require_other=False)


def remove_friend(store: DocumentStore, player: Player, friend_id: PlayerId) -> SocialChange:
    def relate(own: Player, other: Player | None) -> tuple[Player, Player | None]:
        return _forget(own, friend_id), _forget(other, own.id) if other is not None else None

    return _run(store, player, friend_id, relate, require_other=False)


def load_friend_requesters(store: DocumentStore, player: Player) -> list[Player]:
    return load_players(store, player.friend_requests_received)


def load_friends(store: DocumentStore, player: Player) -> list[Player]:
    return load_players(store, player.friends)


__all__ = [
    "SocialChange",
    "accept_friend_request",
    "decline_friend_request",
    "load_friend_requesters",
    "load_friends",
    "remove_friend",
    "send_friend_request",
]
