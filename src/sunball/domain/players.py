"""Player documents: bootstrap, lookup and favourites."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from sunball.domain.chunked_lookup import chunked_lookup
from sunball.domain.errors import StaleReferenceError
from sunball.domain.hydration import (
    AVATAR_PLACEHOLDER_URL,
    DEFAULT_PLAYER_NAME,
    hydrate_player,
    player_to_document,
)
from sunball.domain.model import Collection, Player

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from sunball.domain.model import AuthProvider, FieldId, PlayerId
    from sunball.domain.ports import DocumentStore, Transaction

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class Account:
    """Identity handed over by the authentication collaborator."""

    id: PlayerId
    name: str | None = None
    email: str = ""
    avatar: str | None = None
    provider: AuthProvider | None = None


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _handle_for(name: str) -> str:
    handle = "".join(char for char in name.lower() if char.isalnum())
    return handle or "player"


def new_player(account: Account, *, now: datetime) -> Player:
    name = (account.name or "").strip() or DEFAULT_PLAYER_NAME
    return Player(
        id=account.id,
        name=name,
        handle=_handle_for(name),
        email=account.email,
        avatar=account.avatar or AVATAR_PLACEHOLDER_URL.format(player_id=account.id),
        join_date=now,
        auth_provider=account.provider,
    )


def load_player(
    store: DocumentStore,
    player_id: PlayerId,
    *,
    clock: Callable[[], datetime] = _utcnow,
) -> Player | None:
    document = store.get(Collection.PLAYERS, player_id)
    return hydrate_player(player_id, document, now=clock) if document is not None else None


def load_players(store: DocumentStore, player_ids: Iterable[PlayerId]) -> list[Player]:
    """Hydrate players through chunked containment lookups, keeping the id order."""

    documents = chunked_lookup(
        player_ids,
        lambda chunk: store.get_many(Collection.PLAYERS, chunk),
        chunk_size=store.max_ids_per_query,
    )
    return [hydrate_player(pid, document) for pid, document in documents.items()]


def ensure_player(
    store: DocumentStore,
    account: Account,
    *,
    clock: Callable[[], datetime] = _utcnow,
) -> Player:
    """Return the stored player for ``account``, creating the document on first sign-in."""

    def body(transaction: Transaction) -> Player:
        document = transaction.get(Collection.PLAYERS, account.id)
        if document is not None:
            return hydrate_player(account.id, document, now=clock)
        player = new_player(account, now=clock())
        transaction.set(Collection.PLAYERS, account.id, player_to_document(player))
        return player

    player = store.run_transaction(body)
    log.debug("Player %s ready", player.id)
    return player


def toggle_favorite(store: DocumentStore, player: Player, field_id: FieldId) -> Player:
    """Add or remove ``field_id`` from the player's favourites and persist the list."""

    def body(transaction: Transaction) -> Player:
        document = transaction.get(Collection.PLAYERS, player.id)
        if document is None:
            raise StaleReferenceError(Collection.PLAYERS, player.id)
        stored = hydrate_player(player.id, document)
        if field_id in stored.favorite_fields:
            favorites = tuple(fid for fid in stored.favorite_fields if fid != field_id)
        else:
            favorites = (*stored.favorite_fields, field_id)
        transaction.update(Collection.PLAYERS, player.id, {"favoriteFields": list(favorites)})
        return stored.with_favorites(favorites)

    return store.run_transaction(body)


__all__ = [
    "Account",
    "ensure_player",
    "load_player",
    "load_players",
    "new_player",
    "toggle_favorite",
]
