"""Check-in/check-out state machine for player presence.

A player is either ``Absent`` (no current field) or ``Present(field_id)``. Every
transition runs as one store transaction that issues all of its reads before any
write, so a switch between two fields never becomes observable as a player
listed on both, or on neither because of a partial failure.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from sunball.domain.errors import FieldUnavailable, StaleReferenceError
from sunball.domain.hydration import (
    field_players_to_documents,
    format_timestamp,
    hydrate_field,
    hydrate_player,
)
from sunball.domain.model import Collection

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from sunball.domain.model import Field, FieldId, Player, PlayerStats
    from sunball.domain.ports import Document, DocumentStore, Transaction

log = getLogger(__name__)

# shorter sessions do not count as a visit
DWELL_THRESHOLD = timedelta(minutes=15)
TRANSACTION_ATTEMPTS = 5


@dataclass(frozen=True, slots=True)
class PresenceChange:
    """Confirmed outcome of a presence transition, ready for optimistic UI binding."""

    player: Player
    left: tuple[Field, ...] = ()
    joined: Field | None = None
    changed: bool = True
    visit_recorded: bool = False
    stale_references: tuple[StaleReferenceError, ...] = ()

    @property
    def fields(self) -> tuple[Field, ...]:
        return (*self.left, self.joined) if self.joined is not None else self.left


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _unique_ids(*candidates: FieldId | None) -> list[FieldId]:
    return list(dict.fromkeys(c for c in candidates if c is not None))


def _players_update(field: Field) -> Document:
    return {"players": field_players_to_documents(field.players)}


class PresenceCoordinator:
    def __init__(
        self,
        store: DocumentStore,
        *,
        dwell_threshold: timedelta = DWELL_THRESHOLD,
        max_attempts: int = TRANSACTION_ATTEMPTS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._dwell_threshold = dwell_threshold
        self._max_attempts = max_attempts
        self._clock = clock

    def check_in(self, player: Player, field_id: FieldId) -> PresenceChange:
        """Move ``player`` onto ``field_id``, leaving any field they are present on.

        Raises ``FieldUnavailable`` when the target does not exist and
        ``StaleReferenceError`` when the player has no stored document; neither
        writes anything.
        """

        now = self._clock()

        def body(transaction: Transaction) -> PresenceChange:
            target_document = transaction.get(Collection.FIELDS, field_id)
            if target_document is None:
                raise FieldUnavailable(field_id)
            player_document = transaction.get(Collection.PLAYERS, player.id)
            if player_document is None:
                raise StaleReferenceError(Collection.PLAYERS, player.id)
            stored = hydrate_player(player.id, player_document, now=self._clock)
            target = hydrate_field(field_id, target_document)
            if stored.current_field_id == field_id and target.has_player(player.id):
                return PresenceChange(player=stored, changed=False)

            # the stored field wins; the local one is cleaned up as well in case
            # another session already moved the player
            leaving_ids = [
                fid
                for fid in _unique_ids(stored.current_field_id, player.current_field_id)
                if fid != field_id
            ]
            previous = {fid: transaction.get(Collection.FIELDS, fid) for fid in leaving_ids}

            left: list[Field] = []
            stale: list[StaleReferenceError] = []
            for fid, document in previous.items():
                if document is None:
                    stale.append(StaleReferenceError(Collection.FIELDS, fid))
                    continue
                old_field = hydrate_field(fid, document)
                if old_field.has_player(player.id):
                    old_field = old_field.without_player(player.id)
                    transaction.update(Collection.FIELDS, fid, _players_update(old_field))
                left.append(old_field)

            joined = target.with_player(stored.presence_entry(now))
            transaction.update(Collection.FIELDS, field_id, _players_update(joined))
            transaction.update(
                Collection.PLAYERS,
                player.id,
                {"currentFieldId": field_id, "checkInTime": format_timestamp(now)},
            )
            return PresenceChange(
                player=stored.checked_in(field_id, now),
                left=tuple(left),
                joined=joined,
                stale_references=tuple(stale),
            )

        change = self._store.run_transaction(body, max_attempts=self._max_attempts)
        self._log_stale(change.stale_references)
        if change.changed:
            log.info("Player %s checked in to %s", player.id, field_id)
        return change

    def check_out(self, player: Player, field_id: FieldId | None = None) -> PresenceChange:
        """Clear the presence of ``player``; ``field_id`` defaults to their current field.

        A field that no longer exists is reported on the outcome instead of aborting,
        so the player is never stranded in ``Present``.
        """

        now = self._clock()

        def body(transaction: Transaction) -> PresenceChange:
            player_document = transaction.get(Collection.PLAYERS, player.id)
            stored = (
                hydrate_player(player.id, player_document, now=self._clock)
                if player_document is not None
                else None
            )
            base = stored or player
            field_ids = _unique_ids(field_id, base.current_field_id, player.current_field_id)
            documents = {fid: transaction.get(Collection.FIELDS, fid) for fid in field_ids}

            stale: list[StaleReferenceError] = []
            if player_document is None:
                stale.append(StaleReferenceError(Collection.PLAYERS, player.id))
            if not field_ids and not base.is_present:
                return PresenceChange(player=base, changed=False, stale_references=tuple(stale))

            left: list[Field] = []
            for fid, document in documents.items():
                if document is None:
                    stale.append(StaleReferenceError(Collection.FIELDS, fid))
                    continue
                field = hydrate_field(fid, document)
                if field.has_player(player.id):
                    field = field.without_player(player.id)
                    transaction.update(Collection.FIELDS, fid, _players_update(field))
                left.append(field)

            visit = self._counts_as_visit(base.check_in_time, now)
            stats = _with_visit(base.stats) if visit else base.stats
            if player_document is not None:
                update: Document = {"currentFieldId": None, "checkInTime": None}
                if visit:
                    update["stats"] = _stats_document_with_visit(player_document, stats)
                transaction.update(Collection.PLAYERS, player.id, update)

            return PresenceChange(
                player=base.checked_out(stats=stats),
                left=tuple(left),
                visit_recorded=visit,
                stale_references=tuple(stale),
            )

        change = self._store.run_transaction(body, max_attempts=self._max_attempts)
        self._log_stale(change.stale_references)
        if change.changed:
            log.info(
                "Player %s checked out (visit recorded: %s)", player.id, change.visit_recorded
            )
        return change

    def _counts_as_visit(self, check_in_time: datetime | None, now: datetime) -> bool:
        if check_in_time is None:
            return False
        return now - check_in_time >= self._dwell_threshold

    @staticmethod
    def _log_stale(references: Iterable[StaleReferenceError]) -> None:
        for reference in references:
            log.warning("Presence cleanup skipped: %s", reference)


def _with_visit(stats: PlayerStats) -> PlayerStats:
    return replace(stats, fields_visited=stats.fields_visited + 1)


def _stats_document_with_visit(player_document: Document, stats: PlayerStats) -> Document:
    # keep counters this version does not model
    raw = player_document.get("stats")
    existing = cast("dict[str, Any]", raw) if isinstance(raw, dict) else {}
    return {**existing, "fieldsVisited": stats.fields_visited}


__all__ = ["DWELL_THRESHOLD", "PresenceChange", "PresenceCoordinator"]
