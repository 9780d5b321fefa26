"""Document store over a single SQLAlchemy table.

Documents are addressed by ``(collection, id)`` and stored as JSON together with
a version counter. Transactions are optimistic: reads run in short sessions and
record the version they observed, writes are staged in memory, and the commit
re-checks every observed version inside one database transaction. A mismatch
re-runs the transaction body.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import and_, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from sunball.adapters.sqlalchemy.tables import document_table
from sunball.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, default_session_factory
from sunball.domain.chunked_lookup import LOOKUP_CHUNK_SIZE
from sunball.domain.errors import PersistenceError, TransactionConflictExhausted

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from sqlalchemy.orm import Session, sessionmaker

    from sunball.domain.model import Collection
    from sunball.domain.ports import Document, DocumentStore, TransactionBody

log = getLogger(__name__)

DEFAULT_MAX_BATCH_SIZE = 500
DEFAULT_TRANSACTION_ATTEMPTS = 5

type _Key = tuple[str, str]


class DocumentNotFound(PersistenceError):
    """An ``update`` targeted a document that does not exist."""

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(f"No document {collection}/{document_id} to update")
        self.collection = collection
        self.document_id = document_id


class TransactionConflict(RuntimeError):
    """A document changed between a transaction's read and its commit."""


class TransactionUsageError(RuntimeError):
    """A transaction read a document after staging a write."""


class _WriteKind(StrEnum):
    SET = "set"
    MERGE = "merge"
    UPDATE = "update"


@dataclass(frozen=True, slots=True)
class _Write:
    kind: _WriteKind
    collection: str
    document_id: str
    data: Document

    @property
    def key(self) -> _Key:
        return (self.collection, self.document_id)


@dataclass(frozen=True, slots=True)
class _Row:
    data: Document
    version: int


def _utcnow() -> datetime:
    return datetime.now(UTC)


def merge_documents(base: Mapping[str, Any], changes: Mapping[str, Any]) -> Document:
    """Deep-merge ``changes`` into ``base``; nested mappings merge, everything else replaces."""

    merged: Document = copy.deepcopy(dict(base))
    for key, value in changes.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_documents(
                cast("Mapping[str, Any]", current), cast("Mapping[str, Any]", value)
            )
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class SqlAlchemyDocumentStore:
    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        *,
        max_ids_per_query: int = LOOKUP_CHUNK_SIZE,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session_factory = session_factory or default_session_factory()
        self._max_ids_per_query = max_ids_per_query
        self._max_batch_size = max_batch_size
        self._clock = clock

    @property
    def max_ids_per_query(self) -> int:
        return self._max_ids_per_query

    @property
    def max_batch_size(self) -> int:
        return self._max_batch_size

    # Reads -----------------------------------------------------------------

    def get(self, collection: Collection, document_id: str) -> Document | None:
        row = self._read_rows(collection, [document_id]).get(document_id)
        return row.data if row is not None else None

    def get_many(self, collection: Collection, document_ids: Sequence[str]) -> dict[str, Document]:
        if len(document_ids) > self._max_ids_per_query:
            raise ValueError(
                f"Containment queries accept at most {self._max_ids_per_query} ids, "
                f"got {len(document_ids)}"
            )
        rows = self._read_rows(collection, document_ids)
        return {document_id: row.data for document_id, row in rows.items()}

    # Writes ----------------------------------------------------------------

    def set(
        self,
        collection: Collection,
        document_id: str,
        data: Mapping[str, Any],
        *,
        merge: bool = False,
    ) -> None:
        kind = _WriteKind.MERGE if merge else _WriteKind.SET
        self._commit_writes([_Write(kind, str(collection), document_id, dict(data))])

    def update(self, collection: Collection, document_id: str, data: Mapping[str, Any]) -> None:
        self._commit_writes([_Write(_WriteKind.UPDATE, str(collection), document_id, dict(data))])

    def batch(self) -> SqlAlchemyWriteBatch:
        return SqlAlchemyWriteBatch(self)

    def run_transaction[T](
        self,
        body: TransactionBody[T],
        *,
        max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
    ) -> T:
        for attempt in range(1, max_attempts + 1):
            transaction = SqlAlchemyTransaction(self)
            result = body(transaction)
            try:
                self._commit_writes(
                    transaction.staged_writes, observed=transaction.observed_versions
                )
            except TransactionConflict as exc:
                log.warning("Transaction attempt %s/%s conflicted: %s", attempt, max_attempts, exc)
                continue
            return result
        raise TransactionConflictExhausted(
            f"Transaction did not commit after {max_attempts} attempts", attempts=max_attempts
        )

    # Internals -------------------------------------------------------------

    def _read_rows(
        self, collection: Collection | str, document_ids: Sequence[str]
    ) -> dict[str, _Row]:
        if not document_ids:
            return {}
        statement = select(
            document_table.c.id, document_table.c.data, document_table.c.version
        ).where(
            and_(
                document_table.c.collection == str(collection),
                document_table.c.id.in_(list(document_ids)),
            )
        )
        try:
            with SqlAlchemyUnitOfWork(self._session_factory) as uow:
                rows = uow.session.execute(statement).all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read from {collection}") from exc
        return {row.id: _Row(data=dict(row.data), version=row.version) for row in rows}

    def _commit_writes(
        self,
        writes: Sequence[_Write],
        *,
        observed: Mapping[_Key, int | None] | None = None,
    ) -> None:
        observed = observed or {}
        if not writes and not observed:
            return
        now = self._clock()
        try:
            with SqlAlchemyUnitOfWork(self._session_factory) as uow:
                session = uow.session
                written: set[_Key] = set()
                for write in writes:
                    # only the first write to a key is checked against the version read
                    expected = observed if write.key not in written else {}
                    self._apply(session, write, expected, now)
                    written.add(write.key)
                for key, version in observed.items():
                    if key not in written and _current_version(session, key) != version:
                        raise TransactionConflict(f"{key[0]}/{key[1]} changed after it was read")
                uow.commit()
        except IntegrityError as exc:
            # a concurrent writer created a document this commit tried to insert
            raise TransactionConflict(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise PersistenceError("Could not commit document writes") from exc

    def _apply(
        self,
        session: Session,
        write: _Write,
        observed: Mapping[_Key, int | None],
        now: datetime,
    ) -> None:
        current = _current_row(session, write.key)
        if write.key in observed:
            expected = observed[write.key]
            actual = current.version if current is not None else None
            if actual != expected:
                raise TransactionConflict(
                    f"{write.collection}/{write.document_id} changed after it was read"
                )

        match write.kind:
            case _WriteKind.SET:
                data = copy.deepcopy(write.data)
            case _WriteKind.MERGE:
                data = merge_documents(current.data if current else {}, write.data)
            case _WriteKind.UPDATE:
                if current is None:
                    raise DocumentNotFound(write.collection, write.document_id)
                data = {**current.data, **copy.deepcopy(write.data)}

        if current is None:
            session.execute(
                insert(document_table).values(
                    collection=write.collection,
                    id=write.document_id,
                    data=data,
                    version=1,
                    updated_at=now,
                )
            )
            return

        result = session.execute(
            update(document_table)
            .where(
                and_(
                    document_table.c.collection == write.collection,
                    document_table.c.id == write.document_id,
                    document_table.c.version == current.version,
                )
            )
            .values(data=data, version=current.version + 1, updated_at=now)
        )
        if result.rowcount != 1:
            raise TransactionConflict(
                f"{write.collection}/{write.document_id} was modified concurrently"
            )


class SqlAlchemyWriteBatch:
    """Write-only batch; every staged operation commits in one database transaction."""

    def __init__(self, store: SqlAlchemyDocumentStore) -> None:
        self._store = store
        self._writes: list[_Write] = []
        self._committed = False

    def set(
        self,
        collection: Collection,
        document_id: str,
        data: Mapping[str, Any],
        *,
        merge: bool = False,
    ) -> None:
        kind = _WriteKind.MERGE if merge else _WriteKind.SET
        self._stage(_Write(kind, str(collection), document_id, dict(data)))

    def update(self, collection: Collection, document_id: str, data: Mapping[str, Any]) -> None:
        self._stage(_Write(_WriteKind.UPDATE, str(collection), document_id, dict(data)))

    def __len__(self) -> int:
        return len(self._writes)

    def commit(self) -> None:
        if self._committed:
            raise RuntimeError("Batch already committed")
        self._committed = True
        try:
            self._store._commit_writes(self._writes)  # noqa: SLF001
        except TransactionConflict as exc:
            raise PersistenceError("Batch collided with a concurrent insert") from exc

    def _stage(self, write: _Write) -> None:
        if self._committed:
            raise RuntimeError("Batch already committed")
        if len(self._writes) >= self._store.max_batch_size:
            raise ValueError(f"Batches accept at most {self._store.max_batch_size} writes")
        self._writes.append(write)


class SqlAlchemyTransaction:
    """Read-then-write view handed to transaction bodies."""

    def __init__(self, store: SqlAlchemyDocumentStore) -> None:
        self._store = store
        self._snapshots: dict[_Key, Document | None] = {}
        self._versions: dict[_Key, int | None] = {}
        self._writes: list[_Write] = []

    @property
    def observed_versions(self) -> dict[_Key, int | None]:
        return dict(self._versions)

    @property
    def staged_writes(self) -> list[_Write]:
        return list(self._writes)

    def get(self, collection: Collection, document_id: str) -> Document | None:
        if self._writes:
            raise TransactionUsageError("Transactions must execute all reads before any write")
        key: _Key = (str(collection), document_id)
        if key not in self._snapshots:
            row = self._store._read_rows(collection, [document_id]).get(document_id)  # noqa: SLF001
            self._snapshots[key] = row.data if row is not None else None
            self._versions[key] = row.version if row is not None else None
        snapshot = self._snapshots[key]
        return copy.deepcopy(snapshot) if snapshot is not None else None

    def set(
        self,
        collection: Collection,
        document_id: str,
        data: Mapping[str, Any],
        *,
        merge: bool = False,
    ) -> None:
        kind = _WriteKind.MERGE if merge else _WriteKind.SET
        self._writes.append(_Write(kind, str(collection), document_id, dict(data)))

    def update(self, collection: Collection, document_id: str, data: Mapping[str, Any]) -> None:
        self._writes.append(_Write(_WriteKind.UPDATE, str(collection), document_id, dict(data)))


def _current_row(session: Session, key: _Key) -> _Row | None:
    collection, document_id = key
    row = session.execute(
        select(document_table.c.data, document_table.c.version).where(
            and_(
                document_table.c.collection == collection,
                document_table.c.id == document_id,
            )
        )
    ).one_or_none()
    if row is None:
        return None
    return _Row(data=dict(row.data), version=row.version)


def _current_version(session: Session, key: _Key) -> int | None:
    row = _current_row(session, key)
    return row.version if row is not None else None


if TYPE_CHECKING:
    _store_check: DocumentStore = SqlAlchemyDocumentStore()
