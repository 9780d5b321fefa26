"""Ports for the document-style backend store."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sunball.domain.model import Collection

type Document = dict[str, Any]


@runtime_checkable
class WriteBatch(Protocol):
    """Write-only group of operations committed atomically."""

    def set(
        self,
        collection: Collection,
        document_id: str,
        data: Mapping[str, Any],
        *,
        merge: bool = False,
    ) -> None: ...

    def update(self, collection: Collection, document_id: str, data: Mapping[str, Any]) -> None: ...

    def __len__(self) -> int: ...

    def commit(self) -> None: ...


@runtime_checkable
class Transaction(Protocol):
    """Serializable read-then-write unit; every ``get`` must precede every write."""

    def get(self, collection: Collection, document_id: str) -> Document | None: ...

    def set(
        self,
        collection: Collection,
        document_id: str,
        data: Mapping[str, Any],
        *,
        merge: bool = False,
    ) -> None: ...

    def update(self, collection: Collection, document_id: str, data: Mapping[str, Any]) -> None: ...


type TransactionBody[T] = Callable[[Transaction], T]


@runtime_checkable
class DocumentStore(Protocol):
    """Collection/id addressed store with batches and optimistic transactions."""

    @property
    def max_ids_per_query(self) -> int: ...

    @property
    def max_batch_size(self) -> int: ...

    def get(self, collection: Collection, document_id: str) -> Document | None: ...

    def get_many(self, collection: Collection, document_ids: Sequence[str]) -> dict[str, Document]:
        """Containment query; raises ``ValueError`` above ``max_ids_per_query`` ids."""
        ...

    def set(
        self,
        collection: Collection,
        document_id: str,
        data: Mapping[str, Any],
        *,
        merge: bool = False,
    ) -> None: ...

    def update(self, collection: Collection, document_id: str, data: Mapping[str, Any]) -> None:
        """Merge ``data`` into an existing document; raises ``PersistenceError`` when absent."""
        ...

    def batch(self) -> WriteBatch: ...

    def run_transaction[T](self, body: TransactionBody[T], *, max_attempts: int = 5) -> T:
        """Run ``body`` until it commits without conflicts.

        Raises ``TransactionConflictExhausted`` after ``max_attempts`` conflicting runs.
        Exceptions raised by ``body`` abort the transaction without writing anything.
        """
        ...


__all__ = ["Document", "DocumentStore", "Transaction", "TransactionBody", "WriteBatch"]
