"""Domain error taxonomy for catalog synchronisation and presence."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sunball.domain.model import Collection, FieldId


class SunballError(RuntimeError):
    """Base class for all domain errors."""


class ProviderUnavailable(SunballError):
    """Every configured geodata endpoint failed; transient and retryable."""

    def __init__(self, message: str, *, attempts: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.attempts = tuple(attempts)


class PersistenceError(SunballError):
    """The backend store could not serve a read or write."""


class PersistenceWriteFailure(PersistenceError):
    """A reconciliation batch failed to commit; earlier batches may have committed."""

    def __init__(self, message: str, *, committed_ids: Sequence[FieldId] = ()) -> None:
        super().__init__(message)
        self.committed_ids = tuple(committed_ids)


class TransactionConflictExhausted(SunballError):
    """A transaction kept conflicting with concurrent writers and gave up."""

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class StaleReferenceError(SunballError):
    """A transaction referenced a document that no longer exists."""

    def __init__(self, collection: Collection, document_id: str) -> None:
        super().__init__(f"{collection}/{document_id} no longer exists")
        self.collection = collection
        self.document_id = document_id


class FieldUnavailable(SunballError):
    """The field targeted by a check-in does not exist in the store."""

    def __init__(self, field_id: FieldId) -> None:
        super().__init__(f"Field {field_id} is not available")
        self.field_id = field_id


class InvalidOperation(SunballError):
    """The requested operation violates a domain rule."""
