"""SQLAlchemy adapter package for sunball."""

from __future__ import annotations

from .document_store import (
    DocumentNotFound,
    SqlAlchemyDocumentStore,
    SqlAlchemyTransaction,
    SqlAlchemyWriteBatch,
    TransactionConflict,
    TransactionUsageError,
    merge_documents,
)
from .tables import UTCDateTime, document_table, metadata
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "DocumentNotFound",
    "SqlAlchemyDocumentStore",
    "SqlAlchemyTransaction",
    "SqlAlchemyUnitOfWork",
    "SqlAlchemyWriteBatch",
    "StartupError",
    "TransactionConflict",
    "TransactionUsageError",
    "UTCDateTime",
    "configured_engine",
    "document_table",
    "is_started",
    "merge_documents",
    "metadata",
    "shutdown",
    "startup",
]
