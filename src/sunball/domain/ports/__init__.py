"""Ports the domain depends on; adapters provide the implementations."""

from __future__ import annotations

from .fetching import FieldDraftFetcher, ImagePoolFetcher
from .persistence import (
    Document,
    DocumentStore,
    Transaction,
    TransactionBody,
    WriteBatch,
)

__all__ = [
    "Document",
    "DocumentStore",
    "FieldDraftFetcher",
    "ImagePoolFetcher",
    "Transaction",
    "TransactionBody",
    "WriteBatch",
]
