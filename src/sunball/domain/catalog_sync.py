"""Viewport refresh: fetch, reconcile, persist and merge into the local view."""

from __future__ import annotations

import random
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sunball.domain.chunked_lookup import chunked_lookup
from sunball.domain.errors import PersistenceError, PersistenceWriteFailure, ProviderUnavailable
from sunball.domain.hydration import hydrate_field
from sunball.domain.local_state import FieldCollection
from sunball.domain.model import Collection
from sunball.domain.reconciliation import ReconciliationEngine, ReconciliationResult, commit_writes

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sunball.domain.model import Field, FieldId, GeoPoint
    from sunball.domain.ports import DocumentStore, FieldDraftFetcher, ImagePoolFetcher

log = getLogger(__name__)

COULD_NOT_LOAD_FIELDS = "Could not load fields. The server might be busy. Please try refreshing."


@dataclass(frozen=True, slots=True)
class CatalogRefresh:
    """New local collection plus an optional user-facing notice."""

    fields: FieldCollection
    result: ReconciliationResult | None = None
    notice: str | None = None
    error: Exception | None = None


def load_fields(
    store: DocumentStore,
    field_ids: Iterable[FieldId],
    *,
    chunk_size: int | None = None,
) -> dict[FieldId, Field]:
    """Hydrate the stored fields among ``field_ids`` through chunked lookups."""

    documents = chunked_lookup(
        field_ids,
        lambda chunk: store.get_many(Collection.FIELDS, chunk),
        chunk_size=chunk_size or store.max_ids_per_query,
    )
    return {fid: hydrate_field(fid, document) for fid, document in documents.items()}


def reconcile_viewport(
    center: GeoPoint,
    radius_meters: int,
    *,
    fetcher: FieldDraftFetcher,
    store: DocumentStore,
    image_pool: ImagePoolFetcher | None = None,
    rng: random.Random | None = None,
) -> ReconciliationResult:
    """Fetch drafts around ``center`` and merge them with stored fields; writes nothing."""

    drafts = fetcher(center, radius_meters)
    if not drafts:
        return ReconciliationResult(fields=(), writes=())
    pool = image_pool() if image_pool is not None else []
    persisted = load_fields(store, [draft.id for draft in drafts])
    engine = ReconciliationEngine(image_pool=pool, rng=rng or random.Random())
    return engine.reconcile(drafts, persisted)


def fetch_fields(
    center: GeoPoint,
    radius_meters: int,
    *,
    fetcher: FieldDraftFetcher,
    store: DocumentStore,
    image_pool: ImagePoolFetcher | None = None,
    rng: random.Random | None = None,
) -> list[Field]:
    """Return the reconciled fields around ``center`` after persisting scheduled writes.

    Raises ``ProviderUnavailable`` when no geodata endpoint answers and
    ``PersistenceWriteFailure`` when a write batch fails.
    """

    result = reconcile_viewport(
        center, radius_meters, fetcher=fetcher, store=store, image_pool=image_pool, rng=rng
    )
    commit_writes(store, result.writes)
    return list(result.fields)


def refresh_catalog(
    collection: FieldCollection,
    center: GeoPoint,
    radius_meters: int,
    *,
    fetcher: FieldDraftFetcher,
    store: DocumentStore,
    image_pool: ImagePoolFetcher | None = None,
    rng: random.Random | None = None,
) -> CatalogRefresh:
    """Refresh the local view; failures become a notice and never drop entries."""

    try:
        result = reconcile_viewport(
            center, radius_meters, fetcher=fetcher, store=store, image_pool=image_pool, rng=rng
        )
    except ProviderUnavailable as exc:
        log.warning("Field refresh aborted: %s", exc)
        return CatalogRefresh(fields=collection, notice=COULD_NOT_LOAD_FIELDS, error=exc)
    except PersistenceError as exc:
        log.warning("Could not load stored fields: %s", exc)
        return CatalogRefresh(fields=collection, notice=COULD_NOT_LOAD_FIELDS, error=exc)

    try:
        commit_writes(store, result.writes)
    except PersistenceWriteFailure as exc:
        committed = set(exc.committed_ids)
        pending = {write.field_id for write in result.writes} - committed
        confirmed = [entry for entry in result.fields if entry.id not in pending]
        log.warning(
            "Keeping %s of %s refreshed fields after a failed write",
            len(confirmed),
            len(result.fields),
        )
        return CatalogRefresh(
            fields=collection.merged(confirmed),
            result=result,
            notice=COULD_NOT_LOAD_FIELDS,
            error=exc,
        )

    log.info(
        "Refreshed %s fields (%s new, %s photos backfilled)",
        len(result.fields),
        len(result.created),
        len(result.backfilled),
    )
    return CatalogRefresh(fields=collection.merged(result.fields), result=result)


def load_supplemental_fields(
    collection: FieldCollection,
    field_ids: Iterable[FieldId],
    *,
    store: DocumentStore,
) -> FieldCollection:
    """Add stored fields (favourites, chats) that the local view does not hold yet."""

    missing = collection.missing(field_ids)
    if not missing:
        return collection
    return collection.merged(load_fields(store, missing).values())


__all__ = [
    "COULD_NOT_LOAD_FIELDS",
    "CatalogRefresh",
    "fetch_fields",
    "load_fields",
    "load_supplemental_fields",
    "reconcile_viewport",
    "refresh_catalog",
]
