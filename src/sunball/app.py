"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from sunball.adapters.overpass import OverpassFetcher
from sunball.adapters.pixabay import PixabayImagePool
from sunball.adapters.sqlalchemy.document_store import SqlAlchemyDocumentStore
from sunball.adapters.sqlalchemy.unit_of_work import is_started, startup
from sunball.config import (
    get_catalog_config,
    get_overpass_config,
    get_pixabay_config,
    get_presence_config,
)
from sunball.domain.auto_checkout import AutoCheckoutMonitor
from sunball.domain.catalog_sync import fetch_fields
from sunball.domain.errors import StaleReferenceError
from sunball.domain.field_submission import FieldSubmission, submit_field
from sunball.domain.model import Collection, GeoPoint, SurfaceType
from sunball.domain.players import Account, ensure_player, load_player
from sunball.domain.presence import PresenceCoordinator

if TYPE_CHECKING:
    from sunball.domain.model import Field, FieldId, Player, PlayerId
    from sunball.domain.ports import DocumentStore, FieldDraftFetcher, ImagePoolFetcher
    from sunball.domain.presence import PresenceChange

log = getLogger(__name__)


def open_store(*, database_uri: str | None = None) -> SqlAlchemyDocumentStore:
    """Start the SQLAlchemy adapter if needed and return a document store."""

    if not is_started():
        startup(database_uri=database_uri)
    catalog = get_catalog_config()
    return SqlAlchemyDocumentStore(
        max_ids_per_query=catalog.lookup_chunk_size,
        max_batch_size=catalog.write_batch_limit,
    )


def build_image_pool() -> ImagePoolFetcher | None:
    config = get_pixabay_config()
    if config is None:
        log.info("PIXABAY_API_KEY not set; new fields get no photo")
        return None
    return PixabayImagePool(config)


def build_presence_coordinator(store: DocumentStore) -> PresenceCoordinator:
    config = get_presence_config()
    return PresenceCoordinator(
        store,
        dwell_threshold=config.dwell_threshold,
        max_attempts=config.transaction_attempts,
    )


def refresh_fields(
    lat: float,
    lng: float,
    radius_meters: int | None = None,
    *,
    store: DocumentStore | None = None,
    fetcher: FieldDraftFetcher | None = None,
    image_pool: ImagePoolFetcher | None = None,
) -> list[Field]:
    """Fetch, reconcile and persist the football fields around a point."""

    effective_store = store or open_store()
    effective_fetcher = fetcher or OverpassFetcher(get_overpass_config())
    effective_pool = image_pool if image_pool is not None else build_image_pool()
    radius = radius_meters or get_catalog_config().radius_meters
    log.info("Refreshing fields around %s,%s (radius %sm)", lat, lng, radius)

    fields = fetch_fields(
        GeoPoint(lat, lng),
        radius,
        fetcher=effective_fetcher,
        store=effective_store,
        image_pool=effective_pool,
    )
    log.info("Finished field refresh: %s fields", len(fields))
    return fields


def _require_player(store: DocumentStore, player_id: PlayerId) -> Player:
    player = load_player(store, player_id)
    if player is None:
        raise StaleReferenceError(Collection.PLAYERS, player_id)
    return player


def check_in_player(
    player_id: PlayerId,
    field_id: FieldId,
    *,
    store: DocumentStore | None = None,
) -> PresenceChange:
    effective_store = store or open_store()
    player = _require_player(effective_store, player_id)
    return build_presence_coordinator(effective_store).check_in(player, field_id)


def check_out_player(
    player_id: PlayerId,
    field_id: FieldId | None = None,
    *,
    store: DocumentStore | None = None,
) -> PresenceChange:
    effective_store = store or open_store()
    player = _require_player(effective_store, player_id)
    return build_presence_coordinator(effective_store).check_out(player, field_id)


def create_player(
    *,
    player_id: PlayerId,
    name: str | None = None,
    email: str = "",
    store: DocumentStore | None = None,
) -> Player:
    effective_store = store or open_store()
    return ensure_player(effective_store, Account(id=player_id, name=name, email=email))


def add_field(
    *,
    name: str,
    lat: float,
    lng: float,
    surface: SurfaceType = SurfaceType.RUBBER,
    lighting: bool = False,
    store: DocumentStore | None = None,
) -> Field:
    effective_store = store or open_store()
    submission = FieldSubmission(
        name=name, position=GeoPoint(lat, lng), surface=surface, lighting=lighting
    )
    return submit_field(effective_store, submission)


async def watch_player(
    player_id: PlayerId,
    *,
    duration_seconds: float | None = None,
    store: DocumentStore | None = None,
) -> None:
    """Run the auto check-out monitor for one player, forever or for ``duration_seconds``."""

    effective_store = store or open_store()
    config = get_presence_config()
    monitor = AutoCheckoutMonitor(
        build_presence_coordinator(effective_store),
        player_id,
        lambda: load_player(effective_store, player_id),
        ttl=config.presence_ttl,
        interval_seconds=config.sweep_interval_seconds,
    )
    log.info(
        "Watching player %s (ttl=%s, interval=%ss)",
        player_id,
        config.presence_ttl,
        config.sweep_interval_seconds,
    )
    async with monitor:
        if duration_seconds is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration_seconds)
