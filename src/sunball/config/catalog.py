"""Catalog synchronisation defaults."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_SEARCH_RADIUS_METERS = 2500
# backend limits: id containment queries and batched writes
LOOKUP_CHUNK_SIZE = 30
WRITE_BATCH_LIMIT = 500


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    radius_meters: int = DEFAULT_SEARCH_RADIUS_METERS
    lookup_chunk_size: int = LOOKUP_CHUNK_SIZE
    write_batch_limit: int = WRITE_BATCH_LIMIT


def get_catalog_config() -> CatalogConfig:
    return CatalogConfig()
