"""Batched id lookups against backends with a per-query id cap."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

log = getLogger(__name__)

# id containment queries accept at most this many ids
LOOKUP_CHUNK_SIZE = 30

type PageFetcher[R] = Callable[[Sequence[str]], Mapping[str, R]]


def chunk_ids(ids: Iterable[str], chunk_size: int = LOOKUP_CHUNK_SIZE) -> list[list[str]]:
    """Split ``ids`` into ordered chunks of at most ``chunk_size``, dropping duplicates."""

    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")
    unique = list(dict.fromkeys(ids))
    return [unique[start : start + chunk_size] for start in range(0, len(unique), chunk_size)]


def chunked_lookup[R](
    ids: Iterable[str],
    page_fetcher: PageFetcher[R],
    *,
    chunk_size: int = LOOKUP_CHUNK_SIZE,
) -> dict[str, R]:
    """Resolve ``ids`` with one ``page_fetcher`` call per chunk and union the results.

    ``page_fetcher`` receives at most ``chunk_size`` ids and returns the records it
    could resolve keyed by id; unresolvable ids are simply absent from the result.
    The returned mapping keeps the order of the first occurrence of each id.
    """

    chunks = chunk_ids(ids, chunk_size)
    found: dict[str, R] = {}
    for chunk in chunks:
        page = page_fetcher(chunk)
        for identifier in chunk:
            if identifier in page:
                found[identifier] = page[identifier]
    log.debug(
        "Resolved %s ids in %s queries (%s found)",
        sum(map(len, chunks)),
        len(chunks),
        len(found),
    )
    return found


__all__ = ["LOOKUP_CHUNK_SIZE", "PageFetcher", "chunk_ids", "chunked_lookup"]
