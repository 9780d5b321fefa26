from __future__ import annotations

from collections.abc import Mapping, Sequence  # noqa: TC003

import pytest

from sunball.domain.chunked_lookup import LOOKUP_CHUNK_SIZE, chunk_ids, chunked_lookup


class RecordingFetcher:
    def __init__(self, known: set[str]) -> None:
        self.known = known
        self.calls: list[list[str]] = []

    def __call__(self, ids: Sequence[str]) -> Mapping[str, str]:
        self.calls.append(list(ids))
        return {
            identifier: f"record-{identifier}" for identifier in ids if identifier in self.known
        }


def test_chunked_lookup_issues_one_query_per_chunk() -> None:
    ids = [f"id{index}" for index in range(65)]
    fetcher = RecordingFetcher(set(ids))

    result = chunked_lookup(ids, fetcher)

    assert [len(call) for call in fetcher.calls] == [30, 30, 5]
    assert list(result) == ids
    assert result["id64"] == "record-id64"


def test_chunked_lookup_empty_input_makes_no_calls() -> None:
    fetcher = RecordingFetcher(set())

    assert chunked_lookup([], fetcher) == {}
    assert fetcher.calls == []


def test_chunked_lookup_skips_unresolvable_ids() -> None:
    fetcher = RecordingFetcher({"a", "c"})

    result = chunked_lookup(["a", "b", "c"], fetcher)

    assert result == {"a": "record-a", "c": "record-c"}


def test_chunked_lookup_deduplicates_and_keeps_first_occurrence_order() -> None:
    fetcher = RecordingFetcher({"a", "b", "c"})

    result = chunked_lookup(["c", "a", "c", "b", "a"], fetcher, chunk_size=2)

    assert fetcher.calls == [["c", "a"], ["b"]]
    assert list(result) == ["c", "a", "b"]


def test_chunked_lookup_ignores_records_outside_the_chunk() -> None:
    def fetcher(ids: Sequence[str]) -> Mapping[str, int]:
        return {"unrequested": 1, **{identifier: 0 for identifier in ids}}

    assert chunked_lookup(["x"], fetcher) == {"x": 0}


def test_chunk_ids_never_exceeds_limit() -> None:
    chunks = chunk_ids([str(index) for index in range(91)])

    assert all(len(chunk) <= LOOKUP_CHUNK_SIZE for chunk in chunks)
    assert sum(len(chunk) for chunk in chunks) == 91


def test_chunk_ids_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError, match="chunk_size"):
        chunk_ids(["a"], 0)
