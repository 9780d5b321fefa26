from __future__ import annotations

from collections.abc import Callable  # noqa: TC003
from urllib.parse import parse_qs

import httpx
import pytest

from sunball.adapters.http_resilience import ResilientClient
from sunball.adapters.overpass import (
    OverpassElement,
    OverpassFetcher,
    build_query,
    element_to_draft,
    map_surface,
)
from sunball.config import OverpassConfig, ResilienceConfig
from sunball.domain.errors import ProviderUnavailable
from sunball.domain.hydration import DEFAULT_FIELD_NAME
from sunball.domain.model import GeoPoint, SurfaceType

PRIMARY = "https://primary.example/api/interpreter"
MIRROR = "https://mirror.example/api/interpreter"


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory


def _fetcher(handler: Callable[[httpx.Request], httpx.Response]) -> OverpassFetcher:
    config = OverpassConfig(
        endpoints=(PRIMARY, MIRROR),
        resilience=ResilienceConfig(name="overpass-test", cache=None),
    )
    return OverpassFetcher(config, client_factory=_make_client_factory(handler))


def _payload() -> dict[str, object]:
    return {
        "version": 0.6,
        "generator": "Overpass API",
        "elements": [
            {
                "type": "node",
                "id": 101,
                "lat": 55.7,
                "lon": 37.6,
                "tags": {"name": "Luzhniki Mini", "surface": "grass", "lit": "yes"},
            },
            {
                "type": "way",
                "id": 202,
                "center": {"lat": 55.8, "lon": 37.5},
                "tags": {"leisure": "pitch", "sport": "soccer"},
            },
            {"type": "relation", "id": 303, "tags": {"name": "No geometry"}},
        ],
    }


def test_build_query_covers_every_selector() -> None:
    query = build_query(GeoPoint(55.75, 37.61), 2500, timeout_seconds=25)

    assert query.startswith("[out:json][timeout:25];")
    assert query.endswith("out center;")
    assert 'node["sport"~"soccer|football"](around:2500,55.75,37.61);' in query
    assert 'way["leisure"="pitch"]["sport"~"multi"](around:2500,55.75,37.61);' in query
    assert 'relation["building"="stadium"](around:2500,55.75,37.61);' in query
    assert query.count("(around:2500,") == 15


def test_build_query_rejects_non_positive_radius() -> None:
    with pytest.raises(ValueError, match="radius_meters"):
        build_query(GeoPoint(0.0, 0.0), 0)


@pytest.mark.parametrize(
    ("tag", "expected"),
    [
        ("grass", SurfaceType.GRASS),
        ("natural_grass", SurfaceType.GRASS),
        ("artificial_turf", SurfaceType.RUBBER),
        ("concrete", SurfaceType.HALL),
        ("asphalt", SurfaceType.ASPHALT),
        ("sand", SurfaceType.SAND),
        ("clay", SurfaceType.RUBBER),
        (None, SurfaceType.RUBBER),
    ],
)
def test_map_surface(tag: str | None, expected: SurfaceType) -> None:
    assert map_surface(tag) is expected


def test_element_to_draft_uses_centre_and_defaults() -> None:
    element = OverpassElement.model_validate(
        {"type": "way", "id": 7, "center": {"lat": 1.5, "lon": 2.5}, "tags": {"name": "  "}}
    )

    draft = element_to_draft(element)

    assert draft is not None
    assert draft.id == "7"
    assert draft.name == DEFAULT_FIELD_NAME
    assert draft.position == GeoPoint(1.5, 2.5)
    assert draft.lighting is False


def test_fetch_drafts_from_first_endpoint() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=_payload())

    drafts = _fetcher(handler)(GeoPoint(55.75, 37.61), 2500)

    assert [draft.id for draft in drafts] == ["101", "202"]
    assert drafts[0].surface is SurfaceType.GRASS
    assert drafts[0].lighting is True
    assert drafts[1].name == DEFAULT_FIELD_NAME
    assert len(requests) == 1
    assert requests[0].method == "POST"
    form = parse_qs(requests[0].content.decode())
    assert form["data"][0].startswith("[out:json]")


def test_fetch_drafts_fails_over_to_next_endpoint() -> None:
    hosts: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        hosts.append(request.url.host)
        if request.url.host == "primary.example":
            return httpx.Response(504, text="Gateway Timeout")
        return httpx.Response(200, json=_payload())

    drafts = _fetcher(handler)(GeoPoint(55.75, 37.61), 2500)

    assert hosts == ["primary.example", "mirror.example"]
    assert len(drafts) == 2


def test_fetch_drafts_skips_unusable_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "primary.example":
            return httpx.Response(200, text="<html>rate limited</html>")
        return httpx.Response(200, json={"elements": []})

    assert _fetcher(handler)(GeoPoint(55.75, 37.61), 2500) == []


def test_fetch_drafts_raises_when_every_endpoint_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "primary.example":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(429, text="Too Many Requests")

    with pytest.raises(ProviderUnavailable) as exc:
        _fetcher(handler)(GeoPoint(55.75, 37.61), 2500)

    assert exc.value.attempts == (PRIMARY, MIRROR)
