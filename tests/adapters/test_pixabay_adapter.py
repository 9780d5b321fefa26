from __future__ import annotations

from collections.abc import Callable  # noqa: TC003

import httpx

from sunball.adapters.http_resilience import ResilientClient
from sunball.adapters.pixabay import PixabayImagePool, PixabaySearchResponse
from sunball.config import PixabayConfig, ResilienceConfig


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


def _pool(handler: Callable[[httpx.Request], httpx.Response]) -> PixabayImagePool:
    config = PixabayConfig(
        api_key="test-key",
        resilience=ResilienceConfig(
            name="pixabay-test", base_url="https://pixabay.test/api/", cache=None
        ),
        per_page=3,
    )
    return PixabayImagePool(config, client_factory=_make_client_factory(handler))


def test_fetch_images_returns_large_urls() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "total": 2,
                "totalHits": 2,
                "hits": [
                    {"id": 1, "largeImageURL": "https://cdn.test/1.jpg", "likes": 3},
                    {"id": 2, "webformatURL": "https://cdn.test/2_640.jpg"},
                ],
            },
        )

    assert _pool(handler)() == ["https://cdn.test/1.jpg"]
    params = seen[0].url.params
    assert params["key"] == "test-key"
    assert params["q"] == "football stadium"
    assert params["per_page"] == "3"
    assert params["image_type"] == "photo"


def test_fetch_images_error_status_yields_empty_pool() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="[ERROR 400] Invalid API key")

    assert _pool(handler)() == []


def test_fetch_images_network_error_yields_empty_pool() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    assert _pool(handler)() == []


def test_search_response_ignores_hits_without_large_url() -> None:
    response = PixabaySearchResponse.model_validate({"hits": [{"id": 5}]})

    assert response.image_urls() == []
