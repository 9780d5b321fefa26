"""Best-effort client for the Pixabay image search used to decorate fields."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from sunball.adapters.http_resilience import ResilientClient
from sunball.config.pixabay import PIXABAY_BASE_URL
from sunball.domain.ports.fetching import ImagePoolFetcher

from .schema import PixabaySearchResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from sunball.config.http_resilience import ResilienceConfig
    from sunball.config.pixabay import PixabayConfig

log = getLogger(__name__)

IMAGE_CATEGORIES = "places,sports"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class PixabayAPIError(RuntimeError):
    """Raised when Pixabay rejects the request or returns an unexpected payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class PixabayImagePool:
    """Fetch photo URLs for new fields; failures yield an empty pool."""

    config: PixabayConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def __call__(self) -> list[str]:
        return asyncio.run(self.fetch_images())

    async def fetch_images(self) -> list[str]:
        try:
            async with self.client_factory(self.config.resilience) as client:
                response = await self._request(client)
        except (httpx.HTTPError, PixabayAPIError) as exc:
            log.warning("Failed to fetch images from Pixabay: %s", exc)
            return []

        urls = response.image_urls()
        if not urls:
            log.warning("Pixabay returned no images for %r", self.config.query)
        else:
            log.debug("Fetched %s images from Pixabay", len(urls))
        return urls

    async def _request(self, client: ResilientClient) -> PixabaySearchResponse:
        params = httpx.QueryParams(
            {
                "key": self.config.api_key,
                "q": self.config.query,
                "image_type": "photo",
                "per_page": self.config.per_page,
                "safesearch": "true",
                "category": IMAGE_CATEGORIES,
            }
        )
        base_url = self.config.resilience.base_url or PIXABAY_BASE_URL
        response = await client.get(base_url, params=params)
        if not response.is_success:
            raise PixabayAPIError(
                f"HTTP {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        try:
            return PixabaySearchResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise PixabayAPIError(f"Unexpected Pixabay payload: {exc}") from exc


if TYPE_CHECKING:
    _pool_check: ImagePoolFetcher = PixabayImagePool(
        PixabayConfig(api_key="", resilience=ResilienceConfig(name="pixabay"))
    )
