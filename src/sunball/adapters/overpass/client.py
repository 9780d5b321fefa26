"""HTTP client for Overpass interpreter endpoints with sequential failover."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from sunball.adapters.http_resilience import ResilientClient
from sunball.config.overpass import OverpassConfig, get_overpass_config
from sunball.domain.errors import ProviderUnavailable
from sunball.domain.ports.fetching import FieldDraftFetcher

from .query import build_query
from .schema import OverpassResponse
from .translator import elements_to_drafts

if TYPE_CHECKING:
    from collections.abc import Callable

    from sunball.config.http_resilience import ResilienceConfig
    from sunball.domain.model import FieldDraft, GeoPoint

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class OverpassAPIError(RuntimeError):
    """Raised when an endpoint answers with an error status or an unusable payload."""

    def __init__(self, message: str, *, endpoint: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code


@dataclass(slots=True)
class OverpassFetcher:
    config: OverpassConfig = field(default_factory=get_overpass_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def __call__(self, center: GeoPoint, radius_meters: int) -> list[FieldDraft]:
        return asyncio.run(self.fetch_drafts(center, radius_meters))

    async def fetch_drafts(self, center: GeoPoint, radius_meters: int) -> list[FieldDraft]:
        """Query the endpoints in order and return the first usable answer."""

        query = build_query(
            center, radius_meters, timeout_seconds=self.config.query_timeout_seconds
        )
        attempted: list[str] = []
        async with self.client_factory(self.config.resilience) as client:
            for endpoint in self.config.endpoints:
                attempted.append(endpoint)
                try:
                    payload = await self._request(client, endpoint, query)
                except (httpx.HTTPError, OverpassAPIError) as exc:
                    log.warning("Overpass endpoint %s failed: %s", endpoint, exc)
                    continue
                drafts = elements_to_drafts(payload.elements)
                log.info(
                    "Fetched %s drafts (%s elements) from %s",
                    len(drafts),
                    len(payload.elements),
                    endpoint,
                )
                return drafts

        log.error("All %s Overpass endpoints failed", len(attempted))
        raise ProviderUnavailable("Failed to fetch from Overpass API", attempts=attempted)

    async def _request(
        self,
        client: ResilientClient,
        endpoint: str,
        query: str,
    ) -> OverpassResponse:
        response = await client.post(endpoint, data={"data": query})
        if not response.is_success:
            raise OverpassAPIError(
                f"HTTP {response.status_code} {response.reason_phrase}",
                endpoint=endpoint,
                status_code=response.status_code,
            )
        try:
            return OverpassResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise OverpassAPIError(
                f"Unexpected Overpass payload: {exc}", endpoint=endpoint
            ) from exc


if TYPE_CHECKING:
    _fetcher_check: FieldDraftFetcher = OverpassFetcher()
