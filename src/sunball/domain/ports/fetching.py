"""Ports for fetching external catalog data."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sunball.domain.model import FieldDraft, GeoPoint


@runtime_checkable
class FieldDraftFetcher(Protocol):
    """Callable port returning provider drafts around a point.

    Implementations raise ``ProviderUnavailable`` when no endpoint answers.
    """

    def __call__(self, center: GeoPoint, radius_meters: int) -> list[FieldDraft]: ...


@runtime_checkable
class ImagePoolFetcher(Protocol):
    """Callable port returning decorative photo URLs; never raises."""

    def __call__(self) -> list[str]: ...


__all__ = ["FieldDraftFetcher", "ImagePoolFetcher"]
