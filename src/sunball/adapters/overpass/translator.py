"""Translate Overpass elements into field drafts."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from sunball.domain.hydration import DEFAULT_FIELD_NAME
from sunball.domain.model import FieldDraft, GeoPoint, SurfaceType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import OverpassElement

log = getLogger(__name__)


def map_surface(tag: str | None) -> SurfaceType:
    match tag:
        case "grass" | "natural_grass":
            return SurfaceType.GRASS
        case "artificial_turf" | "artificial":
            return SurfaceType.RUBBER
        case "concrete":
            return SurfaceType.HALL
        case "asphalt":
            return SurfaceType.ASPHALT
        case "sand":
            return SurfaceType.SAND
        case _:
            return SurfaceType.RUBBER


def element_to_draft(element: OverpassElement) -> FieldDraft | None:
    """Return ``None`` for elements that carry neither coordinates nor a centre."""

    coordinates = element.coordinates
    if coordinates is None:
        log.debug("Skipping %s %s without coordinates", element.type, element.id)
        return None
    lat, lon = coordinates
    tags = element.tags
    return FieldDraft(
        id=str(element.id),
        name=tags.get("name", "").strip() or DEFAULT_FIELD_NAME,
        position=GeoPoint(lat, lon),
        surface=map_surface(tags.get("surface")),
        lighting=tags.get("lit") == "yes",
    )


def elements_to_drafts(elements: Iterable[OverpassElement]) -> list[FieldDraft]:
    return [draft for element in elements if (draft := element_to_draft(element)) is not None]


__all__ = ["element_to_draft", "elements_to_drafts", "map_surface"]
