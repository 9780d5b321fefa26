"""Overpass QL for football venues around a point."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sunball.domain.model import GeoPoint

# (key, operator, value) tag filters; each selector is applied to every element type
VENUE_SELECTORS: tuple[tuple[tuple[str, str, str], ...], ...] = (
    (("sport", "~", "soccer|football"),),
    (("leisure", "=", "pitch"), ("sport", "~", "multi")),
    (("leisure", "=", "stadium"),),
    (("building", "=", "stadium"),),
    (("surface", "=", "sand"),),
)
ELEMENT_TYPES: tuple[str, ...] = ("node", "way", "relation")


def _tag_filters(selector: tuple[tuple[str, str, str], ...]) -> str:
    return "".join(f'["{key}"{op}"{value}"]' for key, op, value in selector)


def build_query(center: GeoPoint, radius_meters: int, *, timeout_seconds: int = 25) -> str:
    """Return a query whose ways and relations are reduced to their centre point."""

    if radius_meters <= 0:
        raise ValueError(f"radius_meters must be positive, got {radius_meters}")
    around = f"(around:{radius_meters},{center.lat},{center.lng})"
    statements = [
        f"  {element}{_tag_filters(selector)}{around};"
        for selector in VENUE_SELECTORS
        for element in ELEMENT_TYPES
    ]
    return "\n".join(
        [f"[out:json][timeout:{timeout_seconds}];", "(", *statements, ");", "out center;"]
    )


__all__ = ["build_query"]
