"""Public interface for the Overpass geodata adapter."""

from __future__ import annotations

from .client import OverpassAPIError, OverpassFetcher
from .query import build_query
from .schema import OverpassElement, OverpassResponse
from .translator import element_to_draft, elements_to_drafts, map_surface

__all__ = [
    "OverpassAPIError",
    "OverpassElement",
    "OverpassFetcher",
    "OverpassResponse",
    "build_query",
    "element_to_draft",
    "elements_to_drafts",
    "map_surface",
]
