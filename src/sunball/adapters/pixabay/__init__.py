"""Public interface for the Pixabay image pool adapter."""

from __future__ import annotations

from .client import PixabayAPIError, PixabayImagePool
from .schema import PixabayHit, PixabaySearchResponse

__all__ = ["PixabayAPIError", "PixabayHit", "PixabayImagePool", "PixabaySearchResponse"]
