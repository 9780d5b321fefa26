"""Pydantic models for the Pixabay image search response."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PixabayBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PixabayHit(PixabayBaseModel):
    id: int
    large_image_url: str | None = Field(default=None, alias="largeImageURL")
    webformat_url: str | None = Field(default=None, alias="webformatURL")
    tags: str = ""


class PixabaySearchResponse(PixabayBaseModel):
    total: int = 0
    total_hits: int = Field(default=0, alias="totalHits")
    hits: list[PixabayHit] = Field(default_factory=list)

    def image_urls(self) -> list[str]:
        return [hit.large_image_url for hit in self.hits if hit.large_image_url]


__all__ = ["PixabayHit", "PixabaySearchResponse"]
