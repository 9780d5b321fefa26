"""Pydantic models describing Overpass JSON output."""

from __future__ import annotations

import logging
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)


class OverpassBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow")
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Overpass %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class OverpassCenter(OverpassBaseModel):
    lat: float
    lon: float


class OverpassElement(OverpassBaseModel):
    # geometry and member lists are not requested, so they stay unmodeled
    model_config = ConfigDict(extra="ignore")

    type: Literal["node", "way", "relation"]
    id: int
    lat: float | None = None
    lon: float | None = None
    center: OverpassCenter | None = None
    tags: dict[str, str] = Field(default_factory=dict)

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if self.lat is not None and self.lon is not None:
            return self.lat, self.lon
        if self.center is not None:
            return self.center.lat, self.center.lon
        return None


class OverpassResponse(OverpassBaseModel):
    version: float | None = None
    generator: str | None = None
    osm3s: dict[str, object] | None = None
    remark: str | None = None
    elements: list[OverpassElement] = Field(default_factory=list)


__all__ = ["OverpassCenter", "OverpassElement", "OverpassResponse"]
