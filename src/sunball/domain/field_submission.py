"""Fields added by players rather than discovered through geodata."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sunball.domain.errors import InvalidOperation
from sunball.domain.hydration import field_to_document
from sunball.domain.model import Collection, Field, SurfaceType, default_size_for

if TYPE_CHECKING:
    from collections.abc import Callable

    from sunball.domain.model import FieldId, FieldSize, GeoPoint
    from sunball.domain.ports import DocumentStore

log = getLogger(__name__)

USER_FIELD_PREFIX = "user-"


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldSubmission:
    name: str
    position: GeoPoint
    surface: SurfaceType = SurfaceType.RUBBER
    lighting: bool = False
    size: FieldSize | None = None
    photo: str = ""


def _new_field_id() -> FieldId:
    return f"{USER_FIELD_PREFIX}{uuid.uuid4().hex}"


def submit_field(
    store: DocumentStore,
    submission: FieldSubmission,
    *,
    id_factory: Callable[[], FieldId] = _new_field_id,
) -> Field:
    """Persist a player-submitted field and return it fully populated."""

    name = submission.name.strip()
    if not name:
        raise InvalidOperation("A field needs a name")

    field_id = id_factory()
    field = Field(
        id=field_id,
        name=name,
        position=submission.position,
        surface=submission.surface,
        lighting=submission.lighting,
        size=submission.size or default_size_for(field_id),
        photo=submission.photo,
    )
    store.set(Collection.FIELDS, field_id, field_to_document(field))
    log.info("Added field %s (%s)", field_id, name)
    return field


__all__ = ["USER_FIELD_PREFIX", "FieldSubmission", "submit_field"]
