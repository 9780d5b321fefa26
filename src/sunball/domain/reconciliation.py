"""Merge freshly fetched provider drafts with persisted catalog entries.

The provider is authoritative for where a field is and how it is tagged; the
store is authoritative for accumulated community state. Reconciliation therefore
never touches players, reviews, rating, chat pointer or tournaments of an
existing entry. It only creates entries for first sightings and backfills
missing photos, so re-running it over an unchanged batch schedules nothing but
the optional photo backfill.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from sunball.domain.errors import PersistenceError, PersistenceWriteFailure
from sunball.domain.hydration import DEFAULT_FIELD_NAME, field_to_document
from sunball.domain.model import Collection, Field, default_size_for

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from sunball.domain.model import FieldDraft, FieldId
    from sunball.domain.ports import Document, DocumentStore

log = getLogger(__name__)

# names generated by earlier clients or by the provider fallback
PLACEHOLDER_NAMES: frozenset[str] = frozenset(
    {"", DEFAULT_FIELD_NAME, "Стадион без названия"}
)
PLACEHOLDER_NAME_PREFIX = "Стадион ("
PLACEHOLDER_PHOTO_MARKER = "unsplash"


def is_real_name(name: str) -> bool:
    """Return whether a persisted name was chosen by a person rather than generated."""

    stripped = name.strip()
    return stripped not in PLACEHOLDER_NAMES and not stripped.startswith(PLACEHOLDER_NAME_PREFIX)


def is_placeholder_photo(photo: str) -> bool:
    return not photo.strip() or PLACEHOLDER_PHOTO_MARKER in photo


class WriteKind(StrEnum):
    CREATE = "create"
    PHOTO = "photo"


@dataclass(frozen=True, slots=True)
class FieldWrite:
    kind: WriteKind
    field_id: FieldId
    data: Document


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    fields: tuple[Field, ...]
    writes: tuple[FieldWrite, ...]

    @property
    def created(self) -> tuple[FieldId, ...]:
        return tuple(w.field_id for w in self.writes if w.kind is WriteKind.CREATE)

    @property
    def backfilled(self) -> tuple[FieldId, ...]:
        return tuple(w.field_id for w in self.writes if w.kind is WriteKind.PHOTO)


@dataclass(slots=True)
class ReconciliationEngine:
    """Pure merge of drafts and persisted fields; the random source is injectable."""

    image_pool: Sequence[str] = ()
    rng: random.Random = field(default_factory=random.Random)

    def reconcile(
        self,
        drafts: Iterable[FieldDraft],
        persisted: Mapping[FieldId, Field],
    ) -> ReconciliationResult:
        # duplicate provider ids collapse onto the last element
        by_id: dict[FieldId, FieldDraft] = {draft.id: draft for draft in drafts}

        fields: list[Field] = []
        writes: list[FieldWrite] = []
        for field_id, draft in by_id.items():
            existing = persisted.get(field_id)
            if existing is None:
                created = self.new_field(draft)
                fields.append(created)
                writes.append(FieldWrite(WriteKind.CREATE, field_id, field_to_document(created)))
                continue

            merged = replace(
                existing,
                position=draft.position,
                name=existing.name if is_real_name(existing.name) else draft.name,
            )
            photo = self._pick_photo() if is_placeholder_photo(existing.photo) else None
            if photo is not None:
                merged = replace(merged, photo=photo)
                writes.append(FieldWrite(WriteKind.PHOTO, field_id, {"photo": photo}))
            fields.append(merged)

        log.debug(
            "Reconciled %s drafts against %s persisted fields: %s writes",
            len(by_id),
            len(persisted),
            len(writes),
        )
        return ReconciliationResult(fields=tuple(fields), writes=tuple(writes))

    def new_field(self, draft: FieldDraft) -> Field:
        return Field(
            id=draft.id,
            name=draft.name,
            position=draft.position,
            surface=draft.surface,
            lighting=draft.lighting,
            size=default_size_for(draft.id),
            photo=self._pick_photo() or "",
        )

    def _pick_photo(self) -> str | None:
        if not self.image_pool:
            return None
        return self.rng.choice(list(self.image_pool))


@dataclass(frozen=True, slots=True)
class CommitResult:
    committed: tuple[FieldId, ...]
    batches: int


def commit_writes(
    store: DocumentStore,
    writes: Sequence[FieldWrite],
    *,
    batch_limit: int | None = None,
) -> CommitResult:
    """Commit ``writes`` in batches no larger than the store's batch limit.

    Batches are atomic individually. When one fails, ``PersistenceWriteFailure``
    reports the ids of the batches committed before it.
    """

    limit = min(batch_limit or store.max_batch_size, store.max_batch_size)
    committed: list[FieldId] = []
    batches = 0
    for start in range(0, len(writes), limit):
        chunk = writes[start : start + limit]
        batch = store.batch()
        for write in chunk:
            match write.kind:
                case WriteKind.CREATE:
                    batch.set(Collection.FIELDS, write.field_id, write.data)
                case WriteKind.PHOTO:
                    batch.update(Collection.FIELDS, write.field_id, write.data)
        try:
            batch.commit()
        except PersistenceError as exc:
            log.warning(
                "Field batch %s failed after %s committed writes: %s",
                batches + 1,
                len(committed),
                exc,
            )
            raise PersistenceWriteFailure(
                f"Could not commit field batch {batches + 1}", committed_ids=committed
            ) from exc
        batches += 1
        committed.extend(write.field_id for write in chunk)
    return CommitResult(committed=tuple(committed), batches=batches)


__all__ = [
    "PLACEHOLDER_NAMES",
    "CommitResult",
    "FieldWrite",
    "ReconciliationEngine",
    "ReconciliationResult",
    "WriteKind",
    "commit_writes",
    "is_placeholder_photo",
    "is_real_name",
]
