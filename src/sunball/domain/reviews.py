"""Field reviews and star ratings.

Each player holds at most one review per field. Posting again edits the existing
review; only a first review counts towards ``stats.reviewsLeft``. The field's
rating is recomputed from all reviews in the same transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from sunball.domain.errors import FieldUnavailable, InvalidOperation, StaleReferenceError
from sunball.domain.hydration import hydrate_field, hydrate_player, review_to_document
from sunball.domain.model import Collection, Review

if TYPE_CHECKING:
    from collections.abc import Callable

    from sunball.domain.model import Field, FieldId, Player
    from sunball.domain.ports import DocumentStore, Transaction

log = getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


@dataclass(frozen=True, slots=True)
class ReviewOutcome:
    field: Field
    player: Player
    review: Review
    created: bool


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _validate_rating(rating: int) -> None:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidOperation(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}"
        )


def submit_review(
    store: DocumentStore,
    player: Player,
    field_id: FieldId,
    *,
    rating: int,
    comment: str,
    clock: Callable[[], datetime] = _utcnow,
) -> ReviewOutcome:
    """Create or edit the player's review with a comment."""

    _validate_rating(rating)
    if not comment.strip():
        raise InvalidOperation("A review needs a comment")
    return _upsert_review(
        store, player, field_id, rating=rating, comment=comment.strip(), now=clock()
    )


def rate_field(
    store: DocumentStore,
    player: Player,
    field_id: FieldId,
    rating: int,
    *,
    clock: Callable[[], datetime] = _utcnow,
) -> ReviewOutcome:
    """Set the player's star rating, keeping any comment they already wrote."""

    _validate_rating(rating)
    return _upsert_review(store, player, field_id, rating=rating, comment=None, now=clock())


def _upsert_review(
    store: DocumentStore,
    player: Player,
    field_id: FieldId,
    *,
    rating: int,
    comment: str | None,
    now: datetime,
) -> ReviewOutcome:
    def body(transaction: Transaction) -> ReviewOutcome:
        field_document = transaction.get(Collection.FIELDS, field_id)
        if field_document is None:
            raise FieldUnavailable(field_id)
        player_document = transaction.get(Collection.PLAYERS, player.id)
        if player_document is None:
            raise StaleReferenceError(Collection.PLAYERS, player.id)

        field = hydrate_field(field_id, field_document)
        author = hydrate_player(player.id, player_document)
        existing = next((r for r in field.reviews if r.author_id == author.id), None)
        if existing is None:
            review = Review(
                id=f"review-{int(now.timestamp() * 1000)}",
                author_id=author.id,
                author_name=author.name,
                author_avatar=author.avatar,
                rating=rating,
                comment=comment or "",
                created_at=now,
            )
            reviews = (*field.reviews, review)
        elif comment is None:
            review = replace(existing, rating=rating)
            reviews = tuple(review if r.author_id == author.id else r for r in field.reviews)
        else:
            review = replace(existing, rating=rating, comment=comment, created_at=now)
            reviews = tuple(review if r.author_id == author.id else r for r in field.reviews)

        updated_field = field.with_reviews(reviews)
        transaction.update(
            Collection.FIELDS,
            field_id,
            {
                "reviews": [review_to_document(r) for r in updated_field.reviews],
                "rating": updated_field.rating,
            },
        )

        updated_player = author
        if existing is None:
            stats = replace(author.stats, reviews_left=author.stats.reviews_left + 1)
            updated_player = replace(author, stats=stats)
            raw_stats = player_document.get("stats")
            stats_document = (
                cast("dict[str, Any]", raw_stats) if isinstance(raw_stats, dict) else {}
            )
            transaction.update(
                Collection.PLAYERS,
                player.id,
                {"stats": {**stats_document, "reviewsLeft": stats.reviews_left}},
            )
        return ReviewOutcome(
            field=updated_field, player=updated_player, review=review, created=existing is None
        )

    outcome = store.run_transaction(body)
    log.info(
        "Player %s %s review on %s (rating now %s)",
        player.id,
        "posted" if outcome.created else "edited",
        field_id,
        outcome.field.rating,
    )
    return outcome


__all__ = ["ReviewOutcome", "rate_field", "submit_review"]
