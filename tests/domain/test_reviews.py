from __future__ import annotations

import pytest

from sunball.adapters.sqlalchemy import SqlAlchemyDocumentStore  # noqa: TC001
from sunball.domain.errors import FieldUnavailable, InvalidOperation
from sunball.domain.hydration import hydrate_field
from sunball.domain.model import Collection, Field
from sunball.domain.reviews import rate_field, submit_review
from tests.helpers.clock import FakeClock  # noqa: TC001
from tests.helpers.documents import make_field, make_player, seed_field, seed_player


def _stored_field(store: SqlAlchemyDocumentStore, field_id: str) -> Field:
    document = store.get(Collection.FIELDS, field_id)
    assert document is not None
    return hydrate_field(field_id, document)


def test_first_review_creates_entry_and_counts(
    store: SqlAlchemyDocumentStore, clock: FakeClock
) -> None:
    seed_field(store, make_field("100"))
    player = seed_player(store, make_player("a"))

    outcome = submit_review(store, player, "100", rating=4, comment=" Nice pitch ", clock=clock)

    assert outcome.created is True
    assert outcome.review.comment == "Nice pitch"
    assert outcome.player.stats.reviews_left == 1
    stored = _stored_field(store, "100")
    assert stored.rating == 4.0
    assert [review.author_id for review in stored.reviews] == ["a"]
    document = store.get(Collection.PLAYERS, "a")
    assert document is not None
    assert document["stats"]["reviewsLeft"] == 1


def test_second_review_edits_without_counting(
    store: SqlAlchemyDocumentStore, clock: FakeClock
) -> None:
    seed_field(store, make_field("100"))
    player = seed_player(store, make_player("a"))
    submit_review(store, player, "100", rating=2, comment="Muddy", clock=clock)
    clock.advance(days=1)

    outcome = submit_review(store, player, "100", rating=5, comment="Resurfaced", clock=clock)

    assert outcome.created is False
    stored = _stored_field(store, "100")
    assert len(stored.reviews) == 1
    assert stored.reviews[0].comment == "Resurfaced"
    assert stored.rating == 5.0
    document = store.get(Collection.PLAYERS, "a")
    assert document is not None
    assert document["stats"]["reviewsLeft"] == 1


def test_rating_is_rounded_mean_of_all_reviews(
    store: SqlAlchemyDocumentStore, clock: FakeClock
) -> None:
    seed_field(store, make_field("100"))
    for player_id, rating in (("a", 5), ("b", 4), ("c", 4)):
        player = seed_player(store, make_player(player_id))
        rate_field(store, player, "100", rating, clock=clock)

    assert _stored_field(store, "100").rating == 4.3


def test_rate_field_keeps_existing_comment(
    store: SqlAlchemyDocumentStore, clock: FakeClock
) -> None:
    seed_field(store, make_field("100"))
    player = seed_player(store, make_player("a"))
    submit_review(store, player, "100", rating=3, comment="Decent", clock=clock)

    outcome = rate_field(store, player, "100", 1, clock=clock)

    assert outcome.review.comment == "Decent"
    assert outcome.review.rating == 1


@pytest.mark.parametrize("rating", [0, 6])
def test_rating_outside_range_is_rejected(store: SqlAlchemyDocumentStore, rating: int) -> None:
    with pytest.raises(InvalidOperation):
        rate_field(store, make_player("a"), "100", rating)


def test_review_requires_comment(store: SqlAlchemyDocumentStore) -> None:
    with pytest.raises(InvalidOperation):
        submit_review(store, make_player("a"), "100", rating=3, comment="  ")


def test_review_on_missing_field(store: SqlAlchemyDocumentStore) -> None:
    player = seed_player(store, make_player("a"))

    with pytest.raises(FieldUnavailable):
        rate_field(store, player, "gone", 3)

    document = store.get(Collection.PLAYERS, "a")
    assert document is not None
    assert document["stats"]["reviewsLeft"] == 0


def test_edit_leaves_same_millisecond_review_of_other_author(
    store: SqlAlchemyDocumentStore, clock: FakeClock
) -> None:
    seed_field(store, make_field("100"))
    ana = seed_player(store, make_player("a"))
    bo = seed_player(store, make_player("b"))
    first = submit_review(store, ana, "100", rating=2, comment="Muddy", clock=clock)
    second = submit_review(store, bo, "100", rating=5, comment="Great", clock=clock)
    assert first.review.id == second.review.id

    submit_review(store, ana, "100", rating=3, comment="Drier now", clock=clock)

    stored = _stored_field(store, "100")
    comments = {review.author_id: review.comment for review in stored.reviews}
    assert comments == {"a": "Drier now", "b": "Great"}
    assert stored.rating == 4.0
