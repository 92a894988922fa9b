# =============================================================================
# tests/test_review_service.py - Rating Tests
# =============================================================================
# Ratings open after delivery confirmation, once per direction and project,
# and keep the maker's aggregate rating up to date.
# =============================================================================

import pytest

from app.exceptions import (
    DuplicateReviewError,
    InvalidStateError,
    PermissionDeniedError,
    ReviewNotFoundError,
)
from core.services.review_service import ReviewService
from tests.conftest import add_bid, add_maker, add_project

DELIVERED = "2026-01-05T00:00:00+00:00"


@pytest.fixture
def delivered(db, client_user, maker_user):
    """A completed project whose accepted bid was delivered."""
    project = add_project(db, client_user, status="completed")
    add_bid(db, project, maker_user, status="accepted", delivery_confirmed_at=DELIVERED)
    return project


class TestRateMaker:
    """The client rates the winning maker."""

    def test_rate_maker_updates_profile(self, db, delivered, client_user, maker_user):
        # Act
        review = ReviewService.rate_maker(client_user["id"], delivered["id"], maker_user["id"], 4, "Solid")

        # Assert
        assert review["rating"] == 4
        profile = db.rows("maker_profiles", user_id=maker_user["id"])[0]
        assert (profile["rating"], profile["total_reviews"]) == (4.0, 1)

    def test_average_over_projects(self, db, client_user, maker_user, delivered):
        second = add_project(db, client_user, status="completed")
        add_bid(db, second, maker_user, status="accepted", delivery_confirmed_at=DELIVERED)

        ReviewService.rate_maker(client_user["id"], delivered["id"], maker_user["id"], 5)
        ReviewService.rate_maker(client_user["id"], second["id"], maker_user["id"], 3.5)

        profile = db.rows("maker_profiles", user_id=maker_user["id"])[0]
        assert (profile["rating"], profile["total_reviews"]) == (4.25, 2)

    def test_only_once(self, db, delivered, client_user, maker_user):
        ReviewService.rate_maker(client_user["id"], delivered["id"], maker_user["id"], 4)
        with pytest.raises(DuplicateReviewError):
            ReviewService.rate_maker(client_user["id"], delivered["id"], maker_user["id"], 5)

    def test_not_before_delivery(self, db, client_user, maker_user):
        project = add_project(db, client_user, status="reserved")
        add_bid(db, project, maker_user, status="accepted")
        with pytest.raises(InvalidStateError):
            ReviewService.rate_maker(client_user["id"], project["id"], maker_user["id"], 4)

    def test_only_the_winning_maker(self, db, delivered, client_user):
        other_maker = add_maker(db)
        with pytest.raises(PermissionDeniedError):
            ReviewService.rate_maker(client_user["id"], delivered["id"], other_maker["id"], 4)


class TestRateClient:
    """The winning maker rates the client."""

    def test_rate_client(self, db, delivered, client_user, maker_user):
        review = ReviewService.rate_client(maker_user["id"], delivered["id"], 5, "Clear brief")

        assert review["to_user_id"] == client_user["id"]
        assert ReviewService.review_from_maker(client_user["id"], delivered["id"])["id"] == review["id"]

    def test_other_makers_cannot_rate(self, db, delivered):
        other_maker = add_maker(db)
        with pytest.raises(PermissionDeniedError):
            ReviewService.rate_client(other_maker["id"], delivered["id"], 5)


class TestRatingStatus:
    """check-rating-by-client / check-rating-by-maker."""

    def test_before_and_after_rating(self, db, delivered, client_user, maker_user):
        status = ReviewService.rating_status_for_client(client_user["id"], delivered["id"])
        assert status == {"has_rated": False, "delivery_confirmed": True}

        ReviewService.rate_maker(client_user["id"], delivered["id"], maker_user["id"], 4)

        status = ReviewService.rating_status_for_client(client_user["id"], delivered["id"])
        assert status == {"has_rated": True, "delivery_confirmed": True}

    def test_maker_status_without_accepted_bid(self, db, project, maker_user):
        status = ReviewService.rating_status_for_maker(maker_user["id"], project["id"])
        assert status == {"has_rated": False, "delivery_confirmed": False}

    def test_missing_review(self, db, delivered, maker_user):
        with pytest.raises(ReviewNotFoundError):
            ReviewService.review_from_client(maker_user["id"], delivered["id"])


class TestReviewListing:
    def test_reviews_for_maker_include_reviewer(self, db, delivered, client_user, maker_user):
        ReviewService.rate_maker(client_user["id"], delivered["id"], maker_user["id"], 4.5)

        reviews = ReviewService.list_reviews_for_user(maker_user["id"])

        assert len(reviews) == 1
        assert reviews[0]["from_user"]["id"] == client_user["id"]
        assert ReviewService.review_count(maker_user["id"]) == 1
