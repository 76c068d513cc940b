"""Unit tests for review service."""

import pytest

from tourdesk.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from tourdesk.models import BookingStatus
from tourdesk.schemas.common import PageParams
from tourdesk.schemas.review import CreateReviewRequest, ReviewFilters, UpdateReviewRequest
from tourdesk.services.review_service import ReviewService


@pytest.mark.asyncio
async def test_review_without_completed_booking_is_unverified(test_session, test_settings, client_user, tour):
    service = ReviewService(test_session, test_settings)

    review = await service.create_review(
        client_user, CreateReviewRequest(tour_id=tour.id, rating=4, comment="Lovely dunes")
    )

    assert review.is_verified is False
    assert review.is_published is True
    assert review.user.name == "Amina Client"
    assert review.tour.name == tour.name


@pytest.mark.asyncio
async def test_review_with_completed_booking_is_verified(
    test_session, test_settings, client_user, tour, make_booking
):
    await make_booking(client_user, tour, status=BookingStatus.COMPLETED)
    service = ReviewService(test_session, test_settings)

    review = await service.create_review(client_user, CreateReviewRequest(tour_id=tour.id, rating=5))

    assert review.is_verified is True
    assert review.is_published is True


@pytest.mark.asyncio
async def test_unverified_review_held_when_auto_publish_off(test_session, test_settings, client_user, tour):
    settings = test_settings.model_copy(update={"review_auto_publish_unverified": False})
    service = ReviewService(test_session, settings)

    review = await service.create_review(client_user, CreateReviewRequest(tour_id=tour.id, rating=3))

    assert review.is_published is False


@pytest.mark.asyncio
async def test_completed_booking_required_when_configured(test_session, test_settings, client_user, tour):
    settings = test_settings.model_copy(update={"review_requires_completed_booking": True})
    service = ReviewService(test_session, settings)

    with pytest.raises(ValidationError):
        await service.create_review(client_user, CreateReviewRequest(tour_id=tour.id, rating=3))


@pytest.mark.asyncio
async def test_duplicate_review_conflicts(test_session, test_settings, client_user, tour):
    service = ReviewService(test_session, test_settings)
    await service.create_review(client_user, CreateReviewRequest(tour_id=tour.id, rating=4))

    with pytest.raises(ConflictError):
        await service.create_review(client_user, CreateReviewRequest(tour_id=tour.id, rating=2))


@pytest.mark.asyncio
async def test_review_for_missing_tour(test_session, test_settings, client_user):
    service = ReviewService(test_session, test_settings)

    with pytest.raises(ValidationError):
        await service.create_review(client_user, CreateReviewRequest(tour_id=404, rating=4))


@pytest.mark.asyncio
async def test_owner_cannot_publish(test_session, test_settings, client_user, tour):
    service = ReviewService(test_session, test_settings)
    review = await service.create_review(client_user, CreateReviewRequest(tour_id=tour.id, rating=4))

    with pytest.raises(AuthorizationError):
        await service.update_review(review, client_user, UpdateReviewRequest(is_published=False))


@pytest.mark.asyncio
async def test_hidden_review_visible_to_owner_and_admin_only(
    test_session, test_settings, client_user, other_user, admin_user, tour
):
    service = ReviewService(test_session, test_settings)
    review = await service.create_review(client_user, CreateReviewRequest(tour_id=tour.id, rating=2))
    await service.update_review(review, admin_user, UpdateReviewRequest(is_published=False))

    assert (await service.get_review_detail(review.id, client_user)).id == review.id
    assert (await service.get_review_detail(review.id, admin_user)).id == review.id
    with pytest.raises(NotFoundError):
        await service.get_review_detail(review.id, other_user)
    with pytest.raises(NotFoundError):
        await service.get_review_detail(review.id, None)


@pytest.mark.asyncio
async def test_list_reviews_hides_unpublished_from_public(
    test_session, test_settings, client_user, other_user, admin_user, tour
):
    service = ReviewService(test_session, test_settings)
    await service.create_review(client_user, CreateReviewRequest(tour_id=tour.id, rating=5))
    hidden = await service.create_review(other_user, CreateReviewRequest(tour_id=tour.id, rating=1))
    await service.update_review(hidden, admin_user, UpdateReviewRequest(is_published=False))

    public = await service.list_reviews(None, ReviewFilters(is_published=False), PageParams())
    admin_hidden = await service.list_reviews(admin_user, ReviewFilters(is_published=False), PageParams())

    assert public.total == 1
    assert public.items[0].rating == 5
    assert admin_hidden.total == 1
    assert admin_hidden.items[0].id == hidden.id


@pytest.mark.asyncio
async def test_list_tour_reviews_unknown_tour(test_session, test_settings):
    service = ReviewService(test_session, test_settings)

    with pytest.raises(NotFoundError):
        await service.list_tour_reviews(999, PageParams())
