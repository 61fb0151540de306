import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from farmtofork.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from farmtofork.core.security import Actor, require_actor
from farmtofork.db import session_scope
from farmtofork.models.listing import Review
from farmtofork.repositories import ListingRepository, ReviewRepository
from farmtofork.schemas.listing_schemas import ReviewListResponse, ReviewResponse

logger = logging.getLogger(__name__)


def round_rating(average: Optional[float]) -> Optional[float]:
    """One decimal, halves rounded up (4.25 -> 4.3)."""
    if average is None:
        return None
    return float(Decimal(str(average)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class ReviewService:
    def list_reviews(self, listing_id: int, actor: Optional[Actor] = None) -> ReviewListResponse:
        with session_scope() as session:
            listing = ListingRepository(session).get_by_id(listing_id)
            if not listing.active and not (actor and actor.can_manage(listing)):
                raise NotFoundError("Listing", listing_id)

            reviews = ReviewRepository(session)
            average, count = reviews.rating_stats(listing_id)
            return ReviewListResponse(
                reviews=[ReviewResponse.model_validate(r) for r in reviews.list_for_listing(listing_id)],
                average=round_rating(average),
                count=count,
            )

    def create_review(
        self,
        actor: Actor,
        listing_id: int,
        rating: int,
        comment: Optional[str] = None,
    ) -> ReviewResponse:
        """
        Business Rules:
        - Reviewer needs a profile
        - Only published listings can be reviewed
        - Owners cannot review their own listing
        - One review per user and listing
        - listing.rating is the average of its reviews, one decimal
        """
        actor = require_actor(actor)
        if actor.role is None:
            raise ForbiddenError("Create your profile before leaving a review")

        with session_scope() as session:
            listing = ListingRepository(session).get_by_id(listing_id)
            if not listing.active:
                raise NotFoundError("Listing", listing_id)
            if actor.owns(listing):
                raise ForbiddenError("You cannot review your own listing")

            reviews = ReviewRepository(session)
            if reviews.find_by_user(listing_id, actor.user_id) is not None:
                raise ConflictError("You have already reviewed this listing", "user_id")

            review = reviews.add(
                Review(listing_id=listing_id, user_id=actor.user_id, rating=rating, comment=comment)
            )

            average, _ = reviews.rating_stats(listing_id)
            listing.rating = round_rating(average)
            reviews.flush()

            logger.info(f"Review {review.id} ({rating}/5) on listing {listing_id} by {actor.user_id}")
            return ReviewResponse.model_validate(review)
