from typing import List, Optional, Tuple

from sqlalchemy import func, select

from farmtofork.models.listing import Review
from farmtofork.repositories.base import BaseRepository


class ReviewRepository(BaseRepository[Review]):
    resource_name = "Review"

    @property
    def model(self):
        return Review

    def find_by_user(self, listing_id: int, user_id: str) -> Optional[Review]:
        rows = self.fetch_all(
            select(Review).where(Review.listing_id == listing_id, Review.user_id == user_id)
        )
        return rows[0] if rows else None

    def list_for_listing(self, listing_id: int) -> List[Review]:
        stmt = (
            select(Review)
            .where(Review.listing_id == listing_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        return self.fetch_all(stmt)

    def rating_stats(self, listing_id: int) -> Tuple[Optional[float], int]:
        """(average rating, number of reviews) for a listing"""
        avg, count = self.session.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.listing_id == listing_id
            )
        ).one()
        return (float(avg) if avg is not None else None), int(count or 0)
