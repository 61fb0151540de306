from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import selectinload

from farmtofork.core.exceptions import NotFoundError
from farmtofork.models.listing import Favorite, Listing, ListingImage
from farmtofork.models.order import Order
from farmtofork.models.profile import Profile
from farmtofork.repositories.base import BaseRepository


class ListingRepository(BaseRepository[Listing]):
    """Repository for listings and the images attached to them"""

    resource_name = "Listing"

    SORTABLE_COLUMNS = {
        "created_at": Listing.created_at,
        "id": Listing.id,
    }

    @property
    def model(self):
        return Listing

    def list_listings(
        self,
        limit: Optional[int],
        offset: int = 0,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        include_inactive: bool = False,
    ) -> Tuple[List[Listing], int]:
        column = self.SORTABLE_COLUMNS.get(sort_by, Listing.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        # id breaks ties so pages are stable
        tiebreak = Listing.id.asc() if sort_order == "asc" else Listing.id.desc()

        stmt = select(Listing).options(selectinload(Listing.images))
        if not include_inactive:
            stmt = stmt.where(Listing.active.is_(True))
        stmt = stmt.order_by(ordering, tiebreak)

        return self.fetch_page(stmt, limit, offset)

    def list_active(self) -> List[Listing]:
        stmt = (
            select(Listing)
            .options(selectinload(Listing.images))
            .where(Listing.active.is_(True))
            .order_by(Listing.id.asc())
        )
        return self.fetch_all(stmt)

    def list_by_owner(self, user_id: str) -> List[Listing]:
        stmt = (
            select(Listing)
            .options(selectinload(Listing.images))
            .where(Listing.user_id == user_id)
            .order_by(Listing.created_at.desc(), Listing.id.desc())
        )
        return self.fetch_all(stmt)

    def detach_references(self, listing_id: int) -> None:
        """Null out profile.farm_id and order.farm_id pointing at listing_id."""
        self.session.execute(
            update(Profile).where(Profile.farm_id == listing_id).values(farm_id=None)
        )
        self.session.execute(
            update(Order).where(Order.farm_id == listing_id).values(farm_id=None)
        )

    def count_images(self, listing_id: int) -> int:
        return self.session.scalar(
            select(func.count(ListingImage.id)).where(ListingImage.listing_id == listing_id)
        ) or 0

    def get_image(self, listing_id: int, image_id: int) -> ListingImage:
        image = self.session.get(ListingImage, image_id)
        if image is None or image.listing_id != listing_id:
            raise NotFoundError("Listing image", image_id)
        return image


class FavoriteRepository(BaseRepository[Favorite]):
    resource_name = "Favorite"

    @property
    def model(self):
        return Favorite

    def find(self, user_id: str, listing_id: int) -> Optional[Favorite]:
        rows = self.fetch_all(
            select(Favorite).where(
                Favorite.user_id == user_id, Favorite.listing_id == listing_id
            )
        )
        return rows[0] if rows else None

    def list_listings_for_user(self, user_id: str) -> List[Listing]:
        stmt = (
            select(Listing)
            .join(Favorite, Favorite.listing_id == Listing.id)
            .options(selectinload(Listing.images))
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        )
        return list(self.session.scalars(stmt).all())
