import logging
from typing import Any, Dict, List, Optional

from farmtofork.core.constants import MAX_LISTING_IMAGES
from farmtofork.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from farmtofork.core.security import Actor, require_manager, require_role
from farmtofork.db import session_scope
from farmtofork.models.listing import Listing, ListingImage
from farmtofork.repositories import (
    FavoriteRepository,
    ListingRepository,
    ProductRepository,
    ProfileRepository,
)
from farmtofork.repositories.review_repository import ReviewRepository
from farmtofork.schemas.common_schemas import PaginationResponse
from farmtofork.schemas.listing_schemas import (
    ExploreListingResponse,
    ListingDetailResponse,
    ListingImageResponse,
    ListingResponse,
)
from farmtofork.schemas.product_schemas import ProductResponse
from farmtofork.utils import filters as explore_filters
from farmtofork.utils.date_utils import DateUtils
from farmtofork.utils.geo import MapBounds
from farmtofork.utils.roles import ADMIN, FARMER

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "farm_name",
    "address",
    "lat",
    "lng",
    "description",
    "email",
    "phone_number",
    "website",
    "product_type",
    "certifications",
    "purchase_mode",
    "production_method",
    "additional_services",
    "availability",
)


class ListingService:
    """
    Listing business logic service

    Responsibilities:
    - Public listing and explore queries (published listings only)
    - Owner/admin edits, publication and deletion
    - Listing images (registered by URL)
    """

    def list_listings(
        self,
        limit: Optional[int],
        offset: int = 0,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        include_inactive: bool = False,
        actor: Optional[Actor] = None,
    ) -> Dict[str, Any]:
        """
        Business Rules:
        - Unpublished listings are hidden unless an admin asks for them
        - An offset without a limit pages by the default page size
        - Pagination metadata is only returned when a limit was requested
        """
        if include_inactive and not (actor and actor.is_admin):
            raise ForbiddenError("Only administrators can list unpublished listings")

        page_limit = limit
        if page_limit is None and offset:
            page_limit = 50

        with session_scope() as session:
            items, total = ListingRepository(session).list_listings(
                page_limit, offset, sort_by, sort_order, include_inactive
            )
            result: Dict[str, Any] = {
                "listings": [ListingResponse.model_validate(listing) for listing in items],
                "count": len(items),
            }
            if limit is not None:
                result["pagination"] = PaginationResponse.build(total, limit, offset)

        logger.info(f"Listed {result['count']} listings (offset={offset}, limit={page_limit})")
        return result

    def explore(
        self,
        filters: Dict[str, List[str]],
        bounds: Optional[MapBounds] = None,
        map_params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Published listings matching the explore filters and map bounds."""
        with session_scope() as session:
            candidates = ListingRepository(session).list_active()
            matches = explore_filters.apply_filters(candidates, filters, bounds)

            listings = []
            for listing in matches:
                item = ExploreListingResponse.model_validate(listing)
                item.image_url = listing.images[0].url if listing.images else None
                item.images = []
                listings.append(item)

        url_updates: Dict[str, Any] = dict(map_params or {})
        for key, values in filters.items():
            url_updates[key] = ",".join(values) if values else None

        return {
            "listings": listings,
            "count": len(listings),
            "filters": filters,
            "active_filter_count": explore_filters.calculate_active_filter_count(filters),
            "bounds": bounds.to_dict() if bounds else None,
            "explore_url": explore_filters.build_explore_url({}, url_updates),
        }

    def get_listing(self, listing_id: int, actor: Optional[Actor] = None) -> ListingDetailResponse:
        """
        Business Rules:
        - Unpublished listings exist only for their owner and admins
        - The public sees published, active products only
        """
        with session_scope() as session:
            listing = ListingRepository(session).get_by_id(listing_id)
            can_manage = actor is not None and actor.can_manage(listing)

            if not listing.active and not can_manage:
                raise NotFoundError("Listing", listing_id)

            products = ProductRepository(session).list_for_listing(
                listing_id, public_only=not can_manage
            )
            _, review_count = ReviewRepository(session).rating_stats(listing_id)
            is_favorite = bool(
                actor and FavoriteRepository(session).find(actor.user_id, listing_id)
            )

            base = ListingResponse.model_validate(listing).model_dump()
            return ListingDetailResponse(
                **base,
                products=[ProductResponse.model_validate(p) for p in products],
                review_count=review_count,
                is_favorite=is_favorite,
            )

    def create_listing(self, actor: Actor, data: Dict[str, Any], publish: bool = False) -> ListingResponse:
        """
        Business Rules:
        - Only farmers and admins create listings
        - A farmer's first listing becomes their profile's farm
        """
        actor = require_role(actor, FARMER, ADMIN)
        now = DateUtils.now_utc()

        with session_scope() as session:
            listings = ListingRepository(session)
            listing = Listing(user_id=actor.user_id, active=publish, modified_at=now)
            self._apply_fields(listing, data)
            if publish:
                listing.published_at = now
            listings.add(listing)

            for url in data.get("images") or []:
                listing.images.append(ListingImage(url=url))

            profile = ProfileRepository(session).find_by_user_id(actor.user_id)
            if profile is not None and profile.farm_id is None:
                profile.farm_id = listing.id

            listings.flush()
            logger.info(f"Listing {listing.id} created by {actor.user_id} (published={publish})")
            return ListingResponse.model_validate(listing)

    def update_listing(
        self,
        actor: Actor,
        listing_id: int,
        data: Dict[str, Any],
        publish: bool = False,
    ) -> ListingResponse:
        """
        Business Rules:
        - Only the owner or an admin edits a listing
        - Saving a draft never unpublishes: active = publish or active
        - published_at is set on first publication only
        - images, when given, replace the current image set
        """
        now = DateUtils.now_utc()

        with session_scope() as session:
            listings = ListingRepository(session)
            listing = listings.get_by_id(listing_id)
            require_manager(actor, listing, "Only the owner can edit this listing")

            self._apply_fields(listing, data)
            listing.active = bool(publish or listing.active)
            if publish and listing.published_at is None:
                listing.published_at = now
            listing.modified_at = now

            if "images" in data and data["images"] is not None:
                listing.images.clear()
                for url in data["images"]:
                    listing.images.append(ListingImage(url=url))

            listings.flush()
            logger.info(f"Listing {listing_id} updated by {actor.user_id} (publish={publish})")
            return ListingResponse.model_validate(listing)

    def delete_listing(self, actor: Actor, listing_id: int) -> None:
        with session_scope() as session:
            listings = ListingRepository(session)
            listing = listings.get_by_id(listing_id)
            require_manager(actor, listing, "Only the owner can delete this listing")

            listings.detach_references(listing_id)
            listings.delete(listing)
            logger.info(f"Listing {listing_id} deleted by {actor.user_id}")

    def add_image(self, actor: Actor, listing_id: int, url: str) -> ListingImageResponse:
        """
        Business Rules:
        - At most MAX_LISTING_IMAGES images per listing
        - The same URL is not registered twice
        """
        with session_scope() as session:
            listings = ListingRepository(session)
            listing = listings.get_by_id(listing_id)
            require_manager(actor, listing, "Only the owner can add images")

            if listings.count_images(listing_id) >= MAX_LISTING_IMAGES:
                raise ValidationError(
                    f"A listing can have at most {MAX_LISTING_IMAGES} images",
                    field_errors=[{"field": "url", "message": "Image limit reached"}],
                )
            if any(image.url == url for image in listing.images):
                raise ValidationError(
                    "Image already attached to this listing",
                    field_errors=[{"field": "url", "message": "Duplicate image"}],
                )

            image = ListingImage(listing_id=listing_id, url=url)
            listings.session.add(image)
            listing.modified_at = DateUtils.now_utc()
            listings.flush()
            return ListingImageResponse.model_validate(image)

    def delete_image(self, actor: Actor, listing_id: int, image_id: int) -> None:
        with session_scope() as session:
            listings = ListingRepository(session)
            listing = listings.get_by_id(listing_id)
            require_manager(actor, listing, "Only the owner can remove images")

            image = listings.get_image(listing_id, image_id)
            listing.images.remove(image)
            listing.modified_at = DateUtils.now_utc()
            listings.flush()

    @staticmethod
    def _apply_fields(listing: Listing, data: Dict[str, Any]) -> None:
        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(listing, field, data[field])
