import logging

from flask import Blueprint, request

from farmtofork.core.config import config
from farmtofork.core.constants import ORDER_STATUSES
from farmtofork.core.dependencies import get_service
from farmtofork.core.exceptions import ValidationError
from farmtofork.repositories.listing_repository import ListingRepository
from farmtofork.routes.schemas import (
    ListingDraftSchema,
    ListingImageSchema,
    ListingPublishSchema,
    ProductSchema,
    ReviewSchema,
)
from farmtofork.routes.utils import (
    get_current_actor,
    get_json_body,
    get_optional_actor,
    load_body,
    load_data,
    parse_bool,
    parse_int,
    success_response,
)
from farmtofork.schemas.common_schemas import SortOrder
from farmtofork.services import (
    ListingService,
    OrderService,
    ProductService,
    ProfileService,
    ReviewService,
)
from farmtofork.utils import filters as explore_filters
from farmtofork.utils.geo import parse_bounds, parse_bounds_param, validate_coordinates

logger = logging.getLogger(__name__)

listings_bp = Blueprint("listings", __name__)


def _load_listing_body(partial: bool):
    """Draft schema, or the full schema when the form is being published."""
    body = get_json_body()
    publish = parse_bool(body.get("publish"))
    if publish:
        data = load_data(ListingPublishSchema(), body)
    else:
        data = load_data(ListingDraftSchema(), body, partial=partial)
    data.pop("publish", None)
    return data, publish


@listings_bp.route("", methods=["GET"])
def list_listings():
    """List listings with optional offset pagination and sorting."""
    limit = parse_int(
        request.args.get("limit"),
        default=None,
        min_val=1,
        max_val=config.api.max_page_size,
        field_name="limit",
    )
    offset = parse_int(request.args.get("offset"), default=0, min_val=0, field_name="offset")

    sort_by = request.args.get("sort_by", "created_at")
    if sort_by not in ListingRepository.SORTABLE_COLUMNS:
        raise ValidationError(
            f"sort_by must be one of: {', '.join(ListingRepository.SORTABLE_COLUMNS)}",
            field_errors=[{"field": "sort_by", "message": "Unsupported sort column"}],
        )
    sort_order = request.args.get("sort_order", SortOrder.DESC.value).lower()
    if sort_order not in {o.value for o in SortOrder}:
        raise ValidationError(
            "sort_order must be asc or desc",
            field_errors=[{"field": "sort_order", "message": "Expected asc or desc"}],
        )

    include_inactive = parse_bool(request.args.get("include_inactive"))
    actor = get_optional_actor() if include_inactive else None

    result = get_service(ListingService).list_listings(
        limit,
        offset,
        sort_by=sort_by,
        sort_order=sort_order,
        include_inactive=include_inactive,
        actor=actor,
    )
    return success_response(result)


@listings_bp.route("/explore", methods=["GET"])
def explore_listings():
    """Published listings for the explore map, filtered by facets and bounds."""
    args = request.args
    filters = explore_filters.filters_from_query(args)

    bounds = None
    if args.get("bounds"):
        bounds = parse_bounds_param(args["bounds"])
    elif any(args.get(key) for key in ("sw_lat", "sw_lng", "ne_lat", "ne_lng")):
        bounds = parse_bounds(args.get("sw_lat"), args.get("sw_lng"), args.get("ne_lat"), args.get("ne_lng"))

    map_params = {}
    if args.get("lat") is not None or args.get("lng") is not None:
        center = validate_coordinates(args.get("lat"), args.get("lng"))
        if center is None:
            raise ValidationError(
                "Invalid map center",
                field_errors=[{"field": "lat/lng", "message": "Coordinates out of range"}],
            )
        zoom = parse_int(args.get("zoom"), default=None, min_val=0, max_val=22, field_name="zoom")
        map_params = explore_filters.create_coordinate_update(center.lat, center.lng, zoom)

    result = get_service(ListingService).explore(filters, bounds, map_params)
    return success_response(result)


@listings_bp.route("/<int:listing_id>", methods=["GET"])
def get_listing(listing_id: int):
    actor = get_optional_actor()
    return success_response(get_service(ListingService).get_listing(listing_id, actor))


@listings_bp.route("", methods=["POST"])
def create_listing():
    actor = get_current_actor()
    data, publish = _load_listing_body(partial=False)
    listing = get_service(ListingService).create_listing(actor, data, publish=publish)
    message = "Listing published" if publish else "Draft saved"
    return success_response(listing, message, 201)


@listings_bp.route("/<int:listing_id>", methods=["PATCH"])
def update_listing(listing_id: int):
    actor = get_current_actor()
    data, publish = _load_listing_body(partial=True)
    listing = get_service(ListingService).update_listing(actor, listing_id, data, publish=publish)
    message = "Listing published" if publish else "Listing updated"
    return success_response(listing, message)


@listings_bp.route("/<int:listing_id>", methods=["DELETE"])
def delete_listing(listing_id: int):
    actor = get_current_actor()
    get_service(ListingService).delete_listing(actor, listing_id)
    return success_response({"listing_id": listing_id}, "Listing deleted")


# ---------------------------------------------------------------------- #
# Images                                                                   #
# ---------------------------------------------------------------------- #

@listings_bp.route("/<int:listing_id>/images", methods=["POST"])
def add_listing_image(listing_id: int):
    actor = get_current_actor()
    body = load_body(ListingImageSchema())
    image = get_service(ListingService).add_image(actor, listing_id, body["url"])
    return success_response(image, "Image added", 201)


@listings_bp.route("/<int:listing_id>/images/<int:image_id>", methods=["DELETE"])
def delete_listing_image(listing_id: int, image_id: int):
    actor = get_current_actor()
    get_service(ListingService).delete_image(actor, listing_id, image_id)
    return success_response({"image_id": image_id}, "Image removed")


# ---------------------------------------------------------------------- #
# Favorites                                                                #
# ---------------------------------------------------------------------- #

@listings_bp.route("/<int:listing_id>/favorite", methods=["PUT"])
def add_favorite(listing_id: int):
    actor = get_current_actor()
    created = get_service(ProfileService).add_favorite(actor, listing_id)
    return success_response(
        {"listing_id": listing_id, "is_favorite": True},
        "Added to favorites" if created else "Already in favorites",
        201 if created else 200,
    )


@listings_bp.route("/<int:listing_id>/favorite", methods=["DELETE"])
def remove_favorite(listing_id: int):
    actor = get_current_actor()
    get_service(ProfileService).remove_favorite(actor, listing_id)
    return success_response({"listing_id": listing_id, "is_favorite": False}, "Removed from favorites")


# ---------------------------------------------------------------------- #
# Reviews                                                                  #
# ---------------------------------------------------------------------- #

@listings_bp.route("/<int:listing_id>/reviews", methods=["GET"])
def list_reviews(listing_id: int):
    actor = get_optional_actor()
    return success_response(get_service(ReviewService).list_reviews(listing_id, actor))


@listings_bp.route("/<int:listing_id>/reviews", methods=["POST"])
def create_review(listing_id: int):
    actor = get_current_actor()
    body = load_body(ReviewSchema())
    review = get_service(ReviewService).create_review(
        actor, listing_id, body["rating"], body.get("comment")
    )
    return success_response(review, "Review posted", 201)


# ---------------------------------------------------------------------- #
# Products & orders of a farm                                              #
# ---------------------------------------------------------------------- #

@listings_bp.route("/<int:listing_id>/products", methods=["GET"])
def list_listing_products(listing_id: int):
    actor = get_optional_actor()
    products = get_service(ProductService).list_products(listing_id, actor)
    return success_response({"products": products, "count": len(products)})


@listings_bp.route("/<int:listing_id>/products", methods=["POST"])
def create_listing_product(listing_id: int):
    actor = get_current_actor()
    data = load_body(ProductSchema())
    product = get_service(ProductService).create_product(actor, listing_id, data)
    return success_response(product, "Product created", 201)


@listings_bp.route("/<int:listing_id>/orders", methods=["GET"])
def list_farm_orders(listing_id: int):
    actor = get_current_actor()
    status = request.args.get("status") or None
    if status is not None and status not in ORDER_STATUSES:
        raise ValidationError(
            f"status must be one of: {', '.join(ORDER_STATUSES)}",
            field_errors=[{"field": "status", "message": "Unknown order status"}],
        )
    orders = get_service(OrderService).list_farm_orders(actor, listing_id, status)
    return success_response({"orders": orders, "count": len(orders)})
