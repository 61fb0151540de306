import logging
from typing import Any, Dict, List, Optional

from farmtofork.core.exceptions import NotFoundError
from farmtofork.core.security import Actor, require_manager
from farmtofork.db import session_scope
from farmtofork.models.product import Product
from farmtofork.repositories import ListingRepository, ProductRepository
from farmtofork.schemas.product_schemas import ProductResponse

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = (
    "name",
    "category",
    "type",
    "labels",
    "description",
    "price_cents",
    "unit",
    "quantity",
    "stock_status",
    "delivery_options",
    "image_url",
    "is_published",
    "active",
)


class ProductService:
    """
    Products sold by a listing.

    The public only ever sees products that are published and active on a
    published listing; owners and admins see everything.
    """

    def list_products(self, listing_id: int, actor: Optional[Actor] = None) -> List[ProductResponse]:
        with session_scope() as session:
            listing = ListingRepository(session).get_by_id(listing_id)
            can_manage = actor is not None and actor.can_manage(listing)
            if not listing.active and not can_manage:
                raise NotFoundError("Listing", listing_id)

            products = ProductRepository(session).list_for_listing(
                listing_id, public_only=not can_manage
            )
            return [ProductResponse.model_validate(p) for p in products]

    def create_product(self, actor: Actor, listing_id: int, data: Dict[str, Any]) -> ProductResponse:
        with session_scope() as session:
            listing = ListingRepository(session).get_by_id(listing_id)
            require_manager(actor, listing, "Only the owner can add products")

            product = Product(listing_id=listing_id)
            self._apply_fields(product, data)
            ProductRepository(session).add(product)

            logger.info(f"Product {product.id} created on listing {listing_id}")
            return ProductResponse.model_validate(product)

    def update_product(self, actor: Actor, product_id: int, data: Dict[str, Any]) -> ProductResponse:
        with session_scope() as session:
            products = ProductRepository(session)
            product = products.get_by_id(product_id)
            require_manager(actor, product.listing, "Only the owner can edit this product")

            self._apply_fields(product, data)
            products.flush()
            return ProductResponse.model_validate(product)

    def delete_product(self, actor: Actor, product_id: int) -> None:
        with session_scope() as session:
            products = ProductRepository(session)
            product = products.get_by_id(product_id)
            require_manager(actor, product.listing, "Only the owner can delete this product")

            products.delete(product)
            logger.info(f"Product {product_id} deleted by {actor.user_id}")

    @staticmethod
    def _apply_fields(product: Product, data: Dict[str, Any]) -> None:
        for field in PRODUCT_FIELDS:
            if field in data:
                setattr(product, field, data[field])
