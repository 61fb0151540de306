from typing import Iterable, List

from sqlalchemy import select

from farmtofork.models.product import Product
from farmtofork.repositories.base import BaseRepository


class ProductRepository(BaseRepository[Product]):
    resource_name = "Product"

    @property
    def model(self):
        return Product

    def list_for_listing(self, listing_id: int, public_only: bool = True) -> List[Product]:
        stmt = select(Product).where(Product.listing_id == listing_id)
        if public_only:
            stmt = stmt.where(Product.is_published.is_(True), Product.active.is_(True))
        return self.fetch_all(stmt.order_by(Product.name.asc(), Product.id.asc()))

    def list_orderable(self, listing_id: int, product_ids: Iterable[int]) -> List[Product]:
        """Published, active products of listing_id among product_ids."""
        ids = list(product_ids)
        if not ids:
            return []
        stmt = select(Product).where(
            Product.id.in_(ids),
            Product.listing_id == listing_id,
            Product.is_published.is_(True),
            Product.active.is_(True),
        )
        return self.fetch_all(stmt)
