from farmtofork.repositories.farmer_request_repository import FarmerRequestRepository
from farmtofork.repositories.listing_repository import FavoriteRepository, ListingRepository
from farmtofork.repositories.order_repository import OrderRepository
from farmtofork.repositories.product_repository import ProductRepository
from farmtofork.repositories.profile_repository import ProfileRepository
from farmtofork.repositories.review_repository import ReviewRepository

__all__ = [
    "ProfileRepository",
    "ListingRepository",
    "FavoriteRepository",
    "ReviewRepository",
    "ProductRepository",
    "FarmerRequestRepository",
    "OrderRepository",
]
