from farmtofork.services.farmer_request_service import FarmerRequestService
from farmtofork.services.listing_service import ListingService
from farmtofork.services.order_service import OrderService
from farmtofork.services.product_service import ProductService
from farmtofork.services.profile_service import ProfileService
from farmtofork.services.review_service import ReviewService

__all__ = [
    "ProfileService",
    "ListingService",
    "ReviewService",
    "ProductService",
    "FarmerRequestService",
    "OrderService",
]
