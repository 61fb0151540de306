# Re-export all models from a single entry point so the rest of the app
# can import cleanly:
#   from farmtofork.models import Listing, Profile, Order
#
# Importing all models here also registers them with Base.metadata before
# any call to create_all().

from farmtofork.models.farmer_request import FarmerRequest
from farmtofork.models.listing import Favorite, Listing, ListingImage, Review
from farmtofork.models.order import Order
from farmtofork.models.product import Product
from farmtofork.models.profile import Profile

__all__ = [
    "Profile",
    "Listing",
    "ListingImage",
    "Favorite",
    "Review",
    "Product",
    "FarmerRequest",
    "Order",
]
