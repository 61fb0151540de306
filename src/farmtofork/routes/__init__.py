from farmtofork.routes.farmer_requests import farmer_requests_bp
from farmtofork.routes.listings import listings_bp
from farmtofork.routes.orders import orders_bp
from farmtofork.routes.products import products_bp
from farmtofork.routes.profiles import profiles_bp, users_bp

__all__ = [
    "profiles_bp",
    "users_bp",
    "listings_bp",
    "products_bp",
    "farmer_requests_bp",
    "orders_bp",
]
