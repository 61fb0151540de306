import logging

from flask import Blueprint

from farmtofork.core.dependencies import get_service
from farmtofork.routes.schemas import ProductSchema
from farmtofork.routes.utils import get_current_actor, load_body, success_response
from farmtofork.services import ProductService

logger = logging.getLogger(__name__)

products_bp = Blueprint("products", __name__)


@products_bp.route("/<int:product_id>", methods=["PATCH"])
def update_product(product_id: int):
    """Partial update of a product by its farm owner or an admin."""
    actor = get_current_actor()
    data = load_body(ProductSchema(), partial=True)
    product = get_service(ProductService).update_product(actor, product_id, data)
    return success_response(product, "Product updated")


@products_bp.route("/<int:product_id>", methods=["DELETE"])
def delete_product(product_id: int):
    actor = get_current_actor()
    get_service(ProductService).delete_product(actor, product_id)
    return success_response({"product_id": product_id}, "Product deleted")
