import logging

from flask import Blueprint

from farmtofork.core.dependencies import get_service
from farmtofork.routes.schemas import CreateOrderSchema, UpdateOrderStatusSchema
from farmtofork.routes.utils import get_current_actor, load_body, success_response
from farmtofork.services import OrderService

logger = logging.getLogger(__name__)

orders_bp = Blueprint("orders", __name__)


@orders_bp.route("", methods=["POST"])
def create_order():
    """
    Place an order with one farm.

    Unit prices come from the products table; the request only carries
    product ids and quantities.
    """
    actor = get_current_actor()
    data = load_body(CreateOrderSchema())
    order = get_service(OrderService).create_order(actor, data)
    return success_response(order, "Order placed", 201)


@orders_bp.route("", methods=["GET"])
def list_my_orders():
    actor = get_current_actor()
    orders = get_service(OrderService).list_my_orders(actor)
    return success_response({"orders": orders, "count": len(orders)})


@orders_bp.route("/<int:order_id>", methods=["GET"])
def get_order(order_id: int):
    actor = get_current_actor()
    return success_response(get_service(OrderService).get_order(actor, order_id))


@orders_bp.route("/<int:order_id>/status", methods=["PATCH"])
def update_order_status(order_id: int):
    actor = get_current_actor()
    body = load_body(UpdateOrderStatusSchema())
    order = get_service(OrderService).update_status(
        actor,
        order_id,
        body["status"],
        farmer_notes=body.get("farmer_notes"),
        cancelled_reason=body.get("cancelled_reason"),
    )
    return success_response(order, f"Order {order.status}")
