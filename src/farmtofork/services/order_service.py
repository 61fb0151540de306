import logging
from typing import Any, Dict, List, Optional

from farmtofork.core.constants import ORDER_TRANSITIONS
from farmtofork.core.exceptions import (
    BusinessLogicError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from farmtofork.core.security import Actor, require_actor, require_manager
from farmtofork.db import session_scope
from farmtofork.models.order import Order
from farmtofork.repositories import ListingRepository, OrderRepository, ProductRepository
from farmtofork.schemas.order_schemas import OrderItemSnapshot, OrderResponse
from farmtofork.utils.date_utils import DateUtils

logger = logging.getLogger(__name__)


class OrderService:
    """
    Orders placed with a single farm.

    Prices are always read from the products table; whatever price the
    client believes in is ignored.
    """

    def create_order(self, actor: Actor, data: Dict[str, Any]) -> OrderResponse:
        """
        Business Rules:
        - The farm must exist and be published
        - Every product must belong to the farm and be published and active
        - No product may be out of stock
        - Delivery orders need an address
        - An ISO delivery day cannot be in the past
        - New orders are pending and unpaid
        """
        actor = require_actor(actor)
        farm_id = data["farm_id"]
        items = data["items"]
        delivery_mode = data["delivery_mode"]

        delivery_day = DateUtils.parse_delivery_day(data["delivery_day"])
        if delivery_day is not None and delivery_day < DateUtils.now_utc().date():
            raise ValidationError(
                "Delivery day cannot be in the past",
                field_errors=[{"field": "deliveryDay", "message": "Date is in the past"}],
            )

        with session_scope() as session:
            listing = ListingRepository(session).find_by_id(farm_id)
            if listing is None:
                raise NotFoundError("Farm", farm_id)
            if not listing.active:
                raise ValidationError("Farm is not available for orders")

            requested_ids = [item["product_id"] for item in items]
            products = {
                p.id: p
                for p in ProductRepository(session).list_orderable(farm_id, requested_ids)
            }

            missing = [pid for pid in requested_ids if pid not in products]
            if missing:
                raise NotFoundError(
                    "Products",
                    details={"missing_product_ids": missing},
                )

            out_of_stock = [
                products[pid].name for pid in requested_ids
                if products[pid].stock_status == "out_of_stock"
            ]
            if out_of_stock:
                raise ValidationError(
                    "Some products are out of stock",
                    details={"out_of_stock": out_of_stock},
                )

            if delivery_mode == "delivery" and not data.get("delivery_address"):
                raise ValidationError(
                    "A delivery address is required for delivery orders",
                    field_errors=[{"field": "deliveryAddress", "message": "Required for delivery"}],
                )

            snapshot: List[OrderItemSnapshot] = []
            for item in items:
                product = products[item["product_id"]]
                snapshot.append(OrderItemSnapshot(
                    product_id=product.id,
                    name=product.name,
                    unit=product.unit,
                    image_url=product.image_url,
                    unit_price_cents=product.price_cents,
                    quantity=item["quantity"],
                    subtotal_cents=product.price_cents * item["quantity"],
                ))
            total = sum(line.subtotal_cents for line in snapshot)

            order = OrderRepository(session).add(Order(
                user_id=actor.user_id,
                farm_id=farm_id,
                items=[line.model_dump() for line in snapshot],
                total_price_cents=total,
                delivery_mode=delivery_mode,
                delivery_day=data["delivery_day"],
                delivery_address=data.get("delivery_address") if delivery_mode == "delivery" else None,
                status="pending",
                payment_status="unpaid",
                customer_notes=data.get("customer_notes"),
                metadata_={},
            ))

            logger.info(
                f"Order {order.id} placed by {actor.user_id} on farm {farm_id}: "
                f"{len(snapshot)} item(s), total {total} cents"
            )
            return OrderResponse.model_validate(order)

    def list_my_orders(self, actor: Actor) -> List[OrderResponse]:
        actor = require_actor(actor)
        with session_scope() as session:
            return [
                OrderResponse.model_validate(o)
                for o in OrderRepository(session).list_for_user(actor.user_id)
            ]

    def list_farm_orders(
        self,
        actor: Actor,
        farm_id: int,
        status: Optional[str] = None,
    ) -> List[OrderResponse]:
        with session_scope() as session:
            listing = ListingRepository(session).get_by_id(farm_id)
            require_manager(actor, listing, "Only the farm owner can see its orders")
            return [
                OrderResponse.model_validate(o)
                for o in OrderRepository(session).list_for_farm(farm_id, status)
            ]

    def get_order(self, actor: Actor, order_id: int) -> OrderResponse:
        actor = require_actor(actor)
        with session_scope() as session:
            order = OrderRepository(session).get_by_id(order_id)
            if self._relation(actor, order, session) is None:
                # Hide orders the caller has nothing to do with.
                raise NotFoundError("Order", order_id)
            return OrderResponse.model_validate(order)

    def update_status(
        self,
        actor: Actor,
        order_id: int,
        new_status: str,
        farmer_notes: Optional[str] = None,
        cancelled_reason: Optional[str] = None,
    ) -> OrderResponse:
        """
        Business Rules:
        - pending -> confirmed|cancelled, confirmed -> ready|cancelled,
          ready -> delivered|cancelled; delivered and cancelled are final
        - The farm owner and admins drive the workflow
        - The customer may only cancel a pending order
        - cancelled_by records who cancelled
        """
        actor = require_actor(actor)
        with session_scope() as session:
            orders = OrderRepository(session)
            order = orders.get_by_id(order_id)

            relation = self._relation(actor, order, session)
            if relation is None:
                raise NotFoundError("Order", order_id)

            allowed = ORDER_TRANSITIONS.get(order.status, ())
            if new_status not in allowed:
                raise BusinessLogicError(
                    f"Cannot change order status from {order.status} to {new_status}",
                    rule="order_status_transition",
                )

            if relation == "customer":
                if new_status != "cancelled" or order.status != "pending":
                    raise ForbiddenError("Customers can only cancel pending orders")

            order.status = new_status
            if farmer_notes is not None and relation != "customer":
                order.farmer_notes = farmer_notes
            if new_status == "cancelled":
                order.cancelled_by = relation
                order.cancelled_reason = cancelled_reason

            orders.flush()
            logger.info(f"Order {order_id} -> {new_status} by {actor.user_id} ({relation})")
            return OrderResponse.model_validate(order)

    @staticmethod
    def _relation(actor: Actor, order: Order, session) -> Optional[str]:
        """'admin', 'farmer' (farm owner), 'customer' or None."""
        if actor.is_admin:
            return "admin"
        if order.farm_id is not None:
            listing = ListingRepository(session).find_by_id(order.farm_id)
            if listing is not None and actor.owns(listing):
                return "farmer"
        if order.user_id == actor.user_id:
            return "customer"
        return None
