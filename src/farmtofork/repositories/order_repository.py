from typing import List, Optional

from sqlalchemy import select

from farmtofork.models.order import Order
from farmtofork.repositories.base import BaseRepository


class OrderRepository(BaseRepository[Order]):
    resource_name = "Order"

    @property
    def model(self):
        return Order

    def list_for_user(self, user_id: str) -> List[Order]:
        stmt = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return self.fetch_all(stmt)

    def list_for_farm(self, farm_id: int, status: Optional[str] = None) -> List[Order]:
        stmt = select(Order).where(Order.farm_id == farm_id)
        if status:
            stmt = stmt.where(Order.status == status)
        return self.fetch_all(stmt.order_by(Order.created_at.desc(), Order.id.desc()))
