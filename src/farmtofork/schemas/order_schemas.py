from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from farmtofork.schemas.common_schemas import MoneyField, ORMModel


class OrderItemSnapshot(BaseModel):
    """Product as it was when the order was placed"""
    product_id: int
    name: str
    unit: Optional[str] = None
    image_url: Optional[str] = None
    unit_price_cents: int = Field(ge=0)
    quantity: int = Field(ge=1)
    subtotal_cents: int = Field(ge=0)


class OrderResponse(ORMModel):
    id: int
    user_id: str
    farm_id: Optional[int] = None
    items: List[OrderItemSnapshot]
    total_price_cents: int = Field(ge=0)
    delivery_mode: str
    delivery_day: str
    delivery_address: Optional[Dict[str, Any]] = None
    status: str
    payment_status: str
    customer_notes: Optional[str] = None
    farmer_notes: Optional[str] = None
    cancelled_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def total(self) -> MoneyField:
        return MoneyField(cents=self.total_price_cents)
