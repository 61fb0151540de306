from datetime import datetime
from typing import List, Optional

from pydantic import Field, computed_field

from farmtofork.schemas.common_schemas import MoneyField, ORMModel


class ProductResponse(ORMModel):
    """Product in API responses"""
    id: int = Field(description="Unique product identifier")
    listing_id: int = Field(description="Listing selling this product")
    name: str
    category: str
    type: Optional[str] = None
    labels: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    price_cents: int = Field(ge=0, description="Unit price in cents")
    unit: str
    quantity: int = Field(ge=0)
    stock_status: str
    delivery_options: Optional[str] = None
    image_url: Optional[str] = None
    is_published: bool
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def price(self) -> MoneyField:
        return MoneyField(cents=self.price_cents)

    @computed_field
    @property
    def in_stock(self) -> bool:
        return self.stock_status != "out_of_stock"
