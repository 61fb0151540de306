from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Text,
)
from sqlalchemy.orm import relationship

from farmtofork.db import Base, IdType, JSONType


class Product(Base):
    """
    An item a listing sells (e.g. 'Tomates anciennes, 1 kg').

    price_cents is an integer number of cents: 3,50 EUR -> 350.

    Only products that are both is_published and active are visible to the
    public and may be ordered.
    """

    __tablename__ = "products"

    id = Column(IdType, primary_key=True, autoincrement=True)
    listing_id = Column(
        IdType, ForeignKey("listing.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    type = Column(Text, nullable=True)
    labels = Column(JSONType, nullable=False, default=list)
    description = Column(Text, nullable=True)
    price_cents = Column(BigInteger, nullable=False)
    unit = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    stock_status = Column(Text, nullable=False, default="in_stock")
    delivery_options = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    is_published = Column(Boolean, nullable=False, default=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("price_cents >= 0", name="ck_product_price"),
        CheckConstraint("quantity >= 0", name="ck_product_quantity"),
        CheckConstraint(
            "stock_status IN ('in_stock','low_stock','out_of_stock')",
            name="ck_product_stock_status",
        ),
    )

    listing = relationship("Listing", back_populates="products")

    def __repr__(self) -> str:
        return (
            f"<Product id={self.id} name={self.name!r} "
            f"price_cents={self.price_cents}>"
        )
