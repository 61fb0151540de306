from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, ForeignKey, Text

from farmtofork.core.constants import DELIVERY_MODES, ORDER_STATUSES, PAYMENT_STATUSES
from farmtofork.db import Base, IdType, JSONType


def _one_of(column: str, values) -> str:
    return f"{column} IN (" + ",".join(f"'{v}'" for v in values) + ")"


class Order(Base):
    """
    A purchase from a single farm.

    items is a JSON snapshot of the ordered products (id, name, unit, unit
    price, quantity, subtotal) taken at order time, so later price or name
    changes on the product do not alter historical orders. total_price_cents
    is the sum of the snapshot subtotals.

    status, payment_status and delivery_mode are limited by CHECK
    constraints built from core.constants.

    metadata_ maps to the 'metadata' column ('metadata' is reserved on
    declarative classes).
    """

    __tablename__ = "orders"

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(Text, nullable=False, index=True)
    farm_id = Column(
        IdType, ForeignKey("listing.id", ondelete="SET NULL"), nullable=True, index=True
    )
    items = Column(JSONType, nullable=False, default=list)
    total_price_cents = Column(BigInteger, nullable=False)
    delivery_mode = Column(Text, nullable=False)
    delivery_day = Column(Text, nullable=False)
    delivery_address = Column(JSONType, nullable=True)
    status = Column(Text, nullable=False, default="pending")
    payment_status = Column(Text, nullable=False, default="unpaid")
    customer_notes = Column(Text, nullable=True)
    farmer_notes = Column(Text, nullable=True)
    cancelled_reason = Column(Text, nullable=True)
    cancelled_by = Column(Text, nullable=True)
    metadata_ = Column("metadata", JSONType, nullable=False, default=dict)
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
        CheckConstraint(_one_of("status", ORDER_STATUSES), name="ck_order_status"),
        CheckConstraint(_one_of("payment_status", PAYMENT_STATUSES), name="ck_order_payment_status"),
        CheckConstraint(_one_of("delivery_mode", DELIVERY_MODES), name="ck_order_delivery_mode"),
        CheckConstraint("total_price_cents >= 0", name="ck_order_total"),
    )

    def __repr__(self) -> str:
        return (
            f"<Order id={self.id} status={self.status!r} "
            f"total_price_cents={self.total_price_cents}>"
        )
