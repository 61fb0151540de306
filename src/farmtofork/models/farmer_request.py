from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Text

from farmtofork.db import Base, IdType


class FarmerRequest(Base):
    """
    An application by a user to become a farmer.

    A request starts 'pending' and is moved to 'approved' or 'rejected'
    exactly once by an admin; reviewed_by/reviewed_at record who and when.
    """

    __tablename__ = "farmer_requests"

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(Text, nullable=False, index=True)
    email = Column(Text, nullable=False)
    farm_name = Column(Text, nullable=False)
    location = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    website = Column(Text, nullable=True)
    description = Column(Text, nullable=False)
    products = Column(Text, nullable=True)
    first_name = Column(Text, nullable=True)
    last_name = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="pending")
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
    reviewed_by = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending','approved','rejected')",
            name="ck_farmer_request_status",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<FarmerRequest id={self.id} user_id={self.user_id!r} "
            f"status={self.status!r}>"
        )
