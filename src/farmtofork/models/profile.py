from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Text

from farmtofork.db import Base, IdType


class Profile(Base):
    """
    Local mirror of a Clerk user.

    Clerk stays the source of truth for identity; role is copied here from
    Clerk public metadata so permission checks do not need a network call.
    farm_id points at the farmer's primary listing and is nulled if that
    listing is deleted.
    """

    __tablename__ = "profiles"

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(Text, nullable=False, unique=True)
    email = Column(Text, nullable=False)
    role = Column(Text, nullable=False, default="user")
    first_name = Column(Text, nullable=True)
    last_name = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    farm_id = Column(IdType, ForeignKey("listing.id", ondelete="SET NULL"), nullable=True)
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
        CheckConstraint("role IN ('user','farmer','admin')", name="ck_profile_role"),
    )

    def __repr__(self) -> str:
        return f"<Profile id={self.id} user_id={self.user_id!r} role={self.role!r}>"
