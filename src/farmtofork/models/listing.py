from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from farmtofork.db import Base, IdType, JSONType


class Listing(Base):
    """
    A farm or producer shown on the explore map.

    The multi-valued attributes (product_type, certifications, ...) are JSON
    arrays so a listing can be filtered on several values per attribute
    without join tables. active doubles as the "published" flag; published_at
    records the first publication and is never reset.
    """

    __tablename__ = "listing"

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(Text, nullable=True, index=True)
    name = Column(Text, nullable=True)
    farm_name = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    description = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    phone_number = Column(Text, nullable=True)
    website = Column(Text, nullable=True)
    product_type = Column(JSONType, nullable=False, default=list)
    certifications = Column(JSONType, nullable=False, default=list)
    purchase_mode = Column(JSONType, nullable=False, default=list)
    production_method = Column(JSONType, nullable=False, default=list)
    additional_services = Column(JSONType, nullable=False, default=list)
    availability = Column(JSONType, nullable=False, default=list)
    rating = Column(Float, nullable=True)
    active = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    modified_at = Column(DateTime(timezone=True), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)

    images = relationship(
        "ListingImage",
        back_populates="listing",
        cascade="all, delete-orphan",
        order_by="ListingImage.id",
    )
    products = relationship(
        "Product", back_populates="listing", cascade="all, delete-orphan"
    )
    reviews = relationship(
        "Review", back_populates="listing", cascade="all, delete-orphan"
    )
    favorites = relationship(
        "Favorite", back_populates="listing", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Listing id={self.id} name={self.name!r} active={self.active}>"


class ListingImage(Base):
    __tablename__ = "listing_images"

    id = Column(IdType, primary_key=True, autoincrement=True)
    listing_id = Column(
        IdType, ForeignKey("listing.id", ondelete="CASCADE"), nullable=False
    )
    url = Column(Text, nullable=False)
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

    listing = relationship("Listing", back_populates="images")

    def __repr__(self) -> str:
        return f"<ListingImage id={self.id} listing_id={self.listing_id}>"


class Favorite(Base):
    """A user's bookmark on a listing. One row per (user, listing)."""

    __tablename__ = "favorites"

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(Text, nullable=False, index=True)
    listing_id = Column(
        IdType, ForeignKey("listing.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "listing_id", name="uq_favorite_user_listing"),
    )

    listing = relationship("Listing", back_populates="favorites")

    def __repr__(self) -> str:
        return f"<Favorite user_id={self.user_id!r} listing_id={self.listing_id}>"


class Review(Base):
    __tablename__ = "reviews"

    id = Column(IdType, primary_key=True, autoincrement=True)
    listing_id = Column(
        IdType, ForeignKey("listing.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
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
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating"),
        UniqueConstraint("listing_id", "user_id", name="uq_review_listing_user"),
    )

    listing = relationship("Listing", back_populates="reviews")

    def __repr__(self) -> str:
        return f"<Review id={self.id} listing_id={self.listing_id} rating={self.rating}>"
