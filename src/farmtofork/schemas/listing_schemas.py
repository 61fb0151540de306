from datetime import datetime
from typing import List, Optional

from pydantic import Field

from farmtofork.schemas.common_schemas import ORMModel
from farmtofork.schemas.product_schemas import ProductResponse


class ListingImageResponse(ORMModel):
    id: int
    url: str
    created_at: Optional[datetime] = None


class ListingResponse(ORMModel):
    """A listing as shown on the map and in lists"""
    id: int
    user_id: Optional[str] = None
    name: Optional[str] = None
    farm_name: Optional[str] = None
    address: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    description: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    website: Optional[str] = None
    product_type: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    purchase_mode: List[str] = Field(default_factory=list)
    production_method: List[str] = Field(default_factory=list)
    additional_services: List[str] = Field(default_factory=list)
    availability: List[str] = Field(default_factory=list)
    rating: Optional[float] = None
    active: bool = False
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    images: List[ListingImageResponse] = Field(default_factory=list)


class ExploreListingResponse(ListingResponse):
    """Explore results only carry the cover image"""
    image_url: Optional[str] = None


class ListingDetailResponse(ListingResponse):
    products: List[ProductResponse] = Field(default_factory=list)
    review_count: int = 0
    is_favorite: bool = False


class ReviewResponse(ORMModel):
    id: int
    listing_id: int
    user_id: str
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReviewListResponse(ORMModel):
    reviews: List[ReviewResponse]
    average: Optional[float] = None
    count: int = 0
