from datetime import datetime
from typing import Optional

from farmtofork.schemas.common_schemas import ORMModel


class FarmerRequestResponse(ORMModel):
    id: int
    user_id: str
    email: str
    farm_name: str
    location: str
    phone: str
    website: Optional[str] = None
    description: str
    products: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
