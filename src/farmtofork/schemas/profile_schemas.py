from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from farmtofork.schemas.common_schemas import ORMModel, PaginationResponse


class ProfileResponse(ORMModel):
    id: int
    user_id: str
    email: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    farm_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileListResponse(BaseModel):
    profiles: List[ProfileResponse]
    pagination: PaginationResponse


class UserRoleResponse(BaseModel):
    """Role information read from Clerk"""
    user_id: str
    email: str = Field(description="Primary email, 'unknown' when Clerk has none")
    role: str = Field(description="Role from public metadata, 'undefined' when unset")
    has_role: bool
    is_valid_role: bool
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RoleChangeResponse(BaseModel):
    user_id: str
    previous_role: str
    role: str
    changed: bool
    updated_at: datetime
