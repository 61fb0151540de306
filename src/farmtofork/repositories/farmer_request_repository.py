from typing import List, Optional

from sqlalchemy import select

from farmtofork.models.farmer_request import FarmerRequest
from farmtofork.repositories.base import BaseRepository


class FarmerRequestRepository(BaseRepository[FarmerRequest]):
    resource_name = "Farmer request"

    @property
    def model(self):
        return FarmerRequest

    def find_pending_for_user(self, user_id: str) -> Optional[FarmerRequest]:
        rows = self.fetch_all(
            select(FarmerRequest).where(
                FarmerRequest.user_id == user_id, FarmerRequest.status == "pending"
            )
        )
        return rows[0] if rows else None

    def list_requests(self, status: Optional[str] = None) -> List[FarmerRequest]:
        stmt = select(FarmerRequest)
        if status:
            stmt = stmt.where(FarmerRequest.status == status)
        return self.fetch_all(
            stmt.order_by(FarmerRequest.created_at.desc(), FarmerRequest.id.desc())
        )
