from typing import List, Optional, Tuple

from sqlalchemy import select

from farmtofork.core.exceptions import NotFoundError
from farmtofork.models.profile import Profile
from farmtofork.repositories.base import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    resource_name = "Profile"

    @property
    def model(self):
        return Profile

    def find_by_user_id(self, user_id: str) -> Optional[Profile]:
        rows = self.fetch_all(select(Profile).where(Profile.user_id == user_id))
        return rows[0] if rows else None

    def get_by_user_id(self, user_id: str) -> Profile:
        profile = self.find_by_user_id(user_id)
        if profile is None:
            raise NotFoundError("Profile", user_id)
        return profile

    def list_profiles(
        self,
        limit: int,
        offset: int = 0,
        role: Optional[str] = None,
    ) -> Tuple[List[Profile], int]:
        stmt = select(Profile)
        if role:
            stmt = stmt.where(Profile.role == role)
        stmt = stmt.order_by(Profile.created_at.desc(), Profile.id.desc())
        return self.fetch_page(stmt, limit, offset)
