from dataclasses import dataclass
from typing import Any, Iterable, Optional

from farmtofork.core.exceptions import ForbiddenError, UnauthorizedError
from farmtofork.utils.roles import ADMIN


@dataclass(frozen=True)
class Actor:
    """The caller of a request: Clerk user id plus the role of their local profile.

    role is None when the user has no profile yet.
    """
    user_id: str
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return self.role in set(roles)

    def owns(self, resource: Any) -> bool:
        return getattr(resource, "user_id", None) == self.user_id

    def can_manage(self, resource: Any) -> bool:
        return self.is_admin or self.owns(resource)


def require_actor(actor: Optional[Actor]) -> Actor:
    if actor is None:
        raise UnauthorizedError()
    return actor


def require_role(actor: Optional[Actor], *roles: str) -> Actor:
    actor = require_actor(actor)
    if not actor.has_any_role(roles):
        raise ForbiddenError(f"This action requires one of the roles: {', '.join(roles)}")
    return actor


def require_manager(actor: Optional[Actor], resource: Any, message: str = "Access forbidden") -> Actor:
    actor = require_actor(actor)
    if not actor.can_manage(resource):
        raise ForbiddenError(message)
    return actor
