"""Role helpers shared by the profile, user and farmer-request endpoints."""

import re
from typing import Any, Iterable, Mapping, Optional, Tuple

USER = "user"
FARMER = "farmer"
ADMIN = "admin"

VALID_ROLES = (USER, FARMER, ADMIN)

CLERK_USER_ID_PREFIX = "user_"
STRICT_CLERK_USER_ID = re.compile(r"^user_[A-Za-z0-9]{24,}$")


def is_valid_role(role: Optional[str]) -> bool:
    return bool(role) and role in VALID_ROLES


def is_clerk_user_id(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(CLERK_USER_ID_PREFIX) and len(value) > len(CLERK_USER_ID_PREFIX)


def is_strict_clerk_user_id(value: Any) -> bool:
    return isinstance(value, str) and bool(STRICT_CLERK_USER_ID.match(value))


def extract_user_role(metadata: Optional[Mapping[str, Any]]) -> Tuple[Optional[str], bool, bool]:
    """
    Read the role stored in Clerk public metadata.

    Returns (role, has_role, is_valid).
    """
    role = (metadata or {}).get("role")
    if role is not None and not isinstance(role, str):
        role = str(role)
    return role, bool(role), is_valid_role(role)


def has_role(metadata: Optional[Mapping[str, Any]], target_role: str) -> bool:
    role, _, valid = extract_user_role(metadata)
    return valid and role == target_role


def has_any_role(metadata: Optional[Mapping[str, Any]], roles: Iterable[str]) -> bool:
    role, _, valid = extract_user_role(metadata)
    return valid and role in set(roles)


def check_role_change_permission(
    requesting_role: Optional[str],
    requesting_user_id: str,
    target_user_id: str,
    new_role: str,
) -> Tuple[bool, Optional[str]]:
    """
    Decide whether requesting_user_id may give target_user_id new_role.

    Rules:
    - admins may change any role
    - a user may promote themself to farmer
    - nobody may promote themself to admin
    - changing someone else's role requires admin
    """
    requesting_role = requesting_role or USER

    if requesting_role == ADMIN:
        return True, None

    if requesting_user_id != target_user_id:
        return False, "You do not have permission to change another user's role"

    if new_role == ADMIN:
        return False, "You cannot promote yourself to administrator"

    if new_role == FARMER and requesting_role == USER:
        return True, None

    return False, "Action not allowed"
