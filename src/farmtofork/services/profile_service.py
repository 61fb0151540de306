import logging
from typing import Any, Dict, List, Optional

from farmtofork.clients.clerk import ClerkClient
from farmtofork.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from farmtofork.core.security import Actor, require_actor, require_role
from farmtofork.db import session_scope
from farmtofork.models.listing import Favorite, Listing
from farmtofork.models.profile import Profile
from farmtofork.repositories import FavoriteRepository, ListingRepository, ProfileRepository
from farmtofork.schemas.common_schemas import PaginationResponse
from farmtofork.schemas.listing_schemas import ListingResponse
from farmtofork.schemas.profile_schemas import (
    ProfileListResponse,
    ProfileResponse,
    RoleChangeResponse,
    UserRoleResponse,
)
from farmtofork.utils import roles
from farmtofork.utils.date_utils import DateUtils

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("farmtofork.audit")


def new_farmer_listing(user_id: str, **fields: Any) -> Listing:
    """Empty, unpublished listing owned by a new farmer."""
    return Listing(user_id=user_id, active=False, **fields)


class ProfileService:
    """
    Profiles, roles and favorites.

    Clerk is the identity provider; the local profile mirrors the Clerk role
    so that authorisation does not need a network round-trip. Every role
    change therefore writes to both.
    """

    def __init__(self, clerk: ClerkClient):
        self.clerk = clerk

    def resolve_actor(self, user_id: str) -> Actor:
        with session_scope() as session:
            profile = ProfileRepository(session).find_by_user_id(user_id)
            return Actor(user_id=user_id, role=profile.role if profile else None)

    def create_profile(self, actor: Actor, user_id: str, role: str) -> Dict[str, Any]:
        """
        Create the local profile of a Clerk user

        Business Rules:
        - Callers create their own profile; admins may create anyone's
        - Only admins may create admin profiles
        - One profile per Clerk user
        - Email comes from Clerk, never from the request
        - A farmer profile gets an empty unpublished listing linked as farm_id
        """
        actor = require_actor(actor)
        if actor.user_id != user_id and not actor.is_admin:
            raise ForbiddenError("You can only create your own profile")
        if role == roles.ADMIN and not actor.is_admin:
            raise ForbiddenError("You cannot create an administrator profile")

        with session_scope() as session:
            profiles = ProfileRepository(session)
            if profiles.find_by_user_id(user_id) is not None:
                raise ConflictError("A profile already exists for this user", "user_id")

            clerk_user = self.clerk.get_user(user_id)
            if not clerk_user.email:
                raise ValidationError("No email address found for this user")

            profile = Profile(
                user_id=user_id,
                email=clerk_user.email,
                role=role,
                first_name=clerk_user.first_name,
                last_name=clerk_user.last_name,
            )
            profiles.add(profile)

            listing_id = None
            if role == roles.FARMER:
                listing = ListingRepository(session).add(
                    new_farmer_listing(user_id, email=clerk_user.email)
                )
                profile.farm_id = listing.id
                listing_id = listing.id
                profiles.flush()

            logger.info(f"Created {role} profile {profile.id} for {user_id}")

            result = {"profile_id": profile.id}
            if listing_id is not None:
                result["listing_id"] = listing_id
            return result

    def sync_profile(self, actor: Actor, create_listing: bool = False) -> ProfileResponse:
        """
        Upsert the caller's profile from Clerk

        Business Rules:
        - Email, names and role are refreshed from Clerk
        - A missing or invalid Clerk role is stored as 'user'
        - Favorites and farm_id are never touched, except that a farmer without
          a farm gets one when create_listing is set
        """
        actor = require_actor(actor)
        clerk_user = self.clerk.get_user(actor.user_id)
        if not clerk_user.email:
            raise ValidationError("No email address found for this user")

        role, _, valid = roles.extract_user_role(clerk_user.public_metadata)
        role = role if valid else roles.USER

        with session_scope() as session:
            profiles = ProfileRepository(session)
            profile = profiles.find_by_user_id(actor.user_id)
            if profile is None:
                profile = profiles.add(Profile(user_id=actor.user_id, email=clerk_user.email, role=role))
                logger.info(f"Profile created on sync for {actor.user_id}")

            profile.email = clerk_user.email
            profile.role = role
            if clerk_user.first_name is not None:
                profile.first_name = clerk_user.first_name
            if clerk_user.last_name is not None:
                profile.last_name = clerk_user.last_name

            if create_listing and role == roles.FARMER and profile.farm_id is None:
                listing = ListingRepository(session).add(
                    new_farmer_listing(actor.user_id, email=clerk_user.email)
                )
                profile.farm_id = listing.id
                logger.info(f"Listing {listing.id} created for farmer {actor.user_id}")

            profiles.flush()
            return ProfileResponse.model_validate(profile)

    def get_my_profile(self, actor: Actor) -> ProfileResponse:
        actor = require_actor(actor)
        with session_scope() as session:
            return ProfileResponse.model_validate(
                ProfileRepository(session).get_by_user_id(actor.user_id)
            )

    def update_my_profile(self, actor: Actor, changes: Dict[str, Any]) -> ProfileResponse:
        actor = require_actor(actor)
        editable = {"first_name", "last_name", "phone", "avatar_url"}
        with session_scope() as session:
            profiles = ProfileRepository(session)
            profile = profiles.get_by_user_id(actor.user_id)
            for key, value in changes.items():
                if key in editable:
                    setattr(profile, key, value)
            profiles.flush()
            return ProfileResponse.model_validate(profile)

    def list_users(
        self,
        actor: Actor,
        limit: int,
        offset: int = 0,
        role: Optional[str] = None,
    ) -> ProfileListResponse:
        require_role(actor, roles.ADMIN)
        with session_scope() as session:
            items, total = ProfileRepository(session).list_profiles(limit, offset, role)
            return ProfileListResponse(
                profiles=[ProfileResponse.model_validate(p) for p in items],
                pagination=PaginationResponse.build(total, limit, offset),
            )

    # ------------------------------------------------------------------ #
    # Roles                                                                #
    # ------------------------------------------------------------------ #

    def check_user_role(self, actor: Actor, user_id: str) -> UserRoleResponse:
        actor = require_actor(actor)
        if actor.user_id != user_id and not actor.is_admin:
            raise ForbiddenError("You can only read your own role")

        clerk_user = self.clerk.get_user(user_id)
        role, has_role, valid = roles.extract_user_role(clerk_user.public_metadata)
        return UserRoleResponse(
            user_id=clerk_user.id,
            email=clerk_user.email or "unknown",
            role=role or "undefined",
            has_role=has_role,
            is_valid_role=valid,
            metadata=clerk_user.public_metadata,
        )

    def update_user_role(
        self,
        actor: Actor,
        target_user_id: str,
        new_role: str,
        reason: Optional[str] = None,
    ) -> RoleChangeResponse:
        """
        Change a user's role in Clerk and in the local profile

        Business Rules:
        - Setting the current role again is a successful no-op; a missing
          or invalid Clerk role counts as user
        - Otherwise permission rules from utils.roles.check_role_change_permission
        - Every effective change is written to the audit log
        """
        actor = require_actor(actor)

        clerk_user = self.clerk.get_user(target_user_id)
        current_role, _, valid = roles.extract_user_role(clerk_user.public_metadata)
        previous_role = current_role if valid else roles.USER
        now = DateUtils.now_utc()

        if previous_role == new_role:
            return RoleChangeResponse(
                user_id=target_user_id,
                previous_role=previous_role,
                role=new_role,
                changed=False,
                updated_at=now,
            )

        allowed, why = roles.check_role_change_permission(
            actor.role, actor.user_id, target_user_id, new_role
        )
        if not allowed:
            logger.warning(f"Role change refused: {actor.user_id} -> {target_user_id} ({new_role}): {why}")
            raise ForbiddenError(why)

        self.clerk.set_role(target_user_id, new_role, changed_by=actor.user_id, reason=reason)
        self._mirror_role(target_user_id, new_role, fallback_email=clerk_user.email)

        audit_logger.info(
            f"action=role_change user_id={target_user_id} previous_role={previous_role} "
            f"new_role={new_role} changed_by={actor.user_id} reason={reason!r} "
            f"timestamp={now.isoformat()}"
        )

        return RoleChangeResponse(
            user_id=target_user_id,
            previous_role=previous_role,
            role=new_role,
            changed=True,
            updated_at=now,
        )

    def _mirror_role(self, user_id: str, role: str, fallback_email: Optional[str]) -> None:
        with session_scope() as session:
            profiles = ProfileRepository(session)
            profile = profiles.find_by_user_id(user_id)
            if profile is not None:
                profile.role = role
                profiles.flush()
            elif fallback_email:
                profiles.add(Profile(user_id=user_id, email=fallback_email, role=role))
            else:
                logger.warning(f"No local profile to update for {user_id}")

    # ------------------------------------------------------------------ #
    # Favorites & owned listings                                           #
    # ------------------------------------------------------------------ #

    def add_favorite(self, actor: Actor, listing_id: int) -> bool:
        """Idempotent; returns True when a favorite was created."""
        actor = require_actor(actor)
        with session_scope() as session:
            listing = ListingRepository(session).get_by_id(listing_id)
            if not listing.active and not actor.can_manage(listing):
                raise NotFoundError("Listing", listing_id)

            favorites = FavoriteRepository(session)
            if favorites.find(actor.user_id, listing_id) is not None:
                return False
            favorites.add(Favorite(user_id=actor.user_id, listing_id=listing_id))
            return True

    def remove_favorite(self, actor: Actor, listing_id: int) -> None:
        actor = require_actor(actor)
        with session_scope() as session:
            favorites = FavoriteRepository(session)
            favorite = favorites.find(actor.user_id, listing_id)
            if favorite is None:
                raise NotFoundError("Favorite", listing_id)
            favorites.delete(favorite)

    def list_favorites(self, actor: Actor) -> List[ListingResponse]:
        actor = require_actor(actor)
        with session_scope() as session:
            listings = FavoriteRepository(session).list_listings_for_user(actor.user_id)
            return [ListingResponse.model_validate(listing) for listing in listings]

    def list_my_listings(self, actor: Actor) -> List[ListingResponse]:
        actor = require_actor(actor)
        with session_scope() as session:
            listings = ListingRepository(session).list_by_owner(actor.user_id)
            return [ListingResponse.model_validate(listing) for listing in listings]
