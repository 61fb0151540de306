import logging

from flask import Blueprint, request

from farmtofork.core.config import config
from farmtofork.core.dependencies import get_service
from farmtofork.core.exceptions import ValidationError
from farmtofork.routes.schemas import (
    CreateProfileSchema,
    SyncProfileSchema,
    UpdateProfileSchema,
    UpdateRoleSchema,
)
from farmtofork.routes.utils import (
    get_current_actor,
    load_body,
    parse_int,
    success_response,
)
from farmtofork.services.profile_service import ProfileService
from farmtofork.utils.roles import VALID_ROLES

logger = logging.getLogger(__name__)

profiles_bp = Blueprint("profiles", __name__)
users_bp = Blueprint("users", __name__)


@profiles_bp.route("", methods=["POST"])
def create_profile():
    """Create the local profile of a Clerk user."""
    actor = get_current_actor()
    body = load_body(CreateProfileSchema())
    result = get_service(ProfileService).create_profile(actor, body["user_id"], body["role"])
    return success_response(result, "Profile created", 201)


@profiles_bp.route("/me", methods=["GET"])
def get_my_profile():
    actor = get_current_actor()
    return success_response(get_service(ProfileService).get_my_profile(actor))


@profiles_bp.route("/me", methods=["PATCH"])
def update_my_profile():
    actor = get_current_actor()
    changes = load_body(UpdateProfileSchema(), partial=True)
    profile = get_service(ProfileService).update_my_profile(actor, changes)
    return success_response(profile, "Profile updated")


@profiles_bp.route("/me/sync", methods=["POST"])
def sync_my_profile():
    """Upsert the caller's profile from Clerk."""
    actor = get_current_actor()
    body = load_body(SyncProfileSchema())
    profile = get_service(ProfileService).sync_profile(actor, create_listing=body["create_listing"])
    return success_response(profile, "Profile synchronised")


@profiles_bp.route("/me/favorites", methods=["GET"])
def list_my_favorites():
    actor = get_current_actor()
    listings = get_service(ProfileService).list_favorites(actor)
    return success_response({"listings": listings, "count": len(listings)})


@profiles_bp.route("/me/listings", methods=["GET"])
def list_my_listings():
    actor = get_current_actor()
    listings = get_service(ProfileService).list_my_listings(actor)
    return success_response({"listings": listings, "count": len(listings)})


# ---------------------------------------------------------------------- #
# Users & roles                                                            #
# ---------------------------------------------------------------------- #

@users_bp.route("", methods=["GET"])
def list_users():
    actor = get_current_actor()
    limit = parse_int(
        request.args.get("limit"),
        default=config.api.default_page_size,
        min_val=1,
        max_val=config.api.max_page_size,
        field_name="limit",
    )
    offset = parse_int(request.args.get("offset"), default=0, min_val=0, field_name="offset")
    role = request.args.get("role") or None
    if role is not None and role not in VALID_ROLES:
        raise ValidationError(
            f"role must be one of: {', '.join(VALID_ROLES)}",
            field_errors=[{"field": "role", "message": "Unknown role"}],
        )
    return success_response(get_service(ProfileService).list_users(actor, limit, offset, role))


@users_bp.route("/<user_id>/role", methods=["GET"])
def check_user_role(user_id: str):
    actor = get_current_actor()
    return success_response(get_service(ProfileService).check_user_role(actor, user_id))


@users_bp.route("/role", methods=["POST"])
def update_user_role():
    actor = get_current_actor()
    body = load_body(UpdateRoleSchema())
    result = get_service(ProfileService).update_user_role(
        actor, body["user_id"], body["role"], body.get("reason")
    )
    message = "Role unchanged" if not result.changed else f"Role updated to {result.role}"
    return success_response(result, message)
