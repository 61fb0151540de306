import logging

from flask import Blueprint, request

from farmtofork.core.dependencies import get_service
from farmtofork.core.exceptions import ValidationError
from farmtofork.routes.schemas import (
    FarmerApplicationSchema,
    FarmerRequestQuerySchema,
    ValidateFarmerRequestSchema,
)
from farmtofork.routes.utils import (
    get_current_actor,
    load_body,
    load_data,
    success_response,
)
from farmtofork.services import FarmerRequestService

logger = logging.getLogger(__name__)

farmer_requests_bp = Blueprint("farmer_requests", __name__)


@farmer_requests_bp.route("", methods=["POST"])
def apply_as_farmer():
    """Submit a request to become a farmer; admins are notified by email."""
    actor = get_current_actor()
    data = load_body(FarmerApplicationSchema())

    body_user_id = data.pop("user_id", None)
    if body_user_id and body_user_id != actor.user_id:
        raise ValidationError(
            "userId does not match the authenticated user",
            field_errors=[{"field": "userId", "message": "Must be the caller's id"}],
        )

    result = get_service(FarmerRequestService).apply(actor, data)
    return success_response(result, "Farmer request submitted", 201)


@farmer_requests_bp.route("", methods=["GET"])
def list_farmer_requests():
    actor = get_current_actor()
    query = load_data(FarmerRequestQuerySchema(), {k: v for k, v in request.args.items() if v})
    requests_ = get_service(FarmerRequestService).list_requests(actor, query.get("status"))
    return success_response({"requests": requests_, "count": len(requests_)})


@farmer_requests_bp.route("/<int:request_id>/validate", methods=["POST"])
def validate_farmer_request(request_id: int):
    """Approve or reject a pending request (admin only)."""
    actor = get_current_actor()
    body = load_body(ValidateFarmerRequestSchema())
    result = get_service(FarmerRequestService).validate_request(
        actor,
        request_id,
        body["status"],
        role=body.get("role"),
        reason=body.get("reason"),
        user_id=body.get("user_id"),
    )
    return success_response(result, f"Request {result['status']}")
