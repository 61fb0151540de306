import logging
from typing import Any, Dict, List, Optional

from farmtofork.clients.clerk import ClerkClient
from farmtofork.clients.mailer import Mailer
from farmtofork.core.exceptions import (
    BaseAPIException,
    ConflictError,
    ValidationError,
)
from farmtofork.core.security import Actor, require_actor, require_role
from farmtofork.db import session_scope
from farmtofork.models.farmer_request import FarmerRequest
from farmtofork.models.profile import Profile
from farmtofork.repositories import (
    FarmerRequestRepository,
    ListingRepository,
    ProfileRepository,
)
from farmtofork.schemas.farmer_request_schemas import FarmerRequestResponse
from farmtofork.services.profile_service import new_farmer_listing
from farmtofork.utils import roles
from farmtofork.utils.date_utils import DateUtils
from farmtofork.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)


class FarmerRequestService:
    """
    Applications to become a farmer and their review by admins.

    Email notifications never block the workflow: a failed send is logged
    and the request/decision is still stored.
    """

    def __init__(self, clerk: ClerkClient, mailer: Mailer):
        self.clerk = clerk
        self.mailer = mailer

    def apply(self, actor: Actor, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Business Rules:
        - Farmers and admins cannot apply again
        - At most one pending request per user
        - Admins are notified by email (non-blocking)
        """
        actor = require_actor(actor)
        if actor.role in (roles.FARMER, roles.ADMIN):
            raise ConflictError("You already have farmer access", "role")

        with session_scope() as session:
            requests_repo = FarmerRequestRepository(session)
            if requests_repo.find_pending_for_user(actor.user_id) is not None:
                raise ConflictError("A farmer request is already pending for this user", "user_id")

            farmer_request = requests_repo.add(FarmerRequest(
                user_id=actor.user_id,
                email=data["email"].lower(),
                farm_name=data["farm_name"],
                location=data["location"],
                phone=data["phone"],
                website=data.get("website"),
                description=data["description"],
                products=data.get("products"),
                first_name=data.get("first_name"),
                last_name=data.get("last_name"),
                status="pending",
            ))
            snapshot = FarmerRequestResponse.model_validate(farmer_request).model_dump()

        logger.info(f"Farmer request {snapshot['id']} submitted by {actor.user_id}")

        notified = self._notify(self.mailer.send_admin_notification, snapshot)

        return {"request_id": snapshot["id"], "admin_notified": notified}

    def list_requests(self, actor: Actor, status: Optional[str] = None) -> List[FarmerRequestResponse]:
        require_role(actor, roles.ADMIN)
        with session_scope() as session:
            rows = FarmerRequestRepository(session).list_requests(status)
            return [FarmerRequestResponse.model_validate(r) for r in rows]

    def validate_request(
        self,
        actor: Actor,
        request_id: int,
        status: str,
        role: Optional[str] = None,
        reason: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Approve or reject a pending farmer request

        Business Rules:
        - Admin only
        - Only pending requests can be reviewed
        - Role defaults to farmer on approval and user on rejection
        - Clerk role is updated first; the local profile mirrors it
        - An approved farmer gets an unpublished listing built from the
          request (failure is logged, the approval stands)
        - The applicant is emailed the outcome (non-blocking)
        """
        actor = require_role(actor, roles.ADMIN)
        role = role or (roles.FARMER if status == "approved" else roles.USER)

        with session_scope() as session:
            farmer_request = FarmerRequestRepository(session).get_by_id(request_id)
            if farmer_request.status != "pending":
                raise ValidationError(
                    f"Farmer request {request_id} has already been {farmer_request.status}"
                )
            if user_id is not None and user_id != farmer_request.user_id:
                raise ValidationError(
                    "userId does not match the farmer request",
                    field_errors=[{"field": "userId", "message": "Mismatch with request owner"}],
                )
            target_user_id = farmer_request.user_id
            request_email = farmer_request.email

        self.clerk.set_role(target_user_id, role, changed_by=actor.user_id, reason=reason)

        now = DateUtils.now_utc()
        with session_scope() as session:
            profiles = ProfileRepository(session)
            profile = profiles.find_by_user_id(target_user_id)
            if profile is None:
                profile = profiles.add(Profile(user_id=target_user_id, email=request_email, role=role))
            else:
                profile.role = role

            requests_repo = FarmerRequestRepository(session)
            farmer_request = requests_repo.get_by_id(request_id)
            farmer_request.status = status
            farmer_request.reviewed_by = actor.user_id
            farmer_request.reviewed_at = now
            farmer_request.rejection_reason = reason if status == "rejected" else None
            requests_repo.flush()
            snapshot = FarmerRequestResponse.model_validate(farmer_request).model_dump()

        logger.info(f"Farmer request {request_id} {status} by {actor.user_id} (role={role})")

        listing_id = None
        if status == "approved":
            listing_id = self._create_listing_for(snapshot)

        email_sent = self._notify(
            self.mailer.send_farmer_request_status, snapshot, status, reason
        )

        return {
            "request_id": request_id,
            "status": status,
            "role": role,
            "listing_id": listing_id,
            "email_sent": email_sent,
        }

    def _create_listing_for(self, farmer_request: Dict[str, Any]) -> Optional[int]:
        user_id = farmer_request["user_id"]
        try:
            with session_scope() as session:
                profile = ProfileRepository(session).find_by_user_id(user_id)
                if profile is not None and profile.farm_id is not None:
                    return profile.farm_id

                listing = ListingRepository(session).add(new_farmer_listing(
                    user_id,
                    name=farmer_request["farm_name"],
                    farm_name=farmer_request["farm_name"],
                    description=farmer_request.get("description"),
                    email=farmer_request["email"],
                    phone_number=ValidationUtils.to_e164_fr(farmer_request.get("phone")) or None,
                    website=ValidationUtils.normalize_url(farmer_request.get("website")),
                    address=farmer_request["location"],
                ))
                if profile is not None:
                    profile.farm_id = listing.id
                logger.info(f"Draft listing {listing.id} created for approved farmer {user_id}")
                return listing.id
        except BaseAPIException as e:
            logger.error(f"Could not create listing for {user_id}: {e.internal_message}")
            return None

    @staticmethod
    def _notify(send, *args) -> bool:
        try:
            return bool(send(*args))
        except BaseAPIException as e:
            logger.warning(f"Notification not sent: {e.internal_message}")
            return False
