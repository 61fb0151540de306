"""
Clerk Backend API client.

Only the two calls the service needs: read a user, and merge keys into a
user's public metadata (where the role lives).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, Field

from farmtofork.core.config import config
from farmtofork.core.exceptions import ExternalServiceError, NotFoundError

logger = logging.getLogger(__name__)


class ClerkUser(BaseModel):
    id: str
    email: Optional[str] = None
    email_addresses: List[str] = Field(default_factory=list)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    public_metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "ClerkUser":
        addresses = payload.get("email_addresses") or []
        primary_id = payload.get("primary_email_address_id")

        primary = next(
            (a.get("email_address") for a in addresses if a.get("id") == primary_id),
            None,
        )
        if primary is None and addresses:
            primary = addresses[0].get("email_address")

        return cls(
            id=payload["id"],
            email=primary,
            email_addresses=[a["email_address"] for a in addresses if a.get("email_address")],
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
            public_metadata=payload.get("public_metadata") or {},
        )


class ClerkClient:
    def __init__(
        self,
        secret_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.secret_key = secret_key if secret_key is not None else config.clerk.secret_key
        self.api_url = (api_url or config.clerk.api_url).rstrip("/")
        self.timeout = timeout or config.app.http_timeout_seconds
        self._session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        if not self.secret_key:
            raise ExternalServiceError(
                "clerk",
                internal_message="CLERK_SECRET_KEY is not configured",
            )

        url = f"{self.api_url}{path}"
        try:
            response = self._session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Clerk {method} {path} failed: {e}")
            raise ExternalServiceError("clerk", internal_message=str(e)) from e

        if response.status_code == 404:
            raise NotFoundError("Clerk user")

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.error(f"Clerk {method} {path} returned {response.status_code}: {response.text[:200]}")
            raise ExternalServiceError("clerk", internal_message=str(e)) from e

        return response.json()

    def get_user(self, user_id: str) -> ClerkUser:
        return ClerkUser.from_api(self._request("GET", f"/users/{user_id}"))

    def update_public_metadata(self, user_id: str, metadata: Dict[str, Any]) -> ClerkUser:
        """Merge keys into the user's public metadata (Clerk deep-merges)."""
        payload = self._request(
            "PATCH", f"/users/{user_id}/metadata", json={"public_metadata": metadata}
        )
        return ClerkUser.from_api(payload)

    def set_role(
        self,
        user_id: str,
        role: str,
        changed_by: str,
        reason: Optional[str] = None,
    ) -> ClerkUser:
        metadata: Dict[str, Any] = {
            "role": role,
            "roleUpdatedAt": datetime.now(timezone.utc).isoformat(),
            "roleUpdatedBy": changed_by,
        }
        if reason:
            metadata["roleChangeReason"] = reason
        logger.info(f"Setting Clerk role for {user_id} to {role}")
        return self.update_public_metadata(user_id, metadata)
