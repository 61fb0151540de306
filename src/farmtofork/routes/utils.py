from typing import Any, Dict, Optional

from flask import g, jsonify, request
from marshmallow import Schema
from marshmallow import ValidationError as SchemaValidationError
from pydantic import BaseModel

from farmtofork.core.dependencies import get_service
from farmtofork.core.exceptions import UnauthorizedError, ValidationError
from farmtofork.core.security import Actor
from farmtofork.services.profile_service import ProfileService
from farmtofork.utils.date_utils import DateUtils
from farmtofork.utils.roles import is_clerk_user_id


def to_jsonable(data: Any) -> Any:
    """Dump pydantic models (also nested in dicts and lists) to JSON types."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, dict):
        return {key: to_jsonable(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [to_jsonable(item) for item in data]
    return data


def success_response(data, message: Optional[str] = None, status: int = 200):
    """Consistent success response envelope."""
    response = {
        "success": True,
        "data": to_jsonable(data),
        "timestamp": DateUtils.to_iso_string(DateUtils.now_utc()),
    }
    if message:
        response["message"] = message

    request_id = getattr(g, "request_id", None)
    if request_id:
        response["request_id"] = request_id

    return jsonify(response), status


def parse_int(
    v,
    default=None,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
    field_name: str = "value",
) -> Optional[int]:
    """Parse an integer query parameter with optional range validation."""
    if v is None or v == "":
        return default
    try:
        result = int(v)
    except (TypeError, ValueError):
        raise ValidationError(
            f"Invalid {field_name}: must be a valid integer",
            field_errors=[{"field": field_name, "message": "Must be an integer"}],
        )
    if min_val is not None and result < min_val:
        raise ValidationError(
            f"{field_name} must be at least {min_val}",
            field_errors=[{"field": field_name, "message": f"Minimum is {min_val}"}],
        )
    if max_val is not None and result > max_val:
        raise ValidationError(
            f"{field_name} cannot exceed {max_val}",
            field_errors=[{"field": field_name, "message": f"Maximum is {max_val}"}],
        )
    return result


def parse_bool(v, default: bool = False) -> bool:
    """Parse a boolean value from a query string."""
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).lower() in ("1", "true", "t", "yes", "y", "on")


def get_current_user_id() -> str:
    """Extract and validate the Clerk user id from the X-User-Id header."""
    uid = (request.headers.get("X-User-Id") or "").strip()
    if not uid:
        raise UnauthorizedError("Missing X-User-Id header")
    if not is_clerk_user_id(uid):
        raise ValidationError(
            "Invalid X-User-Id header: expected a Clerk user id",
            field_errors=[{"field": "X-User-Id", "message": "Expected user_..."}],
        )
    return uid


def get_current_actor() -> Actor:
    """Authenticated caller with the role of their local profile."""
    return get_service(ProfileService).resolve_actor(get_current_user_id())


def get_optional_actor() -> Optional[Actor]:
    """Caller if an X-User-Id header was sent, else None (public endpoints)."""
    if not request.headers.get("X-User-Id"):
        return None
    return get_current_actor()


def get_json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        if request.content_length:
            raise ValidationError("Request body must be valid JSON")
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def load_body(schema: Schema, partial: bool = False) -> Dict[str, Any]:
    """Validate the JSON body with a marshmallow schema."""
    return load_data(schema, get_json_body(), partial=partial)


def load_data(schema: Schema, data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    try:
        return schema.load(data, partial=partial)
    except SchemaValidationError as e:
        raise ValidationError(
            "Request validation failed",
            field_errors=_field_errors(e.messages),
        )


def _field_errors(messages, prefix: str = ""):
    errors = []
    if isinstance(messages, dict):
        for key, value in messages.items():
            field = f"{prefix}.{key}" if prefix else str(key)
            if isinstance(value, (dict,)):
                errors.extend(_field_errors(value, field))
            elif isinstance(value, list):
                errors.append({"field": field, "message": "; ".join(str(v) for v in value)})
            else:
                errors.append({"field": field, "message": str(value)})
    else:
        for message in messages if isinstance(messages, list) else [messages]:
            errors.append({"field": prefix or "_schema", "message": str(message)})
    return errors
