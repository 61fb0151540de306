from typing import Any, Dict, List, Optional


class BaseAPIException(Exception):
    """
    Error surfaced to API clients as the JSON error envelope.

    Subclasses set `status_code` and `error_code`; `message` is shown to
    the client, `internal_message` only goes to the logs.
    """

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        internal_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.internal_message = internal_message or message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            },
        }


class ValidationError(BaseAPIException):
    """Bad input: malformed body, query parameter or header"""

    status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[List[Dict[str, str]]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        payload = dict(details or {})
        if field_errors:
            payload["field_errors"] = field_errors
        super().__init__(message, details=payload)


class UnauthorizedError(BaseAPIException):
    status_code = 401
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ForbiddenError(BaseAPIException):
    """Authenticated, but the role or ownership does not allow it"""

    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Access forbidden"):
        super().__init__(message)


class NotFoundError(BaseAPIException):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{message} with ID: {resource_id}"
        super().__init__(message, details=details)


class ConflictError(BaseAPIException):
    """Duplicate profile, review or pending farmer request"""

    status_code = 409
    error_code = "CONFLICT"

    def __init__(self, message: str = "Resource conflict", conflict_field: Optional[str] = None):
        super().__init__(message, details={"conflict_field": conflict_field} if conflict_field else None)


class BusinessLogicError(BaseAPIException):
    """Well-formed request refused by a workflow rule (e.g. order status)"""

    status_code = 422
    error_code = "BUSINESS_LOGIC_ERROR"

    def __init__(self, message: str, rule: Optional[str] = None):
        super().__init__(message, details={"violated_rule": rule} if rule else None)


class ExternalServiceError(BaseAPIException):
    """Clerk or Resend could not be reached or answered with an error"""

    status_code = 503
    error_code = "EXTERNAL_SERVICE_ERROR"

    def __init__(
        self,
        service_name: str,
        message: str = "External service unavailable",
        internal_message: Optional[str] = None,
    ):
        super().__init__(
            message,
            details={"service": service_name},
            internal_message=internal_message,
        )


class DatabaseError(BaseAPIException):
    """SQLAlchemy failure; the driver message is kept out of the response"""

    status_code = 500
    error_code = "DATABASE_ERROR"

    def __init__(self, message: str = "Database operation failed", operation: Optional[str] = None):
        super().__init__(
            "An internal error occurred. Please try again later.",
            details={"operation": operation} if operation else None,
            internal_message=message,
        )


class InternalServerError(BaseAPIException):
    def __init__(self, message: str = "An unexpected error occurred", context: Optional[Dict[str, Any]] = None):
        super().__init__(
            "An internal server error occurred. Please try again later.",
            details=context,
            internal_message=message,
        )
