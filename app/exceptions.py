"""
Domain exceptions

Services raise these; the handlers registered in ``app.main`` turn them into
JSON responses with the matching status code.
"""
from typing import Any, Dict, List, Optional


class CampusFixError(Exception):
    """Base exception for all CampusFix errors"""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str = "Server error"):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "msg": self.message}


class Unauthenticated(CampusFixError):
    """Missing, invalid or expired credential"""

    status_code = 401
    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Token is not valid"):
        super().__init__(message)


class Forbidden(CampusFixError):
    """Authenticated but not allowed to act on this resource"""

    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class NotFound(CampusFixError):
    """No record matches the requested ID"""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource_type: str = "Resource"):
        super().__init__(f"{resource_type} not found")
        self.resource_type = resource_type


class ValidationFailed(CampusFixError):
    """One or more fields are missing or malformed"""

    status_code = 400
    code = "VALIDATION_FAILED"

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        super().__init__(message or "Validation failed")
        self.errors = errors

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "msg": self.message, "errors": self.errors}


class BadRequest(CampusFixError):
    """A domain precondition does not hold"""

    status_code = 400
    code = "BAD_REQUEST"


class UnsupportedMedia(CampusFixError):
    """File type or size is not accepted"""

    status_code = 415
    code = "UNSUPPORTED_MEDIA"


class UpstreamFailure(CampusFixError):
    """Object storage or another external service failed"""

    status_code = 502
    code = "UPSTREAM_FAILURE"

    def __init__(self, message: str = "External service error"):
        super().__init__(message)
