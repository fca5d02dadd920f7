"""Error taxonomy shared by services and the HTTP layer.

Services raise these; the handlers in ``flashvote.main`` turn them into the
``{"error": {"code", "message", "details"}}`` envelope.
"""
from typing import Any, Optional


class ConfigurationError(RuntimeError):
    """Fatal misconfiguration detected at startup (e.g. missing pepper)."""


class ApiError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ApiError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid request body"

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, details={"fieldErrors": {field: [message]}, "formErrors": []})


class Unauthorized(ApiError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Invalid or missing host token"


class NotFound(ApiError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    code = "CONFLICT"
    status_code = 409
    default_message = "Conflict"


class InternalError(ApiError):
    pass
