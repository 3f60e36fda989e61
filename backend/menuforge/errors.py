# Overview: Error kinds raised by services; the endpoint layer maps them to HTTP statuses.

"""
Error taxonomy

Services raise one of these kinds and never build responses themselves.
Only menuforge.dispatch.error_response turns an ApiError into a
transport status code and {"error": message} body.

Messages on 401/403/404/500 are generic. Validation and
conflict messages name the offending field and are safe to disclose.
"""


class ApiError(Exception):
    """Base class: carries a status code and a caller-safe message."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    """400-level input problem."""

    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(ApiError):
    """Missing, expired or revoked credential, or inactive account."""

    status_code = 401
    default_message = "Unauthorized"


class AuthorizationError(ApiError):
    """Role or ownership mismatch."""

    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    """409-level business rule conflict (duplicate record, lost status race, already resolved)."""

    status_code = 409
    default_message = "Conflict"


class InternalError(ApiError):
    status_code = 500


class UnavailableError(ApiError):
    """Temporarily not servable; the caller may retry later."""

    status_code = 503
    default_message = "Service temporarily unavailable"
