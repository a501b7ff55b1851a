from typing import Any


class ServiceError(Exception):
    """
    Base error for everything the JSON API reports to clients.

    ApiErrorMiddleware turns these into `{"success": false, "error": ...}`
    with `status_code`; keyword extras are merged into the envelope.
    """

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None, **extra: Any):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, **self.extra}


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Not found"


class InternalError(ServiceError):
    status_code = 500
    default_message = "Internal server error"


class CodeforcesError(ServiceError):
    """Any failure talking to the Codeforces API."""

    status_code = 500
    default_message = "External API error"


class UserNotFoundError(NotFoundError, CodeforcesError):
    status_code = 404
    default_message = "User not found on Codeforces"


class ExternalApiError(CodeforcesError):
    pass
