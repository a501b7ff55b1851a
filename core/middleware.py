import logging
import time

from django.http import JsonResponse

from core.exceptions import InternalError, ServiceError

logger = logging.getLogger(__name__)

_DJANGO_ERROR_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
}


class RequestLogMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info("%s %s %s %sms", request.method, request.path, response.status_code, duration_ms)
        return response


class ApiErrorMiddleware:
    """
    Renders ServiceError as the JSON error envelope.

    Unexpected exceptions under /api/ become a logged 500 envelope; anything
    else is left to Django. Django's own 404 and 405 responses under /api/
    (unmatched routes, `require_http_methods`) are rewritten into the envelope.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        if request.path.startswith("/api/") and response.status_code in _DJANGO_ERROR_MESSAGES:
            if not response.get("Content-Type", "").startswith("application/json"):
                return self._as_envelope(response)
        return response

    def _as_envelope(self, response):
        error = ServiceError(
            _DJANGO_ERROR_MESSAGES[response.status_code],
            status_code=response.status_code,
        )
        envelope = JsonResponse(error.to_payload(), status=error.status_code)
        if response.has_header("Allow"):
            envelope["Allow"] = response["Allow"]
        return envelope

    def process_exception(self, request, exception):
        if isinstance(exception, ServiceError):
            if exception.status_code >= 500:
                logger.error("%s %s failed: %s", request.method, request.path, exception.message)
            return JsonResponse(exception.to_payload(), status=exception.status_code)

        if request.path.startswith("/api/"):
            logger.exception("Unhandled error on %s %s", request.method, request.path)
            error = InternalError(str(exception) or None)
            return JsonResponse(error.to_payload(), status=error.status_code)

        return None
