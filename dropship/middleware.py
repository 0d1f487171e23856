import logging

from django.http import JsonResponse

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"


class ServiceReadinessMiddleware:
    """Answer 503 for API requests until the order services are built."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.path.startswith(API_PREFIX):
            from orders.apps import get_lifecycle

            if get_lifecycle() is None:
                return JsonResponse({"success": False, "message": "Service starting, try again shortly"}, status=503)
        return self.get_response(request)


class JsonErrorMiddleware:
    """Turn unhandled API exceptions into a generic JSON 500."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not request.path.startswith(API_PREFIX):
            return None
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return JsonResponse({"success": False, "message": "Internal server error"}, status=500)
