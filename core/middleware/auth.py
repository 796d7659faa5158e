"""
API key authentication middleware.

Administrative endpoints require an `X-API-Key` header matching an
active ApiKey record. Public product endpoints are authenticated by
the license key in the request body, so they pass through here.
"""

import logging
from typing import Optional

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.deprecation import MiddlewareMixin

from core.infrastructure.models import ApiKey, hash_api_key

logger = logging.getLogger(__name__)

ADMIN_API_PREFIX = "/api/v1/admin/"


def _error(code: str, message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": {"code": code, "message": message}}, status=status)


class APIKeyAuthenticationMiddleware(MiddlewareMixin):
    """Middleware for API key authentication of the administrative API."""

    def process_request(self, request: HttpRequest) -> Optional[HttpResponse]:
        """
        Process request and validate authentication.

        Args:
            request: HTTP request

        Returns:
            HttpResponse with 401 if authentication fails, None otherwise
        """
        if not request.path.startswith(ADMIN_API_PREFIX):
            return None

        api_key = request.headers.get("X-API-Key") or request.headers.get(
            "Authorization", ""
        ).replace("Bearer ", "")
        if not api_key:
            return _error("UNAUTHORIZED", "Missing API key. Provide X-API-Key header.", 401)

        # pylint: disable=no-member
        api_key_obj = ApiKey.objects.filter(key_hash=hash_api_key(api_key)).first()
        if not api_key_obj:
            logger.warning("Invalid API key attempted: %s...", api_key[:8])
            return _error("UNAUTHORIZED", "Invalid API key", 401)

        if not api_key_obj.is_valid():
            logger.warning("Inactive or expired API key attempted: %s...", api_key[:8])
            return _error("UNAUTHORIZED", "API key expired", 401)

        api_key_obj.mark_used()
        request.api_key = api_key_obj  # type: ignore
        return None
