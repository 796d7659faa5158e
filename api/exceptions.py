"""
API exception handlers.

This module provides custom exception handling for REST API responses
and the mapping from domain error codes to HTTP statuses.
"""

import logging
from typing import Any, Dict, Optional

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.domain.exceptions import DomainException, ErrorCode

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.PRODUCT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SUBSCRIPTION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ALREADY_ACTIVATED: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_LICENSE_STATUS: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_SUBSCRIPTION_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_LICENSE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.CAP_EXCEEDED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NOT_ACTIVATED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INVALID_ARGUMENT: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INVARIANT_VIOLATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.TRANSIENT_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for_error(code: Optional[str]) -> int:
    """HTTP status for a domain error code; 400 for anything unmapped."""
    return ERROR_STATUS_CODES.get(code, status.HTTP_400_BAD_REQUEST)


def error_response(code: str, message: str, http_status: Optional[int] = None) -> Response:
    """
    Build the standard error body.

    Args:
        code: Domain error code
        message: Safe, user-facing message
        http_status: Explicit status; derived from the code otherwise

    Returns:
        DRF Response
    """
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status or status_for_error(code),
    )


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """Custom exception handler for REST API."""
    trace_id = _get_trace_id(context)

    if isinstance(exc, DomainException):
        response = _handle_domain_exception(exc, trace_id)
        if trace_id:
            response["X-Trace-ID"] = trace_id
        return response

    if isinstance(exc, APIException):
        response = exception_handler(exc, context)
        if response:
            code = (
                exc.default_code.upper().replace("-", "_")
                if hasattr(exc, "default_code")
                else "API_ERROR"
            )
            detail = response.data.get("detail", exc.default_detail)
            response.data = {"error": {"code": code, "message": str(detail)}}
            if trace_id:
                response["X-Trace-ID"] = trace_id
            return response

    if isinstance(exc, Http404):
        response = error_response(
            ErrorCode.NOT_FOUND, "Resource not found", status.HTTP_404_NOT_FOUND
        )
        if trace_id:
            response["X-Trace-ID"] = trace_id
        return response

    return _handle_unexpected_exception(exc, context, trace_id)


def _get_trace_id(context: Dict[str, Any]) -> Optional[str]:
    """Extract trace ID from request context."""
    request = context.get("request")
    if not request:
        return None
    return getattr(request, "trace_id", getattr(request, "correlation_id", None))


def _handle_domain_exception(exc: DomainException, trace_id: Optional[str]) -> Response:
    """Handle domain-specific exceptions."""
    logger.warning("Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id})
    return error_response(exc.code, exc.message)


def _handle_unexpected_exception(
    exc: Exception, context: Dict[str, Any], trace_id: Optional[str]
) -> Response:
    """Handle unexpected or untracked exceptions."""
    logger.error("Unexpected error: %s", exc, extra={"trace_id": trace_id}, exc_info=True)
    response = exception_handler(exc, context)
    if not response:
        response = error_response(
            "INTERNAL_ERROR",
            "An internal error occurred",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    else:
        response.data = {
            "error": {"code": "INTERNAL_ERROR", "message": "An internal error occurred"}
        }
    if trace_id:
        response["X-Trace-ID"] = trace_id
    return response


def validation_error_response(errors: Dict[str, Any]) -> Response:
    """400 response for a request body that failed serializer validation."""
    return Response(
        {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": errors,
            }
        },
        status=status.HTTP_400_BAD_REQUEST,
    )
