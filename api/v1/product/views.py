"""
Product API views.

These endpoints are called by the licensed software itself to:
- Validate a license key
- Activate a license on a machine
- Release a machine's activation

They are authenticated by the license key in the request body.
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from opentelemetry.trace import Status, StatusCode
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from activations.application.commands.activate_license import ActivateLicenseCommand
from activations.application.commands.deactivate_license import DeactivateLicenseCommand
from api.exceptions import error_response, validation_error_response
from api.v1 import dependencies
from api.v1.product.serializers import (
    ActivateLicenseRequestSerializer,
    ActivationResultSerializer,
    DeactivateLicenseRequestSerializer,
    ValidateLicenseRequestSerializer,
    ValidationResultSerializer,
)
from core.instrumentation import get_tracer
from licenses.application.queries.license_queries import ValidateLicenseQuery
from licenses.domain.license_key import mask_license_key, normalize_license_key

tracer = get_tracer(__name__)


class ValidateLicenseView(APIView):
    """View for validating licenses."""

    @extend_schema(
        operation_id="validate_license",
        summary="Validate License",
        description=(
            "Report whether a license key is currently usable. An unknown key is a "
            "normal result with status `not_found`. Optionally reports whether a "
            "machine is activated and whether a license signature matches."
        ),
        tags=["Product API"],
        request=ValidateLicenseRequestSerializer,
        responses={
            200: ValidationResultSerializer,
            400: {"description": "Bad Request"},
        },
    )
    def post(self, request: Request) -> Response:
        """Validate a license key."""
        return async_to_sync(self._handle_validate_license)(request)

    async def _handle_validate_license(self, request: Request) -> Response:
        """Async handler for validate license."""
        with tracer.start_as_current_span("validate_license") as span:
            span.set_attribute("operation", "validate_license")

            serializer = ValidateLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_attribute("error", "validation_failed")
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            data = serializer.validated_data
            span.set_attribute(
                "license_key", mask_license_key(normalize_license_key(data["license_key"]))
            )

            query = ValidateLicenseQuery(
                license_key=data["license_key"],
                machine_fingerprint=data.get("machine_fingerprint") or None,
                signature=data.get("signature") or None,
            )
            result = await dependencies.validate_handler().handle(query)

            span.set_attribute("status", result.status)
            span.set_attribute("valid", result.valid)
            span.set_status(Status(StatusCode.OK))
            return Response(ValidationResultSerializer(result).data, status=status.HTTP_200_OK)


class ActivateLicenseView(APIView):
    """View for activating licenses."""

    @extend_schema(
        operation_id="activate_license",
        summary="Activate License",
        description=(
            "Bind a license to a machine fingerprint. This consumes one unit of the "
            "license's activation cap."
        ),
        tags=["Product API"],
        request=ActivateLicenseRequestSerializer,
        responses={
            201: ActivationResultSerializer,
            400: {"description": "Bad Request"},
            404: {"description": "License key not found"},
            409: {"description": "License already activated on this machine"},
            422: {"description": "License invalid, expired, or activation cap reached"},
            503: {"description": "Temporary failure, safe to retry"},
        },
    )
    def post(self, request: Request) -> Response:
        """Activate a license on a machine."""
        return async_to_sync(self._handle_activate_license)(request)

    async def _handle_activate_license(self, request: Request) -> Response:
        """Async handler for activate license."""
        with tracer.start_as_current_span("activate_license") as span:
            span.set_attribute("operation", "activate_license")

            serializer = ActivateLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_attribute("error", "validation_failed")
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            data = serializer.validated_data
            span.set_attribute(
                "license_key", mask_license_key(normalize_license_key(data["license_key"]))
            )

            command = ActivateLicenseCommand(
                license_key=data["license_key"],
                machine_fingerprint=data["machine_fingerprint"],
                machine_id=data.get("machine_id") or None,
                ip_address=request.META.get("REMOTE_ADDR"),
                user_agent=request.headers.get("User-Agent", ""),
                system_info=data.get("system_info", {}),
            )
            result = await dependencies.activate_handler().handle(command)

            if not result.ok:
                span.set_attribute("error", result.error_code)
                span.set_status(Status(StatusCode.ERROR, result.error_code))
                return error_response(result.error_code, result.message)

            span.set_attribute("activation.id", str(result.activation_id))
            span.set_status(Status(StatusCode.OK))
            return Response(
                ActivationResultSerializer(result).data, status=status.HTTP_201_CREATED
            )


class DeactivateLicenseView(APIView):
    """View for deactivating a machine."""

    @extend_schema(
        operation_id="deactivate_license",
        summary="Deactivate License",
        description=(
            "Release a machine's activation. The activation unit becomes available "
            "for another machine."
        ),
        tags=["Product API"],
        request=DeactivateLicenseRequestSerializer,
        responses={
            200: ActivationResultSerializer,
            400: {"description": "Bad Request"},
            404: {"description": "License key not found"},
            422: {"description": "License is not activated on this machine"},
            503: {"description": "Temporary failure, safe to retry"},
        },
    )
    def post(self, request: Request) -> Response:
        """Deactivate a license on a machine."""
        return async_to_sync(self._handle_deactivate_license)(request)

    async def _handle_deactivate_license(self, request: Request) -> Response:
        """Async handler for deactivate license."""
        with tracer.start_as_current_span("deactivate_license") as span:
            span.set_attribute("operation", "deactivate_license")

            serializer = DeactivateLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_attribute("error", "validation_failed")
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            data = serializer.validated_data
            command = DeactivateLicenseCommand(
                license_key=data["license_key"],
                machine_fingerprint=data["machine_fingerprint"],
            )
            result = await dependencies.deactivate_handler().handle(command)

            if not result.ok:
                span.set_attribute("error", result.error_code)
                span.set_status(Status(StatusCode.ERROR, result.error_code))
                return error_response(result.error_code, result.message)

            span.set_status(Status(StatusCode.OK))
            return Response(ActivationResultSerializer(result).data, status=status.HTTP_200_OK)
