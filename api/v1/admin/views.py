"""
Administrative API views.

Used by the storefront and by support staff to:
- Issue licenses for orders, single grants and batches
- Inspect licenses, activations and counters
- Apply lifecycle actions (revoke, suspend, extend, transfer, trials)
- Renew and cancel subscriptions

Every endpoint requires an `X-API-Key` header.
"""

from asgiref.sync import async_to_sync
from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from opentelemetry.trace import Status, StatusCode
from rest_framework import serializers, status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from activations.application.queries.list_activations import ListActivationsQuery
from api.exceptions import error_response, validation_error_response
from api.v1 import dependencies
from api.v1.admin.serializers import (
    ActivationDTOSerializer,
    ExtendLicenseRequestSerializer,
    IssueBatchRequestSerializer,
    IssueLicenseRequestSerializer,
    IssueResultSerializer,
    LicenseDetailSerializer,
    LicenseOverridesRequestSerializer,
    LicenseStatsSerializer,
    OperationResultSerializer,
    OrderCompletedRequestSerializer,
    RenewSubscriptionRequestSerializer,
    StartTrialRequestSerializer,
    SubscriptionResultSerializer,
    TransferLicenseRequestSerializer,
)
from api.v1.product.serializers import LicenseDTOSerializer
from core.domain.exceptions import DomainException
from core.domain.value_objects import KeyFormat
from core.instrumentation import get_tracer
from licenses.application.commands.issue_batch import IssueBatchCommand
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.commands.license_actions import (
    ConvertTrialCommand,
    EnterGracePeriodCommand,
    ExtendLicenseCommand,
    ReactivateLicenseCommand,
    RevokeLicenseCommand,
    SetLicenseOverridesCommand,
    StartTrialCommand,
    SuspendLicenseCommand,
    TransferLicenseCommand,
)
from licenses.application.commands.order_completed import OrderCompletedCommand, OrderItem
from licenses.application.handlers.issue_license_handler import (
    IssueBatchHandler,
    IssueLicenseHandler,
    OrderCompletedHandler,
)
from licenses.application.handlers.license_lifecycle_handlers import (
    ConvertTrialHandler,
    EnterGracePeriodHandler,
    ExtendLicenseHandler,
    ReactivateLicenseHandler,
    RevokeLicenseHandler,
    SetLicenseOverridesHandler,
    StartTrialHandler,
    SuspendLicenseHandler,
    TransferLicenseHandler,
)
from licenses.application.queries.license_queries import (
    ExpiringLicensesQuery,
    GetLicenseQuery,
    LicenseFileQuery,
    LicenseStatsQuery,
)
from licenses.domain.license_key import mask_license_key, normalize_license_key
from subscriptions.application.commands.subscription_commands import (
    CancelSubscriptionCommand,
    RenewSubscriptionCommand,
)
from subscriptions.application.handlers.subscription_handlers import (
    CancelSubscriptionHandler,
    RenewSubscriptionHandler,
)

tracer = get_tracer(__name__)

_issue_responses = {
    201: IssueResultSerializer,
    400: {"description": "Bad Request"},
    401: {"description": "Unauthorized - Missing or invalid API key"},
    404: {"description": "Product not found"},
    422: {"description": "Invalid argument"},
}


def _issue_response(result) -> Response:
    if not result.ok:
        return error_response(result.error_code, result.message)
    return Response(IssueResultSerializer(result).data, status=status.HTTP_201_CREATED)


class OrderCompletedView(APIView):
    """View for issuing the licenses of a paid order."""

    @extend_schema(
        operation_id="order_completed",
        summary="Order Completed",
        description=(
            "Issue one license per purchased unit of every order item. Replaying an "
            "order returns the licenses issued the first time."
        ),
        tags=["Admin API"],
        request=OrderCompletedRequestSerializer,
        responses=_issue_responses,
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_order_completed)(request)

    async def _handle_order_completed(self, request: Request) -> Response:
        with tracer.start_as_current_span("order_completed") as span:
            serializer = OrderCompletedRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            data = serializer.validated_data
            span.set_attribute("order_ref", data["order_ref"])
            command = OrderCompletedCommand(
                order_ref=data["order_ref"],
                customer_email=data["customer_email"],
                customer_name=data["customer_name"],
                user_ref=data["user_ref"],
                items=[
                    OrderItem(product_id=item["product_id"], quantity=item["quantity"])
                    for item in data["items"]
                ],
            )
            result = await OrderCompletedHandler(dependencies.license_issuer()).handle(command)
            span.set_attribute("licenses.count", len(result.licenses))
            return _issue_response(result)


class IssueLicenseView(APIView):
    """View for issuing a single license."""

    @extend_schema(
        operation_id="issue_license",
        summary="Issue License",
        description="Issue one license for an active product, with optional overrides.",
        tags=["Admin API"],
        request=IssueLicenseRequestSerializer,
        responses=_issue_responses,
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_issue_license)(request)

    async def _handle_issue_license(self, request: Request) -> Response:
        with tracer.start_as_current_span("issue_license") as span:
            serializer = IssueLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            data = serializer.validated_data
            span.set_attribute("product.id", str(data["product_id"]))
            key_format = data.get("key_format")
            command = IssueLicenseCommand(
                product_id=data["product_id"],
                order_ref=data["order_ref"],
                customer_email=data["customer_email"],
                customer_name=data["customer_name"],
                user_ref=data["user_ref"],
                custom_max_activations=data.get("custom_max_activations"),
                custom_expires_at=data.get("custom_expires_at"),
                key_format=KeyFormat(key_format) if key_format else None,
            )
            result = await IssueLicenseHandler(dependencies.license_issuer()).handle(command)
            return _issue_response(result)


class IssueBatchView(APIView):
    """View for issuing licenses in bulk."""

    @extend_schema(
        operation_id="issue_license_batch",
        summary="Issue License Batch",
        description="Issue up to 100 licenses for one product under a generated batch reference.",
        tags=["Admin API"],
        request=IssueBatchRequestSerializer,
        responses=_issue_responses,
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_issue_batch)(request)

    async def _handle_issue_batch(self, request: Request) -> Response:
        with tracer.start_as_current_span("issue_license_batch") as span:
            serializer = IssueBatchRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            data = serializer.validated_data
            span.set_attribute("batch.count", data["count"])
            command = IssueBatchCommand(
                product_id=data["product_id"],
                count=data["count"],
                customer_email=data["customer_email"],
                customer_name=data["customer_name"],
            )
            result = await IssueBatchHandler(dependencies.license_issuer()).handle(command)
            return _issue_response(result)


class LicenseDetailView(APIView):
    """View for one license with its activations and subscription."""

    @extend_schema(
        operation_id="get_license",
        summary="Get License",
        tags=["Admin API"],
        responses={200: LicenseDetailSerializer, 404: {"description": "License not found"}},
    )
    def get(self, request: Request, license_key: str) -> Response:
        return async_to_sync(self._handle_get_license)(license_key)

    async def _handle_get_license(self, license_key: str) -> Response:
        with tracer.start_as_current_span("get_license") as span:
            span.set_attribute("license_key", mask_license_key(normalize_license_key(license_key)))
            try:
                detail = await dependencies.get_license_handler().handle(
                    GetLicenseQuery(license_key=license_key)
                )
            except DomainException as exc:
                return error_response(exc.code, exc.message)
            return Response(LicenseDetailSerializer(detail).data)


class LicenseActivationsView(APIView):
    """View for the activation history of a license."""

    @extend_schema(
        operation_id="list_license_activations",
        summary="List Activations",
        tags=["Admin API"],
        parameters=[
            OpenApiParameter(
                name="include_inactive",
                type=bool,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Include deactivated rows (default true)",
            ),
        ],
        responses={200: ActivationDTOSerializer(many=True)},
    )
    def get(self, request: Request, license_key: str) -> Response:
        include_inactive = request.query_params.get("include_inactive", "true").lower() != "false"
        return async_to_sync(self._handle_list)(license_key, include_inactive)

    async def _handle_list(self, license_key: str, include_inactive: bool) -> Response:
        with tracer.start_as_current_span("list_license_activations"):
            try:
                activations = await dependencies.list_activations_handler().handle(
                    ListActivationsQuery(license_key=license_key, include_inactive=include_inactive)
                )
            except DomainException as exc:
                return error_response(exc.code, exc.message)
            return Response(ActivationDTOSerializer(activations, many=True).data)


class LicenseFileView(APIView):
    """View for the plain-text license certificate."""

    @extend_schema(
        operation_id="get_license_file",
        summary="Download License File",
        tags=["Admin API"],
        responses={
            (200, "text/plain"): OpenApiTypes.STR,
            404: {"description": "License not found"},
        },
    )
    def get(self, request: Request, license_key: str):
        return async_to_sync(self._handle_license_file)(license_key)

    async def _handle_license_file(self, license_key: str):
        with tracer.start_as_current_span("get_license_file"):
            try:
                content = await dependencies.license_file_handler().handle(
                    LicenseFileQuery(license_key=license_key)
                )
            except DomainException as exc:
                return error_response(exc.code, exc.message)
            response = HttpResponse(content, content_type="text/plain; charset=utf-8")
            filename = f"license-{normalize_license_key(license_key)}.txt"
            response["Content-Disposition"] = f'attachment; filename="{filename}"'
            return response


class LicenseStatsView(APIView):
    """View for license counters."""

    @extend_schema(
        operation_id="license_stats",
        summary="License Statistics",
        tags=["Admin API"],
        parameters=[
            OpenApiParameter(
                name="product_id", type=str, location=OpenApiParameter.QUERY, required=False
            ),
        ],
        responses={200: LicenseStatsSerializer},
    )
    def get(self, request: Request) -> Response:
        product_id = request.query_params.get("product_id")
        if product_id:
            field = serializers.UUIDField()
            try:
                product_id = field.to_internal_value(product_id)
            except serializers.ValidationError as exc:
                return validation_error_response({"product_id": exc.detail})
        return async_to_sync(self._handle_stats)(product_id or None)

    async def _handle_stats(self, product_id) -> Response:
        with tracer.start_as_current_span("license_stats"):
            stats = await dependencies.stats_handler().handle(
                LicenseStatsQuery(product_id=product_id)
            )
            return Response(LicenseStatsSerializer(stats).data)


class ExpiringLicensesView(APIView):
    """View for active licenses expiring soon."""

    @extend_schema(
        operation_id="expiring_licenses",
        summary="Expiring Licenses",
        tags=["Admin API"],
        parameters=[
            OpenApiParameter(
                name="days", type=int, location=OpenApiParameter.QUERY, required=False
            ),
        ],
        responses={200: LicenseDTOSerializer(many=True)},
    )
    def get(self, request: Request) -> Response:
        try:
            days_ahead = int(request.query_params.get("days", 7))
        except ValueError:
            return validation_error_response({"days": ["A valid integer is required."]})
        return async_to_sync(self._handle_expiring)(days_ahead)

    async def _handle_expiring(self, days_ahead: int) -> Response:
        with tracer.start_as_current_span("expiring_licenses") as span:
            span.set_attribute("days_ahead", days_ahead)
            try:
                licenses = await dependencies.expiring_handler().handle(
                    ExpiringLicensesQuery(days_ahead=days_ahead)
                )
            except DomainException as exc:
                return error_response(exc.code, exc.message)
            return Response(LicenseDTOSerializer(licenses, many=True).data)


class LicenseCommandView(APIView):
    """
    Base view for lifecycle actions on one license.

    Subclasses name the handler, the optional request serializer and
    how the command is built from the validated body.
    """

    handler_class = None
    request_serializer_class = None
    operation = ""

    def build_command(self, license_key: str, data: dict):
        raise NotImplementedError

    def post(self, request: Request, license_key: str) -> Response:
        return async_to_sync(self._handle_command)(request, license_key)

    async def _handle_command(self, request: Request, license_key: str) -> Response:
        with tracer.start_as_current_span(self.operation) as span:
            span.set_attribute("operation", self.operation)
            span.set_attribute("license_key", mask_license_key(normalize_license_key(license_key)))

            data = {}
            if self.request_serializer_class is not None:
                serializer = self.request_serializer_class(data=request.data)
                if not serializer.is_valid():
                    span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                    return validation_error_response(serializer.errors)
                data = serializer.validated_data

            handler = dependencies.license_command_handler(self.handler_class)
            result = await handler.handle(self.build_command(license_key, data))

            if not result.ok:
                span.set_attribute("error", result.error_code)
                span.set_status(Status(StatusCode.ERROR, result.error_code))
                return error_response(result.error_code, result.message)

            span.set_status(Status(StatusCode.OK))
            return Response(OperationResultSerializer(result).data)


_command_schema = {
    "tags": ["Admin API"],
    "responses": {
        200: OperationResultSerializer,
        404: {"description": "License not found"},
        409: {"description": "Action not allowed in the license's status"},
        422: {"description": "Invalid argument"},
        503: {"description": "Temporary failure, safe to retry"},
    },
}


@extend_schema(
    operation_id="revoke_license",
    summary="Revoke License",
    description="Permanently revoke a license and close all of its activations.",
    request=None,
    **_command_schema,
)
class RevokeLicenseView(LicenseCommandView):
    handler_class = RevokeLicenseHandler
    operation = "revoke_license"

    def build_command(self, license_key, data):
        return RevokeLicenseCommand(license_key=license_key)


@extend_schema(
    operation_id="suspend_license",
    summary="Suspend License",
    request=None,
    **_command_schema,
)
class SuspendLicenseView(LicenseCommandView):
    handler_class = SuspendLicenseHandler
    operation = "suspend_license"

    def build_command(self, license_key, data):
        return SuspendLicenseCommand(license_key=license_key)


@extend_schema(
    operation_id="reactivate_license",
    summary="Reactivate License",
    request=None,
    **_command_schema,
)
class ReactivateLicenseView(LicenseCommandView):
    handler_class = ReactivateLicenseHandler
    operation = "reactivate_license"

    def build_command(self, license_key, data):
        return ReactivateLicenseCommand(license_key=license_key)


@extend_schema(
    operation_id="extend_license",
    summary="Extend License",
    request=ExtendLicenseRequestSerializer,
    **_command_schema,
)
class ExtendLicenseView(LicenseCommandView):
    handler_class = ExtendLicenseHandler
    request_serializer_class = ExtendLicenseRequestSerializer
    operation = "extend_license"

    def build_command(self, license_key, data):
        return ExtendLicenseCommand(license_key=license_key, days=data["days"])


@extend_schema(
    operation_id="transfer_license",
    summary="Transfer License",
    request=TransferLicenseRequestSerializer,
    **_command_schema,
)
class TransferLicenseView(LicenseCommandView):
    handler_class = TransferLicenseHandler
    request_serializer_class = TransferLicenseRequestSerializer
    operation = "transfer_license"

    def build_command(self, license_key, data):
        return TransferLicenseCommand(
            license_key=license_key,
            customer_email=data["customer_email"],
            customer_name=data.get("customer_name"),
            user_ref=data.get("user_ref"),
        )


@extend_schema(
    operation_id="set_license_overrides",
    summary="Set License Overrides",
    request=LicenseOverridesRequestSerializer,
    **_command_schema,
)
class LicenseOverridesView(LicenseCommandView):
    handler_class = SetLicenseOverridesHandler
    request_serializer_class = LicenseOverridesRequestSerializer
    operation = "set_license_overrides"

    def build_command(self, license_key, data):
        return SetLicenseOverridesCommand(
            license_key=license_key,
            custom_max_activations=data.get("custom_max_activations"),
            custom_expires_at=data.get("custom_expires_at"),
        )


@extend_schema(
    operation_id="start_trial",
    summary="Start Trial",
    request=StartTrialRequestSerializer,
    **_command_schema,
)
class StartTrialView(LicenseCommandView):
    handler_class = StartTrialHandler
    request_serializer_class = StartTrialRequestSerializer
    operation = "start_trial"

    def build_command(self, license_key, data):
        return StartTrialCommand(license_key=license_key, days=data.get("days"))


@extend_schema(
    operation_id="convert_trial",
    summary="Convert Trial to Subscription",
    request=None,
    **_command_schema,
)
class ConvertTrialView(LicenseCommandView):
    handler_class = ConvertTrialHandler
    operation = "convert_trial"

    def build_command(self, license_key, data):
        return ConvertTrialCommand(license_key=license_key)


@extend_schema(
    operation_id="enter_grace_period",
    summary="Enter Grace Period",
    request=None,
    **_command_schema,
)
class GracePeriodView(LicenseCommandView):
    handler_class = EnterGracePeriodHandler
    operation = "enter_grace_period"

    def build_command(self, license_key, data):
        return EnterGracePeriodCommand(license_key=license_key)


class RenewSubscriptionView(APIView):
    """View for recording a paid subscription renewal."""

    @extend_schema(
        operation_id="renew_subscription",
        summary="Renew Subscription",
        tags=["Admin API"],
        request=RenewSubscriptionRequestSerializer,
        responses={
            200: SubscriptionResultSerializer,
            404: {"description": "Subscription not found"},
            409: {"description": "Subscription is canceled"},
        },
    )
    def post(self, request: Request, subscription_id) -> Response:
        return async_to_sync(self._handle_renew)(request, subscription_id)

    async def _handle_renew(self, request: Request, subscription_id) -> Response:
        with tracer.start_as_current_span("renew_subscription") as span:
            span.set_attribute("subscription.id", str(subscription_id))
            serializer = RenewSubscriptionRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            command = RenewSubscriptionCommand(
                subscription_id=subscription_id,
                next_start=serializer.validated_data["next_start"],
                next_end=serializer.validated_data["next_end"],
            )
            handler = dependencies.subscription_handler(RenewSubscriptionHandler)
            result = await handler.handle(command)
            if not result.ok:
                span.set_status(Status(StatusCode.ERROR, result.error_code))
                return error_response(result.error_code, result.message)
            return Response(SubscriptionResultSerializer(result).data)


class CancelSubscriptionView(APIView):
    """View for canceling a subscription."""

    @extend_schema(
        operation_id="cancel_subscription",
        summary="Cancel Subscription",
        description="Stop renewals. The license keeps working until it expires.",
        tags=["Admin API"],
        request=None,
        responses={
            200: SubscriptionResultSerializer,
            404: {"description": "Subscription not found"},
        },
    )
    def post(self, request: Request, subscription_id) -> Response:
        return async_to_sync(self._handle_cancel)(subscription_id)

    async def _handle_cancel(self, subscription_id) -> Response:
        with tracer.start_as_current_span("cancel_subscription") as span:
            span.set_attribute("subscription.id", str(subscription_id))
            handler = dependencies.subscription_handler(CancelSubscriptionHandler)
            command = CancelSubscriptionCommand(subscription_id=subscription_id)
            result = await handler.handle(command)
            if not result.ok:
                span.set_status(Status(StatusCode.ERROR, result.error_code))
                return error_response(result.error_code, result.message)
            return Response(SubscriptionResultSerializer(result).data)
