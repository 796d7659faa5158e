"""
Serializers for administrative API endpoints.
"""

from rest_framework import serializers

from api.v1.product.serializers import LicenseDTOSerializer
from core.domain.value_objects import KeyFormat


class IssueLicenseRequestSerializer(serializers.Serializer):
    """Serializer for issuing a single license."""

    product_id = serializers.UUIDField(required=True)
    order_ref = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")
    customer_email = serializers.EmailField(required=True)
    customer_name = serializers.CharField(required=False, allow_blank=True, default="")
    user_ref = serializers.CharField(required=False, allow_null=True, default=None)
    custom_max_activations = serializers.IntegerField(required=False, min_value=1, allow_null=True)
    custom_expires_at = serializers.DateTimeField(required=False, allow_null=True)
    key_format = serializers.ChoiceField(
        choices=[key_format.value for key_format in KeyFormat], required=False
    )


class OrderItemSerializer(serializers.Serializer):
    """Serializer for one purchased product of an order."""

    product_id = serializers.UUIDField(required=True)
    quantity = serializers.IntegerField(required=False, min_value=1, default=1)


class OrderCompletedRequestSerializer(serializers.Serializer):
    """Serializer for an order-completed notification."""

    order_ref = serializers.CharField(required=True, max_length=255)
    customer_email = serializers.EmailField(required=True)
    customer_name = serializers.CharField(required=False, allow_blank=True, default="")
    user_ref = serializers.CharField(required=False, allow_null=True, default=None)
    items = OrderItemSerializer(many=True, required=True)


class IssueBatchRequestSerializer(serializers.Serializer):
    """Serializer for batch issuing."""

    product_id = serializers.UUIDField(required=True)
    count = serializers.IntegerField(required=True, min_value=1)
    customer_email = serializers.EmailField(required=True)
    customer_name = serializers.CharField(required=False, allow_blank=True, default="")


class ExtendLicenseRequestSerializer(serializers.Serializer):
    days = serializers.IntegerField(required=True)


class TransferLicenseRequestSerializer(serializers.Serializer):
    customer_email = serializers.EmailField(required=True)
    customer_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    user_ref = serializers.CharField(required=False, allow_null=True, default=None)


class LicenseOverridesRequestSerializer(serializers.Serializer):
    """Both overrides are replaced; omit a field to clear it."""

    custom_max_activations = serializers.IntegerField(required=False, allow_null=True)
    custom_expires_at = serializers.DateTimeField(required=False, allow_null=True)


class StartTrialRequestSerializer(serializers.Serializer):
    days = serializers.IntegerField(required=False, allow_null=True)


class RenewSubscriptionRequestSerializer(serializers.Serializer):
    """Serializer for a paid renewal of one subscription period."""

    next_start = serializers.DateTimeField(required=True)
    next_end = serializers.DateTimeField(required=True)

    def validate(self, attrs):
        if attrs["next_end"] <= attrs["next_start"]:
            raise serializers.ValidationError("next_end must be after next_start")
        return attrs


class IssueResultSerializer(serializers.Serializer):
    licenses = LicenseDTOSerializer(many=True)


class OperationResultSerializer(serializers.Serializer):
    """Serializer for administrative operation results."""

    message = serializers.CharField(allow_blank=True)
    license = LicenseDTOSerializer(allow_null=True)
    data = serializers.DictField()


class ActivationDTOSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    machine_fingerprint = serializers.CharField()
    machine_id = serializers.CharField(allow_null=True)
    ip_address = serializers.IPAddressField(allow_null=True)
    user_agent = serializers.CharField(allow_blank=True)
    system_info = serializers.DictField()
    is_active = serializers.BooleanField()
    activated_at = serializers.DateTimeField()
    deactivated_at = serializers.DateTimeField(allow_null=True)


class SubscriptionDTOSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    license_id = serializers.UUIDField()
    status = serializers.CharField()
    current_period_start = serializers.DateTimeField()
    current_period_end = serializers.DateTimeField()
    billing_cycle = serializers.CharField(allow_null=True)
    billing_interval = serializers.IntegerField()
    next_billing_date = serializers.DateTimeField(allow_null=True)
    auto_renew = serializers.BooleanField()
    canceled_at = serializers.DateTimeField(allow_null=True)


class LicenseDetailSerializer(serializers.Serializer):
    license = LicenseDTOSerializer()
    activations = ActivationDTOSerializer(many=True)
    subscription = SubscriptionDTOSerializer(allow_null=True)


class SubscriptionResultSerializer(serializers.Serializer):
    message = serializers.CharField(allow_blank=True)
    subscription = SubscriptionDTOSerializer(allow_null=True)
    license = LicenseDTOSerializer(allow_null=True)


class LicenseStatsSerializer(serializers.Serializer):
    """Serializer for license counters."""

    total = serializers.IntegerField()
    active = serializers.IntegerField()
    suspended = serializers.IntegerField()
    revoked = serializers.IntegerField()
    expired = serializers.IntegerField()
    consumed_activations = serializers.IntegerField()
    active_activations = serializers.IntegerField()
