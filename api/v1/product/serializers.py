"""
Serializers for Product API endpoints.
"""

from rest_framework import serializers


class ValidateLicenseRequestSerializer(serializers.Serializer):
    """Serializer for validate license request."""

    license_key = serializers.CharField(required=True, max_length=100, trim_whitespace=True)
    machine_fingerprint = serializers.CharField(
        required=False, allow_blank=True, max_length=500
    )
    signature = serializers.CharField(required=False, allow_blank=True, max_length=128)


class ActivateLicenseRequestSerializer(serializers.Serializer):
    """Serializer for activate license request."""

    license_key = serializers.CharField(required=True, max_length=100)
    machine_fingerprint = serializers.CharField(required=True, max_length=500)
    machine_id = serializers.CharField(required=False, allow_blank=True, max_length=255)
    system_info = serializers.DictField(required=False, allow_empty=True, default=dict)


class DeactivateLicenseRequestSerializer(serializers.Serializer):
    """Serializer for deactivate license request."""

    license_key = serializers.CharField(required=True, max_length=100)
    machine_fingerprint = serializers.CharField(required=True, max_length=500)


class LicenseDTOSerializer(serializers.Serializer):
    """Serializer for LicenseDTO (shared with admin API)."""

    id = serializers.UUIDField()
    license_key = serializers.CharField()
    product_id = serializers.UUIDField()
    order_ref = serializers.CharField()
    user_ref = serializers.CharField(allow_null=True)
    customer_email = serializers.EmailField()
    customer_name = serializers.CharField(allow_blank=True)
    status = serializers.CharField()
    license_type = serializers.CharField()
    activation_count = serializers.IntegerField()
    max_activations = serializers.IntegerField()
    remaining_activations = serializers.IntegerField()
    expires_at = serializers.DateTimeField(allow_null=True)
    trial_ends_at = serializers.DateTimeField(allow_null=True)
    grace_period_ends_at = serializers.DateTimeField(allow_null=True)
    in_grace_period = serializers.BooleanField()
    custom_max_activations = serializers.IntegerField(allow_null=True)
    custom_expires_at = serializers.DateTimeField(allow_null=True)
    requires_machine_id = serializers.BooleanField()
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class ValidationResultSerializer(serializers.Serializer):
    """Serializer for validate license response."""

    valid = serializers.BooleanField()
    status = serializers.CharField()
    message = serializers.CharField()
    product_id = serializers.UUIDField(allow_null=True)
    product_name = serializers.CharField(allow_null=True)
    license_type = serializers.CharField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    activations_used = serializers.IntegerField()
    max_activations = serializers.IntegerField()
    activated_on_machine = serializers.BooleanField(allow_null=True)
    in_grace_period = serializers.BooleanField()
    trial_ends_at = serializers.DateTimeField(allow_null=True)
    signature_valid = serializers.BooleanField(allow_null=True)


class ActivationResultSerializer(serializers.Serializer):
    """Serializer for activate and deactivate responses."""

    activation_id = serializers.UUIDField(allow_null=True)
    remaining_activations = serializers.IntegerField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    message = serializers.CharField()
