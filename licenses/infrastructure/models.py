"""
License, LicenseAuditLog and IssuedOrder models.

This is the infrastructure layer model for licenses.
Domain entities are in licenses.domain.license.
"""
import uuid

from django.db import models
from django.utils import timezone


class License(models.Model):
    """
    One entitlement for one purchased unit of a product.

    Expiration is not stored as a status; it is derived from the
    effective expiration at read time.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("suspended", "Suspended"),
        ("revoked", "Revoked"),
    ]

    LICENSE_TYPE_CHOICES = [
        ("perpetual", "Perpetual"),
        ("subscription", "Subscription"),
        ("trial", "Trial"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license_key = models.CharField(max_length=64, unique=True, db_index=True)
    product = models.ForeignKey(
        "products.Product", on_delete=models.PROTECT, related_name="licenses"
    )
    order_ref = models.CharField(max_length=255, blank=True, db_index=True)
    user_ref = models.CharField(max_length=255, null=True, blank=True)
    customer_email = models.EmailField(db_index=True)
    customer_name = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    license_type = models.CharField(
        max_length=20, choices=LICENSE_TYPE_CHOICES, default="perpetual"
    )
    max_activations = models.PositiveIntegerField(null=True, blank=True)
    activation_count = models.PositiveIntegerField(
        default=0, help_text="Number of currently active activations"
    )
    expires_at = models.DateTimeField(null=True, blank=True)
    trial_ends_at = models.DateTimeField(null=True, blank=True)
    grace_period_ends_at = models.DateTimeField(null=True, blank=True)
    custom_max_activations = models.PositiveIntegerField(
        null=True, blank=True, help_text="Per-license cap override"
    )
    custom_expires_at = models.DateTimeField(
        null=True, blank=True, help_text="Per-license expiration override"
    )
    requires_machine_id = models.BooleanField(default=False)
    last_activated_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "licenses"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["product", "status"]),
            models.Index(fields=["expires_at"]),
        ]

    def clean(self):
        """Validate license fields."""
        from django.core.exceptions import ValidationError

        if not self.license_key or len(self.license_key.strip()) == 0:
            raise ValidationError("License key cannot be empty")
        if self.custom_max_activations is not None and self.custom_max_activations < 1:
            raise ValidationError("Custom max activations must be at least 1")

    def save(self, *args, **kwargs):
        """Save license with validation."""
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.license_key[:8]}... ({self.status})"


class LicenseAuditLog(models.Model):
    """
    Append-only trail of license events.

    Rows keep the license id without a foreign key so the trail
    outlives purged licenses.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license_id = models.UUIDField(db_index=True)
    license_key_partial = models.CharField(max_length=16)
    action = models.CharField(max_length=50)
    details = models.JSONField(default=dict, blank=True)
    event_id = models.UUIDField(unique=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "license_audit_logs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["license_id", "created_at"]),
            models.Index(fields=["action"]),
        ]

    def __str__(self):
        return f"{self.action} - {self.license_key_partial}"


class IssuedOrder(models.Model):
    """
    One row per order whose licenses were issued.

    The unique order reference serializes concurrent deliveries of the
    same order; the row is written in the same transaction as the
    order's licenses.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_ref = models.CharField(max_length=255, unique=True)
    license_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "issued_orders"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.order_ref} ({self.license_count} license(s))"
