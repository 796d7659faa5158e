"""
Product model.
"""
import uuid

from django.db import models
from django.utils import timezone


class Product(models.Model):
    """
    Represents a product that can be licensed.

    Holds the entitlement terms copied onto every license issued for it.
    """

    LICENSE_TYPE_CHOICES = [
        ("perpetual", "Perpetual"),
        ("subscription", "Subscription"),
    ]

    BILLING_CYCLE_CHOICES = [
        ("weekly", "Weekly"),
        ("monthly", "Monthly"),
        ("quarterly", "Quarterly"),
        ("yearly", "Yearly"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, help_text="Product display name")
    version = models.CharField(max_length=50, default="1.0")
    max_activations = models.PositiveIntegerField(
        default=1, help_text="Default activation cap for issued licenses"
    )
    license_type = models.CharField(
        max_length=20, choices=LICENSE_TYPE_CHOICES, default="perpetual"
    )
    license_duration_days = models.PositiveIntegerField(
        null=True, blank=True, help_text="Subscription term; leave empty for no expiry"
    )
    billing_cycle = models.CharField(
        max_length=20, choices=BILLING_CYCLE_CHOICES, null=True, blank=True
    )
    billing_interval = models.PositiveIntegerField(default=1)
    trial_period_days = models.PositiveIntegerField(default=0)
    grace_period_days = models.PositiveIntegerField(null=True, blank=True)
    requires_machine_id = models.BooleanField(
        default=False, help_text="Activations must report a machine id"
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "products"
        ordering = ["name"]

    def clean(self):
        """Validate product fields."""
        from django.core.exceptions import ValidationError

        if not self.name:
            raise ValidationError("Name is required")
        if self.max_activations < 1:
            raise ValidationError("Max activations must be at least 1")
        if self.billing_interval < 1:
            raise ValidationError("Billing interval must be at least 1")

    def save(self, *args, **kwargs):
        """Save product with validation."""
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} {self.version}"
