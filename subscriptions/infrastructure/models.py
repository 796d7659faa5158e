"""
Subscription Django ORM model.
"""
import uuid

from django.db import models
from django.utils import timezone


class Subscription(models.Model):
    """Recurring billing period of a subscription-type license."""

    STATUS_CHOICES = [
        ("active", "Active"),
        ("canceled", "Canceled"),
        ("past_due", "Past Due"),
        ("unpaid", "Unpaid"),
    ]

    BILLING_CYCLE_CHOICES = [
        ("weekly", "Weekly"),
        ("monthly", "Monthly"),
        ("quarterly", "Quarterly"),
        ("yearly", "Yearly"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license = models.OneToOneField(
        "licenses.License", on_delete=models.CASCADE, related_name="subscription"
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    current_period_start = models.DateTimeField()
    current_period_end = models.DateTimeField()
    billing_cycle = models.CharField(
        max_length=20, choices=BILLING_CYCLE_CHOICES, null=True, blank=True
    )
    billing_interval = models.PositiveIntegerField(default=1)
    next_billing_date = models.DateTimeField(null=True, blank=True)
    auto_renew = models.BooleanField(default=True)
    canceled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "subscriptions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["current_period_end"]),
        ]

    def __str__(self):
        return f"Subscription {self.id} ({self.status})"
