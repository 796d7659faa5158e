"""
Django admin configuration for subscriptions app.
"""

from django.contrib import admin

from subscriptions.infrastructure.models import Subscription


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    """Admin interface for Subscription model."""

    list_display = [
        "license",
        "status",
        "billing_cycle",
        "current_period_end",
        "next_billing_date",
        "auto_renew",
    ]
    list_filter = ["status", "billing_cycle", "auto_renew"]
    search_fields = ["license__license_key", "license__customer_email"]
    readonly_fields = ["id", "license", "canceled_at", "created_at", "updated_at"]

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("license")
