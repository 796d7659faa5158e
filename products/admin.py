"""
Django admin configuration for products app.
"""

from django.contrib import admin

from products.infrastructure.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for Product model."""

    list_display = [
        "name",
        "version",
        "license_type",
        "max_activations",
        "license_duration_days",
        "billing_cycle",
        "license_count",
        "is_active",
    ]
    list_filter = ["license_type", "billing_cycle", "is_active"]
    search_fields = ["name"]
    readonly_fields = ["id", "created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "name", "version", "is_active"),
            },
        ),
        (
            "Entitlement Terms",
            {
                "fields": (
                    "license_type",
                    "max_activations",
                    "license_duration_days",
                    "trial_period_days",
                    "grace_period_days",
                    "requires_machine_id",
                ),
            },
        ),
        (
            "Billing",
            {
                "fields": ("billing_cycle", "billing_interval"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def license_count(self, obj):
        """Display number of licenses for this product."""
        return obj.licenses.count()

    license_count.short_description = "Licenses"

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).prefetch_related("licenses")
