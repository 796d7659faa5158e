"""
Django admin configuration for licenses app.
"""
import json

from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from activations.infrastructure.models import LicenseActivation
from licenses.infrastructure.models import License, LicenseAuditLog


class LicenseActivationInline(admin.TabularInline):
    """Read-only activation history on the license page."""

    model = LicenseActivation
    extra = 0
    can_delete = False
    fields = ["machine_fingerprint", "machine_id", "ip_address", "is_active", "activated_at"]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        """Activations are created through the API only."""
        return False


@admin.register(License)
class LicenseAdmin(admin.ModelAdmin):
    """Admin interface for License model."""

    list_display = [
        "license_key",
        "product",
        "customer_email",
        "status_display",
        "license_type",
        "activation_count",
        "expires_at",
        "created_at",
    ]
    list_filter = ["status", "license_type", "product", "created_at"]
    search_fields = ["license_key", "customer_email", "order_ref", "product__name"]
    readonly_fields = [
        "id",
        "license_key",
        "activation_count",
        "last_activated_at",
        "created_at",
        "updated_at",
    ]
    inlines = [LicenseActivationInline]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "license_key", "product", "status", "license_type"),
            },
        ),
        (
            "Customer",
            {
                "fields": ("customer_email", "customer_name", "user_ref", "order_ref"),
            },
        ),
        (
            "Entitlement",
            {
                "fields": (
                    "max_activations",
                    "custom_max_activations",
                    "requires_machine_id",
                    "activation_count",
                    "last_activated_at",
                ),
            },
        ),
        (
            "Expiration",
            {
                "fields": (
                    "expires_at",
                    "custom_expires_at",
                    "trial_ends_at",
                    "grace_period_ends_at",
                ),
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

    def status_display(self, obj):
        """Display effective status with color coding."""
        status = obj.status
        expires_at = obj.custom_expires_at or obj.expires_at
        if status == "active" and expires_at and expires_at < timezone.now():
            status = "expired"
        colors = {
            "active": "green",
            "suspended": "orange",
            "revoked": "red",
            "expired": "gray",
        }
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(status, "black"),
            status.upper(),
        )

    status_display.short_description = "Status"

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("product")


@admin.register(LicenseAuditLog)
class LicenseAuditLogAdmin(admin.ModelAdmin):
    """Admin interface for LicenseAuditLog model."""

    list_display = ["action", "license_key_partial", "license_id", "created_at"]
    list_filter = ["action", "created_at"]
    search_fields = ["license_key_partial", "license_id"]
    readonly_fields = [
        "id",
        "license_id",
        "license_key_partial",
        "action",
        "details_display",
        "event_id",
        "created_at",
    ]
    exclude = ["details"]

    def details_display(self, obj):
        """Display details in a formatted way."""
        if obj.details:
            return format_html(
                '<pre style="background: #f5f5f5; padding: 10px; '
                'border-radius: 4px; overflow-x: auto;">{}</pre>',
                json.dumps(obj.details, indent=2),
            )
        return "-"

    details_display.short_description = "Details"

    def has_add_permission(self, request):
        """Audit logs are read-only."""
        return False

    def has_change_permission(self, request, obj=None):
        """Audit logs are read-only."""
        return False

    def has_delete_permission(self, request, obj=None):
        """Audit logs should not be deleted."""
        return False
