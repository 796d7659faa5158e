"""
Django admin configuration for activations app.
"""

from django.contrib import admin
from django.utils.html import format_html

from activations.infrastructure.models import LicenseActivation


@admin.register(LicenseActivation)
class LicenseActivationAdmin(admin.ModelAdmin):
    """Admin interface for LicenseActivation model."""

    list_display = [
        "license",
        "fingerprint_display",
        "machine_id",
        "ip_address",
        "is_active_display",
        "activated_at",
        "deactivated_at",
    ]
    list_filter = ["is_active", "activated_at", "license__product"]
    search_fields = [
        "machine_fingerprint",
        "machine_id",
        "license__license_key",
        "license__customer_email",
    ]
    readonly_fields = [
        "id",
        "license",
        "machine_fingerprint",
        "is_active",
        "activated_at",
        "deactivated_at",
    ]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "license", "is_active"),
            },
        ),
        (
            "Machine Information",
            {
                "fields": (
                    "machine_fingerprint",
                    "machine_id",
                    "ip_address",
                    "user_agent",
                    "system_info",
                ),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("activated_at", "deactivated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def fingerprint_display(self, obj):
        """Display fingerprint with truncation."""
        if len(obj.machine_fingerprint) > 50:
            return format_html(
                '<span title="{}">{}</span>',
                obj.machine_fingerprint,
                obj.machine_fingerprint[:47] + "...",
            )
        return obj.machine_fingerprint

    fingerprint_display.short_description = "Machine"

    def is_active_display(self, obj):
        """Display active status with color."""
        if obj.is_active:
            return format_html('<span style="color: green; font-weight: bold;">✓ Active</span>')
        return format_html('<span style="color: red; font-weight: bold;">✗ Inactive</span>')

    is_active_display.short_description = "Status"

    def has_add_permission(self, request):
        """Activations are created through the API only."""
        return False

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("license__product")
