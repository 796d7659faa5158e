"""
Django admin configuration for core app.
"""

from django.contrib import admin

from core.infrastructure.models import ApiKey


@admin.register(ApiKey)
class ApiKeyAdmin(admin.ModelAdmin):
    """
    Admin interface for ApiKey model.

    Keys are created with the create_api_key command so the raw value
    can be shown once; here they can only be inspected or disabled.
    """

    list_display = ["name", "key_prefix", "is_active", "expires_at", "last_used_at", "created_at"]
    list_filter = ["is_active"]
    search_fields = ["name", "key_prefix"]
    readonly_fields = ["id", "key_prefix", "created_at", "last_used_at"]
    exclude = ["key_hash"]

    def has_add_permission(self, request):
        return False
