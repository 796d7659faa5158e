"""
ApiKey model for admin API authentication.
"""
import hashlib
import secrets
import uuid

from django.db import models
from django.utils import timezone


def hash_api_key(raw_key: str) -> str:
    """SHA-256 hex digest used to look up API keys."""
    return hashlib.sha256(raw_key.encode()).hexdigest()


class ApiKey(models.Model):
    """
    API keys for the administrative endpoints.

    Only the hash is stored; the raw key is available once, right
    after the first save, as `raw_key`.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, help_text="Who or what uses this key")
    key_prefix = models.CharField(max_length=8, editable=False)
    key_hash = models.CharField(max_length=64, editable=False, unique=True, db_index=True)
    is_active = models.BooleanField(default=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    last_used_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "api_keys"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} - {self.key_prefix}..."

    def save(self, *args, **kwargs):
        """Generate API key on first save."""
        if not self.key_hash:
            raw_key = secrets.token_urlsafe(32)
            self.key_prefix = raw_key[:8]
            self.key_hash = hash_api_key(raw_key)
            self.raw_key = raw_key
        self.full_clean()
        super().save(*args, **kwargs)

    def verify_key(self, raw_key: str) -> bool:
        """
        Verify a raw API key against the stored hash.

        Args:
            raw_key: The raw API key to verify

        Returns:
            True if key matches, False otherwise
        """
        return secrets.compare_digest(self.key_hash, hash_api_key(raw_key))

    def is_valid(self) -> bool:
        """
        Check if the API key can still be used.

        Returns:
            True if key is active and not expired
        """
        if not self.is_active:
            return False
        if self.expires_at and self.expires_at < timezone.now():
            return False
        return True

    def mark_used(self):
        """Update last_used_at timestamp."""
        self.last_used_at = timezone.now()
        self.save(update_fields=["last_used_at"])
