"""
Activation Django ORM model.

This is the infrastructure layer model for activations.
Domain entities are in activations.domain.activation.
"""
import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone


class LicenseActivation(models.Model):
    """
    Binding of a license to one machine.

    Consumes one unit of the license's cap while active. Rows are kept
    after deactivation as history.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license = models.ForeignKey(
        "licenses.License",
        on_delete=models.CASCADE,
        related_name="activations",
    )
    machine_fingerprint = models.CharField(
        max_length=500, help_text="Opaque client-supplied machine identifier"
    )
    machine_id = models.CharField(max_length=255, null=True, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default="")
    system_info = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    activated_at = models.DateTimeField(default=timezone.now)
    deactivated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "license_activations"
        ordering = ["-activated_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["license", "machine_fingerprint"],
                condition=Q(is_active=True),
                name="unique_active_activation_per_machine",
            ),
        ]
        indexes = [
            models.Index(fields=["license", "is_active"]),
            models.Index(fields=["license", "machine_fingerprint"]),
        ]

    def clean(self):
        """Validate activation fields."""
        from django.core.exceptions import ValidationError

        if not self.machine_fingerprint or len(self.machine_fingerprint.strip()) == 0:
            raise ValidationError("Machine fingerprint cannot be empty")

    def __str__(self):
        return f"{self.license_id} @ {self.machine_fingerprint}"
