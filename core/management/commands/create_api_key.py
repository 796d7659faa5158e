"""
Django management command to create an administrative API key.

The raw key is printed once; only its hash is stored.
"""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from core.infrastructure.models import ApiKey


class Command(BaseCommand):
    """Command to create an API key."""

    help = "Create an API key for the administrative API"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument("name", help="Label of the key, e.g. storefront")
        parser.add_argument(
            "--expires-in-days",
            type=int,
            default=None,
            help="Expire the key after this many days (default: never)",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        expires_at = None
        if options["expires_in_days"] is not None:
            expires_at = timezone.now() + timedelta(days=options["expires_in_days"])

        api_key = ApiKey(name=options["name"], expires_at=expires_at)
        api_key.save()

        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS(f"Created API key '{api_key.name}'"))
        self.stdout.write(f"Key: {api_key.raw_key}")
        self.stdout.write(self.style.WARNING("Store this key now; it cannot be shown again."))
