"""
Django management command to list active licenses that expire soon.
"""

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

from core.domain.clock import SystemClock
from licenses.application.handlers.license_query_handlers import ExpiringLicensesHandler
from licenses.application.queries.license_queries import ExpiringLicensesQuery
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository


class Command(BaseCommand):
    """Command to list licenses expiring within a window."""

    help = "List active licenses whose effective expiration falls within the next N days"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--days",
            type=int,
            default=7,
            help="Window size in days (default: 7)",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        handler = ExpiringLicensesHandler(DjangoLicenseRepository(), SystemClock())
        days = options["days"]
        licenses = async_to_sync(handler.handle)(ExpiringLicensesQuery(days_ahead=days))

        self.stdout.write(f"Found {len(licenses)} license(s) expiring within {days} day(s)")
        for license in licenses:
            self.stdout.write(
                f"  - {license.masked_key} {license.customer_email} expires {license.expires_at}"
            )
