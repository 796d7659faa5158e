"""
Django management command to delete old revoked licenses.

This is the only path that physically deletes license rows. Their
activations and subscriptions go with them.
"""

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from core.domain.clock import SystemClock
from core.domain.exceptions import DomainException
from licenses.application.handlers.license_query_handlers import PurgeRevokedLicensesHandler
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository


class Command(BaseCommand):
    """Command to purge revoked licenses."""

    help = "Delete revoked licenses that have not changed for a number of days"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--older-than-days",
            type=int,
            default=90,
            help="Only purge licenses revoked at least this many days ago (default: 90)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - only count the licenses",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        dry_run = options["dry_run"]
        handler = PurgeRevokedLicensesHandler(DjangoLicenseRepository(), SystemClock())
        try:
            count = async_to_sync(handler.handle)(options["older_than_days"], dry_run=dry_run)
        except DomainException as exc:
            raise CommandError(exc.message) from exc

        if dry_run:
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING(f"DRY RUN - {count} license(s) would be purged"))
            return
        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS(f"Purged {count} revoked license(s)"))
