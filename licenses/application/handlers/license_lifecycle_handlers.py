"""
License lifecycle handlers.

Handlers for revoke, suspend, reactivate, extend, transfer, overrides,
trial and grace period commands. Each one mutates the license under
its row lock, the same lock activation uses.
"""
from datetime import datetime
from typing import Any, Dict, List, Tuple

from core.domain.events import DomainEvent
from core.domain.exceptions import InvalidArgumentError
from licenses.application.commands.license_actions import (
    ConvertTrialCommand,
    EnterGracePeriodCommand,
    ExtendLicenseCommand,
    ReactivateLicenseCommand,
    RevokeLicenseCommand,
    SetLicenseOverridesCommand,
    StartTrialCommand,
    SuspendLicenseCommand,
    TransferLicenseCommand,
)
from licenses.application.handlers.base import LicenseCommandHandler, license_event
from licenses.domain.events import (
    GracePeriodEntered,
    LicenseExtended,
    LicenseOverridesChanged,
    LicenseReactivated,
    LicenseRevoked,
    LicenseSuspended,
    LicenseTransferred,
    TrialConverted,
    TrialStarted,
)
from licenses.domain.license import License
from licenses.domain.services import LicenseLifecycleManager

Outcome = Tuple[License, List[DomainEvent], Dict[str, Any]]


class RevokeLicenseHandler(LicenseCommandHandler):
    """Handler for RevokeLicenseCommand."""

    action = "revoke"

    async def execute(
        self, license_key: str, command: RevokeLicenseCommand, now: datetime
    ) -> Outcome:
        def work(locked):
            previous = locked.license.status
            revoked, closed = LicenseLifecycleManager.revoke(locked, now)
            return previous, revoked, closed

        previous, revoked, closed = await self.run_locked(license_key, work, "license_revoke")
        events = []
        if previous != revoked.status or closed:
            events.append(
                license_event(LicenseRevoked, revoked, now, closed_activations=len(closed))
            )
        return revoked, events, {"closed_activations": len(closed)}


class SuspendLicenseHandler(LicenseCommandHandler):
    """Handler for SuspendLicenseCommand."""

    action = "suspend"

    async def execute(
        self, license_key: str, command: SuspendLicenseCommand, now: datetime
    ) -> Outcome:
        def work(locked):
            previous = locked.license.status
            return previous, LicenseLifecycleManager.suspend(locked, now)

        previous, suspended = await self.run_locked(license_key, work, "license_suspend")
        changed = previous != suspended.status
        events = [license_event(LicenseSuspended, suspended, now)] if changed else []
        return suspended, events, {"changed": changed}


class ReactivateLicenseHandler(LicenseCommandHandler):
    """Handler for ReactivateLicenseCommand."""

    action = "reactivate"

    async def execute(
        self, license_key: str, command: ReactivateLicenseCommand, now: datetime
    ) -> Outcome:
        def work(locked):
            previous = locked.license.status
            return previous, LicenseLifecycleManager.reactivate(locked, now)

        previous, reactivated = await self.run_locked(license_key, work, "license_reactivate")
        changed = previous != reactivated.status
        events = [license_event(LicenseReactivated, reactivated, now)] if changed else []
        return reactivated, events, {"changed": changed}


class ExtendLicenseHandler(LicenseCommandHandler):
    """Handler for ExtendLicenseCommand."""

    action = "extend"

    async def execute(
        self, license_key: str, command: ExtendLicenseCommand, now: datetime
    ) -> Outcome:
        extended = await self.run_locked(
            license_key,
            lambda locked: LicenseLifecycleManager.extend(locked, command.days, now),
            "license_extend",
        )
        event = license_event(
            LicenseExtended,
            extended,
            now,
            days=command.days,
            new_expiration=extended.effective_expires_at,
        )
        return extended, [event], {}


class TransferLicenseHandler(LicenseCommandHandler):
    """Handler for TransferLicenseCommand."""

    action = "transfer"

    async def execute(
        self, license_key: str, command: TransferLicenseCommand, now: datetime
    ) -> Outcome:
        def work(locked):
            previous_email = str(locked.license.customer_email)
            transferred = LicenseLifecycleManager.transfer(
                locked,
                command.customer_email,
                now,
                customer_name=command.customer_name,
                user_ref=command.user_ref,
            )
            return previous_email, transferred

        previous_email, transferred = await self.run_locked(
            license_key, work, "license_transfer"
        )
        event = license_event(
            LicenseTransferred,
            transferred,
            now,
            previous_email=previous_email,
            new_email=str(transferred.customer_email),
        )
        return transferred, [event], {}


class SetLicenseOverridesHandler(LicenseCommandHandler):
    """Handler for SetLicenseOverridesCommand."""

    action = "set_overrides"

    async def execute(
        self, license_key: str, command: SetLicenseOverridesCommand, now: datetime
    ) -> Outcome:
        updated = await self.run_locked(
            license_key,
            lambda locked: LicenseLifecycleManager.set_overrides(
                locked, command.custom_max_activations, command.custom_expires_at, now
            ),
            "license_set_overrides",
        )
        event = license_event(
            LicenseOverridesChanged,
            updated,
            now,
            custom_max_activations=updated.custom_max_activations,
            custom_expires_at=updated.custom_expires_at,
        )
        return updated, [event], {}


class StartTrialHandler(LicenseCommandHandler):
    """
    Handler for StartTrialCommand.

    The trial length defaults to the product's trial period; a
    non-positive length is rejected without touching the license.
    """

    action = "start_trial"

    async def execute(
        self, license_key: str, command: StartTrialCommand, now: datetime
    ) -> Outcome:
        product = await self.load_product(license_key)
        trial = await self.run_locked(
            license_key,
            lambda locked: LicenseLifecycleManager.start_trial(locked, product, command.days, now),
            "license_start_trial",
        )
        if trial is None:
            raise InvalidArgumentError("Trial length must be at least 1 day")
        event = license_event(TrialStarted, trial, now, trial_ends_at=trial.trial_ends_at)
        return trial, [event], {}


class ConvertTrialHandler(LicenseCommandHandler):
    """Handler for ConvertTrialCommand."""

    action = "convert_trial"

    async def execute(
        self, license_key: str, command: ConvertTrialCommand, now: datetime
    ) -> Outcome:
        product = await self.load_product(license_key)
        converted, subscription = await self.run_locked(
            license_key,
            lambda locked: LicenseLifecycleManager.convert_trial_to_subscription(
                locked, product, now
            ),
            "license_convert_trial",
        )
        subscription_id = subscription.id if subscription else None
        event = license_event(TrialConverted, converted, now, subscription_id=subscription_id)
        return converted, [event], {"subscription_id": subscription_id}


class EnterGracePeriodHandler(LicenseCommandHandler):
    """Handler for EnterGracePeriodCommand."""

    action = "enter_grace_period"

    async def execute(
        self, license_key: str, command: EnterGracePeriodCommand, now: datetime
    ) -> Outcome:
        product = await self.load_product(license_key)
        license = await self.run_locked(
            license_key,
            lambda locked: LicenseLifecycleManager.enter_grace_period(
                locked, product, self.config.default_grace_period_days, now
            ),
            "license_enter_grace_period",
        )
        event = license_event(
            GracePeriodEntered,
            license,
            now,
            grace_period_ends_at=license.grace_period_ends_at,
        )
        return license, [event], {}
