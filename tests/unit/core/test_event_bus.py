"""
Unit tests for the in-memory event bus and audit naming.
"""
import uuid
from datetime import datetime, timezone

import pytest

from core.domain.events import EventHandler
from core.infrastructure.event_handlers import (
    AUDITED_EVENTS,
    audit_action,
    audit_handler,
    register_event_handlers,
)
from core.infrastructure.events import InMemoryEventBus
from licenses.domain.events import LicenseRevoked, LicenseSuspended


def revoked_event():
    return LicenseRevoked(
        aggregate_id="license-1",
        occurred_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        license_id=uuid.uuid4(),
        license_key_partial="ABCD-EFG...",
        closed_activations=2,
    )


class CollectingHandler(EventHandler):
    def __init__(self):
        self.received = []

    async def handle(self, event):
        self.received.append(event)


class FailingHandler(EventHandler):
    async def handle(self, event):
        raise RuntimeError("subscriber down")


@pytest.mark.asyncio
class TestInMemoryEventBus:
    """Tests for InMemoryEventBus."""

    async def test_publish_to_subscribers(self):
        """Test subscribers receive events of their type only."""
        bus = InMemoryEventBus()
        handler = CollectingHandler()
        bus.subscribe(LicenseRevoked, handler)

        event = revoked_event()
        await bus.publish(event)
        await bus.publish(
            LicenseSuspended(
                aggregate_id="license-1", license_id=uuid.uuid4(), license_key_partial="X..."
            )
        )

        assert handler.received == [event]

    async def test_subscriber_failure_does_not_propagate(self):
        """Test a failing subscriber cannot break the publisher."""
        bus = InMemoryEventBus()
        collector = CollectingHandler()
        bus.subscribe(LicenseRevoked, FailingHandler())
        bus.subscribe(LicenseRevoked, collector)

        await bus.publish(revoked_event())

        assert len(collector.received) == 1

    async def test_same_handler_subscribed_once(self):
        bus = InMemoryEventBus()
        handler = CollectingHandler()
        bus.subscribe(LicenseRevoked, handler)
        bus.subscribe(LicenseRevoked, handler)

        await bus.publish(revoked_event())

        assert len(handler.received) == 1

    async def test_distinct_instances_of_one_class_both_receive(self):
        """Test two handlers of the same class are both delivered to."""
        bus = InMemoryEventBus()
        first, second = CollectingHandler(), CollectingHandler()
        bus.subscribe(LicenseRevoked, first)
        bus.subscribe(LicenseRevoked, second)

        await bus.publish(revoked_event())

        assert len(first.received) == 1
        assert len(second.received) == 1

    async def test_registering_audit_handlers_twice(self):
        """Test repeated registration keeps a single audit subscription."""
        bus = InMemoryEventBus()
        register_event_handlers(bus)
        register_event_handlers(bus)

        assert bus._handlers[LicenseRevoked] == [audit_handler]

    async def test_publish_without_subscribers(self):
        await InMemoryEventBus().publish(revoked_event())


class TestAuditNaming:
    """Tests for audit action names and event serialization."""

    def test_audit_action(self):
        assert audit_action(revoked_event()) == "license_revoked"

    def test_every_audited_event_is_a_license_event(self):
        from licenses.domain.events import LicenseEvent

        assert all(issubclass(event_type, LicenseEvent) for event_type in AUDITED_EVENTS)

    def test_to_dict(self):
        """Test events serialize to JSON-friendly values."""
        data = revoked_event().to_dict()

        assert data["event_type"] == "LicenseRevoked"
        assert data["occurred_at"] == "2026-01-01T00:00:00+00:00"
        assert data["closed_activations"] == 2
        assert isinstance(data["license_id"], str)
