"""
Tests for OutboxService.
"""

import datetime as dt

import pytest
from django.core import mail
from django.utils import timezone

from notifications.models import OutboxMessage, OutboxStatus, OutboxTopic
from notifications.services import OutboxService
from notifications.tests.factories import OutboxMessageFactory


@pytest.mark.django_db
class TestEnqueue:
    def test_creates_pending_message(self):
        message = OutboxService.enqueue(OutboxTopic.PAYOUT_READY, {"payout_id": "p-1"})

        assert message.status == OutboxStatus.PENDING
        assert message.attempts == 0
        assert OutboxMessage.objects.get(pk=message.pk).payload == {"payout_id": "p-1"}


@pytest.mark.django_db
class TestDispatchPending:
    def test_dispatches_in_creation_order(self, mocker):
        first = OutboxMessageFactory()
        second = OutboxMessageFactory()
        seen = []
        mocker.patch(
            "notifications.handlers.dispatch_message",
            side_effect=lambda message: seen.append(message.pk),
        )

        summary = OutboxService.dispatch_pending()

        assert summary.dispatched == 2
        assert seen == [first.pk, second.pk]
        first.refresh_from_db()
        assert first.status == OutboxStatus.DISPATCHED
        assert first.attempts == 1
        assert first.dispatched_at is not None

    def test_respects_batch_size(self):
        OutboxMessageFactory.create_batch(3)

        summary = OutboxService.dispatch_pending(batch_size=2)

        assert summary.dispatched == 2
        assert OutboxMessage.objects.filter(status=OutboxStatus.PENDING).count() == 1

    def test_handler_error_returns_message_to_pending(self, failing_handler):
        failing_handler(OutboxTopic.ORDER_STATUS_CHANGED)
        message = OutboxMessageFactory()

        summary = OutboxService.dispatch_pending()

        assert summary.retried == 1
        message.refresh_from_db()
        assert message.status == OutboxStatus.PENDING
        assert message.attempts == 1
        assert "SMTP unavailable" in message.last_error

    def test_marks_failed_after_max_attempts(self, settings, failing_handler):
        settings.OUTBOX_MAX_ATTEMPTS = 2
        failing_handler(OutboxTopic.ORDER_STATUS_CHANGED)
        message = OutboxMessageFactory()

        OutboxService.dispatch_pending()
        summary = OutboxService.dispatch_pending()

        assert summary.failed == 1
        message.refresh_from_db()
        assert message.status == OutboxStatus.FAILED
        assert message.attempts == 2

    def test_failed_messages_are_not_retried(self, mocker):
        OutboxMessageFactory(status=OutboxStatus.FAILED, attempts=5)
        dispatch = mocker.patch("notifications.handlers.dispatch_message")

        summary = OutboxService.dispatch_pending()

        assert summary.as_dict() == {"dispatched": 0, "retried": 0, "failed": 0, "skipped": 0}
        dispatch.assert_not_called()

    def test_message_claimed_elsewhere_is_skipped(self, mocker):
        message = OutboxMessageFactory()
        original_filter = OutboxMessage.objects.filter

        def claim_first(*args, **kwargs):
            if kwargs.get("id") == message.pk and args:
                original_filter(pk=message.pk).update(status=OutboxStatus.DISPATCHING)
            return original_filter(*args, **kwargs)

        mocker.patch.object(OutboxMessage.objects, "filter", side_effect=claim_first)

        summary = OutboxService.dispatch_pending()

        assert summary.skipped == 1
        assert summary.dispatched == 0

    def test_topic_without_handler_counts_as_dispatched(self, mocker):
        mocker.patch.dict("notifications.handlers.OUTBOX_HANDLERS", clear=True)
        OutboxMessageFactory(topic=OutboxTopic.PAYOUT_READY, payload={})

        summary = OutboxService.dispatch_pending()

        assert summary.dispatched == 1
        assert mail.outbox == []


def strand_in_dispatching(message, minutes_ago, attempts=1):
    """Leave a message as a worker that died mid-send would."""
    OutboxMessage.objects.filter(pk=message.pk).update(
        status=OutboxStatus.DISPATCHING,
        attempts=attempts,
        updated_at=timezone.now() - dt.timedelta(minutes=minutes_ago),
    )


@pytest.mark.django_db
class TestStrandedDispatching:
    def test_stale_dispatching_message_is_redelivered(self, settings):
        settings.OUTBOX_DISPATCH_STALE_MINUTES = 10
        message = OutboxMessageFactory()
        strand_in_dispatching(message, minutes_ago=30)

        summary = OutboxService.dispatch_pending()

        assert summary.dispatched == 1
        message.refresh_from_db()
        assert message.status == OutboxStatus.DISPATCHED
        assert message.attempts == 2

    def test_recent_dispatching_message_is_left_alone(self, settings, mocker):
        settings.OUTBOX_DISPATCH_STALE_MINUTES = 10
        message = OutboxMessageFactory()
        strand_in_dispatching(message, minutes_ago=1)
        dispatch = mocker.patch("notifications.handlers.dispatch_message")

        summary = OutboxService.dispatch_pending()

        assert summary.dispatched == 0
        dispatch.assert_not_called()
        message.refresh_from_db()
        assert message.status == OutboxStatus.DISPATCHING
        assert message.attempts == 1

    def test_stranded_past_max_attempts_is_failed(self, settings, mocker):
        settings.OUTBOX_DISPATCH_STALE_MINUTES = 10
        settings.OUTBOX_MAX_ATTEMPTS = 3
        message = OutboxMessageFactory()
        strand_in_dispatching(message, minutes_ago=30, attempts=3)
        dispatch = mocker.patch("notifications.handlers.dispatch_message")

        summary = OutboxService.dispatch_pending()

        assert summary.failed == 1
        dispatch.assert_not_called()
        message.refresh_from_db()
        assert message.status == OutboxStatus.FAILED
        assert message.last_error
