"""
Fixtures for outbox and handler tests.
"""

import pytest

from core.tests.factories import UserFactory
from notifications.handlers import OUTBOX_HANDLERS


@pytest.fixture
def buyer(db):
    return UserFactory(email="buyer@example.com")


@pytest.fixture
def seller(db):
    return UserFactory(email="seller@example.com")


@pytest.fixture
def failing_handler(mocker):
    """Replace the handler for a topic with one that always raises."""

    def _install(topic, error=None):
        handler = mocker.Mock(side_effect=error or RuntimeError("SMTP unavailable"))
        mocker.patch.dict(OUTBOX_HANDLERS, {topic: handler})
        return handler

    return _install
