"""
Pytest fixtures for order tests.
"""

import pytest

from core.tests.factories import UserFactory
from orders.tests.factories import OrderFactory


@pytest.fixture
def seller(db):
    return UserFactory()


@pytest.fixture
def pending_order(db, seller):
    return OrderFactory(seller=seller)


@pytest.fixture
def paid_order(db, seller):
    return OrderFactory(seller=seller, paid=True)


@pytest.fixture
def packed_order(db, seller):
    return OrderFactory(seller=seller, packed=True)


@pytest.fixture
def shipped_order(db, seller):
    return OrderFactory(seller=seller, shipped=True)
