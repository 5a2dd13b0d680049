from decimal import Decimal

import pytest

from rest_framework.test import APIClient

from modules.orders.constants import ClientRole, OrderStatus
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService

# Admin transitions that lead from PENDING to each status.
STATUS_PATHS = {
    OrderStatus.PENDING: [],
    OrderStatus.CONFIRMED: [OrderStatus.CONFIRMED],
    OrderStatus.PREPARING: [OrderStatus.CONFIRMED, OrderStatus.PREPARING],
    OrderStatus.READY: [
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
    ],
    OrderStatus.DELIVERED: [
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.DELIVERED,
    ],
    OrderStatus.CANCELLED: [OrderStatus.CANCELLED],
}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient without a client type."""
    return APIClient()


@pytest.fixture()
def admin_client():
    """APIClient identifying itself as the back-office."""
    client = APIClient()
    client.credentials(HTTP_X_CLIENT_TYPE="admin")
    return client


@pytest.fixture()
def app_client():
    """APIClient identifying itself as the iOS storefront."""
    client = APIClient()
    client.credentials(HTTP_X_CLIENT_TYPE="ios")
    return client


@pytest.fixture()
def order_payload():
    return {
        "customerName": "Ana Souza",
        "deliveryAddress": "12 Rose Lane, Springfield",
        "orderItems": [
            {"flowerId": "f1", "flowerName": "Rose", "price": 10, "quantity": 2},
        ],
    }


@pytest.fixture()
def service():
    return OrderService(order_repository=OrderDjangoRepository())


@pytest.fixture()
def make_order(service, order_payload):
    """Factory: create an order and walk it to *status* via admin updates."""

    def _make(status=OrderStatus.PENDING, **overrides):
        order = service.create_order({**order_payload, **overrides})
        for step in STATUS_PATHS[status]:
            order = service.update_order(order.id, {"status": step}, ClientRole.ADMIN)
        assert order.status == status
        return order

    return _make


@pytest.fixture()
def rose_total():
    """Total of ``order_payload``: 2 roses at 10.00."""
    return Decimal("20.00")
