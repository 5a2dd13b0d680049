"""Unit tests for OrderDjangoRepository against the test database."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import ConcurrentUpdateError
from modules.orders.models import Order, OrderItem
from modules.orders.repositories.django_repository import OrderDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return OrderDjangoRepository()


def _data(**overrides):
    data = {
        "customer_name": "Carla",
        "delivery_address": "1 Orchid Way",
        "status": OrderStatus.PENDING,
        "total_amount": Decimal("7.00"),
        "order_items": [
            {"flower_id": "a", "flower_name": "Aster", "price": Decimal("1.00"), "quantity": 1},
            {"flower_id": "b", "flower_name": "Begonia", "price": Decimal("2.00"), "quantity": 3},
        ],
    }
    data.update(overrides)
    return data


class TestCreate:
    def test_persists_order_and_items_in_order(self, repo):
        order = repo.create_order(_data())

        assert order.version == 1
        items = list(order.items.all())
        assert [i.flower_id for i in items] == ["a", "b"]
        assert [i.position for i in items] == [0, 1]
        assert items[1].subtotal == Decimal("6.00")

    def test_without_items(self, repo):
        order = repo.create_order(_data(order_items=[]))
        assert order.items.count() == 0


class TestRead:
    def test_find_by_id(self, repo):
        order = repo.create_order(_data())
        assert repo.find_by_id(order.id).customer_name == "Carla"

    @pytest.mark.parametrize("bad_id", ["not-a-uuid", "1234"])
    def test_invalid_id_returns_none(self, repo, bad_id):
        assert repo.find_by_id(bad_id) is None
        assert repo.get_for_update(bad_id) is None

    def test_unknown_id_returns_none(self, repo):
        assert repo.find_by_id(uuid4()) is None

    def test_find_all_filters_by_status(self, repo):
        pending = repo.create_order(_data())
        repo.create_order(_data(status=OrderStatus.READY))

        assert [o.id for o in repo.find_all(status=OrderStatus.PENDING)] == [pending.id]
        assert len(repo.find_all()) == 2


class TestUpdate:
    def test_increments_version(self, repo):
        order = repo.create_order(_data())
        updated = repo.update_order(order.id, {"status": OrderStatus.CONFIRMED})

        assert updated.status == OrderStatus.CONFIRMED
        assert updated.version == 2

    def test_matching_expected_version(self, repo):
        order = repo.create_order(_data())
        updated = repo.update_order(
            order.id, {"customer_name": "Dora"}, expected_version=1
        )
        assert updated.customer_name == "Dora"

    def test_stale_version_raises(self, repo):
        order = repo.create_order(_data())
        repo.update_order(order.id, {"customer_name": "Dora"})

        with pytest.raises(ConcurrentUpdateError) as exc_info:
            repo.update_order(order.id, {"customer_name": "Eve"}, expected_version=1)

        assert exc_info.value.expected_version == 1
        assert repo.find_by_id(order.id).customer_name == "Dora"

    def test_replaces_items(self, repo):
        order = repo.create_order(_data())
        updated = repo.update_order(
            order.id,
            {
                "order_items": [
                    {"flower_id": "z", "flower_name": "Zinnia", "price": Decimal("5"), "quantity": 2}
                ],
                "total_amount": Decimal("10.00"),
            },
        )

        assert [i.flower_id for i in updated.items.all()] == ["z"]
        assert updated.total_amount == Decimal("10.00")
        assert OrderItem.objects.filter(order_id=order.id).count() == 1

    def test_unknown_field_rejected(self, repo):
        order = repo.create_order(_data())
        with pytest.raises(ValueError):
            repo.update_order(order.id, {"version": 99})

    def test_missing_order_returns_none(self, repo):
        assert repo.update_order(uuid4(), {"customer_name": "x"}, expected_version=1) is None

    def test_deleted_order_returns_none(self, repo):
        order = repo.create_order(_data(status=OrderStatus.CANCELLED))
        repo.soft_delete(order.id)
        assert repo.update_order(order.id, {"customer_name": "x"}) is None


class TestSoftDelete:
    def test_hides_order_but_keeps_row(self, repo):
        order = repo.create_order(_data())
        repo.soft_delete(order.id)

        assert repo.find_by_id(order.id) is None
        assert repo.find_all() == []
        row = Order.objects.get(id=order.id)
        assert row.is_deleted
        assert OrderItem.objects.filter(order_id=order.id).count() == 2

    def test_is_idempotent(self, repo):
        order = repo.create_order(_data())
        repo.soft_delete(order.id)
        first_stamp = Order.objects.get(id=order.id).deleted_at

        repo.soft_delete(order.id)
        assert Order.objects.get(id=order.id).deleted_at == first_stamp
