"""Unit tests for OrderService.

Covers:
- Order creation with a derived total and a forced PENDING status.
- Case-insensitive status filtering.
- App (storefront) updates: field edits, item replacement, status guard.
- Admin updates: missing or malformed status.
- Soft deletion rules.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.constants import ClientRole, OrderStatus
from modules.orders.exceptions import (
    DeleteStateError,
    ForbiddenFieldError,
    NotFoundError,
    StatusRequiredError,
    TerminalStateError,
    ValidationError,
)
from modules.orders.models import Order
from modules.orders.services import calculate_total
from modules.orders.validation import parse_order

pytestmark = pytest.mark.unit


# ===========================================================================
# calculate_total
# ===========================================================================


class TestCalculateTotal:
    def test_empty(self):
        assert calculate_total([]) == Decimal("0.00")

    def test_sums_subtotals(self):
        candidate = parse_order(
            {
                "customer_name": "A",
                "delivery_address": "B",
                "order_items": [
                    {"flower_id": "1", "flower_name": "Rose", "price": "2.99", "quantity": 12},
                    {"flower_id": "2", "flower_name": "Lily", "price": "3.99", "quantity": 6},
                ],
            }
        )
        assert calculate_total(candidate.order_items) == Decimal("59.82")


# ===========================================================================
# create_order
# ===========================================================================


class TestCreateOrder:
    def test_creates_pending_order_with_total(self, service, order_payload, rose_total):
        order = service.create_order(order_payload)

        assert order.status == OrderStatus.PENDING
        assert order.total_amount == rose_total
        assert order.version == 1
        assert order.deleted_at is None
        items = list(order.items.all())
        assert len(items) == 1
        assert items[0].flower_name == "Rose"
        assert items[0].quantity == 2

    def test_ignores_client_status_and_total(self, service, order_payload, rose_total):
        payload = {**order_payload, "status": "delivered", "totalAmount": "999.99"}
        order = service.create_order(payload)

        assert order.status == OrderStatus.PENDING
        assert order.total_amount == rose_total

    def test_accepts_empty_items(self, service, order_payload):
        order = service.create_order({**order_payload, "orderItems": []})
        assert order.total_amount == Decimal("0.00")
        assert order.items.count() == 0

    def test_invalid_payload_raises_and_persists_nothing(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.create_order({"customerName": "", "orderItems": []})

        fields = {v.field for v in exc_info.value.violations}
        assert fields == {"customer_name", "delivery_address"}
        assert Order.objects.count() == 0

    def test_total_beyond_column_limit(self, service, order_payload):
        payload = {
            **order_payload,
            "orderItems": [
                {"flowerId": "f1", "flowerName": "Rose", "price": "99999999.99", "quantity": 10**6}
            ],
        }
        with pytest.raises(ValidationError) as exc_info:
            service.create_order(payload)

        assert [(v.field, v.constraint) for v in exc_info.value.violations] == [
            ("total_amount", "maximum")
        ]
        assert Order.objects.count() == 0

    def test_total_at_column_limit(self, service, order_payload):
        payload = {
            **order_payload,
            "orderItems": [
                {"flowerId": "f1", "flowerName": "Rose", "price": "99999999.99", "quantity": 100},
            ],
        }
        order = service.create_order(payload)
        assert order.total_amount == Decimal("9999999999.00")

    def test_quantity_beyond_column_limit(self, service, order_payload):
        payload = {
            **order_payload,
            "orderItems": [
                {"flowerId": "f1", "flowerName": "Rose", "price": "1.00", "quantity": 2**64}
            ],
        }
        with pytest.raises(ValidationError) as exc_info:
            service.create_order(payload)

        violation = exc_info.value.violations[0]
        assert (violation.field, violation.constraint) == (
            "order_items.0.quantity",
            "maximum",
        )
        assert Order.objects.count() == 0

    def test_non_mapping_payload(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.create_order(["not", "an", "object"])
        assert exc_info.value.violations[0].field == "payload"


# ===========================================================================
# Queries
# ===========================================================================


class TestQueries:
    def test_get_order_by_id(self, service, make_order):
        order = make_order()
        assert service.get_order_by_id(order.id).id == order.id

    def test_get_unknown_order(self, service):
        with pytest.raises(NotFoundError):
            service.get_order_by_id(uuid4())

    def test_get_malformed_id(self, service):
        with pytest.raises(NotFoundError):
            service.get_order_by_id("not-a-uuid")

    def test_get_all_without_filter(self, service, make_order):
        make_order()
        make_order(OrderStatus.CONFIRMED)
        assert len(service.get_all_orders()) == 2
        assert len(service.get_all_orders("")) == 2

    @pytest.mark.parametrize("raw", ["CONFIRMED", "confirmed", "Confirmed"])
    def test_status_filter_is_case_insensitive(self, service, make_order, raw):
        make_order()
        confirmed = make_order(OrderStatus.CONFIRMED)

        result = service.get_all_orders(raw)
        assert [o.id for o in result] == [confirmed.id]

    def test_unknown_status_filter(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.get_all_orders("shipped")
        assert exc_info.value.violations[0].constraint == "enum"

    def test_deleted_orders_are_hidden(self, service, make_order):
        order = make_order(OrderStatus.CANCELLED)
        service.soft_delete_order(order.id)

        assert service.get_all_orders() == []
        with pytest.raises(NotFoundError):
            service.get_order_by_id(order.id)


# ===========================================================================
# App updates
# ===========================================================================


class TestAppUpdate:
    def test_updates_address_only(self, service, make_order, rose_total):
        order = make_order()
        updated = service.update_order(
            order.id, {"deliveryAddress": "99 Tulip Road"}, ClientRole.APP
        )

        assert updated.delivery_address == "99 Tulip Road"
        assert updated.customer_name == order.customer_name
        assert updated.total_amount == rose_total
        assert updated.items.count() == 1
        assert updated.version == order.version + 1

    def test_replacing_items_recomputes_total(self, service, make_order):
        order = make_order()
        updated = service.update_order(
            order.id,
            {
                "orderItems": [
                    {"flowerId": "f2", "flowerName": "Lily", "price": "3.50", "quantity": 4},
                    {"flowerId": "f3", "flowerName": "Tulip", "price": "1.25", "quantity": 2},
                ],
                "totalAmount": "1.00",
            },
            ClientRole.APP,
        )

        assert updated.total_amount == Decimal("16.50")
        assert [i.flower_name for i in updated.items.all()] == ["Lily", "Tulip"]

    def test_empty_items_zero_total(self, service, make_order):
        order = make_order()
        updated = service.update_order(order.id, {"orderItems": []}, ClientRole.APP)
        assert updated.total_amount == Decimal("0.00")
        assert updated.items.count() == 0

    def test_status_change_forbidden(self, service, make_order):
        order = make_order()
        with pytest.raises(ForbiddenFieldError) as exc_info:
            service.update_order(
                order.id,
                {"status": "CANCELLED", "deliveryAddress": "elsewhere"},
                ClientRole.APP,
            )

        err = exc_info.value
        assert err.field == "status"
        assert all(targets == [] for targets in err.allowed_transitions.values())
        reloaded = service.get_order_by_id(order.id)
        assert reloaded.status == OrderStatus.PENDING
        assert reloaded.delivery_address == order.delivery_address

    @pytest.mark.parametrize("status", [None, ""])
    def test_blank_status_is_ignored(self, service, make_order, status):
        order = make_order()
        updated = service.update_order(
            order.id, {"status": status, "deliveryAddress": "X"}, ClientRole.APP
        )
        assert updated.delivery_address == "X"
        assert updated.status == OrderStatus.PENDING

    def test_items_total_beyond_column_limit(self, service, make_order, rose_total):
        order = make_order()
        with pytest.raises(ValidationError) as exc_info:
            service.update_order(
                order.id,
                {
                    "orderItems": [
                        {"flowerId": "f1", "flowerName": "Rose", "price": "99999999.99", "quantity": 10**6}
                    ]
                },
                ClientRole.APP,
            )

        assert exc_info.value.violations[0].field == "total_amount"
        reloaded = service.get_order_by_id(order.id)
        assert reloaded.total_amount == rose_total
        assert reloaded.version == order.version

    def test_same_status_is_allowed(self, service, make_order):
        order = make_order(OrderStatus.CONFIRMED)
        updated = service.update_order(
            order.id,
            {"status": "confirmed", "customerName": "Ana Lima"},
            ClientRole.APP,
        )
        assert updated.customer_name == "Ana Lima"
        assert updated.status == OrderStatus.CONFIRMED

    def test_invalid_merged_fields(self, service, make_order):
        order = make_order()
        with pytest.raises(ValidationError) as exc_info:
            service.update_order(order.id, {"customerName": ""}, ClientRole.APP)
        assert exc_info.value.violations[0].field == "customer_name"

    @pytest.mark.parametrize("status", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_terminal_orders_are_frozen(self, service, make_order, status):
        order = make_order(status)
        with pytest.raises(TerminalStateError) as exc_info:
            service.update_order(order.id, {"customerName": "x"}, ClientRole.APP)
        assert exc_info.value.current_status == status

    def test_unknown_order(self, service):
        with pytest.raises(NotFoundError):
            service.update_order(uuid4(), {"customerName": "x"}, ClientRole.APP)

    def test_empty_payload_bumps_version(self, service, make_order):
        order = make_order()
        updated = service.update_order(order.id, {}, ClientRole.APP)
        assert updated.version == order.version + 1


# ===========================================================================
# Admin updates
# ===========================================================================


class TestAdminUpdate:
    @pytest.mark.parametrize("payload", [{}, {"status": ""}, {"status": None}])
    def test_status_required(self, service, make_order, payload):
        order = make_order()
        with pytest.raises(StatusRequiredError) as exc_info:
            service.update_order(order.id, payload, ClientRole.ADMIN)
        assert exc_info.value.to_dict()["code"] == "status_required"

    def test_unknown_status_value(self, service, make_order):
        order = make_order()
        with pytest.raises(ValidationError) as exc_info:
            service.update_order(order.id, {"status": "SHIPPED"}, ClientRole.ADMIN)
        assert exc_info.value.violations[0].constraint == "enum"

    def test_other_fields_ignored(self, service, make_order):
        order = make_order()
        updated = service.update_order(
            order.id,
            {"status": "CONFIRMED", "customerName": "Someone Else"},
            ClientRole.ADMIN,
        )
        assert updated.status == OrderStatus.CONFIRMED
        assert updated.customer_name == order.customer_name


# ===========================================================================
# Soft delete
# ===========================================================================


class TestSoftDelete:
    def test_cancelled_order_can_be_deleted(self, service, make_order):
        order = make_order(OrderStatus.CANCELLED)
        service.soft_delete_order(order.id)

        row = Order.objects.get(id=order.id)
        assert row.deleted_at is not None

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.PENDING, OrderStatus.READY, OrderStatus.DELIVERED],
    )
    def test_non_cancelled_order_rejected(self, service, make_order, status):
        order = make_order(status)
        with pytest.raises(DeleteStateError) as exc_info:
            service.soft_delete_order(order.id)

        assert exc_info.value.current_status == status
        assert Order.objects.get(id=order.id).deleted_at is None

    def test_ignore_state_override(self, service, make_order):
        order = make_order(OrderStatus.PREPARING)
        service.soft_delete_order(order.id, ignore_state=True)
        assert Order.objects.get(id=order.id).deleted_at is not None

    def test_second_delete_is_not_found(self, service, make_order):
        order = make_order(OrderStatus.CANCELLED)
        service.soft_delete_order(order.id)
        with pytest.raises(NotFoundError):
            service.soft_delete_order(order.id)

    def test_unknown_order(self, service):
        with pytest.raises(NotFoundError):
            service.soft_delete_order(uuid4())
