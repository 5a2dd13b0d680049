"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
All write operations are wrapped in ``transaction.atomic()`` to ensure
the Order aggregate (Order + OrderItems) is persisted atomically.

Concurrency control on updates is a compare-and-swap on ``version``
(``UPDATE ... WHERE id = %s AND version = %s``).  ``get_for_update``
additionally takes a row lock on backends that support
``SELECT ... FOR UPDATE``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import ConcurrentUpdateError
from modules.orders.models import Order, OrderItem
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"customer_name", "delivery_address", "status", "total_amount"}
)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` keys:
        - ``customer_name``, ``delivery_address`` (required)
        - ``status`` (defaults to PENDING)
        - ``total_amount`` (defaults to 0)
        - ``order_items``: list of dicts with ``flower_id``,
          ``flower_name``, ``price``, ``quantity``
        """
        order = Order(
            customer_name=data["customer_name"],
            delivery_address=data["delivery_address"],
            status=data.get("status", OrderStatus.PENDING),
            total_amount=data.get("total_amount", 0),
        )
        order.save()

        items = data.get("order_items") or []
        self._replace_items(order.id, items)

        logger.info("order.persisted", order_id=str(order.id), item_count=len(items))
        return self.find_by_id(order.id) or order

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_order(
        self,
        id: Any,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[Order]:
        """Partial update guarded by an optimistic version check.

        Returns ``None`` when no active row matches *id*.
        """
        values = dict(fields)
        items = values.pop("order_items", None)
        unknown = set(values) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update order fields: {sorted(unknown)}")

        queryset = Order.objects.alive().filter(id=id)
        if expected_version is not None:
            queryset = queryset.filter(version=expected_version)

        updated = queryset.update(
            **values,
            version=F("version") + 1,
            updated_at=timezone.now(),
        )
        if not updated:
            if (
                expected_version is not None
                and Order.objects.alive().filter(id=id).exists()
            ):
                logger.warning(
                    "order.version_conflict",
                    order_id=str(id),
                    expected_version=expected_version,
                )
                raise ConcurrentUpdateError(id, expected_version)
            return None

        if items is not None:
            OrderItem.objects.filter(order_id=id).delete()
            self._replace_items(id, items)

        logger.info("order.updated", order_id=str(id), fields=sorted(fields))
        return self.find_by_id(id)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def find_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve an active order with its items prefetched.

        Returns ``None`` for non-existent, soft-deleted or invalid IDs.
        """
        try:
            return Order.objects.alive().prefetch_related("items").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: Any) -> Optional[Order]:
        """Retrieve an active order with a row-level lock (SELECT FOR UPDATE).

        Must run inside ``transaction.atomic``.  Returns ``None`` for
        non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.alive()
                .select_for_update()
                .prefetch_related("items")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def find_all(self, status: Optional[OrderStatus] = None) -> List[Order]:
        """List active orders with items prefetched (prevents N+1)."""
        queryset = Order.objects.alive().prefetch_related("items")
        if status is not None:
            queryset = queryset.filter(status=status)
        return list(queryset)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    @transaction.atomic
    def soft_delete(self, id: Any) -> None:
        count, _ = Order.objects.alive().filter(id=id).delete()
        logger.info("order.soft_deleted", order_id=str(id), count=count)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _replace_items(order_id: Any, items: Iterable[Mapping[str, Any]]) -> None:
        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order_id=order_id,
                    position=position,
                    flower_id=item["flower_id"],
                    flower_name=item["flower_name"],
                    price=item["price"],
                    quantity=item["quantity"],
                )
                for position, item in enumerate(items)
            ]
        )
