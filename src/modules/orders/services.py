"""Order service layer (Use Cases).

Orchestrates the order lifecycle: creation with a derived total,
queries, role-gated updates, and soft deletion.  All write operations
are atomic; the service defines the unit-of-work boundary.

Business rules enforced:
- New orders always start PENDING; ``total_amount`` is derived from items.
- Status changes follow ``VALID_TRANSITIONS`` and are admin-only.
- DELIVERED and CANCELLED orders are frozen.
- Only CANCELLED orders may be soft-deleted unless the caller overrides.
- Updates are a locked read followed by a version compare-and-swap, so
  two writers racing from the same read cannot both succeed.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import structlog
from django.db import transaction

from modules.orders.constants import (
    MAX_TOTAL_AMOUNT,
    ClientRole,
    OrderStatus,
    allowed_transitions_for,
)
from modules.orders.exceptions import (
    ConsistencyFault,
    DeleteStateError,
    ForbiddenFieldError,
    InvalidTransitionError,
    NotFoundError,
    StatusRequiredError,
    TerminalStateError,
    ValidationError,
    Violation,
)
from modules.orders.validation import normalize_keys, parse_order

if TYPE_CHECKING:
    from modules.orders.dtos import OrderItemDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

APP_EDITABLE_FIELDS = ("customer_name", "delivery_address", "order_items")


def calculate_total(items: Iterable[OrderItemDTO]) -> Decimal:
    """Sum of ``price * quantity``; ``0.00`` for no items."""
    return sum((item.subtotal for item in items), Decimal("0.00"))


def _checked_total(items: Iterable[OrderItemDTO]) -> Decimal:
    """Derived total; must fit ``Order.total_amount``."""
    total = calculate_total(items)
    if total > MAX_TOTAL_AMOUNT:
        raise ValidationError(
            [
                Violation(
                    "total_amount",
                    "maximum",
                    f"Order total {total} exceeds {MAX_TOTAL_AMOUNT}.",
                )
            ]
        )
    return total


def _ensure_mapping(payload: Any) -> Mapping:
    if not isinstance(payload, Mapping):
        raise ValidationError(
            [Violation("payload", "type", "Request body must be a JSON object.")]
        )
    return payload


class OrderService:
    """Application service for Order use-cases.

    Receives the repository via constructor injection (DIP).
    """

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, payload: Mapping[str, Any]) -> Order:
        """Create a new PENDING order.

        Any client-supplied ``status`` or ``total_amount`` is discarded:
        the status is forced to PENDING and the total is derived from
        the items.

        Raises:
            ValidationError: the payload breaks the field constraints.
        """
        data = normalize_keys(_ensure_mapping(payload))
        data.pop("total_amount", None)
        data["status"] = OrderStatus.PENDING

        try:
            candidate = parse_order(data)
        except ValidationError as exc:
            logger.warning(
                "order.validation_failed",
                violations=[v.field for v in exc.violations],
            )
            raise

        total = _checked_total(candidate.order_items)
        order = self._order_repo.create_order(
            {
                "customer_name": candidate.customer_name,
                "delivery_address": candidate.delivery_address,
                "status": OrderStatus.PENDING,
                "total_amount": total,
                "order_items": candidate.items_as_dicts(),
            }
        )
        logger.info(
            "order.created",
            order_id=str(order.id),
            item_count=len(candidate.order_items),
            total_amount=str(total),
        )
        return order

    @transaction.atomic
    def update_order(
        self,
        order_id: Any,
        payload: Mapping[str, Any],
        role: ClientRole,
    ) -> Order:
        """Apply a role-gated partial update.

        - ``ClientRole.ADMIN`` may only move ``status`` along
          ``VALID_TRANSITIONS``; every other field is ignored.
        - ``ClientRole.APP`` may change anything except ``status``.
          New ``order_items`` recompute ``total_amount``.

        The order row is locked for the duration of the transaction and
        the write is a compare-and-swap on ``version``.

        Raises:
            NotFoundError: no active order with this id.
            TerminalStateError: the order is DELIVERED or CANCELLED.
            StatusRequiredError: admin payload without ``status``.
            ValidationError: bad status value or invalid merged fields.
            InvalidTransitionError: admin target not allowed.
            ForbiddenFieldError: app tried to change ``status``.
            ConcurrentUpdateError: another writer won the race.
            ConsistencyFault: the row vanished between read and write.
        """
        data = normalize_keys(_ensure_mapping(payload))
        order = self._order_repo.get_for_update(order_id)
        if order is None:
            raise NotFoundError(order_id)

        log = logger.bind(
            order_id=str(order.id),
            role=str(role),
            current_status=order.status,
        )

        if order.is_terminal:
            log.warning("order.update_terminal_rejected")
            raise TerminalStateError(order.status)

        if role == ClientRole.ADMIN:
            fields = self._admin_update_fields(order, data, log)
        else:
            fields = self._app_update_fields(order, data, log)

        updated = self._order_repo.update_order(
            order.id, fields, expected_version=order.version
        )
        if updated is None:
            log.error("order.vanished_mid_update")
            raise ConsistencyFault(order.id)

        log.info("order.updated", new_status=updated.status, fields=sorted(fields))
        return updated

    @transaction.atomic
    def soft_delete_order(self, order_id: Any, ignore_state: bool = False) -> None:
        """Logically delete an order.

        Raises:
            NotFoundError: no active order with this id.
            DeleteStateError: the order is not CANCELLED and
                ``ignore_state`` is false.
        """
        order = self._order_repo.get_for_update(order_id)
        if order is None:
            raise NotFoundError(order_id)

        if not ignore_state and order.status != OrderStatus.CANCELLED:
            logger.warning(
                "order.delete_rejected",
                order_id=str(order.id),
                current_status=order.status,
            )
            raise DeleteStateError(order.status)

        self._order_repo.soft_delete(order.id)
        logger.info(
            "order.deleted",
            order_id=str(order.id),
            status=order.status,
            ignore_state=ignore_state,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order_by_id(self, order_id: Any) -> Order:
        """Retrieve a single active order.

        Raises:
            NotFoundError: if the order does not exist or was deleted.
        """
        order = self._order_repo.find_by_id(order_id)
        if order is None:
            raise NotFoundError(order_id)
        return order

    def get_all_orders(self, status_filter: Optional[str] = None) -> List[Order]:
        """Return active orders, optionally filtered by status.

        The filter is case-insensitive (``"pending"`` == ``"PENDING"``).

        Raises:
            ValidationError: the filter is not a known status.
        """
        if status_filter is None or status_filter == "":
            return self._order_repo.find_all()

        status = OrderStatus.parse(status_filter)
        if status is None:
            raise ValidationError(
                [
                    Violation(
                        "status",
                        "enum",
                        f"Unknown status '{status_filter}'. "
                        f"Expected one of: {', '.join(OrderStatus.values)}.",
                    )
                ]
            )
        return self._order_repo.find_all(status=status)

    # ------------------------------------------------------------------
    # Role policies
    # ------------------------------------------------------------------

    @staticmethod
    def _admin_update_fields(
        order: Order, data: Dict[str, Any], log: Any
    ) -> Dict[str, Any]:
        raw_status = data.get("status")
        if raw_status is None or raw_status == "":
            log.warning("order.status_required")
            raise StatusRequiredError()

        target = OrderStatus.parse(raw_status)
        if target is None:
            raise ValidationError(
                [
                    Violation(
                        "status",
                        "enum",
                        f"Input should be one of: {', '.join(OrderStatus.values)}.",
                    )
                ]
            )

        if not order.can_transition_to(target):
            log.warning("order.invalid_transition", new_status=str(target))
            raise InvalidTransitionError(
                order.status, str(target), allowed_transitions_for(ClientRole.ADMIN)
            )
        return {"status": target}

    @staticmethod
    def _app_update_fields(
        order: Order, data: Dict[str, Any], log: Any
    ) -> Dict[str, Any]:
        # A null or empty status counts as absent.
        if data.get("status") not in (None, ""):
            requested = OrderStatus.parse(data["status"])
            if requested != order.current_status:
                log.warning("order.status_change_forbidden", requested=data["status"])
                raise ForbiddenFieldError(
                    "status", allowed_transitions_for(ClientRole.APP)
                )

        supplied = {name: data[name] for name in APP_EDITABLE_FIELDS if name in data}
        merged = {
            "customer_name": order.customer_name,
            "delivery_address": order.delivery_address,
            "order_items": [
                {
                    "flower_id": item.flower_id,
                    "flower_name": item.flower_name,
                    "price": item.price,
                    "quantity": item.quantity,
                }
                for item in order.items.all()
            ],
            "status": order.status,
            **supplied,
        }
        candidate = parse_order(merged)

        fields: Dict[str, Any] = {
            name: getattr(candidate, name)
            for name in ("customer_name", "delivery_address")
            if name in supplied
        }
        if "order_items" in supplied:
            fields["order_items"] = candidate.items_as_dicts()
            fields["total_amount"] = _checked_total(candidate.order_items)
        return fields
