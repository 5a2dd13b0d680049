"""Order domain constants.

Defines status choices, client roles, and the valid status transitions
for the order state machine.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, FrozenSet, List, Optional

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    PREPARING = "PREPARING", "Preparing"
    READY = "READY", "Ready"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"

    @classmethod
    def parse(cls, value: object) -> Optional[OrderStatus]:
        """Case-insensitive lookup. Returns ``None`` for unknown values."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class ClientRole(models.TextChoices):
    """Caller access class, resolved from the ``X-Client-Type`` header."""

    ADMIN = "admin", "Back-office"
    APP = "app", "Mobile storefront"


VALID_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES: FrozenSet[OrderStatus] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
)

# Column limits: OrderItem.quantity (PositiveIntegerField),
# OrderItem.position (PositiveSmallIntegerField) and
# Order.total_amount (DecimalField(max_digits=12, decimal_places=2)).
MAX_ITEM_QUANTITY = 2_147_483_647
MAX_ORDER_ITEMS = 32_767
MAX_TOTAL_AMOUNT = Decimal("9999999999.99")

_missing = set(OrderStatus) - set(VALID_TRANSITIONS)
if _missing:
    raise RuntimeError(f"VALID_TRANSITIONS has no row for {sorted(_missing)}")


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in VALID_TRANSITIONS[current]


def allowed_transitions_for(role: ClientRole) -> Dict[str, List[str]]:
    """Guidance map ``{status: [next statuses]}`` for *role*.

    The app role never changes status, so every row is empty for it.
    """
    if role == ClientRole.ADMIN:
        return {
            str(status): sorted(str(target) for target in targets)
            for status, targets in VALID_TRANSITIONS.items()
        }
    return {str(status): [] for status in OrderStatus}
