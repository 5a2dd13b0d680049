"""Order and OrderItem models.

Business rules implemented:
- Status is a closed choice set; transitions are validated at the service
  layer against ``VALID_TRANSITIONS``.
- ``total_amount`` equals the sum of item subtotals whenever items are
  written (maintained by the repository).
- ``version`` is the optimistic concurrency token: every update is a
  compare-and-swap on it.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
- OrderItem rows are immutable line snapshots; an items update replaces
  the whole sequence, ``position`` keeps the client's order.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel
from modules.orders.constants import TERMINAL_STATES, OrderStatus, can_transition


class Order(SoftDeleteModel):
    """Order aggregate root.

    The UUIDv7 ``id`` is used for all internal references and API lookups.
    """

    customer_name: models.CharField = models.CharField(max_length=255)
    delivery_address: models.TextField = models.TextField()
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    version: models.PositiveIntegerField = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name="orders_total_amount_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.current_status in TERMINAL_STATES

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        return can_transition(self.current_status, new_status)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.customer_name} ({self.status})"


class OrderItem(BaseModel):
    """Line item: a flower snapshot with its unit price and quantity."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    position: models.PositiveSmallIntegerField = models.PositiveSmallIntegerField(
        default=0
    )
    flower_id: models.CharField = models.CharField(max_length=64)
    flower_name: models.CharField = models.CharField(max_length=255)
    price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )

    class Meta:
        db_table = "order_items"
        ordering = ["position"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="order_items_price_non_negative",
            ),
        ]

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    def __str__(self) -> str:
        return f"{self.flower_name} x{self.quantity}"
