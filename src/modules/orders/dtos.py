"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
They carry the field constraints of the validation contract and are
immutable (``frozen=True``).  Payloads may use the camelCase keys of
the public API (``customerName``) or the snake_case attribute names.

- ``OrderItemDTO``: a single order line (flower, price, quantity).
- ``OrderCandidateDTO``: a full candidate order with nested items.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from modules.orders.constants import MAX_ITEM_QUANTITY, MAX_ORDER_ITEMS, OrderStatus

_DTO_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    str_strip_whitespace=True,
)


class OrderItemDTO(BaseModel):
    """Immutable line item: once attached to an order it is only replaced."""

    model_config = _DTO_CONFIG

    flower_id: str = Field(min_length=1, max_length=64)
    flower_name: str = Field(min_length=1, max_length=255)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(ge=1, le=MAX_ITEM_QUANTITY)

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class OrderCandidateDTO(BaseModel):
    """Immutable DTO for a candidate order (creation or merged update).

    ``order_items`` may be empty; there is no minimum-items rule.
    """

    model_config = _DTO_CONFIG

    customer_name: str = Field(min_length=1, max_length=255)
    delivery_address: str = Field(min_length=1)
    order_items: List[OrderItemDTO] = Field(
        default_factory=list, max_length=MAX_ORDER_ITEMS
    )
    total_amount: Decimal = Field(default=Decimal("0.00"), ge=0)
    status: OrderStatus = OrderStatus.PENDING

    @field_validator("status", mode="before")
    @classmethod
    def status_is_case_insensitive(cls, v: Any) -> Any:
        parsed = OrderStatus.parse(v)
        return parsed if parsed is not None else v

    def items_as_dicts(self) -> List[dict]:
        """Plain item dicts in repository form."""
        return [item.model_dump() for item in self.order_items]
