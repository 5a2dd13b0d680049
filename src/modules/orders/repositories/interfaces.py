"""Order repository interface.

Extends ``IRepository[Order]`` with the methods required by the Order
aggregate: atomic creation with items, locked reads, and partial
updates guarded by an optimistic version check.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.constants import OrderStatus
    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes its OrderItem children.
    Mutations must be atomic.
    """

    @abstractmethod
    def create_order(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` carries ``customer_name``, ``delivery_address``,
        ``status``, ``total_amount`` and ``order_items`` (list of dicts
        with ``flower_id``, ``flower_name``, ``price``, ``quantity``).
        Assigns id, timestamps and version 1.
        """

    @abstractmethod
    def find_all(self, status: Optional[OrderStatus] = None) -> List[Order]:
        """List active orders, optionally restricted to one status."""

    @abstractmethod
    def find_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve an active order with prefetched items, or ``None``."""

    @abstractmethod
    def get_for_update(self, id: Any) -> Optional[Order]:
        """Like ``find_by_id`` but locks the row for the current transaction."""

    @abstractmethod
    def update_order(
        self,
        id: Any,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[Order]:
        """Apply a partial update and return the refreshed order.

        ``order_items`` in *fields* replaces the item rows.  Returns
        ``None`` when the order no longer exists.

        Raises:
            ConcurrentUpdateError: *expected_version* no longer matches.
        """

    @abstractmethod
    def soft_delete(self, id: Any) -> None:
        """Set ``deleted_at`` on the order."""
