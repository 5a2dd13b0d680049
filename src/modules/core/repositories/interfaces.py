"""Generic repository interface (Dependency Inversion Principle).

Provides ``IRepository[T]``, the base abstract class that all
domain-specific repository interfaces extend.  Service-layer code
depends on this abstraction, never on Django ORM directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    Type parameter ``T`` represents the domain entity managed by the
    repository (e.g. ``Order``).  Only *active* (not soft-deleted)
    entities are ever returned.
    """

    @abstractmethod
    def find_by_id(self, id: Any) -> Optional[T]:
        """Retrieve an active entity by its primary key."""

    @abstractmethod
    def find_all(self, **filters: Any) -> List[T]:
        """List active entities with optional filters."""

    @abstractmethod
    def soft_delete(self, id: Any) -> None:
        """Mark an entity as logically deleted."""
