"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
Every expected outcome derives from ``OrderError`` and carries a
machine-readable ``code``; the API layer (Views) catches ``OrderError``
only and translates it into an HTTP response.  Anything else is an
unexpected fault and propagates untouched.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class OrderErrorCode(str, Enum):
    VALIDATION_ERROR = "validation_error"
    STATUS_REQUIRED = "status_required"
    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    FORBIDDEN_FIELD = "forbidden_field"
    TERMINAL_STATE = "terminal_state"
    DELETE_STATE = "delete_state"
    CONCURRENT_UPDATE = "concurrent_update"
    CONSISTENCY_FAULT = "consistency_fault"


@dataclass(frozen=True)
class Violation:
    """A single field-level constraint violation."""

    field: str
    constraint: str
    message: str


class OrderError(Exception):
    """Base class for expected order business failures."""

    code: OrderErrorCode

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": str(self), "code": self.code.value}


class ValidationError(OrderError):
    """The candidate order breaks one or more field constraints."""

    code = OrderErrorCode.VALIDATION_ERROR

    def __init__(self, violations: Sequence[Violation], message: str = "Validation failed.") -> None:
        super().__init__(message)
        self.violations: List[Violation] = list(violations)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["violations"] = [asdict(v) for v in self.violations]
        return data


class StatusRequiredError(ValidationError):
    """An admin update arrived without a ``status`` field."""

    code = OrderErrorCode.STATUS_REQUIRED

    def __init__(self) -> None:
        super().__init__(
            [Violation("status", "required", "Field 'status' is required.")],
            "Status is required for admin update.",
        )


class NotFoundError(OrderError):
    """The requested order does not exist or has been soft-deleted."""

    code = OrderErrorCode.NOT_FOUND

    def __init__(self, order_id: Any) -> None:
        super().__init__(f"Order {order_id} not found.")
        self.order_id = order_id


class _StatusBoundError(OrderError):
    def __init__(self, message: str, current_status: str) -> None:
        super().__init__(message)
        self.current_status = current_status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["currentStatus"] = self.current_status
        return data


class InvalidTransitionError(_StatusBoundError):
    """The requested status is not a legal successor of the current one."""

    code = OrderErrorCode.INVALID_TRANSITION

    def __init__(
        self,
        current_status: str,
        requested_status: str,
        allowed_transitions: Dict[str, List[str]],
    ) -> None:
        super().__init__(
            f"Invalid status transition: {current_status} -> {requested_status}.",
            current_status,
        )
        self.requested_status = requested_status
        self.allowed_transitions = allowed_transitions

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["allowedTransitions"] = self.allowed_transitions
        return data


class TerminalStateError(_StatusBoundError):
    """DELIVERED and CANCELLED orders can no longer be modified."""

    code = OrderErrorCode.TERMINAL_STATE

    def __init__(self, current_status: str) -> None:
        super().__init__(
            f"Cannot update an order in terminal status {current_status}.",
            current_status,
        )


class DeleteStateError(_StatusBoundError):
    """Only cancelled orders may be soft-deleted without override."""

    code = OrderErrorCode.DELETE_STATE

    def __init__(self, current_status: str) -> None:
        super().__init__("Only cancelled orders can be deleted.", current_status)


class ForbiddenFieldError(OrderError):
    """The caller's role may not change this field."""

    code = OrderErrorCode.FORBIDDEN_FIELD

    def __init__(
        self,
        field: str,
        allowed_transitions: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        super().__init__(f"Field '{field}' cannot be updated by this client.")
        self.field = field
        self.allowed_transitions = allowed_transitions or {}

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["field"] = self.field
        data["allowedTransitions"] = self.allowed_transitions
        return data


class ConcurrentUpdateError(OrderError):
    """Another writer changed the order between our read and our write."""

    code = OrderErrorCode.CONCURRENT_UPDATE

    def __init__(self, order_id: Any, expected_version: int) -> None:
        super().__init__(
            f"Order {order_id} was modified concurrently "
            f"(expected version {expected_version})."
        )
        self.order_id = order_id
        self.expected_version = expected_version


class ConsistencyFault(OrderError):
    """The repository lost the row between the read and the write."""

    code = OrderErrorCode.CONSISTENCY_FAULT

    def __init__(self, order_id: Any) -> None:
        super().__init__(f"Order {order_id} vanished mid-update.")
        self.order_id = order_id
