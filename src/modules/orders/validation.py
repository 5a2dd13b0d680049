"""Order validation contract.

``validate_order`` is a pure function: given a candidate order it
returns the list of field-level violations (empty when valid).
``parse_order`` applies the same contract and raises
``ValidationError`` carrying the full list.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

from pydantic import ValidationError as PydanticValidationError

from modules.orders.dtos import OrderCandidateDTO, OrderItemDTO
from modules.orders.exceptions import ValidationError, Violation

# camelCase alias -> attribute name, for both DTOs.
_FIELD_NAMES: Dict[str, str] = {
    (info.alias or name): name
    for model in (OrderCandidateDTO, OrderItemDTO)
    for name, info in model.model_fields.items()
}

_CONSTRAINTS: Dict[str, str] = {
    "missing": "required",
    "string_too_short": "non_empty",
    "string_too_long": "max_length",
    "greater_than_equal": "minimum",
    "less_than_equal": "maximum",
    "too_long": "max_length",
    "enum": "enum",
    "decimal_max_digits": "precision",
    "decimal_max_places": "precision",
    "decimal_whole_digits": "precision",
}


def normalize_keys(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of *payload* with known camelCase keys renamed."""
    data: Dict[str, Any] = {}
    for key, value in payload.items():
        data[_FIELD_NAMES.get(key, key)] = value
    return data


def _field_path(loc: Tuple[Any, ...]) -> str:
    return ".".join(
        _FIELD_NAMES.get(part, part) if isinstance(part, str) else str(part)
        for part in loc
    )


def _violations_from(exc: PydanticValidationError) -> List[Violation]:
    return [
        Violation(
            field=_field_path(error["loc"]),
            constraint=_CONSTRAINTS.get(error["type"], "type"),
            message=error["msg"],
        )
        for error in exc.errors()
    ]


def validate_order(candidate: Mapping[str, Any]) -> List[Violation]:
    try:
        OrderCandidateDTO.model_validate(dict(candidate))
    except PydanticValidationError as exc:
        return _violations_from(exc)
    return []


def parse_order(candidate: Mapping[str, Any]) -> OrderCandidateDTO:
    """Validate *candidate* and return the parsed DTO.

    Raises:
        ValidationError: with every violation found, never just the first.
    """
    try:
        return OrderCandidateDTO.model_validate(dict(candidate))
    except PydanticValidationError as exc:
        raise ValidationError(_violations_from(exc)) from exc
