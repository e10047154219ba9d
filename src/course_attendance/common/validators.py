from __future__ import annotations

from typing import Any, Iterable, List, NoReturn, Optional, Type

from ..core.constants import MAX_BULK_IDS
from ..core.exceptions import DomainError, ValidationError


def require(condition: Any, error: Type[DomainError], message: str) -> None:
    """Raise ``error(message)`` when ``condition`` is falsy."""
    if not condition:
        fail(error, message)


def fail(error: Type[DomainError], message: str) -> NoReturn:
    raise error(message)


def parse_id(value: Any, field_name: str = "id") -> int:
    """Accept positive ints or digit strings; anything else is malformed."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field_name}: {value!r}")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise ValidationError(f"Invalid {field_name}: {value!r}")
    if parsed <= 0:
        raise ValidationError(f"Invalid {field_name}: {value!r}")
    return parsed


def parse_optional_id(value: Any, field_name: str = "id") -> Optional[int]:
    if value is None or value == "":
        return None
    return parse_id(value, field_name)


def parse_id_batch(
    values: Iterable[Any],
    *,
    field_name: str,
    empty_message: str,
    too_many_message: str,
    max_items: int = MAX_BULK_IDS,
) -> List[int]:
    """Validate a batch of ids up front; duplicates are collapsed keeping order."""
    items = list(values or [])
    require(items, ValidationError, empty_message)
    require(len(items) <= max_items, ValidationError, too_many_message)
    ids = [parse_id(v, field_name) for v in items]
    return list(dict.fromkeys(ids))


def require_int_range(value: Any, field_name: str, *, minimum: int, maximum: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if parsed < minimum or parsed > maximum:
        raise ValidationError(f"{field_name} must be between {minimum} and {maximum}")
    return parsed


_TRUE_STRINGS = frozenset({"true", "1"})
_FALSE_STRINGS = frozenset({"false", "0", ""})


def parse_bool(value: Any, field_name: str, *, default: bool = False) -> bool:
    """Accept real booleans or "true"/"false"/"1"/"0" strings."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValidationError(f"{field_name} must be a boolean")
