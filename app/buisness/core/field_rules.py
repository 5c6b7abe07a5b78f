"""
Field coercion helpers shared by the business managers

Form posts deliver every value as a string while JSON bodies deliver native
types; these helpers accept both and collect messages into an errors map
instead of raising on the first problem.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

Errors = Dict[str, List[str]]

INT_PATTERN = re.compile(r"-?\d+")


def is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == '')


def _label(field: str) -> str:
    return field.replace('_', ' ')


def coerce_int(
    data: Dict[str, Any],
    field: str,
    errors: Errors,
    *,
    required: bool = False,
    minimum: Optional[int] = None,
    choices: Optional[Iterable[int]] = None,
) -> Optional[int]:
    """Read an integer field; returns None when absent or invalid"""
    value = data.get(field)
    if is_missing(value):
        if required:
            errors.setdefault(field, []).append(f"The {_label(field)} field is required.")
        return None

    if isinstance(value, bool):
        number = None
    elif isinstance(value, int):
        number = value
    elif isinstance(value, str) and INT_PATTERN.fullmatch(value.strip()):
        number = int(value.strip())
    else:
        number = None

    if number is None:
        errors.setdefault(field, []).append(f"The {_label(field)} must be an integer.")
        return None

    if minimum is not None and number < minimum:
        errors.setdefault(field, []).append(f"The {_label(field)} must be at least {minimum}.")
        return None

    if choices is not None:
        allowed = tuple(choices)
        if number not in allowed:
            errors.setdefault(field, []).append(f"The selected {_label(field)} is invalid.")
            return None

    return number


def coerce_str(
    data: Dict[str, Any],
    field: str,
    errors: Errors,
    *,
    required: bool = False,
    max_length: Optional[int] = None,
) -> Optional[str]:
    """Read a string field; returns the stripped value, or None when absent or invalid"""
    value = data.get(field)
    if is_missing(value):
        if required:
            errors.setdefault(field, []).append(f"The {_label(field)} field is required.")
        return None

    if not isinstance(value, str):
        errors.setdefault(field, []).append(f"The {_label(field)} must be a string.")
        return None

    value = value.strip()
    if max_length is not None and len(value) > max_length:
        errors.setdefault(field, []).append(
            f"The {_label(field)} may not be greater than {max_length} characters."
        )
        return None
    return value


def coerce_decimal(
    data: Dict[str, Any],
    field: str,
    errors: Errors,
    *,
    required: bool = False,
    minimum: Optional[Decimal] = None,
) -> Optional[Decimal]:
    """Read a decimal field such as a price"""
    value = data.get(field)
    if is_missing(value):
        if required:
            errors.setdefault(field, []).append(f"The {_label(field)} field is required.")
        return None

    if isinstance(value, bool):
        errors.setdefault(field, []).append(f"The {_label(field)} must be a number.")
        return None

    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        errors.setdefault(field, []).append(f"The {_label(field)} must be a number.")
        return None

    if not number.is_finite():
        errors.setdefault(field, []).append(f"The {_label(field)} must be a number.")
        return None

    if minimum is not None and number < minimum:
        errors.setdefault(field, []).append(f"The {_label(field)} must be at least {minimum}.")
        return None
    return number


def coerce_bool(data: Dict[str, Any], field: str) -> Optional[bool]:
    """Checkbox-style boolean: 'on', 'true', '1', True are truthy; absent is None"""
    value = data.get(field)
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('on', 'true', '1', 'yes')
