from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from ..core.constants import MAX_PAGE_SIZE
from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_STAFF_ID_RE = re.compile(r"^[A-Z0-9]{5,12}$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_email(value: Optional[str]) -> str:
    email = require_non_empty(value, "Email").lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("Email is not valid")
    return email


def optional_staff_id(value: Any) -> Optional[str]:
    staff_id = optional_text(value)
    if staff_id is None:
        return None
    staff_id = staff_id.upper()
    if not _STAFF_ID_RE.match(staff_id):
        raise ValidationError("Staff ID must be 5-12 uppercase letters or digits")
    return staff_id


def require_positive_decimal(value: Any, field_name: str) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number")
    if not number.is_finite() or number <= 0:
        raise ValidationError(f"{field_name} must be greater than zero")
    return number


def require_positive_amount(value: Any, field_name: str, *, places: Decimal, max_value: Decimal) -> Decimal:
    """Positive decimal that stays positive once rounded to `places` and fits under `max_value`."""

    number = require_positive_decimal(value, field_name)
    if number > max_value:
        raise ValidationError(f"{field_name} cannot exceed {max_value}")
    rounded = number.quantize(places, rounding=ROUND_HALF_UP)
    if rounded <= 0:
        raise ValidationError(f"{field_name} must be at least {places}")
    return rounded


def require_positive_int(value: Any, field_name: str) -> int:
    number = require_positive_decimal(value, field_name)
    if number != number.to_integral_value():
        raise ValidationError(f"{field_name} must be a whole number")
    return int(number)


def parse_int_arg(value: Optional[str], field_name: str, *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be an integer")


def page_args(page: Optional[str], limit: Optional[str], *, default_limit: int, max_limit: int = MAX_PAGE_SIZE) -> tuple[int, int]:
    """Return (limit, offset) from raw query string values."""

    page_n = max(parse_int_arg(page, "page", default=1), 1)
    limit_n = parse_int_arg(limit, "limit", default=default_limit)
    limit_n = min(max(limit_n, 1), max_limit)
    return limit_n, (page_n - 1) * limit_n
