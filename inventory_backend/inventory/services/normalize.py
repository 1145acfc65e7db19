# inventory/services/normalize.py

"""
Input normalizers shared by the inventory services.

HARD RULE: quantities are integer units in this system.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.core.exceptions import ValidationError

TWOPLACES = Decimal("0.01")

RECEIPT_PREFIX = "RCV"
SALE_PREFIX = "SALE"
TRANSFER_PREFIX = "TR"
RETURN_PREFIX = "RET"
ADJUSTMENT_PREFIX = "ADJ"


def to_int_qty(value, *, field_name: str = "quantity") -> int:
    if value is None or value == "":
        return 0

    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole integer unit")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        s = value.strip()
        if s.lstrip("-").isdigit():
            return int(s)

    raise ValidationError(f"{field_name} must be a whole integer unit")


def require_positive_qty(value, *, field_name: str = "quantity") -> int:
    qty = to_int_qty(value, field_name=field_name)
    if qty <= 0:
        raise ValidationError(f"{field_name} must be greater than zero")
    return qty


def require_non_negative_qty(value, *, field_name: str = "quantity") -> int:
    qty = to_int_qty(value, field_name=field_name)
    if qty < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return qty


def to_money(value, *, field_name: str = "amount") -> Decimal:
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    try:
        amount = Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field_name} must be a valid decimal") from exc
    if amount < Decimal("0.00"):
        raise ValidationError(f"{field_name} cannot be negative")
    return amount


def to_optional_date(value, *, field_name: str = "expiration_date") -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD") from exc


def mint_reference(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10].upper()}"
