from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from budgetboard.errors import ValidationError
from budgetboard.time_utils import parse_iso_date


CENT = Decimal("0.01")

# NUMERIC(15, 2): 13 integer digits
MAX_AMOUNT = Decimal("9999999999999.99")


def money(value: Any) -> Decimal:
    """
    Normalize a stored or aggregated amount to an exact 2-place Decimal.

    Drivers without native decimals (SQLite) hand back floats for SUM();
    going through str() keeps the value exact at cent precision.
    """
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number.")
    if isinstance(value, float):
        # floats arrive from JSON; repr() gives the shortest round-tripping text
        value = repr(value)
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number.")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number.")
    return result


def parse_amount(value: Any) -> Decimal:
    """Expense amount: strictly positive, cent precision."""
    try:
        amount = _to_decimal(value, "amount")
    except ValidationError:
        raise ValidationError("Amount must be a positive number.")
    if amount <= 0:
        raise ValidationError("Amount must be a positive number.")
    if amount > MAX_AMOUNT:
        raise ValidationError("Amount is too large.")
    # checked again after rounding: 0.001 stores as 0.00
    amount = money(amount)
    if amount == 0:
        raise ValidationError("Amount must be a positive number.")
    return amount


def parse_budget(value: Any) -> Decimal:
    """Project budget: zero or more."""
    budget = _to_decimal(value, "total_budget")
    if budget < 0:
        raise ValidationError("total_budget must be zero or more.")
    if budget > MAX_AMOUNT:
        raise ValidationError("total_budget is too large.")
    return money(budget)


def parse_date(value: Any, field: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO-8601 date.")
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date.")


def parse_int(value: Any, field: str) -> int:
    # Integers - strict validation to reject floats, bools and scientific notation
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    raise ValidationError(f"{field} must be an integer.")


def parse_progress(value: Any) -> int:
    progress = parse_int(value, "progress")
    if not 0 <= progress <= 100:
        raise ValidationError("progress must be between 0 and 100.")
    return progress


def parse_choice(value: Any, allowed: Iterable[str], field: str) -> str:
    allowed = tuple(allowed)
    if value not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(allowed)}.")
    return value


def clean_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip()
