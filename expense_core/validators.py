"""Validation helpers shared across the dashboard services and surfaces."""

from __future__ import annotations

import math
import re
from datetime import date
from typing import Iterable, Optional

from .exceptions import ValidationError
from .models import CATEGORIES, CURRENCIES, THEMES

MONTH_KEY_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def parse_amount(raw: object, field: str) -> float:
    """Convert raw input to a positive, finite float."""
    if raw is None or isinstance(raw, bool):
        raise ValidationError(f"{field} is required")
    if isinstance(raw, str) and not raw.strip():
        raise ValidationError(f"{field} is required")
    try:
        amount = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a numeric value") from exc

    if not math.isfinite(amount):
        raise ValidationError(f"{field} must be a finite number")
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return amount


def validate_iso_date(value: object, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    text = value.strip()
    try:
        parsed = date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)") from exc
    return parsed.isoformat()


def validate_month_key(value: object, field: str = "month") -> str:
    if not isinstance(value, str) or not MONTH_KEY_PATTERN.fullmatch(value.strip()):
        raise ValidationError(f"{field} must be formatted as YYYY-MM")
    return value.strip()


def validate_choice(value: object, field: str, allowed: Iterable[str]) -> str:
    """Exact-match membership check; enumerations here are case sensitive."""
    options = list(allowed)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    candidate = value.strip()
    if candidate not in options:
        raise ValidationError(f"{field} must be one of: {', '.join(options)}")
    return candidate


def validate_category(value: object) -> str:
    return validate_choice(value, "category", CATEGORIES)


def validate_currency(value: object) -> str:
    return validate_choice(value, "currency", CURRENCIES)


def validate_theme(value: object) -> str:
    return validate_choice(value, "theme", THEMES)


def validate_note(value: object) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError("note must be a string")
    return value.strip()


def validate_budget(value: object) -> str:
    """Normalise a monthly budget to its stored string form.

    Blank input clears the budget. Anything else must be a non-negative
    number and is kept as the user typed it (trimmed).
    """
    if value is None:
        return ""
    text = str(value).strip()
    if not text:
        return ""
    try:
        number = float(text)
    except ValueError as exc:
        raise ValidationError("monthly_budget must be a numeric value") from exc
    if not math.isfinite(number) or number < 0:
        raise ValidationError("monthly_budget must be zero or a positive number")
    return text


def budget_limit(value: Optional[str]) -> float:
    """Numeric view of a stored budget; unset or unusable budgets are 0."""
    if not value:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0
