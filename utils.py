"""
utils.py
Validation, dates, membership numbers, CSV exports.
"""

from __future__ import annotations

import math
import time
from datetime import date, timedelta
import pandas as pd

from errors import ValidationError
from models import Duration

MIN_PASSWORD_LENGTH = 6


def add_months(start: date, months: int) -> date:
    """
    Add months while keeping day in valid range (e.g., Jan 31 + 1 month => Feb 28/29).
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    # last day of target month
    if m == 12:
        next_month = date(y + 1, 1, 1)
    else:
        next_month = date(y, m + 1, 1)
    last_day = next_month - timedelta(days=1)
    day = min(start.day, last_day.day)
    return date(y, m, day)


def calc_end_date(start: date, duration: Duration | str) -> date:
    return add_months(start, Duration(duration).months)


def generate_membership_number(now_ms: int | None = None) -> str:
    """'M' + last 8 digits of the epoch time in milliseconds."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return "M" + str(now_ms)[-8:]


def is_valid_email(email: str) -> bool:
    local, sep, domain = email.strip().partition("@")
    return bool(sep and local and domain and "@" not in domain and " " not in email.strip())


def validate_membership_inputs(full_name: str, email: str, phone: str) -> list[str]:
    errors: list[str] = []
    if not (full_name or "").strip() or not (email or "").strip() or not (phone or "").strip():
        errors.append("Please fill in all required fields")
    elif not is_valid_email(email):
        errors.append("Please enter a valid email address")
    return errors


def parse_amount(amount) -> float:
    """Parse a form amount; raises ValidationError unless it is a finite number > 0."""
    if amount is None or (isinstance(amount, str) and not amount.strip()):
        raise ValidationError("Please fill in all required fields")
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError("Please enter a valid amount") from None
    if not math.isfinite(value) or value <= 0:
        raise ValidationError("Please enter a valid amount")
    return value


def validate_new_password(new1: str, new2: str) -> list[str]:
    errors: list[str] = []
    if len(new1) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    elif new1 != new2:
        errors.append("Passwords do not match.")
    return errors


def records_to_csv_bytes(records, columns: list[str]) -> bytes:
    df = pd.DataFrame([r.as_dict() for r in records], columns=columns)
    return df.to_csv(index=False).encode("utf-8")
