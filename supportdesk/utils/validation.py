"""Field validators shared by tools and services.

Each validator returns a :class:`ValidationResult` instead of raising, so
callers can run them in a fixed order and surface only the first failure.
Values coming from an LLM are not guaranteed to be strings; anything that is
not a string fails validation.
"""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DATE_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_24H_REGEX = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
SLUG_REGEX = re.compile(r"^[a-z0-9-]+$")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a single field validation."""

    valid: bool
    error: str | None = None


VALID = ValidationResult(valid=True)


def validate_email(email: Any) -> ValidationResult:
    if not isinstance(email, str) or not EMAIL_REGEX.match(email):
        return ValidationResult(False, "A valid email address is required")
    return VALID


def validate_date_format(value: Any) -> ValidationResult:
    """Check a YYYY-MM-DD string that names a real calendar date."""
    if not isinstance(value, str) or not DATE_REGEX.match(value):
        return ValidationResult(False, "Date must be in YYYY-MM-DD format")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return ValidationResult(False, "Date must be in YYYY-MM-DD format")
    return VALID


def validate_future_date(value: Any, today: date | None = None) -> ValidationResult:
    """Check the date is today or later."""
    format_result = validate_date_format(value)
    if not format_result.valid:
        return format_result

    if datetime.strptime(value, "%Y-%m-%d").date() < (today or date.today()):
        return ValidationResult(False, "Date cannot be in the past")
    return VALID


def validate_time_format(value: Any) -> ValidationResult:
    if not isinstance(value, str) or not TIME_24H_REGEX.match(value):
        return ValidationResult(False, "Time must be in HH:MM format (24-hour)")
    return VALID


def validate_business_hours(value: Any, start_hour: int = 9, end_hour: int = 18) -> ValidationResult:
    """Check an HH:MM time falls in ``[start_hour, end_hour)``."""
    format_result = validate_time_format(value)
    if not format_result.valid:
        return format_result

    hours = int(value.split(":")[0])
    if hours < start_hour or hours >= end_hour:
        return ValidationResult(False, f"Time must be between {start_hour}:00 and {end_hour}:00")
    return VALID


def validate_min_length(value: Any, min_length: int, field_name: str) -> ValidationResult:
    if not isinstance(value, str) or len(value.strip()) < min_length:
        return ValidationResult(False, f"{field_name} is required and must be at least {min_length} characters")
    return VALID


def validate_max_length(value: str, max_length: int, field_name: str) -> ValidationResult:
    if len(value) > max_length:
        return ValidationResult(False, f"{field_name} exceeds maximum length of {max_length} characters")
    return VALID


def validate_enum(value: Any, allowed_values: Sequence[str], field_name: str) -> ValidationResult:
    if value not in allowed_values:
        return ValidationResult(False, f"Invalid {field_name}. Must be one of: {', '.join(allowed_values)}")
    return VALID


def validate_slug(value: Any) -> ValidationResult:
    if not isinstance(value, str) or not SLUG_REGEX.match(value):
        return ValidationResult(False, "Business slug can only contain lowercase letters, numbers, and hyphens")
    return VALID


def combine_validations(validations: Iterable[ValidationResult]) -> ValidationResult:
    """Return the first failing result, or a valid one."""
    for validation in validations:
        if not validation.valid:
            return validation
    return VALID
