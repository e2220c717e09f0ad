"""Rule-based field validation.

A ``ValidationRule`` pairs a field name with a predicate and the message to
report when the predicate fails. ``validate`` runs every rule against a
payload and collects the messages per field, in rule order, without stopping
at the first failure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from app.core.errors import ValidationAppError

Predicate = Callable[[Any], bool]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?\(?[0-9]{1,4}\)?[-\s.]?[0-9]{1,3}[-\s.]?[0-9]{4,}$")
URL_PATTERN = re.compile(
    r"^https?://"
    r"(?:[^\s:@/]+(?::[^\s@/]*)?@)?"
    r"(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z]{2,63}"
    r"(?::\d{1,5})?"
    r"(?:[/?#]\S*)?$",
    re.IGNORECASE,
)
NUMERIC_PATTERN = re.compile(r"^\d+$")
NAME_PATTERN = re.compile(r"^[^\W\d_]+(?:[\s'-][^\W\d_]*)*$")


@dataclass(frozen=True)
class ValidationRule:
    """A single check on one field."""

    field: str
    validator: Predicate
    message: str


@dataclass
class ValidationResult:
    """Messages collected per field; valid when nothing was collected."""

    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise one aggregated ``ValidationAppError`` if any rule failed."""
        if self.errors:
            raise ValidationAppError.from_field_errors(self.errors)


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value))


def is_valid_phone(value: Any) -> bool:
    return isinstance(value, str) and bool(PHONE_PATTERN.match(value))


def is_valid_url(value: Any) -> bool:
    return isinstance(value, str) and bool(URL_PATTERN.match(value))


def is_required(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def is_numeric(value: Any) -> bool:
    """Digits only; integers are accepted as their decimal form."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value >= 0
    return isinstance(value, str) and bool(NUMERIC_PATTERN.match(value))


def min_length(minimum: int) -> Predicate:
    return lambda value: len(value) >= minimum


def max_length(maximum: int) -> Predicate:
    return lambda value: len(value) <= maximum


def in_range(minimum: float, maximum: float) -> Predicate:
    """Inclusive numeric range; numeric strings are converted first."""

    def check(value: Any) -> bool:
        if isinstance(value, bool):
            return False
        if isinstance(value, str):
            value = float(value)
        return minimum <= value <= maximum

    return check


def matches(pattern: str | re.Pattern[str]) -> Predicate:
    """Predicate passing when ``pattern`` is found anywhere in the value."""
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    return lambda value: isinstance(value, str) and compiled.search(value) is not None


def optional(predicate: Predicate) -> Predicate:
    """Skip ``predicate`` when the value is missing or blank."""
    return lambda value: not is_required(value) or predicate(value)


def _passes(rule: ValidationRule, value: Any) -> bool:
    try:
        return bool(rule.validator(value))
    except (AttributeError, TypeError, ValueError, OverflowError):
        # Value of the wrong shape for this predicate (e.g. len(None))
        return False


def validate(rules: Iterable[ValidationRule], data: Mapping[str, Any]) -> ValidationResult:
    """Evaluate every rule against ``data`` and aggregate the failures.

    Args:
        rules: Rules in declaration order.
        data: Field values keyed by field name; missing fields read as None.

    Returns:
        ValidationResult with each failing field's messages in rule order.
    """
    result = ValidationResult()
    for rule in rules:
        if not _passes(rule, data.get(rule.field)):
            result.errors.setdefault(rule.field, []).append(rule.message)
    return result


def password_rules(field_name: str = "password") -> list[ValidationRule]:
    """Length, uppercase, lowercase and digit checks, one message each."""
    return [
        ValidationRule(field_name, min_length(8), "Password must be at least 8 characters long"),
        ValidationRule(field_name, matches(r"[A-Z]"), "Password must contain at least one uppercase letter"),
        ValidationRule(field_name, matches(r"[a-z]"), "Password must contain at least one lowercase letter"),
        ValidationRule(field_name, matches(r"\d"), "Password must contain at least one number"),
    ]


def email_rules(field_name: str = "email") -> list[ValidationRule]:
    return [
        ValidationRule(field_name, is_required, "Email is required"),
        ValidationRule(field_name, is_valid_email, "Please provide a valid email address"),
    ]


def name_rules(field_name: str = "name") -> list[ValidationRule]:
    return [
        ValidationRule(field_name, is_required, "Name is required"),
        ValidationRule(
            field_name,
            lambda value: 2 <= len(value.strip()) <= 50,
            "Name must be between 2 and 50 characters",
        ),
        ValidationRule(
            field_name,
            matches(NAME_PATTERN),
            "Name can only contain letters, spaces, hyphens, and apostrophes",
        ),
    ]
