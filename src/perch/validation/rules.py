"""Built-in validation rules.

Each validator is a callable with the signature::

    def rule(value: str) -> str | None:
        '''Return error message, or None if valid.'''

Parameterized validators are factory functions that return a validator.
Any callable matching ``(str) -> str | None`` works with ``validate()``.
"""

import re
from collections.abc import Callable

type Validator = Callable[[str], str | None]


def required(value: str) -> str | None:
    """Field must be present and non-empty."""
    if not value or not value.strip():
        return "This field is required"
    return None


def max_length(n: int) -> Validator:
    """String must be at most *n* characters."""

    def check(value: str) -> str | None:
        if len(value) > n:
            return f"Must be at most {n} characters"
        return None

    return check


def min_length(n: int) -> Validator:
    """String must be at least *n* characters."""

    def check(value: str) -> str | None:
        if len(value) < n:
            return f"Must be at least {n} characters"
        return None

    return check


def string(min: int = 1, max: float = float("inf"), message: str | None = None) -> Validator:  # noqa: A002
    """Trimmed string length must fall within ``[min, max]``."""

    def check(value: str) -> str | None:
        if min <= len(value.strip()) <= max:
            return None
        if message is not None:
            return message
        if max == float("inf"):
            return f"Must be at least {min} characters"
        return f"Must be between {min} and {int(max)} characters"

    return check


# Checks structure, not deliverability
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")


def email(value: str) -> str | None:
    """Value must be a valid email address (basic format check)."""
    if not _EMAIL_RE.match(value):
        return "Must be a valid email address"
    return None


def integer(value: str) -> str | None:
    """Value must be a valid integer."""
    try:
        int(value)
    except (ValueError, TypeError):
        return "Must be a whole number"
    return None
