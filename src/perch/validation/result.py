"""Validation result: an immutable container for validated data or errors."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from perch.errors import ValidationError


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of validating input against a set of rules.

    Falsy when invalid::

        result = validate(request.form, rules)
        if not result:
            ...

    Or hand the failure to the dispatch boundary, which redirects back
    with ``errors`` and ``old`` flashed::

        validate(request.form, rules).raise_for_errors(old=request.form)
    """

    data: dict[str, str]
    errors: dict[str, list[str]]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.is_valid

    def raise_for_errors(self, old: Mapping[str, Any] | None = None) -> dict[str, str]:
        """Return ``data`` when valid; otherwise raise ``ValidationError``."""
        if self.errors:
            raise ValidationError(self.errors, old)
        return self.data
