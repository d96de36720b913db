"""Form validation with composable rules, clean results.

Usage::

    from perch.validation import validate, required, string

    async def store(request: Request, db: Database):
        data = validate(request.form, {
            "body": [required, string(1, 1000)],
        }).raise_for_errors(old=request.form)
        await db.execute("INSERT INTO notes (body) VALUES (:body)", data)
"""

from collections.abc import Mapping

from perch.validation.result import ValidationResult
from perch.validation.rules import (
    Validator,
    email,
    integer,
    max_length,
    min_length,
    required,
    string,
)

__all__ = [
    "ValidationResult",
    "Validator",
    "email",
    "integer",
    "max_length",
    "min_length",
    "required",
    "string",
    "validate",
]


def validate(
    data: Mapping[str, str],
    rules: dict[str, list[Validator]],
) -> ValidationResult:
    """Validate data against a set of rules.

    Args:
        data: Any mapping of field names to string values, such as
            ``request.form`` or a plain ``dict``.
        rules: Field name to a list of validators. Each validator returns
            an error message string on failure, or ``None`` on success.

    Returns:
        A ``ValidationResult`` with ``.data`` (values of fields that
        passed) and ``.errors`` (field to list of error messages).
    """
    errors: dict[str, list[str]] = {}
    cleaned: dict[str, str] = {}

    for field_name, validators in rules.items():
        value = data.get(field_name) or ""

        field_errors: list[str] = []
        for validator in validators:
            error = validator(value)
            if error is not None:
                field_errors.append(error)
                # No point running length checks on an empty value
                if validator is required:
                    break

        if field_errors:
            errors[field_name] = field_errors
        else:
            cleaned[field_name] = value

    return ValidationResult(data=cleaned, errors=errors)
