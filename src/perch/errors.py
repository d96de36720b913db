"""Perch exception hierarchy.

Shared across Container, Router, App, and handlers so every module
raises and catches the same types. Only ``App.handle()`` translates
these into responses.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NoReturn


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when app or route configuration is invalid."""


class ResolutionError(PerchError, LookupError):
    """Raised when the container has no binding for a name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No binding registered for {name!r}")


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, guards, or handlers. ``App.handle()``
    catches these and renders the matching error response.
    """

    status: int
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class RouteNotFoundError(HTTPError):
    """404: no route matched the request method and path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class ForbiddenError(HTTPError):
    """403: the current user may not access the resource."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)


class ValidationError(PerchError):
    """Submitted input failed validation.

    Carries the field errors and the submitted input so the previous
    page can redisplay both after a redirect-back.
    """

    def __init__(
        self,
        errors: Mapping[str, list[str]],
        old: Mapping[str, Any] | None = None,
    ) -> None:
        self.errors = {field: list(messages) for field, messages in errors.items()}
        self.old = dict(old or {})
        super().__init__(f"Validation failed for: {', '.join(self.errors) or '(none)'}")

    @classmethod
    def throw(
        cls,
        errors: Mapping[str, list[str]],
        old: Mapping[str, Any] | None = None,
    ) -> NoReturn:
        raise cls(errors, old)
