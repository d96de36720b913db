"""Guards that raise instead of returning."""

from typing import NoReturn

from perch.errors import ForbiddenError, HTTPError, RouteNotFoundError


def abort(status: int = 404, detail: str = "") -> NoReturn:
    """Stop the request with an HTTP error status."""
    if status == 404:
        raise RouteNotFoundError(detail or "Not Found")
    if status == 403:
        raise ForbiddenError(detail or "Forbidden")
    raise HTTPError(status=status, detail=detail)


def authorize(condition: bool, status: int = 403, detail: str = "") -> None:
    """No-op when *condition* holds; otherwise abort with *status*."""
    if not condition:
        abort(status, detail)
