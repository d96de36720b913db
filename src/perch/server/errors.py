"""Failure translation for perch requests.

Maps the error taxonomy to Response objects, using registered error
handlers or plain-text defaults. Only ``App.handle()`` calls into here.
"""

import logging
import traceback
from collections.abc import Callable
from http import HTTPStatus
from typing import Any

from perch.http.response import Redirect, Response
from perch.session import Session

logger = logging.getLogger("perch.server")


def status_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return f"Error {status}"


def default_error_response(status: int, detail: str = "") -> Response:
    """Plain error body: the detail when given, else the status phrase."""
    return Response(body=detail or status_phrase(status), status=status)


def internal_error_response(exc: BaseException, *, debug: bool) -> Response:
    """500 response; the traceback is only exposed in debug mode."""
    if debug:
        body = "".join(traceback.format_exception(exc))
        return Response(body=body, status=500, content_type="text/plain; charset=utf-8")
    return default_error_response(500)


def redirect_back(
    session: Session,
    target: str,
    errors: dict[str, list[str]],
    old: dict[str, Any],
) -> Response:
    """Flash *errors* and *old* input, then send the client to *target*."""
    session.flash("errors", errors)
    session.flash("old", old)
    logger.debug("Validation failed (%s), redirecting back to %s", ", ".join(errors), target)
    return Redirect(target).to_response()


def log_failure(status: int, method: str, path: str, exc: BaseException) -> None:
    if status >= 500:
        logger.error("%d %s %s", status, method, path, exc_info=exc)
    else:
        logger.debug("%d %s %s: %s", status, method, path, exc)


type ErrorHandler = Callable[..., Any]
