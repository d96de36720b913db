"""Route guards.

A route registered with ``middleware="auth"`` runs the guard bound in
the container as ``middleware.auth`` before its handler. A guard that
returns ``None`` lets the request through; anything else becomes the
response.
"""

from perch.http.response import Redirect
from perch.session import Session


class Authenticated:
    """Only signed-in users (a ``user`` in the session) may pass."""

    __slots__ = ("_redirect_to",)

    def __init__(self, redirect_to: str = "/") -> None:
        self._redirect_to = redirect_to

    def __call__(self, session: Session) -> Redirect | None:
        if session.get("user"):
            return None
        return Redirect(self._redirect_to)


class Guest:
    """Only visitors who are not signed in may pass."""

    __slots__ = ("_redirect_to",)

    def __init__(self, redirect_to: str = "/") -> None:
        self._redirect_to = redirect_to

    def __call__(self, session: Session) -> Redirect | None:
        if session.get("user"):
            return Redirect(self._redirect_to)
        return None


GUARDS: dict[str, type] = {
    "auth": Authenticated,
    "guest": Guest,
}
